"""Tests for anchor math, unit conversion and cap-height correction."""

from unittest.mock import MagicMock, patch

import pytest


class TestAnchorPosition:
    def test_center(self):
        from scenecompose.metrics import anchor_position

        assert anchor_position("center", 1000, 1000, 100, 50) == (450, 475)

    def test_bottom_right_with_offsets(self):
        from scenecompose.metrics import anchor_position

        assert anchor_position("bottom-right", 1000, 1000, 100, 50, 10, -10) == (910, 940)

    @pytest.mark.parametrize("anchor,expected", [
        ("top-left", (0, 0)),
        ("top-center", (450, 0)),
        ("top-right", (900, 0)),
        ("center-left", (0, 475)),
        ("center-right", (900, 475)),
        ("bottom-left", (0, 950)),
        ("bottom-center", (450, 950)),
    ])
    def test_all_anchors(self, anchor, expected):
        from scenecompose.metrics import anchor_position

        assert anchor_position(anchor, 1000, 1000, 100, 50) == expected

    def test_case_insensitive(self):
        from scenecompose.metrics import anchor_position

        assert anchor_position("Top-Left", 10, 10, 1, 1) == (0, 0)

    def test_unknown_anchor(self):
        from scenecompose.errors import ValidationError
        from scenecompose.metrics import anchor_position

        with pytest.raises(ValidationError, match="Unknown anchor point"):
            anchor_position("middle", 10, 10, 1, 1)


class TestUnits:
    def test_mm_to_px(self):
        from scenecompose.metrics import mm_to_px

        assert mm_to_px(25.4) == 300
        assert mm_to_px(0) == 0
        assert mm_to_px(10) == 118

    def test_pt_to_px_one_decimal(self):
        from scenecompose.metrics import pt_to_px

        assert pt_to_px(72) == 300.0
        assert pt_to_px(7.4) == 30.8


class TestFontMetrics:
    def test_known_font(self):
        from scenecompose.metrics import FONT_METRICS, get_font_metrics

        assert get_font_metrics("Montserrat") is FONT_METRICS["montserrat"]

    def test_fallback(self):
        from scenecompose.metrics import DEFAULT_FONT_METRICS, get_font_metrics

        assert get_font_metrics("Holiday") == DEFAULT_FONT_METRICS

    def test_cap_height_offset(self):
        from scenecompose.metrics import FontMetrics, cap_height_offset_px

        m = FontMetrics(ascent=0.9, descent=0.2, cap_height=0.7)
        # half leading (1.2 - 1.1) * 100 / 2 = 5, plus (0.9 - 0.7) * 100 = 20
        assert cap_height_offset_px(m, 100, 1.2) == pytest.approx(25)

    def test_corrected_top(self):
        from scenecompose.metrics import FontMetrics, corrected_top_px

        m = FontMetrics(ascent=0.9, descent=0.2, cap_height=0.7)
        # 25.4 mm -> 300 px, minus 25 px offset
        assert corrected_top_px(25.4, m, 100, 1.2) == 275.0

    def test_measure_font_metrics_with_pillow(self):
        from scenecompose.metrics import MEASURE_SIZE, measure_font_metrics

        font = MagicMock()
        font.getmetrics.return_value = (900, 200)
        font.getbbox.return_value = (0, -700, 600, 0)
        with patch("scenecompose.metrics.ImageFont.truetype", return_value=font) as truetype:
            metrics = measure_font_metrics("fonts/Test.otf")

        truetype.assert_called_once_with("fonts/Test.otf", size=MEASURE_SIZE)
        assert metrics.ascent == pytest.approx(0.9)
        assert metrics.descent == pytest.approx(0.2)
        assert metrics.cap_height == pytest.approx(0.7)
