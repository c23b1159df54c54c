"""Tests for the subcommand dispatcher and CLI commands."""

import json

import pytest
import yaml


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from scenecompose.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0

    @pytest.mark.parametrize("command", ["build", "render", "validate", "import"])
    def test_subcommand_exists(self, command):
        """Registered subcommands fail on missing args, not as unknown commands."""
        from scenecompose.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([command])
        assert exc_info.value.code == 2

    def test_invalid_subcommand_errors(self, capsys):
        from scenecompose.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0


def _write_ops(tmp_path, operations, scene=None):
    path = tmp_path / "ops.yaml"
    manifest = {"operations": operations}
    if scene:
        manifest["scene"] = scene
    path.write_text(yaml.dump(manifest))
    return path


class TestBuildCommand:
    def test_builds_and_writes_preview(self, tmp_path, capsys):
        from scenecompose.main import main

        ops = _write_ops(tmp_path, [
            {"step": 1, "operation": "create_canvas",
             "parameters": {"width": 200, "height": 100, "background_color": "#FFFF00"}},
        ], scene={"id": "card", "name": "Card"})
        out_dir = tmp_path / "scenes"

        main(["build", "--operations", str(ops), "--output-dir", str(out_dir)])

        scene_dir = out_dir / "card"
        assert json.loads((scene_dir / "scene.json").read_text())["name"] == "Card"
        assert (scene_dir / "preview.html").exists()
        output = capsys.readouterr().out
        assert "STEP   [1/1] create_canvas" in output
        assert "DONE" in output

    def test_failure_exits_nonzero(self, tmp_path, capsys):
        from scenecompose.main import main

        ops = _write_ops(tmp_path, [
            {"step": 1, "operation": "delete_layer", "parameters": {"layer_name": "ghost"}},
        ])
        with pytest.raises(SystemExit) as exc_info:
            main(["build", "--operations", str(ops), "--output-dir", str(tmp_path / "out")])

        assert exc_info.value.code == 1
        assert "FAILED step 1 (delete_layer)" in capsys.readouterr().out
        assert not (tmp_path / "out").exists()

    def test_scene_id_defaults_to_manifest_name(self, tmp_path):
        from scenecompose.main import main

        ops = _write_ops(tmp_path, [
            {"step": 1, "operation": "create_canvas", "parameters": {"width": 10, "height": 10}},
        ])
        main(["build", "--operations", str(ops), "--output-dir", str(tmp_path / "out")])
        assert (tmp_path / "out" / "ops" / "scene.json").exists()


class TestRenderAndValidateCommands:
    def test_render(self, tmp_path, sample_scene, capsys):
        from scenecompose.main import main
        from scenecompose.store import save_scene

        save_scene(tmp_path, sample_scene, "sample")
        out = tmp_path / "page.html"
        main(["render", "--scene", str(tmp_path / "sample"), "--output", str(out)])
        assert '<div class="scene-container">' in out.read_text()

    def test_validate_ok(self, tmp_path, sample_scene, capsys):
        from scenecompose.main import main
        from scenecompose.store import save_scene

        save_scene(tmp_path, sample_scene, "sample")
        main(["validate", "--scene", str(tmp_path / "sample")])
        assert "sample: OK" in capsys.readouterr().out

    def test_validate_reports_problems(self, tmp_path, sample_scene, capsys):
        from scenecompose.main import main
        from scenecompose.store import save_scene

        sample_scene.data.data_items = []
        save_scene(tmp_path, sample_scene, "sample")
        with pytest.raises(SystemExit) as exc_info:
            main(["validate", "--scene", str(tmp_path / "sample")])
        assert exc_info.value.code == 1
        assert "2 problem(s)" in capsys.readouterr().out


class TestImportCommand:
    def test_imports_layout(self, tmp_path, capsys):
        from unittest.mock import patch

        from scenecompose.main import main

        layout = tmp_path / "invite.txt"
        layout.write_text("Text -\nHello $name - Arial 12, x 10 mm, y 20 mm, centered\n")
        with patch("scenecompose.fonts.is_google_font", return_value=False):
            main(["import", str(layout), "--output-dir", str(tmp_path / "scenes")])

        scene_dir = tmp_path / "scenes" / "invite"
        theme = json.loads((scene_dir / "theme.json").read_text())
        assert theme["font_palette"][0]["font_url"] == "fonts/Arial.otf"
        assert (scene_dir / "preview.html").exists()
        assert "$name" in capsys.readouterr().out
