"""Font resolution — decide where a font family is served from.

Fonts hosted on the Google Fonts catalog are referenced by their CSS2 API
URL; anything else falls back to a local file placeholder
(``fonts/<name>.otf``) that the deployer is expected to provide.

Availability checks are a HEAD request against the catalog, memoized per
family name in a process-wide LRU cache. Entries never change for a given
name, so concurrent sessions can share it freely.
"""

import functools
import logging
from typing import Callable

import requests


logger = logging.getLogger(__name__)

GOOGLE_FONTS_CSS_URL = "https://fonts.googleapis.com/css2?family={family}:wght@{weights}&display=swap"
DEFAULT_WEIGHTS = "400;700"
LOCAL_FONT_PATTERN = "fonts/{name}.otf"

FONT_CACHE_SIZE = 256
REQUEST_TIMEOUT_S = 10

# Given a family name, return a URL the stylesheet can @import.
FontResolver = Callable[[str], str]


def google_font_url(font_name: str, weights: str = DEFAULT_WEIGHTS) -> str:
    """CSS2 API URL for a family ('Dancing Script' → family=Dancing+Script)."""
    family = "+".join(font_name.split())
    return GOOGLE_FONTS_CSS_URL.format(family=family, weights=weights)


def local_font_url(font_name: str) -> str:
    return LOCAL_FONT_PATTERN.format(name=font_name)


@functools.lru_cache(maxsize=FONT_CACHE_SIZE)
def _catalog_has(font_name: str) -> bool:
    # RequestException propagates so that failures are never cached.
    response = requests.head(google_font_url(font_name), timeout=REQUEST_TIMEOUT_S)
    return response.ok


def is_google_font(font_name: str) -> bool:
    """True if the catalog answers a HEAD request for this family.

    Answers are cached. A network failure counts as "not hosted" for this
    call only; the next call asks the catalog again.
    """
    try:
        return _catalog_has(font_name)
    except requests.RequestException as exc:
        logger.warning("Font catalog lookup failed for %r: %s", font_name, exc)
        return False


def clear_font_cache() -> None:
    _catalog_has.cache_clear()


def resolve_font_url(font_name: str, weights: str = DEFAULT_WEIGHTS) -> str:
    """Hosted catalog URL when available, local file placeholder otherwise."""
    if is_google_font(font_name):
        return google_font_url(font_name, weights)
    return local_font_url(font_name)
