"""Error taxonomy shared by every scenecompose module.

Each error also subclasses the closest builtin so callers that only know
about ValueError / LookupError / OSError still catch them.
"""


class SceneError(Exception):
    """Base class for all scene composition errors."""


class ValidationError(SceneError, ValueError):
    """Malformed or out-of-bounds input.

    Missing parameters, unknown anchors or operations, palette capacity
    exceeded, structural scene violations.
    """


class SceneReferenceError(SceneError, LookupError):
    """A named layer, element, data item or container cannot be resolved."""


class APIError(SceneError, RuntimeError):
    """An external service call failed or returned an unexpected shape."""


class FileSystemError(SceneError, OSError):
    """Reading or writing scene documents failed."""
