"""Availability checks for the optional genomics backend."""

from hailframe.errors import BackendUnavailableError

try:
    import hail as hl

    HAIL_AVAILABLE = True
except ImportError:
    HAIL_AVAILABLE = False
    hl = None  # type: ignore


def require_hail():
    """
    Return the hail module, or raise if it is not installed.

    Raises:
        BackendUnavailableError: hail cannot be imported
    """
    if not HAIL_AVAILABLE or hl is None:
        raise BackendUnavailableError(
            "Matrix table support requires hail. Install with: pip install 'hailframe[hail]'"
        )
    return hl


__all__ = [
    "hl",
    "HAIL_AVAILABLE",
    "require_hail",
]
