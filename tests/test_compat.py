"""Unit tests for compat module (optional backend detection)."""

import pytest

from hailframe import compat
from hailframe.errors import BackendUnavailableError, FlattenError


def test_hail_available_flag():
    """Test that HAIL_AVAILABLE is a boolean."""
    assert isinstance(compat.HAIL_AVAILABLE, bool)


def test_require_hail_when_missing(monkeypatch):
    """Test that a missing hail install raises a helpful error."""
    monkeypatch.setattr(compat, "HAIL_AVAILABLE", False)
    monkeypatch.setattr(compat, "hl", None)

    with pytest.raises(BackendUnavailableError, match="pip install"):
        compat.require_hail()


def test_backend_unavailable_is_import_error():
    """Test that callers catching ImportError still see the failure."""
    assert issubclass(BackendUnavailableError, ImportError)
    assert issubclass(BackendUnavailableError, FlattenError)


def test_require_hail_returns_module(monkeypatch):
    """Test that require_hail hands back the module object."""
    sentinel = object()
    monkeypatch.setattr(compat, "HAIL_AVAILABLE", True)
    monkeypatch.setattr(compat, "hl", sentinel)

    assert compat.require_hail() is sentinel
