"""Error types raised by hailframe and translation of engine-raised failures."""

import re
from contextlib import contextmanager
from typing import Iterator, Optional

# Embedded in the message the Spark plan raises when a row is misaligned.
ALIGNMENT_MARKER = "HAILFRAME_ALIGNMENT_MISMATCH"

_ALIGNMENT_PATTERN = re.compile(
    re.escape(ALIGNMENT_MARKER)
    + r"\[column=(?P<column>.*?); expected=(?P<expected>-?\d+); observed=(?P<observed>-?\d+)\]"
)


class FlattenError(Exception):
    """Base class for all hailframe errors."""


class SchemaError(FlattenError):
    """A column is missing, has the wrong type, or clashes with another column."""

    def __init__(self, message: str, column: Optional[str] = None):
        super().__init__(message)
        self.column = column


class AlignmentError(FlattenError):
    """A row's collection length differs from the number of sample identifiers."""

    def __init__(self, column: str, expected: int, observed: int):
        super().__init__(
            f"Column '{column}' holds {observed} entries in a row but "
            f"{expected} sample identifiers were supplied"
        )
        self.column = column
        self.expected = expected
        self.observed = observed


class ConfigurationError(FlattenError, ValueError):
    """Invalid options or argument combination."""


class BackendUnavailableError(FlattenError, ImportError):
    """An optional backend library is not installed."""


def alignment_message(column: str, expected: str, observed: str) -> str:
    """Return the marker text an engine raises for a misaligned row.

    The Spark plan passes ``%d`` placeholders and formats per-row values in.
    """
    return f"{ALIGNMENT_MARKER}[column={column}; expected={expected}; observed={observed}]"


def translate_engine_error(exc: BaseException) -> Optional[AlignmentError]:
    """
    Recognize an alignment failure raised from inside the engine.

    Args:
        exc: Exception raised while the engine evaluated a plan

    Returns:
        AlignmentError if the message carries the alignment marker, else None
    """
    match = _ALIGNMENT_PATTERN.search(str(exc))
    if match is None:
        return None
    return AlignmentError(
        match.group("column"),
        int(match.group("expected")),
        int(match.group("observed")),
    )


@contextmanager
def materializing() -> Iterator[None]:
    """
    Context manager for code that triggers evaluation of a flattened table.

    Alignment failures raised by the engine are re-raised as AlignmentError;
    every other error propagates unmodified.

    Example:
        with materializing():
            rows = flat.collect()
    """
    try:
        yield
    except FlattenError:
        raise
    except Exception as exc:
        error = translate_engine_error(exc)
        if error is None:
            raise
        raise error from exc
