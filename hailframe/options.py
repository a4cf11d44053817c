"""Option parsing for the flatteners and matrix-table helpers."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from hailframe.errors import ConfigurationError


def parse_rename(value: str) -> Dict[str, str]:
    """
    Parse a rename option of the form ``"DP:depth, GQ:quality"``.

    Args:
        value: Comma-separated ``source:target`` pairs

    Returns:
        Mapping of entry field name to output column name
    """
    rename = {}
    for pair in value.split(","):
        pair = pair.strip()
        if not pair:
            continue
        source, sep, target = pair.partition(":")
        source = source.strip()
        target = target.strip()
        if not sep or not source or not target:
            raise ConfigurationError(f"Invalid rename pair '{pair}', expected 'field:name'")
        if source in rename:
            raise ConfigurationError(f"Entry field '{source}' renamed more than once")
        rename[source] = target
    return rename


@dataclass
class FlattenOptions:
    """Settings shared by the Spark and Arrow flatteners.

    Attributes:
        sample_id_name: Name of the attached sample identifier column
        entry_prefix: Prefix prepended to every promoted entry field
        rename: Entry field to output column renames, applied before the prefix
        check_alignment: Embed the per-row collection length check
        batch_size: Rows per input batch for the Arrow flattener
        entries_column: Collection column used by the matrix-table helpers
    """

    sample_id_name: str = "sample_id"
    entry_prefix: Optional[str] = None
    rename: Dict[str, str] = field(default_factory=dict)
    check_alignment: bool = True
    batch_size: int = 10000
    entries_column: str = "entries"

    def __post_init__(self):
        if not self.sample_id_name:
            raise ConfigurationError("sample_id_name must be a non-empty string")
        if not self.entries_column:
            raise ConfigurationError("entries_column must be a non-empty string")
        if self.batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {self.batch_size}")

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "FlattenOptions":
        """
        Build options from a Spark data-source style string dictionary.

        Args:
            options: Mapping with camelCase keys and string values

        Returns:
            FlattenOptions instance
        """
        batch_size_str = options.get("batchSize", "10000")
        try:
            batch_size = int(batch_size_str)
        except (TypeError, ValueError):
            raise ConfigurationError(f"batchSize must be an integer, got '{batch_size_str}'")

        return cls(
            sample_id_name=options.get("sampleIdColumn", "sample_id").strip(),
            entry_prefix=options.get("entryPrefix") or None,
            rename=parse_rename(options.get("rename", "")),
            check_alignment=options.get("checkAlignment", "true").lower() == "true",
            batch_size=batch_size,
            entries_column=options.get("entriesColumn", "entries").strip(),
        )

    def flatten_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments accepted by ``hailframe.flatten``."""
        return {
            "sample_id_name": self.sample_id_name,
            "entry_prefix": self.entry_prefix,
            "rename": dict(self.rename),
            "check_alignment": self.check_alignment,
        }
