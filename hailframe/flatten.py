"""Explode a nested entries column of a Spark DataFrame into one row per sample."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pyspark.sql import Column, DataFrame
from pyspark.sql import functions as F

from hailframe.errors import ConfigurationError, SchemaError, alignment_message, materializing
from hailframe.schema import get_entry_struct, get_sample_ids_type, resolve_entry_names

logger = logging.getLogger(__name__)

# Internal column names used between the explode and the final projection.
_POS_COLUMN = "__hailframe_pos"
_ENTRY_COLUMN = "__hailframe_entry"
_IDS_COLUMN = "__hailframe_ids"
_RESERVED_COLUMNS = {_POS_COLUMN, _ENTRY_COLUMN, _IDS_COLUMN}


def _col(name: str) -> Column:
    """Reference a top-level column by its literal name, dots included."""
    return F.col("`" + name.replace("`", "``") + "`")


def _checked_entries(
    entries: Column, entries_column: str, expected: Column, check_alignment: bool
) -> Column:
    """
    Wrap the entries column so that evaluating a misaligned row raises.

    A null collection has no length and is never a violation. The check is
    part of the explode input, so column pruning cannot remove it.
    """
    if not check_alignment:
        return entries

    observed = F.size(entries)
    template = alignment_message(entries_column.replace("%", "%%"), "%d", "%d")
    message = F.format_string(template, expected, observed)
    violation = entries.isNotNull() & (observed != expected)
    return F.when(violation, F.raise_error(message)).otherwise(entries)


def flatten(
    table: DataFrame,
    entries_column: str,
    sample_ids: Optional[Sequence[Any]] = None,
    sample_ids_column: Optional[str] = None,
    sample_id_name: str = "sample_id",
    rename: Optional[Dict[str, str]] = None,
    entry_prefix: Optional[str] = None,
    check_alignment: bool = True,
) -> DataFrame:
    """
    Flatten a collection of per-sample entry structs into one row per sample.

    Each input row with k entries becomes k output rows. Every output row
    carries the row's other columns unchanged, the sample identifier found
    at the entry's position, and the entry's fields as top-level columns.

    Only a query plan is built; no Spark job runs. A row whose collection
    length differs from the number of sample identifiers fails when the
    result is evaluated. Only ``hailframe.collect``, ``hailframe.count``
    and code run inside ``hailframe.materializing()`` report that as
    AlignmentError; calling ``flat.collect()``, ``toPandas()`` or a writer
    directly raises the engine's own error. With check_alignment=False a
    position beyond the supplied identifiers gets a null sample id.

    Args:
        table: DataFrame holding an ARRAY<STRUCT<...>> entries column
        entries_column: Name of the collection column to explode
        sample_ids: Identifiers shared by every row, one per entry position
        sample_ids_column: Array column with per-row identifiers instead
        sample_id_name: Name of the attached identifier column
        rename: Entry field to output column renames
        entry_prefix: Prefix for every promoted entry field
        check_alignment: Fail rows whose lengths disagree

    Returns:
        DataFrame with row-key columns, then the sample id column, then entry fields

    Raises:
        SchemaError: entries column missing or not an array of structs, name clash,
            or an input column using a reserved internal name
        ConfigurationError: both or neither of sample_ids and sample_ids_column given

    Example:
        flat = flatten(df, "entries", sample_ids=["NA12878", "NA12891"])
        rows = collect(flat.groupBy("sample_id").agg(F.avg("DP")))
    """
    if (sample_ids is None) == (sample_ids_column is None):
        raise ConfigurationError("Pass exactly one of sample_ids or sample_ids_column")
    if isinstance(sample_ids, str):
        raise ConfigurationError(
            "sample_ids must be a sequence of identifiers; use sample_ids_column for a column name"
        )

    reserved = [name for name in table.columns if name in _RESERVED_COLUMNS]
    if reserved:
        raise SchemaError(
            f"Column names reserved for internal use: {', '.join(reserved)}",
            column=reserved[0],
        )

    entry_struct = get_entry_struct(table.schema, entries_column)
    if sample_ids_column is not None:
        get_sample_ids_type(table.schema, sample_ids_column)

    consumed = {entries_column, sample_ids_column}
    key_columns = [name for name in table.columns if name not in consumed]
    names = resolve_entry_names(
        entry_struct.fieldNames(),
        key_columns,
        sample_id_name,
        rename=rename,
        entry_prefix=entry_prefix,
    )

    entries = _col(entries_column)
    if sample_ids_column is None:
        sample_ids = list(sample_ids)
        if sample_ids:
            ids = F.array(*[F.lit(s) for s in sample_ids])
        else:
            ids = F.array().cast("array<string>")
        expected = F.lit(len(sample_ids))
        carried: List[Column] = []
        source = f"{len(sample_ids)} sample ids"
    else:
        ids = _col(_IDS_COLUMN)
        raw_ids = _col(sample_ids_column)
        expected = F.when(raw_ids.isNull(), F.lit(0)).otherwise(F.size(raw_ids))
        carried = [raw_ids.alias(_IDS_COLUMN)]
        source = f"ids from '{sample_ids_column}'"

    logger.debug("Flattening '%s' (%d entry fields) with %s", entries_column, len(names), source)

    exploded = table.select(
        *[_col(name) for name in key_columns],
        *carried,
        F.posexplode(
            _checked_entries(entries, entries_column, expected, check_alignment)
        ).alias(_POS_COLUMN, _ENTRY_COLUMN),
    )

    entry = _col(_ENTRY_COLUMN)
    return exploded.select(
        *[_col(name) for name in key_columns],
        F.get(ids, _col(_POS_COLUMN)).alias(sample_id_name),
        *[entry.getField(name).alias(output) for name, output in names],
    )


def collect(table: DataFrame) -> list:
    """Collect a flattened table, reporting misaligned rows as AlignmentError."""
    with materializing():
        return table.collect()


def count(table: DataFrame) -> int:
    """Count a flattened table, reporting misaligned rows as AlignmentError."""
    with materializing():
        return table.count()
