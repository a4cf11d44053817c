"""Arrow-based entry flattener for in-process, eager evaluation."""

import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pyarrow as pa
import pyarrow.compute as pc

from hailframe.errors import AlignmentError, ConfigurationError, SchemaError
from hailframe.schema import resolve_entry_names

logger = logging.getLogger(__name__)


def _list_value_type(table: pa.Table, column: str) -> pa.DataType:
    if column not in table.column_names:
        raise SchemaError(
            f"Column '{column}' not found; available columns: {', '.join(table.column_names)}",
            column=column,
        )
    data_type = table.schema.field(column).type
    if not (pa.types.is_list(data_type) or pa.types.is_large_list(data_type)):
        raise SchemaError(f"Column '{column}' must be a list, got {data_type}", column=column)
    return data_type.value_type


class ArrowEntryFlattener:
    """
    Flattens a list<struct> entries column of a pyarrow Table.

    Produces the same rows and columns as ``hailframe.flatten`` does on
    Spark. Schema problems raise on construction; alignment problems raise
    while batches are produced.
    """

    DEFAULT_BATCH_SIZE = 10000

    def __init__(
        self,
        table: pa.Table,
        entries_column: str,
        sample_ids: Optional[Sequence[Any]] = None,
        sample_ids_column: Optional[str] = None,
        sample_id_name: str = "sample_id",
        rename: Optional[Dict[str, str]] = None,
        entry_prefix: Optional[str] = None,
        check_alignment: bool = True,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        """
        Initialize the flattener.

        Args:
            table: Table holding a list<struct> entries column
            entries_column: Name of the collection column to explode
            sample_ids: Identifiers shared by every row, one per entry position
            sample_ids_column: List column with per-row identifiers instead
            sample_id_name: Name of the attached identifier column
            rename: Entry field to output column renames
            entry_prefix: Prefix for every promoted entry field
            check_alignment: Fail rows whose lengths disagree
            batch_size: Number of input rows processed per batch
        """
        if (sample_ids is None) == (sample_ids_column is None):
            raise ConfigurationError("Pass exactly one of sample_ids or sample_ids_column")
        if isinstance(sample_ids, str):
            raise ConfigurationError(
                "sample_ids must be a sequence of identifiers; use sample_ids_column for a column name"
            )
        if batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {batch_size}")

        self.table = table
        self.entries_column = entries_column
        self.sample_ids_column = sample_ids_column
        self.sample_id_name = sample_id_name
        self.check_alignment = check_alignment
        self.batch_size = batch_size

        entry_type = _list_value_type(table, entries_column)
        if not pa.types.is_struct(entry_type):
            raise SchemaError(
                f"Column '{entries_column}' must hold structs, got {table.schema.field(entries_column).type}",
                column=entries_column,
            )

        if sample_ids_column is None:
            self.sample_ids = pa.array(list(sample_ids))
            if pa.types.is_null(self.sample_ids.type):
                self.sample_ids = self.sample_ids.cast(pa.string())
            sample_id_type = self.sample_ids.type
        else:
            self.sample_ids = None
            sample_id_type = _list_value_type(table, sample_ids_column)

        consumed = {entries_column, sample_ids_column}
        self.key_columns = [name for name in table.column_names if name not in consumed]
        entry_fields = [entry_type.field(i) for i in range(entry_type.num_fields)]
        self.entry_names = resolve_entry_names(
            [f.name for f in entry_fields],
            self.key_columns,
            sample_id_name,
            rename=rename,
            entry_prefix=entry_prefix,
        )

        self.schema = pa.schema(
            [table.schema.field(name) for name in self.key_columns]
            + [pa.field(sample_id_name, sample_id_type)]
            + [
                pa.field(output, f.type)
                for f, (_, output) in zip(entry_fields, self.entry_names)
            ]
        )

    def _check_lengths(self, batch: pa.RecordBatch, lengths: pa.Array) -> None:
        if self.sample_ids_column is None:
            expected = pa.array([len(self.sample_ids)] * len(lengths), type=lengths.type)
        else:
            id_column = batch.column(batch.schema.get_field_index(self.sample_ids_column))
            expected = pc.fill_null(pc.list_value_length(id_column), 0).cast(lengths.type)

        # Null collections compare as null and are dropped by fill_null.
        mismatched = pc.fill_null(pc.not_equal(lengths, expected), False)
        if pc.any(mismatched).as_py():
            row = pc.index(mismatched, True).as_py()
            raise AlignmentError(
                self.entries_column, expected[row].as_py(), lengths[row].as_py()
            )

    def _flatten_batch(self, batch: pa.RecordBatch) -> pa.RecordBatch:
        entries = batch.column(batch.schema.get_field_index(self.entries_column))
        lengths = pc.list_value_length(entries)
        if self.check_alignment:
            self._check_lengths(batch, lengths)

        # A null slot may still span values in the child array; skip them.
        valid = entries.is_valid().to_pylist()
        offsets = entries.offsets.to_pylist()
        parents, positions, value_indices = [], [], []
        for row, is_valid in enumerate(valid):
            if not is_valid:
                continue
            for pos, index in enumerate(range(offsets[row], offsets[row + 1])):
                parents.append(row)
                positions.append(pos)
                value_indices.append(index)

        parent_indices = pa.array(parents, type=pa.int64())
        arrays: List[pa.Array] = [
            pc.take(batch.column(batch.schema.get_field_index(name)), parent_indices)
            for name in self.key_columns
        ]

        # Positions without an identifier get a null sample id.
        if self.sample_ids_column is None:
            n_ids = len(self.sample_ids)
            lookup = [pos if pos < n_ids else None for pos in positions]
            arrays.append(pc.take(self.sample_ids, pa.array(lookup, type=pa.int64())))
        else:
            id_lists = batch.column(batch.schema.get_field_index(self.sample_ids_column)).to_pylist()
            ids = []
            for row, pos in zip(parents, positions):
                row_ids = id_lists[row]
                ids.append(row_ids[pos] if row_ids is not None and pos < len(row_ids) else None)
            arrays.append(pa.array(ids, type=self.schema.field(self.sample_id_name).type))

        # StructArray.flatten folds null entries into every child field.
        values = pc.take(entries.values, pa.array(value_indices, type=pa.int64()))
        arrays.extend(values.flatten())
        return pa.RecordBatch.from_arrays(arrays, schema=self.schema)

    def iter_batches(self) -> Iterator[pa.RecordBatch]:
        """
        Flatten the table one batch at a time.

        Yields:
            Flattened record batches in input row order
        """
        for batch in self.table.to_batches(max_chunksize=self.batch_size):
            yield self._flatten_batch(batch)

    def to_table(self) -> pa.Table:
        """Flatten the whole table eagerly."""
        flat = pa.Table.from_batches(list(self.iter_batches()), schema=self.schema)
        logger.debug(
            "Flattened '%s': %d rows into %d rows", self.entries_column, self.table.num_rows, flat.num_rows
        )
        return flat


def flatten_arrow(
    table: pa.Table,
    entries_column: str,
    sample_ids: Optional[Sequence[Any]] = None,
    sample_ids_column: Optional[str] = None,
    sample_id_name: str = "sample_id",
    rename: Optional[Dict[str, str]] = None,
    entry_prefix: Optional[str] = None,
    check_alignment: bool = True,
    batch_size: int = ArrowEntryFlattener.DEFAULT_BATCH_SIZE,
) -> pa.Table:
    """
    Convenience function to flatten an entries column of a pyarrow Table.

    Args:
        table: Table holding a list<struct> entries column
        entries_column: Name of the collection column to explode
        sample_ids: Identifiers shared by every row, one per entry position
        sample_ids_column: List column with per-row identifiers instead
        sample_id_name: Name of the attached identifier column
        rename: Entry field to output column renames
        entry_prefix: Prefix for every promoted entry field
        check_alignment: Fail rows whose lengths disagree
        batch_size: Number of input rows processed per batch

    Returns:
        Flattened table
    """
    flattener = ArrowEntryFlattener(
        table,
        entries_column,
        sample_ids=sample_ids,
        sample_ids_column=sample_ids_column,
        sample_id_name=sample_id_name,
        rename=rename,
        entry_prefix=entry_prefix,
        check_alignment=check_alignment,
        batch_size=batch_size,
    )
    return flattener.to_table()
