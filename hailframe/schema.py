from typing import Dict, List, Optional, Sequence, Tuple

from pyspark.sql.types import ArrayType, DataType, StructField, StructType

from hailframe.errors import SchemaError


def get_entry_struct(schema: StructType, entries_column: str) -> StructType:
    """
    Return the element struct of a collection-valued entries column.

    Args:
        schema: Schema of the table being flattened
        entries_column: Name of the ARRAY<STRUCT<...>> column

    Returns:
        StructType describing a single entry

    Raises:
        SchemaError: column is absent, not an array, or not an array of structs
    """
    fields = {f.name: f for f in schema.fields}
    if entries_column not in fields:
        raise SchemaError(
            f"Entries column '{entries_column}' not found; available columns: "
            f"{', '.join(schema.fieldNames())}",
            column=entries_column,
        )

    data_type = fields[entries_column].dataType
    if not isinstance(data_type, ArrayType):
        raise SchemaError(
            f"Entries column '{entries_column}' must be an array, got {data_type.simpleString()}",
            column=entries_column,
        )
    if not isinstance(data_type.elementType, StructType):
        raise SchemaError(
            f"Entries column '{entries_column}' must hold structs, got "
            f"{data_type.simpleString()}",
            column=entries_column,
        )
    return data_type.elementType


def get_sample_ids_type(schema: StructType, sample_ids_column: str) -> DataType:
    """
    Return the element type of a per-row sample identifier column.

    Raises:
        SchemaError: column is absent or not an array
    """
    fields = {f.name: f for f in schema.fields}
    if sample_ids_column not in fields:
        raise SchemaError(
            f"Sample id column '{sample_ids_column}' not found", column=sample_ids_column
        )
    data_type = fields[sample_ids_column].dataType
    if not isinstance(data_type, ArrayType):
        raise SchemaError(
            f"Sample id column '{sample_ids_column}' must be an array, got "
            f"{data_type.simpleString()}",
            column=sample_ids_column,
        )
    return data_type.elementType


def resolve_entry_names(
    entry_fields: Sequence[str],
    key_columns: Sequence[str],
    sample_id_name: str,
    rename: Optional[Dict[str, str]] = None,
    entry_prefix: Optional[str] = None,
) -> List[Tuple[str, str]]:
    """
    Decide the output column name of every promoted entry field.

    The rename map is applied first, then the prefix. Any name still
    clashing with a row-key column, the sample id column, or another
    promoted field raises instead of shadowing.

    Args:
        entry_fields: Entry struct field names in schema order
        key_columns: Row-key column names carried into the output
        sample_id_name: Name of the sample identifier column
        rename: Optional entry field to output name map
        entry_prefix: Optional prefix for every promoted field

    Returns:
        List of (entry_field, output_name) pairs in entry schema order
    """
    rename = rename or {}
    unknown = [name for name in rename if name not in entry_fields]
    if unknown:
        raise SchemaError(
            f"Rename refers to unknown entry fields: {', '.join(sorted(unknown))}"
        )

    if sample_id_name in key_columns:
        raise SchemaError(
            f"Sample id column '{sample_id_name}' clashes with a row-key column",
            column=sample_id_name,
        )

    resolved = []
    for name in entry_fields:
        output = rename.get(name, name)
        if entry_prefix:
            output = f"{entry_prefix}{output}"
        resolved.append((name, output))

    taken = set(key_columns) | {sample_id_name}
    clashes = []
    seen = set()
    for _, output in resolved:
        if output in taken or output in seen:
            clashes.append(output)
        seen.add(output)
    if clashes:
        raise SchemaError(
            f"Entry fields clash with existing columns: {', '.join(clashes)}; "
            "pass rename or entry_prefix to disambiguate",
            column=clashes[0],
        )
    return resolved


def get_flat_schema(
    schema: StructType,
    entries_column: str,
    sample_id_type: DataType,
    sample_ids_column: Optional[str] = None,
    sample_id_name: str = "sample_id",
    rename: Optional[Dict[str, str]] = None,
    entry_prefix: Optional[str] = None,
) -> StructType:
    """
    Returns the schema a flattened table will have.

    Row-key columns keep their original order, followed by the sample id
    column and then the promoted entry fields in entry schema order.
    """
    entry_struct = get_entry_struct(schema, entries_column)
    consumed = {entries_column, sample_ids_column}
    key_fields = [f for f in schema.fields if f.name not in consumed]

    names = resolve_entry_names(
        entry_struct.fieldNames(),
        [f.name for f in key_fields],
        sample_id_name,
        rename=rename,
        entry_prefix=entry_prefix,
    )
    entry_fields = {f.name: f for f in entry_struct.fields}

    return StructType(
        key_fields
        + [StructField(sample_id_name, sample_id_type, True)]
        + [StructField(output, entry_fields[name].dataType, True) for name, output in names]
    )
