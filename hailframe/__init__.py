"""hailframe - flatten genomic matrix tables into relational DataFrames."""

__version__ = "0.1.0"

from hailframe.errors import (
    AlignmentError,
    BackendUnavailableError,
    ConfigurationError,
    FlattenError,
    SchemaError,
    materializing,
)
from hailframe.options import FlattenOptions
from hailframe.schema import get_flat_schema
from hailframe.flatten import flatten, collect, count
from hailframe.arrow_flatten import ArrowEntryFlattener, flatten_arrow
from hailframe.matrix import (
    HailSession,
    explode_entries,
    read_matrix_table,
    sample_ids,
    to_dataframe,
)
from hailframe.compat import HAIL_AVAILABLE

__all__ = [
    "AlignmentError",
    "ArrowEntryFlattener",
    "BackendUnavailableError",
    "ConfigurationError",
    "FlattenError",
    "FlattenOptions",
    "HAIL_AVAILABLE",
    "HailSession",
    "SchemaError",
    "collect",
    "count",
    "explode_entries",
    "flatten",
    "flatten_arrow",
    "get_flat_schema",
    "materializing",
    "read_matrix_table",
    "sample_ids",
    "to_dataframe",
]
