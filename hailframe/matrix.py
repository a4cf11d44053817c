"""Matrix-table helpers delegating to Hail and Spark."""

import logging
from typing import Any, Dict, List, Optional

from pyspark.sql import DataFrame, SparkSession

from hailframe import compat
from hailframe.errors import SchemaError
from hailframe.flatten import flatten
from hailframe.options import FlattenOptions

logger = logging.getLogger(__name__)


class HailSession:
    """
    Explicit handle to a Spark session with Hail running on top of it.

    Pass the same handle to every matrix-table call instead of relying on
    process-wide state, so tests and multiple sessions can coexist.

    Options:
        - entriesColumn: Collection column name used by to_dataframe (default: entries)
        - sampleIdColumn: Name of the attached identifier column (default: sample_id)
        - entryPrefix: Prefix for promoted entry fields
        - rename: Entry field renames as "DP:depth,GQ:quality"
        - checkAlignment: Fail misaligned rows at evaluation (default: true)

    Example:
        session = HailSession(spark, {"entryPrefix": "e_"})
        mt = read_matrix_table(session, "gs://bucket/cohort.mt")
        df = explode_entries(session, mt)
    """

    def __init__(self, spark: SparkSession, options: Optional[Dict[str, str]] = None):
        self.spark = spark
        self.options = FlattenOptions.from_options(options or {})
        self._initialized = False

    def init(self) -> "HailSession":
        """Start Hail on this session's SparkContext; later calls are no-ops."""
        hl = compat.require_hail()
        if not self._initialized:
            logger.info("Initializing Hail on Spark application %s", self.spark.sparkContext.applicationId)
            hl.init(sc=self.spark.sparkContext, quiet=True, idempotent=True)
            self._initialized = True
        return self


def read_matrix_table(session: HailSession, path: str):
    """
    Read a Hail matrix table.

    Args:
        session: Initialized or uninitialized HailSession
        path: Location of the ``.mt`` directory

    Returns:
        hail.MatrixTable
    """
    hl = compat.require_hail()
    session.init()
    logger.info("Reading matrix table %s", path)
    return hl.read_matrix_table(path)


def sample_ids(matrix_table) -> List[Any]:
    """
    Return the column-key values of a matrix table in column order.

    Raises:
        SchemaError: the column key is missing or has more than one field
    """
    key_fields = list(matrix_table.col_key)
    if not key_fields:
        raise SchemaError("Matrix table has no column key to identify samples")
    if len(key_fields) > 1:
        raise SchemaError(
            f"Matrix table column key has {len(key_fields)} fields "
            f"({', '.join(key_fields)}); a single sample identifier field is required"
        )
    return matrix_table[key_fields[0]].collect()


def to_dataframe(
    session: HailSession, matrix_table, entries_column: Optional[str] = None
) -> DataFrame:
    """
    Convert a matrix table to a Spark DataFrame with one row per matrix row.

    Entries are localized into an array column holding one struct per
    matrix column, in column order. Nested fields are kept nested.

    Args:
        session: HailSession the matrix table belongs to
        matrix_table: hail.MatrixTable
        entries_column: Name of the array column (default: session option)

    Returns:
        DataFrame with the row fields followed by the entries column
    """
    session.init()
    column = entries_column or session.options.entries_column
    table = matrix_table.localize_entries(column).select_globals()
    return table.to_spark(flatten=False)


def explode_entries(
    session: HailSession,
    matrix_table,
    entries_column: Optional[str] = None,
    **kwargs,
) -> DataFrame:
    """
    Convert a matrix table to a flat DataFrame with one row per (row, sample).

    Keyword arguments override the session's flatten options and are passed
    to ``hailframe.flatten``.
    """
    column = entries_column or session.options.entries_column
    df = to_dataframe(session, matrix_table, column)
    ids = sample_ids(matrix_table)
    logger.debug("Exploding '%s' across %d samples", column, len(ids))
    options = {**session.options.flatten_kwargs(), **kwargs}
    return flatten(df, column, sample_ids=ids, **options)
