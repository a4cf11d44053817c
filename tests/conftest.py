import pytest
import pyarrow as pa
from pyspark.sql import SparkSession


@pytest.fixture(scope="session")
def spark():
    """Create a Spark session for testing."""
    spark = (
        SparkSession.builder.master("local[2]")
        .appName("hailframe-tests")
        .config("spark.sql.shuffle.partitions", "2")
        .getOrCreate()
    )
    yield spark
    spark.stop()


GENOTYPE_DDL = (
    "locus STRING, alleles ARRAY<STRING>, "
    "entries ARRAY<STRUCT<GT: STRING, DP: INT, GQ: INT>>"
)


@pytest.fixture
def genotype_rows():
    """Three variants, three samples each, in matrix-table entry order."""
    return [
        ("chr1:100", ["A", "T"], [("0/1", 14, 99), ("0/0", 15, 90), ("1/1", 13, 80)]),
        ("chr1:200", ["G", "C"], [("0/0", 20, 85), ("0/1", 22, 70), ("0/1", 18, 60)]),
        ("chr1:300", ["T", "G"], [("1/1", 15, 99), ("0/1", 15, 95), ("0/0", 15, 40)]),
    ]


@pytest.fixture
def genotype_df(spark, genotype_rows):
    """Spark DataFrame shaped like a matrix table with localized entries."""
    return spark.createDataFrame(genotype_rows, GENOTYPE_DDL)


@pytest.fixture
def genotype_table(genotype_rows):
    """The same data as genotype_df as a pyarrow Table."""
    entry_type = pa.struct(
        [("GT", pa.string()), ("DP", pa.int32()), ("GQ", pa.int32())]
    )
    return pa.table(
        {
            "locus": pa.array([r[0] for r in genotype_rows]),
            "alleles": pa.array([r[1] for r in genotype_rows]),
            "entries": pa.array(
                [
                    [{"GT": gt, "DP": dp, "GQ": gq} for gt, dp, gq in r[2]]
                    for r in genotype_rows
                ],
                type=pa.list_(entry_type),
            ),
        }
    )


@pytest.fixture
def samples():
    return ["NA12878", "NA12891", "NA12892"]
