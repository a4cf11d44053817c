# Databricks notebook source
# MAGIC %md
# MAGIC # hailframe - Databricks Example
# MAGIC
# MAGIC This notebook flattens a Hail matrix table into a relational DataFrame
# MAGIC with one row per (variant, sample).
# MAGIC
# MAGIC **Requirements**: a cluster with the Hail jars on the Spark classpath

# COMMAND ----------

# MAGIC %md
# MAGIC ## Installation

# COMMAND ----------

# MAGIC %pip install "hailframe[hail]"
# MAGIC dbutils.library.restartPython()

# COMMAND ----------

# MAGIC %md
# MAGIC ## Setup

# COMMAND ----------

from pyspark.sql import functions as F
from hailframe import HailSession, read_matrix_table, sample_ids, to_dataframe, explode_entries, collect

session = HailSession(spark, {"rename": "DP:depth,GQ:quality"}).init()

dbutils.widgets.text("matrix_table_path", "", "Path to .mt directory")
matrix_table_path = dbutils.widgets.get("matrix_table_path")

# COMMAND ----------

# MAGIC %md
# MAGIC ## Example 1: Read a Matrix Table and List Samples

# COMMAND ----------

mt = read_matrix_table(session, matrix_table_path)
samples = sample_ids(mt)
print(f"{len(samples)} samples: {samples[:5]}")

# COMMAND ----------

# MAGIC %md
# MAGIC ## Example 2: Nested DataFrame (one row per variant)

# COMMAND ----------

nested_df = to_dataframe(session, mt)
display(nested_df.drop("entries"))

# COMMAND ----------

# MAGIC %md
# MAGIC ## Example 3: Flat DataFrame (one row per variant and sample)

# COMMAND ----------

flat_df = explode_entries(session, mt)
display(flat_df)

# COMMAND ----------

# MAGIC %md
# MAGIC ## Example 4: Per-sample Depth Summary

# COMMAND ----------

depth_by_sample = flat_df.groupBy("sample_id").agg(
    F.avg("depth").alias("mean_depth"),
    F.sum(F.when(F.col("quality") < 20, 1).otherwise(0)).alias("low_quality_calls"),
)

# collect reports misaligned rows as AlignmentError
for row in collect(depth_by_sample.orderBy("sample_id")):
    print(row)
