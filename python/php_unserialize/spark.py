"""
PySpark UDF helpers for PHP deserialization.

This module provides ready-to-use UDFs for deserializing PHP serialized data
in PySpark DataFrames.

Example:
    >>> from php_unserialize.spark import php_deserialize_udf
    >>> deserialize = php_deserialize_udf("json")
    >>> df = df.withColumn("parsed", deserialize("serialized_col"))
"""

from typing import TYPE_CHECKING, Callable, Literal, Optional, Union

import orjson
from structlog import get_logger

if TYPE_CHECKING:
    from pyspark.sql import Column, SparkSession

logger = get_logger()

# Lazy imports to avoid requiring PySpark at import time
_pyspark_available: Optional[bool] = None


def _check_pyspark() -> None:
    """Check if PySpark is available."""
    global _pyspark_available
    if _pyspark_available is None:
        try:
            import pyspark  # noqa: F401
            _pyspark_available = True
        except ImportError:
            _pyspark_available = False

    if not _pyspark_available:
        raise ImportError(
            "PySpark is required for spark module. "
            "Install with: pip install php-unserialize[spark]"
        )


def deserialize_to_json(data: Union[bytes, str, None], auto_unescape: bool = True) -> Optional[str]:
    """Decode one column value to JSON; null and undecodable values become None.

    Values that decode but cannot be written as JSON (cyclic, or nested deeper
    than orjson allows) also become None.
    """
    from php_unserialize import PhpUnserializeError, loads_json

    if data is None:
        return None
    try:
        return loads_json(data, auto_unescape=auto_unescape)
    except PhpUnserializeError as e:
        logger.warning("skipping undecodable value", kind=e.kind.value, pos=e.pos)
        return None
    except orjson.JSONEncodeError as e:
        logger.warning("skipping value not representable as json", error=str(e))
        return None


def php_deserialize_udf(
    output_format: Literal["json"] = "json",
    auto_unescape: bool = True,
) -> Callable[["Column"], "Column"]:
    """
    Create a PySpark UDF for deserializing PHP serialized data.

    Args:
        output_format: Output format; only "json" is supported since Spark
            cannot hold arbitrary Python objects
        auto_unescape: Automatically handle DB-escaped strings

    Returns:
        A UDF function that can be applied to DataFrame columns

    Example:
        >>> from php_unserialize.spark import php_deserialize_udf
        >>> from pyspark.sql import functions as F
        >>>
        >>> deserialize = php_deserialize_udf("json")
        >>> df = df.withColumn("parsed", deserialize(F.col("php_data")))
        >>>
        >>> # Or with schema inference
        >>> from pyspark.sql.functions import from_json, schema_of_json
        >>> sample_json = '{"name":"Alice","age":30}'
        >>> schema = schema_of_json(sample_json)
        >>> df = df.withColumn("parsed", from_json(deserialize("php_data"), schema))
    """
    if output_format != "json":
        raise ValueError(f"unsupported output format: {output_format!r}")
    _check_pyspark()

    from pyspark.sql.functions import udf
    from pyspark.sql.types import StringType

    @udf(returnType=StringType())
    def _deserialize(data: Optional[bytes]) -> Optional[str]:
        return deserialize_to_json(data, auto_unescape)

    return _deserialize


def php_deserialize_pandas_udf(auto_unescape: bool = True) -> Callable:
    """
    Create a Pandas UDF for batch PHP deserialization.

    This is more efficient than the regular UDF for large datasets
    as it processes data in batches.

    Args:
        auto_unescape: Automatically handle DB-escaped strings

    Returns:
        A Pandas UDF function

    Example:
        >>> from php_unserialize.spark import php_deserialize_pandas_udf
        >>> deserialize = php_deserialize_pandas_udf()
        >>> df = df.withColumn("parsed", deserialize("php_data"))
    """
    _check_pyspark()

    import pandas as pd
    from pyspark.sql.functions import pandas_udf
    from pyspark.sql.types import StringType

    @pandas_udf(StringType())
    def _deserialize_batch(series: pd.Series) -> pd.Series:
        def safe_deserialize(data: Union[bytes, str, float, None]) -> Optional[str]:
            if isinstance(data, float) and pd.isna(data):
                return None
            return deserialize_to_json(data, auto_unescape)  # type: ignore[arg-type]

        return series.apply(safe_deserialize)

    return _deserialize_batch


def register_udfs(spark: "SparkSession", prefix: str = "php_") -> None:
    """
    Register PHP deserialization UDFs with a Spark session.

    Args:
        spark: SparkSession instance
        prefix: Prefix for UDF names (default: "php_")

    Example:
        >>> from pyspark.sql import SparkSession
        >>> from php_unserialize.spark import register_udfs
        >>>
        >>> spark = SparkSession.builder.getOrCreate()
        >>> register_udfs(spark)
        >>>
        >>> # Now use in SQL
        >>> spark.sql("SELECT php_deserialize(data) FROM table")
    """
    _check_pyspark()

    from pyspark.sql.types import StringType

    spark.udf.register(f"{prefix}deserialize", deserialize_to_json, StringType())
    logger.debug("registered udf", name=f"{prefix}deserialize")
