"""
Ingest the raw shipments CSV and validate its header schema.
"""

from pathlib import Path

import polars as pl

from delivery_insights.contracts.errors import SchemaError
from delivery_insights.contracts.schemas import (
    RAW_INPUT_PATH,
    RAW_NUMERIC_COLUMNS,
    RAW_SHIPMENT_SCHEMA,
)


def _parse_numeric(df: pl.DataFrame, col: str) -> pl.Series:
    """Cast one raw column to its numeric dtype; unparseable text is a schema error."""
    values = df[col]
    dtype = RAW_SHIPMENT_SCHEMA[col]
    if values.dtype.is_numeric():
        return values.cast(dtype)
    if values.dtype != pl.Utf8:
        raise SchemaError(f"Column '{col}': expected numeric values, got {values.dtype}")

    parsed = values.str.strip_chars().cast(dtype, strict=False)
    bad = values.filter(values.is_not_null() & parsed.is_null())
    if len(bad) > 0:
        raise SchemaError(
            f"Column '{col}': expected numeric values, got {len(bad)} unparseable "
            f"value(s) such as {bad.unique(maintain_order=True).head(5).to_list()}"
        )
    return parsed


def validate_raw_schema(df: pl.DataFrame) -> pl.DataFrame:
    """Raise if df does not carry exactly the raw columns; cast to raw dtypes."""
    expected = set(RAW_SHIPMENT_SCHEMA)
    actual = set(df.columns)
    missing = sorted(expected - actual)
    extra = sorted(actual - expected)
    if missing:
        raise SchemaError(f"Missing required column(s): {missing}")
    if extra:
        raise SchemaError(f"Unexpected column(s): {extra}")

    df = df.with_columns([_parse_numeric(df, col) for col in RAW_NUMERIC_COLUMNS])
    return df.select(list(RAW_SHIPMENT_SCHEMA)).cast(RAW_SHIPMENT_SCHEMA)


def load_shipments(path: str = RAW_INPUT_PATH) -> pl.DataFrame:
    """
    Load and validate raw shipments from a delimited file.
    A missing file is fatal: there is no mock fallback for real runs.

    Every column is read as text and parsed by validate_raw_schema, so a bad
    value anywhere in the file surfaces as a SchemaError naming its column.
    """
    raw_path = Path(path)
    if not raw_path.exists():
        raise FileNotFoundError(
            f"Raw shipments file not found at '{path}'. "
            "Run `generate` first or pass --input."
        )
    df = pl.read_csv(raw_path, infer_schema_length=0)
    df = validate_raw_schema(df)
    print(f"[ingest] Loaded {len(df):,} shipments from '{path}'")
    return df
