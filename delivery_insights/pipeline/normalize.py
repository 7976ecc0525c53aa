"""
Normalization: raw shipments -> canonical, typed shipments table.

Steps (each fails loudly, nothing is silently corrected):
  rename -> identifier check -> missing numeric values -> weight grams->lbs
  -> outcome recode -> categorical casts -> range checks -> drop identifier, reorder.
"""

from pathlib import Path

import polars as pl

from delivery_insights.contracts.errors import DataQualityError, SchemaError
from delivery_insights.contracts.schemas import (
    CATEGORY_LEVELS,
    GRAMS_PER_POUND,
    IDENTIFIER_COLUMN,
    NORMALIZED_OUTPUT_PATH,
    NORMALIZED_SCHEMA,
    OUTCOME_RECODE,
    RENAME_MAP,
    WEIGHT_DECIMALS,
)


def _rename_columns(df: pl.DataFrame) -> pl.DataFrame:
    unmapped = [c for c in df.columns if c not in RENAME_MAP]
    if unmapped:
        raise SchemaError(f"Column(s) not in rename mapping (schema drift?): {unmapped}")
    absent = [c for c in RENAME_MAP if c not in df.columns]
    if absent:
        raise SchemaError(f"Missing source column(s): {absent}")
    return df.rename(RENAME_MAP)


def _check_identifiers(df: pl.DataFrame) -> pl.DataFrame:
    ids = df[IDENTIFIER_COLUMN]
    if ids.null_count() > 0:
        raise DataQualityError(f"{ids.null_count()} row(s) without '{IDENTIFIER_COLUMN}'")
    duplicated = ids.filter(ids.is_duplicated()).unique().sort()
    if len(duplicated) > 0:
        raise DataQualityError(
            f"Duplicate '{IDENTIFIER_COLUMN}' values: {duplicated.head(10).to_list()}"
        )
    return df


def _check_missing_values(df: pl.DataFrame) -> pl.DataFrame:
    """Numeric columns must be complete; categorical columns are checked on cast."""
    counts = df.select(
        [pl.col(c).null_count() for c in df.columns if c not in CATEGORY_LEVELS]
    ).row(0, named=True)
    missing = {col: n for col, n in counts.items() if n > 0}
    if missing:
        raise DataQualityError(f"Missing numeric value(s) per column: {missing}")
    return df


def _convert_weight(df: pl.DataFrame) -> pl.DataFrame:
    return df.with_columns(
        (pl.col("weight_grams") / GRAMS_PER_POUND).round(WEIGHT_DECIMALS).alias("weight_lbs")
    ).drop("weight_grams")


def recode_outcome(df: pl.DataFrame) -> pl.DataFrame:
    """Map the 0/1 source flag to Late / On Time; unmapped values become null."""
    return df.with_columns(
        pl.col("on_time_delivery")
        .replace_strict(OUTCOME_RECODE, default=None, return_dtype=pl.Utf8)
    )


def _check_outcome(df: pl.DataFrame) -> pl.DataFrame:
    missing = df["on_time_delivery"].null_count()
    if missing > 0:
        raise DataQualityError(
            f"{missing} row(s) have an outcome outside {sorted(OUTCOME_RECODE)} after recoding"
        )
    return df


def _cast_categories(df: pl.DataFrame) -> pl.DataFrame:
    """Cast categorical columns to Enum; unknown levels are a schema error."""
    for col, levels in CATEGORY_LEVELS.items():
        values = df[col].cast(pl.Utf8)
        unknown = values.filter(values.is_not_null() & ~values.is_in(levels)).unique().sort()
        if len(unknown) > 0:
            raise SchemaError(
                f"Column '{col}': unexpected level(s) {unknown.to_list()}, expected one of {levels}"
            )
        if values.null_count() > 0:
            raise SchemaError(f"Column '{col}': {values.null_count()} missing value(s)")
    return df.with_columns([
        pl.col(col).cast(pl.Utf8).cast(pl.Enum(levels)) for col, levels in CATEGORY_LEVELS.items()
    ])


def _check_ranges(df: pl.DataFrame) -> pl.DataFrame:
    for col in ("product_cost", "weight_lbs"):
        negative = df.filter(pl.col(col) < 0).height
        if negative > 0:
            raise DataQualityError(f"Column '{col}': {negative} negative value(s)")
    return df


def normalize(df: pl.DataFrame) -> pl.DataFrame:
    """
    Produce the canonical shipments table from a raw table.
    Returns a new DataFrame matching NORMALIZED_SCHEMA column-for-column.
    """
    normalized = (
        df.pipe(_rename_columns)
          .pipe(_check_identifiers)
          .pipe(_check_missing_values)
          .pipe(_convert_weight)
          .pipe(recode_outcome)
          .pipe(_check_outcome)
          .pipe(_cast_categories)
          .pipe(_check_ranges)
          .drop(IDENTIFIER_COLUMN)
          .select(list(NORMALIZED_SCHEMA))
          .cast(NORMALIZED_SCHEMA)
    )
    print(f"[normalize] {len(normalized):,} rows x {normalized.width} canonical columns")
    return normalized


def write_normalized(df: pl.DataFrame, path: str = NORMALIZED_OUTPUT_PATH) -> str:
    """Persist the normalized table so later stages can skip ingestion."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.write_csv(path)
    print(f"[normalize] Saved normalized table -> {path}")
    return path


def read_normalized(path: str = NORMALIZED_OUTPUT_PATH) -> pl.DataFrame:
    """Re-read a persisted normalized table with the canonical dtypes."""
    if not Path(path).exists():
        raise FileNotFoundError(
            f"Normalized table not found at '{path}'. Run the pipeline first."
        )
    text_columns = {col: pl.Utf8 for col in CATEGORY_LEVELS}
    df = pl.read_csv(path, schema_overrides=text_columns)
    missing = [c for c in NORMALIZED_SCHEMA if c not in df.columns]
    if missing:
        raise SchemaError(f"Persisted table at '{path}' lacks column(s): {missing}")
    return (
        _cast_categories(df)
        .select(list(NORMALIZED_SCHEMA))
        .pipe(_check_missing_values)
        .cast(NORMALIZED_SCHEMA)
    )
