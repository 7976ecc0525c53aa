"""
Segmentation engine: outcome counts and within-group shares across dimensions,
plus the fixed "perfect segment" business rule.
"""

from pathlib import Path

import polars as pl

from delivery_insights.contracts.schemas import (
    OUTCOME_LATE,
    PERFECT_SEGMENT_COST_MAX,
    PERFECT_SEGMENT_LIGHT_WEIGHT_MAX,
    PERFECT_SEGMENT_MID_WEIGHT_MAX,
    PERFECT_SEGMENT_MID_WEIGHT_MIN,
    SEGMENT_OUTPUT_PATH,
    SEGMENT_SCHEMA,
)


# ---------------------------------------------------------------------------
# Segment definitions: name -> list of group-by column(s)
# ---------------------------------------------------------------------------
SEGMENT_DEFINITIONS = {
    "delivery_type":     ["delivery_type"],
    "warehouse_type":    ["warehouse_type"],
    "priority":          ["delivery_priority"],
    "prior_purchases":   ["prior_purchases"],
    "priority_delivery": ["delivery_priority", "delivery_type"],
}


def _segment_key(dims: list[str]) -> pl.Expr:
    """Build a pipe-separated human-readable key from dimension columns."""
    if len(dims) == 1:
        return pl.col(dims[0]).cast(pl.Utf8)
    return pl.concat_str([pl.col(d).cast(pl.Utf8) for d in dims], separator="|")


def outcome_shares(df: pl.DataFrame, keys: str | list[str]) -> pl.DataFrame:
    """
    Count shipments per (keys, outcome) and the share of each outcome within
    its key group: percentage = round(100 * shipments / group_total, 1).
    """
    keys = [keys] if isinstance(keys, str) else list(keys)
    return (
        df.group_by(keys + ["on_time_delivery"])
        .agg(pl.len().cast(pl.Int64).alias("shipments"))
        .with_columns(pl.col("shipments").sum().over(keys).alias("group_total"))
        .with_columns(
            (100 * pl.col("shipments") / pl.col("group_total")).round(1).alias("percentage")
        )
        .sort(keys + ["on_time_delivery"])
    )


def build_segments(df: pl.DataFrame) -> pl.DataFrame:
    """
    Run all segment definitions and return one long DataFrame
    matching SEGMENT_SCHEMA.
    """
    frames = []
    for segment_type, dims in SEGMENT_DEFINITIONS.items():
        shares = outcome_shares(df, dims).with_columns([
            pl.lit(segment_type).alias("segment_type"),
            _segment_key(dims).alias("segment_key"),
            pl.col("on_time_delivery").cast(pl.Utf8),
        ])
        frames.append(shares.select(list(SEGMENT_SCHEMA)).cast(SEGMENT_SCHEMA))
    segments = pl.concat(frames)
    print(f"[segment] {len(segments):,} segment rows across {len(SEGMENT_DEFINITIONS)} definitions")
    return segments


def write_segments(segments: pl.DataFrame, path: str = SEGMENT_OUTPUT_PATH) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    segments.write_csv(path)
    print(f"[segment] Saved segments -> {path}")
    return path


def read_segments(path: str = SEGMENT_OUTPUT_PATH) -> pl.DataFrame:
    if not Path(path).exists():
        raise FileNotFoundError(f"Segments file not found at '{path}'. Run the pipeline first.")
    return pl.read_csv(path, schema=SEGMENT_SCHEMA)


# ---------------------------------------------------------------------------
# Perfect segment
# ---------------------------------------------------------------------------

def perfect_segment_expr() -> pl.Expr:
    """(product_cost < 175 AND weight_lbs < 4) OR (4.5 <= weight_lbs <= 8)."""
    cheap_and_light = (
        (pl.col("product_cost") < PERFECT_SEGMENT_COST_MAX)
        & (pl.col("weight_lbs") < PERFECT_SEGMENT_LIGHT_WEIGHT_MAX)
    )
    mid_weight = pl.col("weight_lbs").is_between(
        PERFECT_SEGMENT_MID_WEIGHT_MIN, PERFECT_SEGMENT_MID_WEIGHT_MAX, closed="both"
    )
    return cheap_and_light | mid_weight


def filter_perfect_segment(df: pl.DataFrame) -> pl.DataFrame:
    return df.filter(perfect_segment_expr())


def perfect_segment_summary(df: pl.DataFrame) -> dict:
    """Row counts and late rates inside vs outside the perfect segment."""
    flagged = df.with_columns(perfect_segment_expr().alias("_in_segment"))
    summary = {"total_shipments": len(df)}
    for label, inside in (("inside", True), ("outside", False)):
        part = flagged.filter(pl.col("_in_segment") == inside)
        late = part.filter(pl.col("on_time_delivery") == OUTCOME_LATE).height
        summary[f"{label}_shipments"] = len(part)
        summary[f"{label}_late_rate"] = round(late / len(part), 4) if len(part) else 0.0
    summary["segment_share"] = (
        round(summary["inside_shipments"] / len(df), 4) if len(df) else 0.0
    )
    return summary
