"""
CLI entrypoint: python -m delivery_insights.pipeline
Runs ingestion + normalization + segmentation and persists both tables.
"""

import polars as pl

from delivery_insights.contracts.schemas import (
    NORMALIZED_OUTPUT_PATH,
    OUTCOME_LATE,
    RAW_INPUT_PATH,
    SEGMENT_OUTPUT_PATH,
)
from delivery_insights.pipeline.ingest import load_shipments
from delivery_insights.pipeline.normalize import normalize, write_normalized
from delivery_insights.pipeline.segment import (
    build_segments,
    perfect_segment_summary,
    write_segments,
)


def main(
    input_path: str = RAW_INPUT_PATH,
    normalized_path: str = NORMALIZED_OUTPUT_PATH,
    segments_path: str = SEGMENT_OUTPUT_PATH,
) -> pl.DataFrame:
    print("[pipeline] Starting Shipment Delivery Insights pipeline")

    # Step 1: Ingest
    print("[pipeline] Step 1/3 — Ingesting shipments...")
    raw = load_shipments(input_path)

    # Step 2: Normalize
    print("[pipeline] Step 2/3 — Normalizing...")
    df = normalize(raw)
    write_normalized(df, normalized_path)

    # Step 3: Segments
    print("[pipeline] Step 3/3 — Building segments...")
    segments = build_segments(df)
    write_segments(segments, segments_path)

    total = len(df)
    late = df.filter(pl.col("on_time_delivery") == OUTCOME_LATE).height
    late_rate = late / total if total > 0 else 0.0
    summary = perfect_segment_summary(df)

    print(f"\n[pipeline] Done.")
    print(f"  normalized -> {normalized_path}")
    print(f"  segments   -> {segments_path}")
    print(f"\nSummary:")
    print(f"  Shipments         : {total:,}")
    print(f"  Late rate         : {late_rate:.1%}")
    print(f"  Perfect segment   : {summary['inside_shipments']:,} shipments "
          f"({summary['segment_share']:.1%}), late rate {summary['inside_late_rate']:.1%}")
    print(f"  Outside segment   : late rate {summary['outside_late_rate']:.1%}")

    # Per-mode late rates for a quick sanity check
    print("\nBy delivery type:")
    mode_rows = segments.filter(
        (pl.col("segment_type") == "delivery_type") & (pl.col("on_time_delivery") == OUTCOME_LATE)
    )
    for row in mode_rows.iter_rows(named=True):
        print(f"  {row['segment_key']}: {row['shipments']:,}/{row['group_total']:,} late"
              f" ({row['percentage']:.1f}%)")

    return df


if __name__ == "__main__":
    main()
