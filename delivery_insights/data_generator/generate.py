"""
Synthetic Shipment Data Generator

Generates ~11,000 shipments matching RAW_SHIPMENT_SCHEMA with two embedded patterns:
  1. Perfect segment (cheap & light, or 4.5-8 lbs): almost always on time
  2. Discounts above 10%: always on time

Elsewhere roughly half of the shipments arrive late.

Usage:
    python -m delivery_insights.data_generator.generate
"""

import os

import numpy as np
import polars as pl

from delivery_insights.contracts.schemas import (
    DELIVERY_PRIORITIES,
    DELIVERY_TYPES,
    GENDERS,
    GRAMS_PER_POUND,
    PERFECT_SEGMENT_COST_MAX,
    PERFECT_SEGMENT_LIGHT_WEIGHT_MAX,
    PERFECT_SEGMENT_MID_WEIGHT_MAX,
    PERFECT_SEGMENT_MID_WEIGHT_MIN,
    RAW_INPUT_PATH,
    RAW_SHIPMENT_SCHEMA,
    WAREHOUSE_TYPES,
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
TOTAL_SHIPMENTS = 10_999
DEFAULT_SEED = 42

WAREHOUSE_WEIGHTS = [1 / 6, 1 / 6, 1 / 6, 1 / 6, 1 / 3]   # F is the largest block
DELIVERY_WEIGHTS = [0.16, 0.16, 0.68]                      # Flight, Road, Ship
PRIORITY_WEIGHTS = [0.48, 0.43, 0.09]                      # low, medium, high

# Weight mixture in grams: (low, high, share)
WEIGHT_BANDS = [
    (1001, 2000, 0.30),
    (2000, 4000, 0.18),
    (4000, 7846, 0.52),
]

ON_TIME_RATE_PERFECT = 0.985
ON_TIME_RATE_HIGH_DISCOUNT = 1.0
ON_TIME_RATE_OTHER = 0.47


def _sample_weights_grams(rng: np.random.Generator, n: int) -> np.ndarray:
    shares = np.array([band[2] for band in WEIGHT_BANDS])
    band_idx = rng.choice(len(WEIGHT_BANDS), size=n, p=shares / shares.sum())
    lows = np.array([band[0] for band in WEIGHT_BANDS])[band_idx]
    highs = np.array([band[1] for band in WEIGHT_BANDS])[band_idx]
    return rng.integers(lows, highs, endpoint=True).astype(float)


def generate_shipments(n: int = TOTAL_SHIPMENTS, seed: int = DEFAULT_SEED) -> pl.DataFrame:
    """Build a raw shipments DataFrame matching RAW_SHIPMENT_SCHEMA."""
    rng = np.random.default_rng(seed=seed)

    cost = rng.integers(96, 310, size=n, endpoint=True).astype(float)
    grams = _sample_weights_grams(rng, n)
    discount = np.where(
        rng.random(n) < 0.8,
        rng.integers(1, 10, size=n, endpoint=True),
        rng.integers(11, 65, size=n, endpoint=True),
    )

    # Outcome probability follows the segment rules on the derived weight
    lbs = np.round(grams / GRAMS_PER_POUND, 2)
    in_perfect_segment = (
        ((cost < PERFECT_SEGMENT_COST_MAX) & (lbs < PERFECT_SEGMENT_LIGHT_WEIGHT_MAX))
        | ((lbs >= PERFECT_SEGMENT_MID_WEIGHT_MIN) & (lbs <= PERFECT_SEGMENT_MID_WEIGHT_MAX))
    )
    on_time_rate = np.select(
        [discount > 10, in_perfect_segment],
        [ON_TIME_RATE_HIGH_DISCOUNT, ON_TIME_RATE_PERFECT],
        default=ON_TIME_RATE_OTHER,
    )
    reached_on_time = (rng.random(n) < on_time_rate).astype(int)

    df = pl.DataFrame({
        "ID": np.arange(1, n + 1),
        "Warehouse_block": rng.choice(WAREHOUSE_TYPES, size=n, p=WAREHOUSE_WEIGHTS),
        "Mode_of_Shipment": rng.choice(DELIVERY_TYPES, size=n, p=DELIVERY_WEIGHTS),
        "Customer_care_calls": rng.integers(2, 7, size=n, endpoint=True),
        "Customer_rating": rng.integers(1, 5, size=n, endpoint=True),
        "Cost_of_the_Product": cost,
        "Prior_purchases": rng.integers(2, 10, size=n, endpoint=True),
        "Product_importance": rng.choice(DELIVERY_PRIORITIES, size=n, p=PRIORITY_WEIGHTS),
        "Gender": rng.choice(GENDERS, size=n),
        "Discount_offered": discount,
        "Weight_in_gms": grams,
        "Reached.on.Time_Y.N": reached_on_time,
    })
    return df.cast(RAW_SHIPMENT_SCHEMA)


def print_summary(df: pl.DataFrame) -> None:
    """Print headline stats for a quick sanity check."""
    print("=" * 60)
    print(f"  Shipments       : {len(df):,}")
    on_time = df["Reached.on.Time_Y.N"].mean()
    print(f"  On-time share   : {on_time:.1%}")
    print(f"  Late share      : {1 - on_time:.1%}")

    by_mode = (
        df.group_by("Mode_of_Shipment")
        .agg([
            pl.len().alias("total"),
            pl.col("Reached.on.Time_Y.N").mean().alias("on_time_rate"),
        ])
        .sort("Mode_of_Shipment")
    )
    print("\n--- By shipment mode ---")
    for row in by_mode.iter_rows(named=True):
        print(f"  {row['Mode_of_Shipment']:<7}: {row['total']:,} shipments | on time: {row['on_time_rate']:.1%}")
    print("=" * 60)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(path: str = RAW_INPUT_PATH, n: int = TOTAL_SHIPMENTS, seed: int = DEFAULT_SEED) -> str:
    print("Generating synthetic shipments...")
    df = generate_shipments(n=n, seed=seed)
    print_summary(df)

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    df.write_csv(path)
    print(f"\nSaved {len(df):,} rows -> {path}")
    return path


if __name__ == "__main__":
    main()
