"""
Data contracts for the Shipment Delivery Insights pipeline.

These schemas and constants are the single source of truth for every stage.

Layer flow: raw shipments CSV -> normalized table -> segments / model metrics -> charts + report
"""

import polars as pl


# =============================================================================
# LAYER 1: Raw Shipments (data/raw/shipments.csv)
# =============================================================================

RAW_SHIPMENT_SCHEMA = {
    "ID": pl.Int64,                     # Unique per row
    "Warehouse_block": pl.Utf8,         # A, B, C, D, F
    "Mode_of_Shipment": pl.Utf8,        # Flight, Road, Ship
    "Customer_care_calls": pl.Int64,
    "Customer_rating": pl.Int64,        # 1-5
    "Cost_of_the_Product": pl.Float64,  # USD
    "Prior_purchases": pl.Int64,
    "Product_importance": pl.Utf8,      # low, medium, high
    "Gender": pl.Utf8,                  # F, M
    "Discount_offered": pl.Int64,
    "Weight_in_gms": pl.Float64,
    "Reached.on.Time_Y.N": pl.Int64,    # 1 = reached on time, 0 = late
}

RAW_NUMERIC_COLUMNS = [col for col, dtype in RAW_SHIPMENT_SCHEMA.items() if dtype != pl.Utf8]

RAW_INPUT_PATH = "data/raw/shipments.csv"


# =============================================================================
# LAYER 2: Normalized Shipments (data/processed/shipments_normalized.csv)
# =============================================================================

# Fixed 1:1 mapping from source header to canonical names
RENAME_MAP = {
    "ID": "shipment_id",
    "Warehouse_block": "warehouse_type",
    "Mode_of_Shipment": "delivery_type",
    "Customer_care_calls": "customer_calls",
    "Customer_rating": "customer_review",
    "Cost_of_the_Product": "product_cost",
    "Prior_purchases": "prior_purchases",
    "Product_importance": "delivery_priority",
    "Gender": "gender",
    "Discount_offered": "discount_offered",
    "Weight_in_gms": "weight_grams",
    "Reached.on.Time_Y.N": "on_time_delivery",
}

IDENTIFIER_COLUMN = "shipment_id"

WAREHOUSE_TYPES = ["A", "B", "C", "D", "F"]
DELIVERY_TYPES = ["Flight", "Road", "Ship"]
DELIVERY_PRIORITIES = ["low", "medium", "high"]   # Ordered: low < medium < high
GENDERS = ["F", "M"]
OUTCOMES = ["Late", "On Time"]

OUTCOME_LATE = "Late"
OUTCOME_ON_TIME = "On Time"
OUTCOME_RECODE = {1: OUTCOME_ON_TIME, 0: OUTCOME_LATE}

# Level lists per categorical column; Enum physical order == list order
CATEGORY_LEVELS = {
    "warehouse_type": WAREHOUSE_TYPES,
    "delivery_type": DELIVERY_TYPES,
    "delivery_priority": DELIVERY_PRIORITIES,
    "gender": GENDERS,
    "on_time_delivery": OUTCOMES,
}

NORMALIZED_SCHEMA = {
    "warehouse_type": pl.Enum(WAREHOUSE_TYPES),
    "delivery_type": pl.Enum(DELIVERY_TYPES),
    "customer_calls": pl.Int64,
    "customer_review": pl.Int64,
    "product_cost": pl.Float64,
    "prior_purchases": pl.Int64,
    "delivery_priority": pl.Enum(DELIVERY_PRIORITIES),
    "gender": pl.Enum(GENDERS),
    "discount_offered": pl.Int64,
    "weight_lbs": pl.Float64,
    "on_time_delivery": pl.Enum(OUTCOMES),
}

GRAMS_PER_POUND = 453.592
WEIGHT_DECIMALS = 2

NORMALIZED_OUTPUT_PATH = "data/processed/shipments_normalized.csv"


# =============================================================================
# LAYER 3: Segments (data/processed/segments.csv)
# =============================================================================

SEGMENT_SCHEMA = {
    "segment_type": pl.Utf8,         # delivery_type, warehouse_type, priority, prior_purchases, priority_delivery
    "segment_key": pl.Utf8,          # Human-readable key: "high|Ship"
    "on_time_delivery": pl.Utf8,     # Late, On Time
    "shipments": pl.Int64,
    "group_total": pl.Int64,         # All outcomes for this segment_key
    "percentage": pl.Float64,        # round(100 * shipments / group_total, 1)
}

SEGMENT_OUTPUT_PATH = "data/processed/segments.csv"

# Perfect segment: (cost < 175 AND weight < 4) OR (4.5 <= weight <= 8)
PERFECT_SEGMENT_COST_MAX = 175          # exclusive
PERFECT_SEGMENT_LIGHT_WEIGHT_MAX = 4    # exclusive
PERFECT_SEGMENT_MID_WEIGHT_MIN = 4.5    # inclusive
PERFECT_SEGMENT_MID_WEIGHT_MAX = 8      # inclusive


# =============================================================================
# LAYER 4: Modeling Output (data/analytics/)
# =============================================================================

MODEL_FEATURES = [
    "warehouse_type",
    "delivery_type",
    "customer_calls",
    "customer_review",
    "product_cost",
    "prior_purchases",
    "delivery_priority",
    "gender",
    "discount_offered",
    "weight_lbs",
]
CATEGORICAL_FEATURES = ["warehouse_type", "delivery_type", "delivery_priority", "gender"]
NUMERIC_FEATURES = [c for c in MODEL_FEATURES if c not in CATEGORICAL_FEATURES]
TARGET_COLUMN = "on_time_delivery"
POSITIVE_CLASS = OUTCOME_LATE

METRICS_SCHEMA = {
    "model": pl.Utf8,
    "accuracy": pl.Float64,
    "precision": pl.Float64,   # Late = positive class
    "recall": pl.Float64,
    "f1": pl.Float64,
}

FEATURE_IMPORTANCE_SCHEMA = {
    "model": pl.Utf8,
    "feature": pl.Utf8,
    "importance": pl.Float64,
}

METRICS_OUTPUT_PATH = "data/analytics/model_metrics.json"
FEATURE_IMPORTANCE_OUTPUT_PATH = "data/analytics/feature_importances.csv"

HOLDOUT_FRACTION = 0.2
RANDOM_SEED = 42
SEARCH_ITERATIONS = 20
SEARCH_CV_FOLDS = 5


# =============================================================================
# CHARTS & REPORT (output/)
# =============================================================================

CHART_OUTPUT_DIR = "output"

# Overlay regions drawn on the scatter plot. Kept apart from the perfect
# segment predicate: these bounds (2, 4.5, 8.8) are visual, not logical.
OVERLAY_LIGHT_COST_MAX = 175
OVERLAY_LIGHT_WEIGHT_MIN = 2.0
OVERLAY_LIGHT_WEIGHT_MAX = 4.5
OVERLAY_MID_WEIGHT_MIN = 4.5
OVERLAY_MID_WEIGHT_MAX = 8.8

# Static export size: width x height in CSS pixels, scale 2 => 2x device pixels
SCATTER_SIZE = {"width": 1200, "height": 700, "scale": 2}
PIE_SIZE = {"width": 800, "height": 600, "scale": 2}
BAR_SIZE = {"width": 1000, "height": 450, "scale": 2}
