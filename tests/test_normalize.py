import polars as pl
import pytest
from polars.testing import assert_frame_equal

from delivery_insights.contracts.errors import DataQualityError, SchemaError
from delivery_insights.contracts.schemas import GRAMS_PER_POUND, NORMALIZED_SCHEMA
from delivery_insights.pipeline.normalize import (
    normalize,
    read_normalized,
    recode_outcome,
    write_normalized,
)


def test_normalize_produces_canonical_schema(raw_frame):
    df = normalize(raw_frame)

    assert df.columns == list(NORMALIZED_SCHEMA)
    assert df.schema == pl.Schema(NORMALIZED_SCHEMA)
    assert "shipment_id" not in df.columns
    assert "weight_grams" not in df.columns
    assert len(df) == len(raw_frame)


def test_weight_converted_to_pounds(raw_frame):
    df = normalize(raw_frame)
    # 2267.96 g is exactly 5 lbs
    assert df["weight_lbs"].to_list() == [2.72, 5.0, 6.81, 3.53]


def test_weight_matches_python_rounding_for_every_row(generated_raw, generated_normalized):
    expected = [round(g / GRAMS_PER_POUND, 2) for g in generated_raw["Weight_in_gms"].to_list()]
    assert generated_normalized["weight_lbs"].to_list() == expected


def test_outcome_recoded_from_reached_flag(raw_frame):
    df = normalize(raw_frame)
    assert df["on_time_delivery"].cast(pl.Utf8).to_list() == ["On Time", "Late", "On Time", "On Time"]


def test_priority_keeps_low_medium_high_order(raw_frame):
    df = normalize(raw_frame)
    ordered = df.sort("delivery_priority")["delivery_priority"].cast(pl.Utf8).to_list()
    assert ordered == ["low", "low", "medium", "high"]
    assert df["delivery_priority"].to_physical().to_list() == [0, 1, 2, 0]


def test_unknown_priority_is_schema_error(raw_frame):
    bad = raw_frame.with_columns(
        pl.when(pl.col("ID") == 2).then(pl.lit("urgent")).otherwise(pl.col("Product_importance"))
        .alias("Product_importance")
    )
    with pytest.raises(SchemaError, match="urgent"):
        normalize(bad)


def test_unknown_warehouse_is_schema_error(raw_frame):
    bad = raw_frame.with_columns(pl.lit("E").alias("Warehouse_block"))
    with pytest.raises(SchemaError, match="warehouse_type"):
        normalize(bad)


def test_column_outside_mapping_is_schema_error(raw_frame):
    with pytest.raises(SchemaError, match="rename mapping"):
        normalize(raw_frame.with_columns(pl.lit(0).alias("Carrier")))


def test_missing_source_column_is_schema_error(raw_frame):
    with pytest.raises(SchemaError, match="Missing"):
        normalize(raw_frame.drop("Discount_offered"))


def test_duplicate_identifier_is_data_quality_error(raw_frame):
    bad = raw_frame.with_columns(pl.Series("ID", [1, 2, 2, 4]))
    with pytest.raises(DataQualityError, match="Duplicate"):
        normalize(bad)


def test_unmapped_outcome_becomes_null_marker(raw_frame):
    renamed = raw_frame.rename({"Reached.on.Time_Y.N": "on_time_delivery"}).with_columns(
        pl.Series("on_time_delivery", [1, 0, 2, 1])
    )
    recoded = recode_outcome(renamed)
    assert recoded["on_time_delivery"].to_list() == ["On Time", "Late", None, "On Time"]


def test_unmapped_outcome_halts_normalization(raw_frame):
    bad = raw_frame.with_columns(pl.Series("Reached.on.Time_Y.N", [1, 0, 2, 1]))
    with pytest.raises(DataQualityError, match="outcome"):
        normalize(bad)


def test_negative_cost_is_data_quality_error(raw_frame):
    bad = raw_frame.with_columns(pl.Series("Cost_of_the_Product", [177.0, -1.0, 250.0, 160.0]))
    with pytest.raises(DataQualityError, match="product_cost"):
        normalize(bad)


def test_persisted_table_round_trips(tmp_path, generated_normalized):
    path = str(tmp_path / "processed" / "normalized.csv")
    write_normalized(generated_normalized, path)

    reread = read_normalized(path)

    assert_frame_equal(reread, generated_normalized)


def test_read_normalized_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_normalized(str(tmp_path / "missing.csv"))


@pytest.mark.parametrize(
    "raw_column, canonical",
    [
        ("Cost_of_the_Product", "product_cost"),
        ("Weight_in_gms", "weight_grams"),
        ("Customer_care_calls", "customer_calls"),
        ("Discount_offered", "discount_offered"),
    ],
)
def test_missing_numeric_value_is_data_quality_error(raw_frame, raw_column, canonical):
    bad = raw_frame.with_columns(
        pl.when(pl.col("ID") == 3).then(None).otherwise(pl.col(raw_column)).alias(raw_column)
    )
    with pytest.raises(DataQualityError, match=canonical):
        normalize(bad)


def test_blank_cost_in_csv_halts_before_modeling(tmp_path, generated_raw):
    from delivery_insights.pipeline.ingest import load_shipments

    path = tmp_path / "shipments.csv"
    generated_raw.head(300).with_columns(
        pl.when(pl.col("ID") == 5).then(None).otherwise(pl.col("Cost_of_the_Product"))
        .alias("Cost_of_the_Product")
    ).write_csv(path)

    with pytest.raises(DataQualityError, match="product_cost"):
        normalize(load_shipments(str(path)))


def test_weight_matches_python_rounding_for_fractional_grams(generated_raw):
    n = len(generated_raw)
    grams = [2267.96] + [round(1000 + i * 4.37 + (i % 100) / 100, 2) for i in range(1, n)]
    raw = generated_raw.with_columns(pl.Series("Weight_in_gms", grams, dtype=pl.Float64))

    df = normalize(raw)

    assert df["weight_lbs"][0] == 5.0
    assert df["weight_lbs"].to_list() == [round(g / GRAMS_PER_POUND, 2) for g in grams]
