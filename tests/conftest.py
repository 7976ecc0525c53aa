import polars as pl
import pytest

from delivery_insights.contracts.schemas import RAW_SHIPMENT_SCHEMA
from delivery_insights.data_generator.generate import generate_shipments
from delivery_insights.pipeline.normalize import normalize


def raw_rows() -> dict:
    """Four hand-checked raw shipments (grams chosen for known pound values)."""
    return {
        "ID": [1, 2, 3, 4],
        "Warehouse_block": ["A", "F", "D", "B"],
        "Mode_of_Shipment": ["Flight", "Ship", "Road", "Ship"],
        "Customer_care_calls": [4, 2, 3, 5],
        "Customer_rating": [2, 5, 3, 1],
        "Cost_of_the_Product": [177.0, 100.0, 250.0, 160.0],
        "Prior_purchases": [3, 2, 4, 6],
        "Product_importance": ["low", "medium", "high", "low"],
        "Gender": ["F", "M", "M", "F"],
        "Discount_offered": [44, 3, 10, 5],
        "Weight_in_gms": [1233.0, 2267.96, 3088.0, 1600.0],
        "Reached.on.Time_Y.N": [1, 0, 1, 1],
    }


@pytest.fixture
def raw_frame() -> pl.DataFrame:
    return pl.DataFrame(raw_rows()).cast(RAW_SHIPMENT_SCHEMA)


@pytest.fixture(scope="session")
def generated_raw() -> pl.DataFrame:
    return generate_shipments(n=1_500, seed=7)


@pytest.fixture(scope="session")
def generated_normalized(generated_raw) -> pl.DataFrame:
    return normalize(generated_raw)
