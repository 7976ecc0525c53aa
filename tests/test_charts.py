import polars as pl
import pytest

from delivery_insights.contracts.schemas import (
    OUTCOME_LATE,
    OUTCOME_ON_TIME,
    OVERLAY_LIGHT_COST_MAX,
    OVERLAY_LIGHT_WEIGHT_MAX,
    OVERLAY_LIGHT_WEIGHT_MIN,
    OVERLAY_MID_WEIGHT_MAX,
    OVERLAY_MID_WEIGHT_MIN,
)
from delivery_insights.pipeline.segment import SEGMENT_DEFINITIONS, filter_perfect_segment
from delivery_insights.visualization.charts import (
    build_charts,
    chart_cost_weight_scatter,
    chart_model_metrics,
    chart_outcome_shares,
    chart_perfect_segment_pie,
)
from delivery_insights.visualization.report import export_report_html


@pytest.fixture
def metrics_frame() -> pl.DataFrame:
    return pl.DataFrame({
        "model": ["Logistic Regression", "Decision Tree", "XGBoost (tuned)"],
        "accuracy": [0.63, 0.64, 0.68],
        "precision": [0.59, 0.56, 0.61],
        "recall": [0.41, 0.58, 0.79],
        "f1": [0.48, 0.57, 0.69],
    })


def test_scatter_has_one_trace_per_outcome(generated_normalized):
    fig = chart_cost_weight_scatter(generated_normalized)

    assert [t.name for t in fig.data] == [OUTCOME_LATE, OUTCOME_ON_TIME]
    assert sum(len(t.x) for t in fig.data) == len(generated_normalized)


def test_scatter_overlay_bounds(generated_normalized):
    fig = chart_cost_weight_scatter(generated_normalized)
    light, mid = fig.layout.shapes

    assert light.x0 == generated_normalized["product_cost"].min()
    assert light.x1 == OVERLAY_LIGHT_COST_MAX
    assert (light.y0, light.y1) == (OVERLAY_LIGHT_WEIGHT_MIN, OVERLAY_LIGHT_WEIGHT_MAX)
    assert (mid.y0, mid.y1) == (OVERLAY_MID_WEIGHT_MIN, OVERLAY_MID_WEIGHT_MAX)


@pytest.mark.parametrize("dimension", ["delivery_type", "warehouse_type"])
def test_pie_covers_exactly_the_perfect_segment(generated_normalized, dimension):
    fig = chart_perfect_segment_pie(generated_normalized, dimension)
    pie = fig.data[0]

    assert sum(pie.values) == len(filter_perfect_segment(generated_normalized))
    assert all(" · " in label for label in pie.labels)


def test_outcome_share_bars_are_percentages(generated_normalized):
    fig = chart_outcome_shares(generated_normalized, "priority")

    assert fig.layout.barmode == "stack"
    late, on_time = fig.data
    for a, b in zip(late.y, on_time.y):
        assert a + b == pytest.approx(100.0, abs=0.1)


def test_model_metrics_chart(metrics_frame):
    fig = chart_model_metrics(metrics_frame)

    assert len(fig.data) == 4
    assert list(fig.data[0].x) == metrics_frame["model"].to_list()


def test_build_charts_without_metrics(generated_normalized):
    charts = build_charts(generated_normalized)

    assert "model_metrics" not in charts
    assert {"cost_weight_scatter", "perfect_segment_delivery_type", "perfect_segment_warehouse_type"} <= set(charts)
    assert {f"outcome_share_{s}" for s in SEGMENT_DEFINITIONS} <= set(charts)
    for _fig, size in charts.values():
        assert size["scale"] == 2


def test_build_charts_with_metrics(generated_normalized, metrics_frame):
    charts = build_charts(generated_normalized, metrics_frame)
    assert "model_metrics" in charts


def test_report_without_metrics_says_so(tmp_path, generated_normalized):
    path = export_report_html(generated_normalized, output_dir=str(tmp_path))

    content = (tmp_path / "report.html").read_text()
    assert path.endswith("report.html")
    assert "Model metrics are not available for this run." in content
    assert "Perfect Segment by Delivery Type" in content


def test_report_with_metrics_names_best_model(tmp_path, generated_normalized, metrics_frame):
    export_report_html(generated_normalized, metrics_frame, output_dir=str(tmp_path))

    content = (tmp_path / "report.html").read_text()
    assert "not available" not in content
    assert "<b>XGBoost (tuned)</b>" in content
