"""
Shipment Delivery Insights — Static Chart Functions.

Each chart function returns a plotly.graph_objects.Figure built from the
normalized shipments table. Run as CLI to export PNGs:
    python -m delivery_insights.visualization.charts
"""

from __future__ import annotations

import os

import plotly.graph_objects as go
import polars as pl

from delivery_insights.contracts.schemas import (
    BAR_SIZE,
    CHART_OUTPUT_DIR,
    NORMALIZED_OUTPUT_PATH,
    OUTCOME_LATE,
    OUTCOME_ON_TIME,
    OVERLAY_LIGHT_COST_MAX,
    OVERLAY_LIGHT_WEIGHT_MAX,
    OVERLAY_LIGHT_WEIGHT_MIN,
    OVERLAY_MID_WEIGHT_MAX,
    OVERLAY_MID_WEIGHT_MIN,
    PIE_SIZE,
    SCATTER_SIZE,
)
from delivery_insights.pipeline.segment import (
    SEGMENT_DEFINITIONS,
    filter_perfect_segment,
    outcome_shares,
)

# ---------------------------------------------------------------------------
# Color palette
# ---------------------------------------------------------------------------
COLOR_GREEN = "#2ecc71"
COLOR_RED = "#e74c3c"
COLOR_BLUE = "#3498db"
COLOR_DARK_BLUE = "#2c3e50"
COLOR_ORANGE = "#e67e22"
COLOR_YELLOW = "#f1c40f"

OUTCOME_COLORS = {OUTCOME_LATE: COLOR_RED, OUTCOME_ON_TIME: COLOR_GREEN}

DIMENSION_LABELS = {
    "delivery_type": "Delivery Type",
    "warehouse_type": "Warehouse",
    "delivery_priority": "Priority",
    "prior_purchases": "Prior Purchases",
}


# ---------------------------------------------------------------------------
# Chart 1: Cost vs Weight scatter with perfect-segment overlays
# ---------------------------------------------------------------------------

def chart_cost_weight_scatter(df: pl.DataFrame) -> go.Figure:
    """product_cost (x) vs weight_lbs (y), coloured by outcome, with two overlay regions."""
    fig = go.Figure()
    for outcome in (OUTCOME_LATE, OUTCOME_ON_TIME):
        subset = df.filter(pl.col("on_time_delivery") == outcome)
        fig.add_trace(go.Scatter(
            x=subset["product_cost"].to_list(),
            y=subset["weight_lbs"].to_list(),
            mode="markers",
            name=outcome,
            marker=dict(size=4, color=OUTCOME_COLORS[outcome], opacity=0.55),
            hovertemplate="Cost $%{x:.0f}<br>Weight %{y:.2f} lbs<extra>" + outcome + "</extra>",
        ))

    # Overlay bounds are display-only and differ from perfect_segment_expr()
    cost_min = df["product_cost"].min() if len(df) else 0
    fig.add_shape(
        type="rect", xref="x", yref="y",
        x0=cost_min, x1=OVERLAY_LIGHT_COST_MAX,
        y0=OVERLAY_LIGHT_WEIGHT_MIN, y1=OVERLAY_LIGHT_WEIGHT_MAX,
        fillcolor=COLOR_BLUE, opacity=0.12,
        line=dict(color=COLOR_BLUE, width=2, dash="dash"),
    )
    fig.add_annotation(
        x=OVERLAY_LIGHT_COST_MAX, y=OVERLAY_LIGHT_WEIGHT_MAX,
        text="Perfect segment: light & cheap",
        showarrow=False, xanchor="right", yanchor="bottom",
        font=dict(color=COLOR_BLUE, size=12),
    )
    fig.add_hrect(
        y0=OVERLAY_MID_WEIGHT_MIN, y1=OVERLAY_MID_WEIGHT_MAX,
        fillcolor=COLOR_ORANGE, opacity=0.10,
        line=dict(color=COLOR_ORANGE, width=2, dash="dash"),
        annotation_text="Perfect segment: mid weight",
        annotation_position="top right",
        annotation_font_color=COLOR_ORANGE,
    )

    fig.update_layout(
        title=dict(text="Product Cost vs Weight by Delivery Outcome", font=dict(size=20, color=COLOR_DARK_BLUE)),
        xaxis=dict(title="Product Cost (USD)", tickprefix="$"),
        yaxis=dict(title="Weight (lbs)"),
        template="plotly_white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(t=70, b=50),
    )
    return fig


# ---------------------------------------------------------------------------
# Charts 2 & 3: Perfect segment composition pies
# ---------------------------------------------------------------------------

def chart_perfect_segment_pie(df: pl.DataFrame, dimension: str) -> go.Figure:
    """Composition by `dimension` x outcome of the rows inside the perfect segment."""
    segment = filter_perfect_segment(df)
    shares = outcome_shares(segment, dimension)

    labels = [
        f"{row[dimension]} · {row['on_time_delivery']}" for row in shares.iter_rows(named=True)
    ]
    pull = [0.08 if row["on_time_delivery"] == OUTCOME_LATE else 0.0 for row in shares.iter_rows(named=True)]

    fig = go.Figure(go.Pie(
        labels=labels,
        values=shares["shipments"].to_list(),
        pull=pull,
        sort=False,
        textinfo="label+percent",
        hovertemplate="%{label}: %{value:,} shipments (%{percent})<extra></extra>",
    ))
    label = DIMENSION_LABELS.get(dimension, dimension)
    fig.update_layout(
        title=dict(
            text=f"Perfect Segment by {label} ({len(segment):,} shipments)",
            font=dict(size=18, color=COLOR_DARK_BLUE),
        ),
        template="plotly_white",
        margin=dict(t=70, b=30),
    )
    return fig


# ---------------------------------------------------------------------------
# Chart 4: Outcome shares per segment definition
# ---------------------------------------------------------------------------

def chart_outcome_shares(df: pl.DataFrame, segment_type: str) -> go.Figure:
    """Stacked bars: percentage of Late / On Time within each group of a segment definition."""
    dims = SEGMENT_DEFINITIONS[segment_type]
    shares = outcome_shares(df, dims).with_columns(
        pl.concat_str([pl.col(d).cast(pl.Utf8) for d in dims], separator=" | ").alias("_key")
    )

    fig = go.Figure()
    for outcome in (OUTCOME_LATE, OUTCOME_ON_TIME):
        subset = shares.filter(pl.col("on_time_delivery") == outcome)
        fig.add_trace(go.Bar(
            x=subset["_key"].to_list(),
            y=subset["percentage"].to_list(),
            name=outcome,
            marker_color=OUTCOME_COLORS[outcome],
            text=[f"{p:.1f}%" for p in subset["percentage"].to_list()],
            textposition="inside",
        ))

    label = " x ".join(DIMENSION_LABELS.get(d, d) for d in dims)
    fig.update_layout(
        title=dict(text=f"Delivery Outcome Share by {label}", font=dict(size=18, color=COLOR_DARK_BLUE)),
        barmode="stack",
        xaxis=dict(title=label, type="category"),
        yaxis=dict(title="Share of Shipments (%)", range=[0, 100], ticksuffix="%"),
        template="plotly_white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(t=60, b=40),
    )
    return fig


# ---------------------------------------------------------------------------
# Chart 5: Model holdout metrics
# ---------------------------------------------------------------------------

def chart_model_metrics(metrics: pl.DataFrame) -> go.Figure:
    """Grouped bars of holdout accuracy / precision / recall / F1 per model."""
    colors = {"accuracy": COLOR_DARK_BLUE, "precision": COLOR_BLUE, "recall": COLOR_ORANGE, "f1": COLOR_YELLOW}
    models = metrics["model"].to_list()

    fig = go.Figure()
    for metric, color in colors.items():
        values = metrics[metric].to_list()
        fig.add_trace(go.Bar(
            x=models, y=[v * 100 for v in values],
            name=metric.upper() if metric == "f1" else metric.capitalize(),
            marker_color=color,
            text=[f"{v * 100:.1f}%" for v in values], textposition="outside",
        ))
    fig.update_layout(
        title=dict(text="Holdout Metrics (Late = positive class)", font=dict(size=18, color=COLOR_DARK_BLUE)),
        barmode="group",
        yaxis=dict(title="Score (%)", range=[0, 110], ticksuffix="%"),
        template="plotly_white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(t=60, b=40),
    )
    return fig


# ---------------------------------------------------------------------------
# Export helpers
# ---------------------------------------------------------------------------

def build_charts(df: pl.DataFrame, metrics: pl.DataFrame | None = None) -> dict[str, tuple[go.Figure, dict]]:
    """All charts keyed by file stem, each with its export size."""
    charts = {
        "cost_weight_scatter": (chart_cost_weight_scatter(df), SCATTER_SIZE),
        "perfect_segment_delivery_type": (chart_perfect_segment_pie(df, "delivery_type"), PIE_SIZE),
        "perfect_segment_warehouse_type": (chart_perfect_segment_pie(df, "warehouse_type"), PIE_SIZE),
    }
    for segment_type in SEGMENT_DEFINITIONS:
        charts[f"outcome_share_{segment_type}"] = (chart_outcome_shares(df, segment_type), BAR_SIZE)
    if metrics is not None and len(metrics) > 0:
        charts["model_metrics"] = (chart_model_metrics(metrics), BAR_SIZE)
    return charts


def export_all_png(
    df: pl.DataFrame,
    output_dir: str = CHART_OUTPUT_DIR,
    metrics: pl.DataFrame | None = None,
) -> list[str]:
    """Export all charts as PNG files at their fixed size. Returns list of paths written."""
    os.makedirs(output_dir, exist_ok=True)
    paths = []
    for name, (fig, size) in build_charts(df, metrics).items():
        path = os.path.join(output_dir, f"{name}.png")
        fig.write_image(path, width=size["width"], height=size["height"], scale=size["scale"])
        paths.append(path)
        print(f"[charts] Exported {path}")
    return paths


# ---------------------------------------------------------------------------
# CLI entrypoint: python -m delivery_insights.visualization.charts
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    from delivery_insights.pipeline.normalize import read_normalized

    print("Exporting shipment charts...")
    export_all_png(read_normalized(NORMALIZED_OUTPUT_PATH))
    print("Done.")
