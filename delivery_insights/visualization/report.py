"""
Standalone HTML report: narrative, KPI row, segment and metrics tables, and
the embedded charts. It only consumes stage outputs; nothing here computes
new numbers beyond formatting.
"""

from __future__ import annotations

import html
import os
from string import Template

import polars as pl

from delivery_insights.contracts.schemas import CHART_OUTPUT_DIR, OUTCOME_LATE
from delivery_insights.pipeline.segment import build_segments, perfect_segment_summary
from delivery_insights.visualization.charts import build_charts


def _pct(v: float) -> str:
    return f"{v * 100:.1f}%"


def _build_kpi_html(df: pl.DataFrame, summary: dict) -> str:
    total = len(df)
    late = df.filter(pl.col("on_time_delivery") == OUTCOME_LATE).height
    late_rate = late / total if total else 0.0
    return (
        '<div class="kpi-row">'
        f'<div class="kpi"><div class="value" style="color:#2c3e50">{total:,}</div>'
        '<div class="label">Shipments</div></div>'
        f'<div class="kpi"><div class="value" style="color:#e74c3c">{_pct(late_rate)}</div>'
        '<div class="label">Late Rate (all)</div></div>'
        f'<div class="kpi"><div class="value" style="color:#2ecc71">{_pct(summary["inside_late_rate"])}</div>'
        '<div class="label">Late Rate in Perfect Segment</div></div>'
        f'<div class="kpi"><div class="value" style="color:#3498db">{_pct(summary["segment_share"])}</div>'
        '<div class="label">Shipments in Perfect Segment</div></div>'
        "</div>"
    )


def _build_narrative_html(summary: dict, metrics: pl.DataFrame | None) -> str:
    paragraphs = [
        "Shipments were normalized to a canonical schema (weight converted from grams "
        "to pounds, categorical fields typed, priority kept in order low &lt; medium &lt; high) "
        "and segmented by delivery mode, warehouse, priority and prior purchases.",
        f"The perfect segment &mdash; product cost under $175 with weight under 4 lbs, or "
        f"weight between 4.5 and 8 lbs &mdash; holds {summary['inside_shipments']:,} shipments "
        f"with a late rate of {_pct(summary['inside_late_rate'])}, against "
        f"{_pct(summary['outside_late_rate'])} for the remaining "
        f"{summary['outside_shipments']:,} shipments.",
    ]
    if metrics is not None and len(metrics) > 0:
        best = metrics.sort("f1", descending=True).row(0, named=True)
        paragraphs.append(
            f"Of the three classifiers, <b>{html.escape(best['model'])}</b> scores best on the "
            f"holdout with F1 {best['f1']:.3f} for the Late class "
            f"(accuracy {best['accuracy']:.3f})."
        )
    return "\n".join(f"<p>{p}</p>" for p in paragraphs)


def _build_table_html(df: pl.DataFrame, float_format: str = "{:.3f}") -> str:
    head = "".join(f"<th>{html.escape(c)}</th>" for c in df.columns)
    rows = []
    for row in df.iter_rows():
        cells = []
        for v in row:
            text = float_format.format(v) if isinstance(v, float) else f"{v:,}" if isinstance(v, int) else str(v)
            cells.append(f"<td>{html.escape(text)}</td>")
        rows.append(f"<tr>{''.join(cells)}</tr>")
    return f"<table><thead><tr>{head}</tr></thead><tbody>{''.join(rows)}</tbody></table>"


def _build_segment_table_html(segments: pl.DataFrame) -> str:
    late_rows = (
        segments.filter(
            (pl.col("on_time_delivery") == OUTCOME_LATE) & (pl.col("segment_type") != "priority_delivery")
        )
        .select(["segment_type", "segment_key", "shipments", "group_total", "percentage"])
        .rename({"shipments": "late", "group_total": "total", "percentage": "late_%"})
    )
    return _build_table_html(late_rows, float_format="{:.1f}")


_HTML_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Shipment Delivery Insights Report</title>
    <script src="https://cdn.plot.ly/plotly-2.35.0.min.js"></script>
    <style>
        body { font-family: 'Segoe UI', Arial, sans-serif; background: #f8f9fa; margin: 0; padding: 20px; color: #2c3e50; }
        .header { background: linear-gradient(135deg, #2c3e50, #3498db); color: white; padding: 30px; border-radius: 12px; margin-bottom: 24px; }
        .header h1 { margin: 0 0 8px 0; font-size: 28px; }
        .header .subtitle { font-size: 16px; opacity: 0.9; }
        .kpi-row { display: flex; gap: 16px; margin-bottom: 24px; }
        .kpi { flex: 1; background: white; border-radius: 10px; padding: 20px; box-shadow: 0 2px 8px rgba(0,0,0,0.08); text-align: center; }
        .kpi .value { font-size: 32px; font-weight: 700; }
        .kpi .label { font-size: 13px; color: #7f8c8d; margin-top: 4px; }
        .card { background: white; border-radius: 10px; padding: 16px 20px; margin-bottom: 20px; box-shadow: 0 2px 8px rgba(0,0,0,0.08); }
        .row { display: flex; gap: 20px; }
        .row > .card { flex: 1; }
        table { border-collapse: collapse; width: 100%; font-size: 13px; }
        th, td { padding: 6px 10px; border-bottom: 1px solid #ecf0f1; text-align: left; }
        th { background: #ecf0f1; }
        .note { color: #7f8c8d; font-style: italic; }
    </style>
</head>
<body>
    <div class="header">
        <h1>Shipment Delivery Insights Report</h1>
        <div class="subtitle">Late-delivery analysis &mdash; segmentation and classification</div>
    </div>
    $kpi_section
    <div class="card">$narrative</div>
    <div class="card">$chart_scatter</div>
    <div class="row">
        <div class="card">$chart_pie_delivery</div>
        <div class="card">$chart_pie_warehouse</div>
    </div>
    <h2 style="margin: 24px 0 12px;">Segments</h2>
    $segment_charts
    <div class="card">$segment_table</div>
    <h2 style="margin: 24px 0 12px;">Models</h2>
    $metrics_section
    <div style="text-align:center; color:#95a5a6; padding:20px; font-size:12px;">
        Generated by Shipment Delivery Insights | Built with Polars + Plotly + scikit-learn
    </div>
</body>
</html>""")


def export_report_html(
    df: pl.DataFrame,
    metrics: pl.DataFrame | None = None,
    segments: pl.DataFrame | None = None,
    output_dir: str = CHART_OUTPUT_DIR,
) -> str:
    """Export a standalone HTML report combining narrative, tables and charts."""
    os.makedirs(output_dir, exist_ok=True)
    if segments is None:
        segments = build_segments(df)
    summary = perfect_segment_summary(df)

    charts = {
        name: fig.to_html(full_html=False, include_plotlyjs=False)
        for name, (fig, _size) in build_charts(df, metrics).items()
    }
    segment_charts = "\n".join(
        f'<div class="card">{chart}</div>'
        for name, chart in charts.items()
        if name.startswith("outcome_share_")
    )

    if metrics is not None and len(metrics) > 0:
        metrics_section = (
            f'<div class="card">{_build_table_html(metrics)}</div>'
            f'<div class="card">{charts["model_metrics"]}</div>'
        )
    else:
        metrics_section = (
            '<div class="card"><p class="note">Model metrics are not available for this run.</p></div>'
        )

    html_content = _HTML_TEMPLATE.substitute(
        kpi_section=_build_kpi_html(df, summary),
        narrative=_build_narrative_html(summary, metrics),
        chart_scatter=charts["cost_weight_scatter"],
        chart_pie_delivery=charts["perfect_segment_delivery_type"],
        chart_pie_warehouse=charts["perfect_segment_warehouse_type"],
        segment_charts=segment_charts,
        segment_table=_build_segment_table_html(segments),
        metrics_section=metrics_section,
    )

    path = os.path.join(output_dir, "report.html")
    with open(path, "w") as f:
        f.write(html_content)
    print(f"[charts] Exported {path}")
    return path
