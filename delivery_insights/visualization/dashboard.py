"""
Shipment Delivery Insights — Streamlit Dashboard.

Launch: streamlit run delivery_insights/visualization/dashboard.py
"""

from __future__ import annotations

import os

import polars as pl
import streamlit as st

from delivery_insights.contracts.schemas import (
    METRICS_OUTPUT_PATH,
    NORMALIZED_OUTPUT_PATH,
    OUTCOME_LATE,
    SEGMENT_OUTPUT_PATH,
)
from delivery_insights.modeling.models import load_metrics
from delivery_insights.pipeline.normalize import read_normalized
from delivery_insights.pipeline.segment import (
    SEGMENT_DEFINITIONS,
    build_segments,
    perfect_segment_summary,
    read_segments,
)
from delivery_insights.visualization.charts import (
    chart_cost_weight_scatter,
    chart_model_metrics,
    chart_outcome_shares,
    chart_perfect_segment_pie,
)

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Shipment Delivery Insights",
    page_icon=":package:",
    layout="wide",
    initial_sidebar_state="collapsed",
)

st.markdown("""
<style>
    .main-header {
        background: linear-gradient(135deg, #2c3e50, #3498db);
        color: white; padding: 28px 32px; border-radius: 12px; margin-bottom: 20px;
    }
    .main-header h1 { margin: 0 0 6px 0; font-size: 28px; }
    .main-header .sub { font-size: 15px; opacity: 0.9; }
    .kpi-card {
        background: white; border-radius: 10px; padding: 18px;
        text-align: center; box-shadow: 0 2px 8px rgba(0,0,0,0.07);
    }
    .kpi-value { font-size: 34px; font-weight: 700; }
    .kpi-label { font-size: 13px; color: #7f8c8d; margin-top: 2px; }
    .section-title {
        color: #2c3e50; font-size: 20px; font-weight: 600;
        margin: 28px 0 12px; padding-bottom: 6px; border-bottom: 2px solid #ecf0f1;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_data
def _load_shipments(path: str) -> pl.DataFrame:
    return read_normalized(path)


# ---------------------------------------------------------------------------
# Load persisted pipeline outputs
# ---------------------------------------------------------------------------
if not os.path.exists(NORMALIZED_OUTPUT_PATH):
    st.error(f"No normalized shipments at `{NORMALIZED_OUTPUT_PATH}`. Run `python -m delivery_insights.main pipeline` first.")
    st.stop()

df = _load_shipments(NORMALIZED_OUTPUT_PATH)
summary = perfect_segment_summary(df)
late_rate = df.filter(pl.col("on_time_delivery") == OUTCOME_LATE).height / max(len(df), 1)
metrics = load_metrics(METRICS_OUTPUT_PATH) if os.path.exists(METRICS_OUTPUT_PATH) else None
segments = read_segments(SEGMENT_OUTPUT_PATH) if os.path.exists(SEGMENT_OUTPUT_PATH) else build_segments(df)

st.markdown("""
<div class="main-header">
    <h1>&#128230; Shipment Delivery Insights</h1>
    <div class="sub">Late-delivery segmentation and classification</div>
</div>
""", unsafe_allow_html=True)

# ---------------------------------------------------------------------------
# KPI row
# ---------------------------------------------------------------------------
kpis = [
    (f"{len(df):,}", "Shipments", "#2c3e50"),
    (f"{late_rate * 100:.1f}%", "Late Rate (all)", "#e74c3c"),
    (f"{summary['inside_late_rate'] * 100:.1f}%", "Late Rate in Perfect Segment", "#2ecc71"),
    (f"{summary['segment_share'] * 100:.1f}%", "Shipments in Perfect Segment", "#3498db"),
]
for col, (value, label, color) in zip(st.columns(4), kpis):
    with col:
        st.markdown(f"""
        <div class="kpi-card">
            <div class="kpi-value" style="color:{color}">{value}</div>
            <div class="kpi-label">{label}</div>
        </div>""", unsafe_allow_html=True)

# ---------------------------------------------------------------------------
# Perfect segment
# ---------------------------------------------------------------------------
st.markdown('<div class="section-title">Perfect Segment</div>', unsafe_allow_html=True)
st.plotly_chart(chart_cost_weight_scatter(df), use_container_width=True)

col_left, col_right = st.columns(2)
with col_left:
    st.plotly_chart(chart_perfect_segment_pie(df, "delivery_type"), use_container_width=True)
with col_right:
    st.plotly_chart(chart_perfect_segment_pie(df, "warehouse_type"), use_container_width=True)

# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------
st.markdown('<div class="section-title">Segments</div>', unsafe_allow_html=True)
segment_type = st.selectbox("Segment by", list(SEGMENT_DEFINITIONS))
st.plotly_chart(chart_outcome_shares(df, segment_type), use_container_width=True)
with st.expander("Segment table"):
    st.dataframe(
        segments.filter(pl.col("segment_type") == segment_type).drop("segment_type"),
        use_container_width=True,
    )

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
st.markdown('<div class="section-title">Models</div>', unsafe_allow_html=True)
if metrics is None:
    st.info("No model metrics yet. Run `python -m delivery_insights.main model`.")
else:
    st.dataframe(metrics, use_container_width=True)
    st.plotly_chart(chart_model_metrics(metrics), use_container_width=True)

st.markdown("""
<div style="text-align:center; color:#95a5a6; padding:24px 0 8px; font-size:12px;">
    Shipment Delivery Insights | Built with Polars + Plotly + scikit-learn + Streamlit
</div>
""", unsafe_allow_html=True)
