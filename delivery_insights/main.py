"""
Shipment Delivery Insights — CLI Entrypoint.

Usage:
    python -m delivery_insights.main generate    # Generate synthetic shipment data
    python -m delivery_insights.main pipeline    # Ingest, normalize, segment
    python -m delivery_insights.main model       # Fit + evaluate the classifiers
    python -m delivery_insights.main visualize   # Export static charts + HTML report
    python -m delivery_insights.main run-all     # Full end-to-end pipeline
"""

import os

import click
from rich.console import Console
from rich.markup import escape

from delivery_insights.contracts.errors import EvaluationPrepError
from delivery_insights.contracts.schemas import (
    CHART_OUTPUT_DIR,
    FEATURE_IMPORTANCE_OUTPUT_PATH,
    METRICS_OUTPUT_PATH,
    NORMALIZED_OUTPUT_PATH,
    RAW_INPUT_PATH,
    SEARCH_CV_FOLDS,
    SEARCH_ITERATIONS,
    SEGMENT_OUTPUT_PATH,
)

console = Console()


@click.group()
def cli():
    """Shipment Delivery Insights."""
    pass


@cli.command()
@click.option("--input", "input_path", default=RAW_INPUT_PATH, show_default=True,
              help="Where to write the raw shipments CSV.")
@click.option("--rows", default=10_999, show_default=True, help="Number of shipments.")
@click.option("--seed", default=42, show_default=True, help="Random seed.")
def generate(input_path: str = RAW_INPUT_PATH, rows: int = 10_999, seed: int = 42):
    """Generate synthetic shipment data."""
    console.rule("[bold]Step 1: Data Generation[/bold]")
    from delivery_insights.data_generator.generate import main
    main(path=input_path, n=rows, seed=seed)
    console.print("[green]Data generation complete.[/green]\n")


@cli.command()
@click.option("--input", "input_path", default=RAW_INPUT_PATH, show_default=True,
              help="Raw shipments CSV.")
@click.option("--normalized", "normalized_path", default=NORMALIZED_OUTPUT_PATH, show_default=True,
              help="Where to persist the normalized table.")
@click.option("--segments", "segments_path", default=SEGMENT_OUTPUT_PATH, show_default=True,
              help="Where to persist the segment table.")
def pipeline(
    input_path: str = RAW_INPUT_PATH,
    normalized_path: str = NORMALIZED_OUTPUT_PATH,
    segments_path: str = SEGMENT_OUTPUT_PATH,
):
    """Ingest, normalize and segment shipments."""
    console.rule("[bold]Step 2: Pipeline[/bold]")
    from delivery_insights.pipeline.__main__ import main as pipeline_main
    pipeline_main(input_path, normalized_path, segments_path)
    console.print("[green]Pipeline complete.[/green]\n")


@cli.command()
@click.option("--normalized", "normalized_path", default=NORMALIZED_OUTPUT_PATH, show_default=True,
              help="Normalized shipments table.")
@click.option("--metrics", "metrics_path", default=METRICS_OUTPUT_PATH, show_default=True,
              help="Where to write the metrics JSON.")
@click.option("--importances", "importance_path", default=FEATURE_IMPORTANCE_OUTPUT_PATH,
              show_default=True, help="Where to write the feature importances CSV.")
@click.option("--search-iterations", default=SEARCH_ITERATIONS, show_default=True,
              help="Parameter settings sampled for the boosted trees.")
@click.option("--cv-folds", default=SEARCH_CV_FOLDS, show_default=True,
              help="Stratified folds per sampled setting.")
def model(
    normalized_path: str = NORMALIZED_OUTPUT_PATH,
    metrics_path: str = METRICS_OUTPUT_PATH,
    importance_path: str = FEATURE_IMPORTANCE_OUTPUT_PATH,
    search_iterations: int = SEARCH_ITERATIONS,
    cv_folds: int = SEARCH_CV_FOLDS,
):
    """Fit the classifiers and report holdout metrics."""
    console.rule("[bold]Step 3: Modeling[/bold]")
    from delivery_insights.modeling.__main__ import main as modeling_main
    modeling_main(normalized_path, metrics_path, importance_path, search_iterations, cv_folds)
    console.print("[green]Modeling complete.[/green]\n")


@cli.command()
@click.option("--output-dir", default=CHART_OUTPUT_DIR, show_default=True,
              help="Directory for PNG charts and the HTML report.")
@click.option("--normalized", "normalized_path", default=NORMALIZED_OUTPUT_PATH, show_default=True,
              help="Normalized shipments table.")
@click.option("--segments", "segments_path", default=SEGMENT_OUTPUT_PATH, show_default=True,
              help="Segment table.")
@click.option("--metrics", "metrics_path", default=METRICS_OUTPUT_PATH, show_default=True,
              help="Metrics JSON; the report notes its absence.")
@click.option("--no-png", is_flag=True, default=False, help="Only write the HTML report.")
def visualize(
    output_dir: str = CHART_OUTPUT_DIR,
    normalized_path: str = NORMALIZED_OUTPUT_PATH,
    segments_path: str = SEGMENT_OUTPUT_PATH,
    metrics_path: str = METRICS_OUTPUT_PATH,
    no_png: bool = False,
):
    """Export static charts and the HTML report."""
    console.rule("[bold]Step 4: Visualization[/bold]")
    from delivery_insights.modeling.models import load_metrics
    from delivery_insights.pipeline.normalize import read_normalized
    from delivery_insights.pipeline.segment import read_segments
    from delivery_insights.visualization.charts import export_all_png
    from delivery_insights.visualization.report import export_report_html

    df = read_normalized(normalized_path)
    segments = read_segments(segments_path)
    metrics = None
    if os.path.exists(metrics_path):
        metrics = load_metrics(metrics_path)
    else:
        console.print(f"[yellow]No metrics at {metrics_path}; report will omit them.[/yellow]")

    if not no_png:
        export_all_png(df, output_dir, metrics)
    export_report_html(df, metrics, segments, output_dir)
    console.print("[green]Visualization complete.[/green]")
    console.print("Launch interactive dashboard: "
                  "[bold]streamlit run delivery_insights/visualization/dashboard.py[/bold]\n")


@cli.command(name="run-all")
@click.option("--output-dir", default=CHART_OUTPUT_DIR, show_default=True,
              help="Directory for PNG charts and the HTML report.")
def run_all(output_dir: str = CHART_OUTPUT_DIR):
    """Run the full pipeline end-to-end."""
    console.rule("[bold cyan]Shipment Delivery Insights[/bold cyan]")
    console.print("Running full end-to-end pipeline...\n")

    if not os.path.exists(RAW_INPUT_PATH):
        generate.callback(RAW_INPUT_PATH)
    pipeline.callback(RAW_INPUT_PATH, NORMALIZED_OUTPUT_PATH, SEGMENT_OUTPUT_PATH)

    # Segments and charts are still produced when modeling fails
    try:
        model.callback(NORMALIZED_OUTPUT_PATH, METRICS_OUTPUT_PATH, FEATURE_IMPORTANCE_OUTPUT_PATH)
    except EvaluationPrepError as exc:
        console.print(f"[red]Modeling skipped: {escape(str(exc))}[/red]\n")
        if os.path.exists(METRICS_OUTPUT_PATH):
            os.remove(METRICS_OUTPUT_PATH)

    visualize.callback(output_dir)

    console.rule("[bold green]Pipeline Complete[/bold green]")
    console.print("\nOutputs:")
    console.print(f"  Data:       {RAW_INPUT_PATH}")
    console.print(f"  Normalized: {NORMALIZED_OUTPUT_PATH}")
    console.print(f"  Segments:   {SEGMENT_OUTPUT_PATH}")
    console.print(f"  Metrics:    {METRICS_OUTPUT_PATH}")
    console.print(f"  Charts:     {output_dir}/*.png")
    console.print(f"  Report:     {output_dir}/report.html")
    console.print("  Dashboard:  streamlit run delivery_insights/visualization/dashboard.py")


if __name__ == "__main__":
    cli()
