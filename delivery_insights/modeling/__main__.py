"""
CLI entrypoint for the late-delivery models.

Usage:
    python -m delivery_insights.modeling
"""

from rich import box
from rich.console import Console
from rich.table import Table

from delivery_insights.contracts.schemas import (
    FEATURE_IMPORTANCE_OUTPUT_PATH,
    METRICS_OUTPUT_PATH,
    NORMALIZED_OUTPUT_PATH,
    POSITIVE_CLASS,
    SEARCH_CV_FOLDS,
    SEARCH_ITERATIONS,
)
from delivery_insights.modeling.models import ModelingResult, run_models, save_metrics
from delivery_insights.pipeline.normalize import read_normalized

console = Console()


def print_metrics(result: ModelingResult) -> None:
    table = Table(
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta",
        expand=True,
    )
    table.add_column("Model", style="bold")
    table.add_column("Accuracy", justify="right", width=10)
    table.add_column("Precision", justify="right", width=10)
    table.add_column("Recall", justify="right", width=10)
    table.add_column("F1", justify="right", width=10)

    best_f1 = result.metrics["f1"].max()
    for row in result.metrics.iter_rows(named=True):
        color = "green" if row["f1"] == best_f1 else "white"
        table.add_row(
            f"[{color}]{row['model']}[/{color}]",
            f"{row['accuracy']:.3f}",
            f"{row['precision']:.3f}",
            f"{row['recall']:.3f}",
            f"{row['f1']:.3f}",
        )
    console.print(table)
    console.print(
        f"[dim]Positive class: {POSITIVE_CLASS} | train {result.train_size:,} / "
        f"holdout {result.holdout_size:,} | seed {result.seed}[/dim]"
    )
    if result.best_params:
        params = ", ".join(
            f"{k}={v:.3g}" if isinstance(v, float) else f"{k}={v}"
            for k, v in sorted(result.best_params.items())
        )
        console.print(f"[dim]Best boosted-tree parameters: {params}[/dim]")


def main(
    normalized_path: str = NORMALIZED_OUTPUT_PATH,
    metrics_path: str = METRICS_OUTPUT_PATH,
    importance_path: str = FEATURE_IMPORTANCE_OUTPUT_PATH,
    search_iterations: int = SEARCH_ITERATIONS,
    cv_folds: int = SEARCH_CV_FOLDS,
) -> ModelingResult:
    console.rule("[bold blue]Late-Delivery Models — Fit & Holdout Evaluation")

    console.print("\n[bold cyan]Step 1:[/] Loading normalized shipments...")
    df = read_normalized(normalized_path)

    console.print("\n[bold cyan]Step 2:[/] Fitting classifiers...")
    result = run_models(df, search_iterations=search_iterations, cv_folds=cv_folds)
    save_metrics(result, metrics_path, importance_path)

    console.rule("[bold green]Holdout Metrics")
    print_metrics(result)
    console.rule()
    console.print(f"[dim]Outputs: {metrics_path}, {importance_path}[/dim]")
    return result


if __name__ == "__main__":
    main()
