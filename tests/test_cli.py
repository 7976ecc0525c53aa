import polars as pl
from click.testing import CliRunner

from delivery_insights.contracts.schemas import NORMALIZED_SCHEMA
from delivery_insights.main import cli


def test_generate_then_pipeline(tmp_path):
    raw = tmp_path / "raw" / "shipments.csv"
    normalized = tmp_path / "processed" / "normalized.csv"
    segments = tmp_path / "processed" / "segments.csv"
    runner = CliRunner()

    result = runner.invoke(cli, ["generate", "--input", str(raw), "--rows", "300", "--seed", "1"])
    assert result.exit_code == 0, result.output
    assert raw.exists()

    result = runner.invoke(cli, [
        "pipeline", "--input", str(raw), "--normalized", str(normalized), "--segments", str(segments),
    ])
    assert result.exit_code == 0, result.output
    assert "Perfect segment" in result.output
    assert pl.read_csv(normalized).columns == list(NORMALIZED_SCHEMA)
    assert segments.exists()


def test_visualize_report_only_without_metrics(tmp_path):
    raw = tmp_path / "shipments.csv"
    normalized = tmp_path / "normalized.csv"
    segments = tmp_path / "segments.csv"
    out = tmp_path / "output"
    runner = CliRunner()
    runner.invoke(cli, ["generate", "--input", str(raw), "--rows", "300"])
    runner.invoke(cli, [
        "pipeline", "--input", str(raw), "--normalized", str(normalized), "--segments", str(segments),
    ])

    result = runner.invoke(cli, [
        "visualize", "--no-png", "--output-dir", str(out),
        "--normalized", str(normalized), "--segments", str(segments),
        "--metrics", str(tmp_path / "missing.json"),
    ])

    assert result.exit_code == 0, result.output
    assert "not available" in (out / "report.html").read_text()
    assert not list(out.glob("*.png"))


def test_pipeline_missing_input_fails(tmp_path):
    result = CliRunner().invoke(cli, ["pipeline", "--input", str(tmp_path / "absent.csv")])

    assert result.exit_code != 0
    assert isinstance(result.exception, FileNotFoundError)


def test_model_then_visualize_includes_metrics(tmp_path):
    raw = tmp_path / "shipments.csv"
    normalized = tmp_path / "normalized.csv"
    segments = tmp_path / "segments.csv"
    metrics = tmp_path / "analytics" / "model_metrics.json"
    importances = tmp_path / "analytics" / "feature_importances.csv"
    out = tmp_path / "output"
    runner = CliRunner()
    runner.invoke(cli, ["generate", "--input", str(raw), "--rows", "400"])
    runner.invoke(cli, [
        "pipeline", "--input", str(raw), "--normalized", str(normalized), "--segments", str(segments),
    ])

    result = runner.invoke(cli, [
        "model", "--normalized", str(normalized), "--metrics", str(metrics),
        "--importances", str(importances), "--search-iterations", "2", "--cv-folds", "2",
    ])
    assert result.exit_code == 0, result.output
    assert metrics.exists() and importances.exists()

    result = runner.invoke(cli, [
        "visualize", "--no-png", "--output-dir", str(out),
        "--normalized", str(normalized), "--segments", str(segments), "--metrics", str(metrics),
    ])
    assert result.exit_code == 0, result.output
    assert "not available" not in (out / "report.html").read_text()


def test_run_all_continues_when_modeling_preparation_fails(tmp_path, monkeypatch):
    from delivery_insights.contracts.errors import EvaluationPrepError
    from delivery_insights.contracts.schemas import (
        CHART_OUTPUT_DIR,
        METRICS_OUTPUT_PATH,
        RAW_INPUT_PATH,
        SEGMENT_OUTPUT_PATH,
    )
    from delivery_insights.data_generator.generate import generate_shipments

    monkeypatch.chdir(tmp_path)
    (tmp_path / RAW_INPUT_PATH).parent.mkdir(parents=True)
    generate_shipments(n=300, seed=3).write_csv(RAW_INPUT_PATH)
    stale = tmp_path / METRICS_OUTPUT_PATH
    stale.parent.mkdir(parents=True)
    stale.write_text('{"metrics": []}')

    def unseen_level(*args, **kwargs):
        raise EvaluationPrepError("Level(s) not seen when the encoder was fitted: {'delivery_type': ['Road']}")

    exported = []
    monkeypatch.setattr("delivery_insights.modeling.__main__.run_models", unseen_level)
    monkeypatch.setattr(
        "delivery_insights.visualization.charts.export_all_png",
        lambda df, output_dir, metrics: exported.append(metrics) or [],
    )

    result = CliRunner().invoke(cli, ["run-all"])

    assert result.exit_code == 0, result.output
    assert "Modeling skipped" in result.output
    assert not stale.exists()
    assert (tmp_path / SEGMENT_OUTPUT_PATH).exists()
    assert exported == [None]
    report = (tmp_path / CHART_OUTPUT_DIR / "report.html").read_text()
    assert "Model metrics are not available for this run." in report
