"""End-to-end run: load, train, evaluate, and write every artifact.

Ingestion, dataset construction, splitting, fitting and label/graph file
writes are fatal: their errors propagate to the caller. Rendering the tree
image and the importance chart are auxiliary; a `RenderError` from either is
logged and recorded in the report, and the run carries on.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Final

import numpy as np
from loguru import logger

from housetree.config import PipelineSettings
from housetree.dataset import Dataset, build_dataset, split_dataset
from housetree.exceptions import DataFileError, RenderError
from housetree.graph_export import export_tree_graph, write_graph
from housetree.loading import load_table
from housetree.logging import STAGE_LEVEL
from housetree.models import ArtifactStatus, PipelineReport
from housetree.polars_utils import describe_dataset
from housetree.rendering import ChartRenderer, GraphRenderer, GraphvizRenderer, render_importance_chart
from housetree.results import rank_importances, truncate_at_first_zero, write_labels
from housetree.training import TrainedModel, accuracy, confusion_matrix, feature_importance, fit_model, predict

__all__ = [
    "CHART_ARTIFACT",
    "GRAPH_ARTIFACT",
    "PREDICTIONS_ARTIFACT",
    "REPORT_FILENAME",
    "TARGETS_ARTIFACT",
    "TREE_IMAGE_ARTIFACT",
    "run_pipeline",
]

PREDICTIONS_ARTIFACT: Final[str] = "predictions"
TARGETS_ARTIFACT: Final[str] = "test_targets"
CHART_ARTIFACT: Final[str] = "feature_importance"
GRAPH_ARTIFACT: Final[str] = "tree_graph"
TREE_IMAGE_ARTIFACT: Final[str] = "tree_image"
REPORT_FILENAME: Final[str] = "report.json"


def run_pipeline(
    settings: PipelineSettings,
    *,
    graph_renderer: GraphRenderer | None = None,
    chart_renderer: ChartRenderer | None = None,
) -> PipelineReport:
    """Run the whole pipeline once and return its report.

    Artifacts written to `settings.output_dir`: `predictions.csv`,
    `test_targets.csv`, `feature_importance.<fmt>`, `tree.dot`, `tree.<fmt>`
    and `report.json`.

    Args:
        settings (PipelineSettings): Paths and parameters for the run.
        graph_renderer (GraphRenderer | None): Turns DOT text into an image.
            Defaults to a `GraphvizRenderer` built from `settings`.
        chart_renderer (ChartRenderer | None): Draws the importance chart.
            Defaults to `render_importance_chart`.

    Returns:
        PipelineReport: Dataset sizes, accuracy, importances and artifact outcomes.

    Raises:
        DataFileError: If the input cannot be read or an output file cannot be written.
        FormatError: If the input holds a non-numeric field or an invalid label.
        ShapeError: If the input is not rectangular or `drop_leading` is too large.
        InvalidRatioError: If `train_ratio` leaves either subset empty.
        InvariantViolationError: If the fitted tree and feature names disagree.
    """
    graph_renderer = graph_renderer or GraphvizRenderer(
        executable=settings.dot_executable,
        image_format=settings.image_format,
        timeout_seconds=settings.render_timeout_seconds,
    )
    chart_renderer = chart_renderer or render_importance_chart
    artifacts: list[ArtifactStatus] = []

    logger.log(STAGE_LEVEL, "Loading {}", settings.data_path)
    table = load_table(settings.data_path)
    dataset = build_dataset(table, drop_leading=settings.drop_leading)
    dataset_summary = describe_dataset(dataset)
    train, test = split_dataset(dataset, settings.train_ratio, seed=settings.split_seed)
    logger.log(STAGE_LEVEL, "Training on {} rows, holding out {}", len(train), len(test))

    model = fit_model(
        train,
        max_depth=settings.max_depth,
        min_samples_leaf=settings.min_samples_leaf,
        random_state=settings.random_state,
    )
    predictions = predict(model, test)
    artifacts.append(_write_label_artifact(PREDICTIONS_ARTIFACT, settings.artifact_path("predictions.csv"), predictions))
    artifacts.append(_write_label_artifact(TARGETS_ARTIFACT, settings.artifact_path("test_targets.csv"), test.labels))

    test_matrix = confusion_matrix(predictions, test)
    test_accuracy = accuracy(test_matrix)
    train_accuracy = accuracy(confusion_matrix(predict(model, train), train))
    logger.log(STAGE_LEVEL, "Accuracy is: {:.2f}%", test_accuracy * 100)

    ranked = truncate_at_first_zero(rank_importances(model.feature_names, feature_importance(model)))
    chart_path = settings.artifact_path(f"feature_importance.{settings.image_format}")
    artifacts.append(_render_artifact(CHART_ARTIFACT, chart_path, lambda: chart_renderer(ranked, chart_path)))

    artifacts.extend(_export_tree_artifacts(model, train, settings, graph_renderer))

    report = PipelineReport(
        data_path=settings.data_path,
        row_count=table.row_count,
        dataset_summary=dataset_summary,
        feature_names=list(dataset.feature_names),
        train_size=len(train),
        test_size=len(test),
        split_seed=settings.split_seed,
        accuracy=test_accuracy,
        train_accuracy=train_accuracy,
        confusion_matrix=test_matrix.tolist(),
        class_labels=sorted({int(label) for label in (*test.labels, *predictions)}),
        feature_importance={name: score for name, score in ranked},
        tree_depth=model.depth,
        leaf_count=model.leaf_count,
        artifacts=artifacts,
    )
    _write_report(report, settings.artifact_path(REPORT_FILENAME))
    return report


# Private helpers


def _write_label_artifact(name: str, path: Path, labels: np.ndarray) -> ArtifactStatus:
    """Write a label file and log its confirmation line.

    Args:
        name (str): Artifact name.
        path (Path): Destination file.
        labels (np.ndarray): Int64 label vector.

    Returns:
        ArtifactStatus: A successful status; write failures propagate.
    """
    write_labels(path, labels)
    status = ArtifactStatus(name=name, path=path, ok=True)
    logger.log(STAGE_LEVEL, "{}", status.describe())
    return status


def _export_tree_artifacts(
    model: TrainedModel,
    train: Dataset,
    settings: PipelineSettings,
    graph_renderer: GraphRenderer,
) -> list[ArtifactStatus]:
    """Write the DOT description of the tree and render it to an image.

    Args:
        model (TrainedModel): The fitted model.
        train (Dataset): The training rows, whose feature names label the splits.
        settings (PipelineSettings): Output location and image format.
        graph_renderer (GraphRenderer): Renders DOT text to an image.

    Returns:
        list[ArtifactStatus]: Statuses for the DOT file and the image.
    """
    graph_lines = export_tree_graph(model, train.feature_names)
    graph_path = write_graph(settings.artifact_path("tree.dot"), graph_lines)
    graph_status = ArtifactStatus(name=GRAPH_ARTIFACT, path=graph_path, ok=True)
    logger.log(STAGE_LEVEL, "{}", graph_status.describe())

    image_path = settings.artifact_path(f"tree.{settings.image_format}")
    graph_text = "\n".join(graph_lines) + "\n"
    image_status = _render_artifact(TREE_IMAGE_ARTIFACT, image_path, lambda: graph_renderer(graph_text, image_path))
    return [graph_status, image_status]


def _render_artifact(name: str, path: Path, render: Callable[[], None]) -> ArtifactStatus:
    """Run a renderer, turning a `RenderError` into a failed status.

    Args:
        name (str): Artifact name.
        path (Path): Image the renderer writes.
        render (Callable[[], None]): Zero-argument call that renders the image.

    Returns:
        ArtifactStatus: Success, or failure carrying the render error message.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        render()
    except RenderError as exc:
        status = ArtifactStatus(name=name, path=path, ok=False, error=str(exc))
        logger.warning("{}", status.describe())
        return status
    status = ArtifactStatus(name=name, path=path, ok=True)
    logger.log(STAGE_LEVEL, "{}", status.describe())
    return status


def _write_report(report: PipelineReport, path: Path) -> None:
    """Serialize the report as indented JSON.

    Args:
        report (PipelineReport): The report to write.
        path (Path): Destination file.

    Raises:
        DataFileError: If the file cannot be written.
    """
    try:
        path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    except OSError as exc:
        raise DataFileError("Cannot write run report", path=path) from exc
    logger.log(STAGE_LEVEL, "{} created successfully.", path)
