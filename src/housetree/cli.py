"""Command-line entry point for a single pipeline run."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from loguru import logger
from pydantic import ValidationError

from housetree.config import PipelineSettings
from housetree.exceptions import PipelineError
from housetree.logging import STAGE_LEVEL, enable_logging
from housetree.models import PipelineReport
from housetree.pipeline import REPORT_FILENAME, TREE_IMAGE_ARTIFACT, run_pipeline
from housetree.results import format_importances

EXIT_OK: Final[int] = 0
EXIT_RENDER_FAILED: Final[int] = 1
EXIT_PIPELINE_ERROR: Final[int] = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; every flag overrides one `PipelineSettings` field.

    Returns:
        argparse.ArgumentParser: The configured parser.
    """
    parser = argparse.ArgumentParser(
        prog="housetree",
        description="Train a decision tree on house price buckets and export its predictions and structure.",
    )
    parser.add_argument("--data", dest="data_path", type=Path, help="Input CSV (label in the last column).")
    parser.add_argument("--output-dir", dest="output_dir", type=Path, help="Directory for all artifacts.")
    parser.add_argument("--drop-leading", dest="drop_leading", type=int, help="Leading columns to exclude.")
    parser.add_argument("--ratio", dest="train_ratio", type=float, help="Fraction of rows used for training.")
    parser.add_argument("--seed", dest="split_seed", type=int, help="Seed for the train/test split.")
    parser.add_argument("--max-depth", dest="max_depth", type=int, help="Maximum tree depth.")
    parser.add_argument("--image-format", dest="image_format", help="Image format for rendered artifacts.")
    parser.add_argument(
        "--log-level",
        default=STAGE_LEVEL,
        choices=["TRACE", "DEBUG", "INFO", STAGE_LEVEL, "WARNING", "ERROR", "CRITICAL"],
        help="Minimum level of log messages written to stderr.",
    )
    parser.add_argument("--log-format", default="short", choices=["short", "full"], help="Log line layout.")
    return parser


def format_console_report(report: PipelineReport, output_dir: Path) -> list[str]:
    """Render the console summary of a finished run.

    Args:
        report (PipelineReport): The run report.
        output_dir (Path): Directory holding `report.json`.

    Returns:
        list[str]: Lines to print, in order: dataset summary, importances,
            accuracy, artifact confirmations.
    """
    lines = [report.dataset_summary, "", "Feature importance:"]
    lines.extend(f"  {line}" for line in format_importances(list(report.feature_importance.items())))
    lines.append("")
    lines.append(f"Accuracy is: {report.accuracy * 100:.2f}%")
    lines.extend(artifact.describe() for artifact in report.artifacts)
    lines.append(f"{output_dir / REPORT_FILENAME} created successfully.")
    return lines


def main(argv: Sequence[str] | None = None) -> int:
    """Run the pipeline from the command line.

    Args:
        argv (Sequence[str] | None): Arguments without the program name;
            `None` reads `sys.argv`.

    Returns:
        int: 0 on success, 1 if the tree image could not be rendered, 2 if
            the pipeline failed.
    """
    args = build_parser().parse_args(argv)
    overrides = {
        key: value
        for key, value in vars(args).items()
        if key not in {"log_level", "log_format"} and value is not None
    }

    with enable_logging(level=args.log_level, log_format=args.log_format):
        try:
            settings = PipelineSettings(**overrides)
            report = run_pipeline(settings)
        except ValidationError as exc:
            logger.error("Invalid settings: {}", exc)
            return EXIT_PIPELINE_ERROR
        except PipelineError as exc:
            logger.error("Pipeline failed: {}", exc)
            return EXIT_PIPELINE_ERROR

    for line in format_console_report(report, settings.output_dir):
        print(line)  # noqa: T201 - console report

    if not report.artifact(TREE_IMAGE_ARTIFACT).ok:
        return EXIT_RENDER_FAILED
    return EXIT_OK
