"""Image renderers for the tree graph and the feature importance chart.

Both renderers are plain callables so the pipeline can be handed fakes:

- a graph renderer takes DOT text and an output image path;
- a chart renderer takes ranked importances and an output image path.

Either raises `RenderError` when it cannot produce the image.
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from loguru import logger  # noqa: E402

from housetree.exceptions import RenderError  # noqa: E402
from housetree.results import FeatureImportance  # noqa: E402

__all__ = [
    "ChartRenderer",
    "GraphRenderer",
    "GraphvizRenderer",
    "render_importance_chart",
]

type GraphRenderer = Callable[[str, Path], None]
type ChartRenderer = Callable[[Sequence[FeatureImportance], Path], None]

_STDERR_EXCERPT_CHARS: Final[int] = 500
_BAR_HEIGHT_INCHES: Final[float] = 0.35
_MIN_FIGURE_HEIGHT_INCHES: Final[float] = 2.5


@dataclass(frozen=True)
class GraphvizRenderer:
    """Render DOT text to an image by running the Graphviz `dot` executable.

    Attributes:
        executable (str): Name or path of the `dot` binary.
        image_format (str): Graphviz output format passed as `-T<format>`.
        timeout_seconds (float): Upper bound on the subprocess run time.

    Examples:
        >>> renderer = GraphvizRenderer(timeout_seconds=30)
        >>> renderer("digraph Tree { node_0; }", Path("outputs/tree.png"))  # doctest: +SKIP
    """

    executable: str = "dot"
    image_format: str = "png"
    timeout_seconds: float = 60.0

    def __call__(self, graph_text: str, output_path: Path) -> None:
        """Run `dot` on `graph_text` and write the image to `output_path`.

        Args:
            graph_text (str): A complete DOT graph description.
            output_path (Path): Image file to create.

        Raises:
            RenderError: If the executable is missing, exits non-zero, or does
                not finish within `timeout_seconds`.
        """
        resolved = shutil.which(self.executable)
        if resolved is None:
            raise RenderError(f"Graphviz executable {self.executable!r} not found on PATH", path=output_path)

        command = [resolved, f"-T{self.image_format}", "-o", str(output_path)]
        logger.debug("Running {}", " ".join(command))
        try:
            result = subprocess.run(  # noqa: S603 - command is built from a resolved executable path
                command,
                input=graph_text,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise RenderError(
                f"{self.executable} timed out after {self.timeout_seconds}s rendering {output_path}",
                path=output_path,
            ) from exc
        except OSError as exc:
            raise RenderError(f"Could not run {self.executable} for {output_path}: {exc}", path=output_path) from exc

        if result.returncode != 0:
            stderr_excerpt = result.stderr.strip()[:_STDERR_EXCERPT_CHARS]
            raise RenderError(
                f"{self.executable} exited with status {result.returncode} rendering {output_path}: {stderr_excerpt}",
                path=output_path,
            )


def render_importance_chart(ranked: Sequence[FeatureImportance], output_path: Path) -> None:
    """Draw a horizontal bar chart of ranked importances as percentages.

    The most important feature is drawn at the top. An empty ranking still
    produces an image carrying a short note.

    Args:
        ranked (Sequence[FeatureImportance]): Ranked importances, highest first.
        output_path (Path): Image file to create; the suffix picks the format.

    Raises:
        RenderError: If matplotlib cannot write the image.
    """
    names = [name for name, _ in ranked]
    percentages = [score * 100 for _, score in ranked]
    height = max(_MIN_FIGURE_HEIGHT_INCHES, _BAR_HEIGHT_INCHES * len(names) + 1.0)

    fig, ax = plt.subplots(figsize=(8, height))
    try:
        if names:
            positions = range(len(names))
            ax.barh(positions, percentages, color="#2E86AB")
            ax.set_yticks(list(positions), labels=names)
            ax.invert_yaxis()
            for position, percentage in zip(positions, percentages, strict=True):
                ax.text(percentage, position, f" {percentage:.1f}%", va="center", fontsize=8)
        else:
            ax.text(0.5, 0.5, "No informative features", ha="center", va="center", transform=ax.transAxes)
            ax.set_yticks([])
        ax.set_xlabel("Importance (%)")
        ax.set_title("Feature importance")
        fig.tight_layout()
        fig.savefig(output_path)
    except (OSError, ValueError) as exc:
        raise RenderError(f"Could not write importance chart {output_path}: {exc}", path=output_path) from exc
    finally:
        plt.close(fig)
