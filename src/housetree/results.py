"""Writing label vectors and ranking feature importances."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import NamedTuple

import numpy as np
import polars as pl
from loguru import logger

from housetree.exceptions import DataFileError, ShapeError

__all__ = [
    "FeatureImportance",
    "RankedImportance",
    "format_importances",
    "rank_importances",
    "truncate_at_first_zero",
    "write_labels",
]


class FeatureImportance(NamedTuple):
    """A feature name paired with its importance score.

    Attributes:
        name (str): The feature name.
        score (float): The importance score, a fraction of 1.0.
    """

    name: str
    score: float


type RankedImportance = tuple[FeatureImportance, ...]


def write_labels(path: Path | str, labels: Iterable[int] | np.ndarray) -> Path:
    """Write one integer label per line, with no header.

    The file is created or truncated; missing parent directories are created.

    Args:
        path (Path | str): Destination file.
        labels (Iterable[int] | np.ndarray): Labels in output order.

    Returns:
        Path: The written file.

    Raises:
        DataFileError: If the file or its parent directory cannot be created
            or written.
    """
    destination = Path(path)
    if not isinstance(labels, np.ndarray):
        labels = list(labels)
    frame = pl.DataFrame({"label": np.asarray(labels, dtype=np.int64)})
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        frame.write_csv(destination, include_header=False)
    except (OSError, pl.exceptions.PolarsError) as exc:
        raise DataFileError("Cannot write label file", path=destination) from exc
    logger.debug("Wrote {} labels to {}", frame.height, destination)
    return destination


def rank_importances(
    feature_names: Sequence[str],
    importances: Sequence[float] | np.ndarray,
) -> RankedImportance:
    """Pair feature names with scores and sort by score, highest first.

    `feature_names[i]` pairs with `importances[i]`. Equal scores keep their
    original relative order.

    Args:
        feature_names (Sequence[str]): Feature names.
        importances (Sequence[float] | np.ndarray): Scores, positionally
            aligned with `feature_names`.

    Returns:
        RankedImportance: `(name, score)` pairs in descending score order.

    Raises:
        ShapeError: If the two sequences differ in length.

    Examples:
        >>> rank_importances(["a", "b", "c"], [0.2, 0.5, 0.3])
        (FeatureImportance(name='b', score=0.5), FeatureImportance(name='c', score=0.3), FeatureImportance(name='a', score=0.2))
    """
    if len(feature_names) != len(importances):
        raise ShapeError(f"Got {len(feature_names)} feature names but {len(importances)} importance scores")
    paired = [FeatureImportance(name, float(score)) for name, score in zip(feature_names, importances, strict=True)]
    # sorted() is stable, including with reverse=True.
    return tuple(sorted(paired, key=lambda item: item.score, reverse=True))


def truncate_at_first_zero(ranked: Sequence[FeatureImportance]) -> RankedImportance:
    """Keep the prefix of `ranked` that precedes the first zero score.

    Args:
        ranked (Sequence[FeatureImportance]): Ranked importances.

    Returns:
        RankedImportance: Entries before the first score equal to 0.0, or
            all entries if none is zero.

    Examples:
        >>> truncate_at_first_zero([("a", 0.3), ("b", 0.0), ("c", 0.1)])
        (('a', 0.3),)
    """
    prefix: list[FeatureImportance] = []
    for item in ranked:
        if item[1] == 0.0:
            break
        prefix.append(item)
    return tuple(prefix)


def format_importances(ranked: Sequence[FeatureImportance]) -> list[str]:
    """Render ranked importances as `name: value%` console lines.

    Args:
        ranked (Sequence[FeatureImportance]): Ranked importances.

    Returns:
        list[str]: One line per entry, percentages with two decimals.
    """
    return [f"{name}: {score * 100:.2f}%" for name, score in ranked]
