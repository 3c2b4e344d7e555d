"""Dataset construction from raw tables and train/test splitting."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final

import numpy as np
from loguru import logger

from housetree.exceptions import FormatError, InvalidRatioError, ShapeError
from housetree.loading import RawTable

__all__ = ["DEFAULT_SPLIT_SEED", "Dataset", "build_dataset", "split_dataset"]

DEFAULT_SPLIT_SEED: Final[int] = 42


@dataclass(frozen=True, eq=False)
class Dataset:
    """Feature matrix, integer labels and feature names for one set of rows.

    Attributes:
        features (np.ndarray): Float64 matrix with shape `(N, F)`.
        labels (np.ndarray): Non-negative int64 vector with shape `(N,)`.
        feature_names (tuple[str, ...]): Column names of `features`, length F.
        indices (np.ndarray): Int64 vector with shape `(N,)`; `indices[i]` is
            the row of the source table that row `i` came from.
        target_name (str): Header of the column the labels came from.
    """

    features: np.ndarray
    labels: np.ndarray
    feature_names: tuple[str, ...]
    indices: np.ndarray
    target_name: str = "target"

    def __post_init__(self) -> None:
        """Validate that all parts agree on N and F.

        Raises:
            ShapeError: If row counts or feature counts disagree.
        """
        n_rows = self.features.shape[0]
        if self.features.ndim != 2 or self.features.shape[1] != len(self.feature_names):
            raise ShapeError(
                f"features shape {self.features.shape} does not match {len(self.feature_names)} feature names"
            )
        if self.labels.shape != (n_rows,) or self.indices.shape != (n_rows,):
            raise ShapeError(
                f"labels {self.labels.shape} and indices {self.indices.shape} must both have length {n_rows}"
            )

    def __len__(self) -> int:
        """Return the number of rows, N."""
        return int(self.features.shape[0])

    @property
    def feature_count(self) -> int:
        """Number of feature columns, F."""
        return len(self.feature_names)

    def take(self, positions: np.ndarray) -> Dataset:
        """Return a new Dataset holding the rows at `positions`.

        Args:
            positions (np.ndarray): Integer positions into this dataset.

        Returns:
            Dataset: The selected rows; `feature_names` is shared.
        """
        return Dataset(
            features=self.features[positions],
            labels=self.labels[positions],
            feature_names=self.feature_names,
            indices=self.indices[positions],
            target_name=self.target_name,
        )


def build_dataset(
    table: RawTable,
    *,
    drop_leading: int = 0,
    target_is_last: bool = True,
) -> Dataset:
    """Slice a raw table into features and integer class labels.

    The target is the last column and the features are the half-open column
    range `[drop_leading, H - 1)`, so F = H - drop_leading - 1. Target values
    are truncated toward zero before being cast to int64, so `2.9` becomes
    class `2`.

    Args:
        table (RawTable): The parsed input table.
        drop_leading (int): Number of leading columns (e.g. an id column) to
            leave out of the features.
        target_is_last (bool): Must be True; other target positions are not
            supported.

    Returns:
        Dataset: The feature matrix, labels and feature names; `indices` is
            `0..N-1`.

    Raises:
        ShapeError: If the target is not the last column, `drop_leading`
            leaves no feature columns, or the feature matrix does not hold
            exactly N x F values.
        FormatError: If a target value is not finite or is negative.
    """
    if not target_is_last:
        raise ShapeError(f"The target must be the last column; target_is_last=False is not supported ({table.source})")

    n_rows, n_columns = table.rows.shape
    _validate_drop_leading(drop_leading, n_columns, table)

    feature_slice = slice(drop_leading, n_columns - 1)
    target_column = n_columns - 1
    feature_names = table.headers[feature_slice]
    features = np.ascontiguousarray(table.rows[:, feature_slice], dtype=np.float64)
    if features.size != n_rows * len(feature_names):
        raise ShapeError(
            f"Feature matrix holds {features.size} values, expected {n_rows} x {len(feature_names)} ({table.source})"
        )

    labels = _truncate_targets(table.rows[:, target_column], table, target_column)
    logger.debug(
        "Built dataset with {} rows, {} features, target column {!r}",
        n_rows,
        len(feature_names),
        table.headers[target_column],
    )
    return Dataset(
        features=features,
        labels=labels,
        feature_names=tuple(feature_names),
        indices=np.arange(n_rows, dtype=np.int64),
        target_name=table.headers[target_column],
    )


def split_dataset(
    dataset: Dataset,
    ratio: float,
    *,
    seed: int | None = DEFAULT_SPLIT_SEED,
) -> tuple[Dataset, Dataset]:
    """Partition a dataset into train and test subsets.

    `floor(N * ratio)` rows go to train and the rest to test. Rows are chosen
    by a permutation drawn from `numpy.random.default_rng(seed)`; train takes
    the first `n_train` positions of the permutation. Each subset keeps its
    rows in their original relative order.

    Args:
        dataset (Dataset): The dataset to split.
        ratio (float): Fraction of rows for the train subset, in (0, 1).
        seed (int | None): Seed for the row permutation. `None` draws a fresh
            permutation on every call.

    Returns:
        tuple[Dataset, Dataset]: `(train, test)`; disjoint, together holding
            every row of `dataset`.

    Raises:
        InvalidRatioError: If `ratio` is outside (0, 1) or either subset would
            be empty.
    """
    if not (0.0 < ratio < 1.0):
        raise InvalidRatioError(f"Split ratio must be strictly between 0 and 1, got {ratio}", ratio=ratio)

    n_rows = len(dataset)
    n_train = math.floor(n_rows * ratio)
    if n_train == 0 or n_train == n_rows:
        raise InvalidRatioError(
            f"Split ratio {ratio} on {n_rows} rows gives {n_train} train and {n_rows - n_train} test rows;"
            " both must be non-empty",
            ratio=ratio,
        )

    permutation = np.random.default_rng(seed).permutation(n_rows)
    train_positions = np.sort(permutation[:n_train])
    test_positions = np.sort(permutation[n_train:])
    logger.debug("Split {} rows into {} train / {} test (seed={})", n_rows, n_train, n_rows - n_train, seed)
    return dataset.take(train_positions), dataset.take(test_positions)


# Private helpers


def _validate_drop_leading(drop_leading: int, n_columns: int, table: RawTable) -> None:
    """Raise `ShapeError` unless at least one feature column remains.

    Args:
        drop_leading (int): Number of leading columns to drop.
        n_columns (int): Total number of columns, H.
        table (RawTable): The table being sliced, for error context.

    Raises:
        ShapeError: If `drop_leading` is negative or leaves fewer than one
            feature column besides the target.
    """
    if drop_leading < 0 or drop_leading > n_columns - 2:
        raise ShapeError(
            f"drop_leading={drop_leading} leaves no feature columns in a {n_columns}-column table ({table.source})"
        )


def _truncate_targets(target_values: np.ndarray, table: RawTable, target_column: int) -> np.ndarray:
    """Truncate real target values toward zero and cast them to int64.

    Args:
        target_values (np.ndarray): The target column as float64.
        table (RawTable): The source table, for error context.
        target_column (int): Index of the target column.

    Returns:
        np.ndarray: Non-negative int64 class labels.

    Raises:
        FormatError: If any target is not finite or is negative.
    """
    target_name = table.headers[target_column]
    invalid_rows = np.flatnonzero(~np.isfinite(target_values) | (np.trunc(target_values) < 0))
    if invalid_rows.size > 0:
        row_index = int(invalid_rows[0])
        raise FormatError(
            f"Target value {target_values[row_index]!r} at row {row_index} is not a non-negative class label",
            path=table.source,
            line=table.line_of(row_index),
            column=target_name,
        )
    return np.trunc(target_values).astype(np.int64)
