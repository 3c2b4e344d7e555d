"""Decision tree fitting, prediction and evaluation.

Tree induction itself is delegated to scikit-learn; this module pins down the
contract the rest of the pipeline relies on.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from loguru import logger
from sklearn.metrics import confusion_matrix as sklearn_confusion_matrix
from sklearn.tree import DecisionTreeClassifier

from housetree.dataset import Dataset
from housetree.exceptions import ShapeError
from housetree.tree_structure import DecisionNode, DecisionTreeStructure

__all__ = [
    "TrainedModel",
    "accuracy",
    "confusion_matrix",
    "feature_importance",
    "fit_model",
    "predict",
]


@dataclass(frozen=True, eq=False)
class TrainedModel:
    """A fitted classifier together with the names and structure it was fitted on.

    Attributes:
        estimator (DecisionTreeClassifier): The fitted sklearn estimator.
        feature_names (tuple[str, ...]): Feature names of the training data.
        tree (DecisionTreeStructure): Node arena extracted from `estimator`.
    """

    estimator: DecisionTreeClassifier
    feature_names: tuple[str, ...]
    tree: DecisionTreeStructure

    @property
    def root(self) -> DecisionNode:
        """Root decision node."""
        return self.tree.root

    @property
    def depth(self) -> int:
        """Depth of the fitted tree; 0 for a single leaf."""
        return int(self.estimator.get_depth())

    @property
    def leaf_count(self) -> int:
        """Number of leaves."""
        return self.tree.leaf_count


def fit_model(
    train: Dataset,
    *,
    max_depth: int | None = None,
    min_samples_leaf: int = 1,
    random_state: int | None = None,
) -> TrainedModel:
    """Fit a Gini decision tree classifier on the train subset.

    Args:
        train (Dataset): Training rows.
        max_depth (int | None): Maximum depth; `None` grows until leaves are pure.
        min_samples_leaf (int): Minimum number of samples required at a leaf.
        random_state (int | None): Seed for sklearn's feature permutation, which
            decides ties between equally good splits.

    Returns:
        TrainedModel: The fitted model.

    Raises:
        ValueError: If `max_depth` or `min_samples_leaf` is below 1, or
            `train` is empty.
    """
    if max_depth is not None and max_depth < 1:
        raise ValueError(f"max_depth must be at least 1 or None, got {max_depth}.")
    if min_samples_leaf < 1:
        raise ValueError(f"min_samples_leaf must be at least 1, got {min_samples_leaf}.")
    if len(train) == 0:
        raise ValueError("Cannot fit a decision tree on an empty dataset.")

    estimator = DecisionTreeClassifier(
        criterion="gini",
        max_depth=max_depth,
        min_samples_leaf=min_samples_leaf,
        random_state=random_state,
    )
    estimator.fit(train.features, train.labels)
    model = TrainedModel(
        estimator=estimator,
        feature_names=train.feature_names,
        tree=DecisionTreeStructure.from_estimator(estimator),
    )
    logger.debug("Fitted tree: depth={}, leaves={}, nodes={}", model.depth, model.leaf_count, len(model.tree))
    return model


def predict(model: TrainedModel, dataset: Dataset) -> np.ndarray:
    """Predict a class label for every row of `dataset`.

    Args:
        model (TrainedModel): The fitted model.
        dataset (Dataset): Rows to classify.

    Returns:
        np.ndarray: Int64 labels with shape `(len(dataset),)`.

    Raises:
        ShapeError: If the dataset's feature count differs from the model's.
    """
    if dataset.feature_count != len(model.feature_names):
        raise ShapeError(
            f"Model was fitted on {len(model.feature_names)} features, dataset has {dataset.feature_count}"
        )
    if len(dataset) == 0:
        return np.empty(0, dtype=np.int64)
    return np.asarray(model.estimator.predict(dataset.features), dtype=np.int64)


def confusion_matrix(predictions: np.ndarray, dataset: Dataset) -> np.ndarray:
    """Tabulate predicted against actual labels.

    Rows index actual classes and columns predicted classes, both over the
    sorted union of labels present in either vector.

    Args:
        predictions (np.ndarray): Predicted labels, one per dataset row.
        dataset (Dataset): The rows the predictions were made for.

    Returns:
        np.ndarray: Square int64 count matrix; shape `(0, 0)` for no rows.

    Raises:
        ShapeError: If `predictions` and `dataset` differ in length.
    """
    if len(predictions) != len(dataset):
        raise ShapeError(f"Got {len(predictions)} predictions for {len(dataset)} rows")
    if len(dataset) == 0:
        return np.zeros((0, 0), dtype=np.int64)
    labels = np.union1d(dataset.labels, predictions)
    return np.asarray(sklearn_confusion_matrix(dataset.labels, predictions, labels=labels), dtype=np.int64)


def accuracy(matrix: np.ndarray) -> float:
    """Fraction of correct predictions in a confusion matrix.

    Args:
        matrix (np.ndarray): Square confusion matrix.

    Returns:
        float: `trace / total` in [0, 1]; `0.0` when the matrix holds no counts.
    """
    total = int(matrix.sum())
    if total == 0:
        return 0.0
    return float(np.trace(matrix)) / total


def feature_importance(model: TrainedModel) -> np.ndarray:
    """Per-feature importance scores of the fitted model.

    Args:
        model (TrainedModel): The fitted model.

    Returns:
        np.ndarray: Float64 scores aligned with `model.feature_names`; they sum
            to 1.0 unless the tree is a single leaf, in which case all are 0.0.
    """
    return np.asarray(model.estimator.feature_importances_, dtype=np.float64)
