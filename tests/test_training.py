"""Tests for fitting, prediction and evaluation of the decision tree model."""

from __future__ import annotations

import math

import numpy as np
import pytest
from pytest_check import check
from sklearn.tree import DecisionTreeClassifier

from housetree.dataset import Dataset, split_dataset
from housetree.exceptions import ShapeError
from housetree.training import (
    TrainedModel,
    accuracy,
    confusion_matrix,
    feature_importance,
    fit_model,
    predict,
)


class TestFitModel:
    """Tests for fit_model."""

    def test_returns_trained_model_with_feature_names(self, house_dataset: Dataset) -> None:
        """The model should wrap a fitted classifier and remember the training feature names."""
        # Act
        model = fit_model(house_dataset, random_state=0)

        # Assert
        with check:
            assert isinstance(model, TrainedModel)
        with check:
            assert isinstance(model.estimator, DecisionTreeClassifier)
        with check:
            assert model.feature_names == house_dataset.feature_names
        with check:
            assert model.root.node_id == 0

    def test_respects_max_depth(self, house_dataset: Dataset) -> None:
        """The fitted tree should not be deeper than requested."""
        # Act
        model = fit_model(house_dataset, max_depth=1, random_state=0)

        # Assert
        assert model.depth <= 1

    @pytest.mark.parametrize(("max_depth", "min_samples_leaf"), [(0, 1), (-1, 1), (None, 0)])
    def test_invalid_parameters_raise(self, house_dataset: Dataset, max_depth: int | None, min_samples_leaf: int) -> None:
        """Non-positive depth or leaf size should be rejected.

        Args:
            house_dataset (Dataset): Ten-row dataset.
            max_depth (int | None): Requested depth.
            min_samples_leaf (int): Requested leaf size.
        """
        # Act & Assert
        with pytest.raises(ValueError):
            fit_model(house_dataset, max_depth=max_depth, min_samples_leaf=min_samples_leaf)

    def test_empty_training_set_raises(self, house_dataset: Dataset) -> None:
        """There is nothing to learn from zero rows."""
        # Arrange
        empty = house_dataset.take(np.array([], dtype=np.int64))

        # Act & Assert
        with pytest.raises(ValueError, match="empty"):
            fit_model(empty)


class TestPredict:
    """Tests for predict."""

    def test_one_prediction_per_row(self, house_dataset: Dataset) -> None:
        """Predictions should be int64 and as long as the dataset."""
        # Arrange
        train, test = split_dataset(house_dataset, 0.8)
        model = fit_model(train, random_state=0)

        # Act
        predictions = predict(model, test)

        # Assert
        with check:
            assert predictions.shape == (len(test),)
        with check:
            assert predictions.dtype == np.int64

    def test_separable_data_is_learned(self, house_dataset: Dataset) -> None:
        """The house labels are split cleanly by lot area, so training rows should be recovered."""
        # Arrange
        model = fit_model(house_dataset, random_state=0)

        # Act
        predictions = predict(model, house_dataset)

        # Assert
        assert predictions.tolist() == house_dataset.labels.tolist()

    def test_feature_count_mismatch_raises(self, house_dataset: Dataset) -> None:
        """A dataset with different columns than the model should be rejected."""
        # Arrange
        model = fit_model(house_dataset, random_state=0)
        narrow = Dataset(
            features=house_dataset.features[:, :2],
            labels=house_dataset.labels,
            feature_names=house_dataset.feature_names[:2],
            indices=house_dataset.indices,
        )

        # Act & Assert
        with pytest.raises(ShapeError):
            predict(model, narrow)


class TestConfusionMatrixAndAccuracy:
    """Tests for confusion_matrix and accuracy."""

    def test_matrix_counts_actual_by_predicted(self, house_dataset: Dataset) -> None:
        """Rows should be actual classes and columns predicted classes."""
        # Arrange
        subset = house_dataset.take(np.array([0, 1, 5, 6]))  # labels 0, 0, 1, 1
        predictions = np.array([0, 1, 1, 1])

        # Act
        matrix = confusion_matrix(predictions, subset)

        # Assert
        with check:
            assert matrix.tolist() == [[1, 1], [0, 2]]
        with check:
            assert accuracy(matrix) == pytest.approx(0.75)

    def test_single_class_test_set_gives_valid_accuracy(self, house_dataset: Dataset) -> None:
        """A test set with one class should still give a finite accuracy in [0, 1]."""
        # Arrange
        subset = house_dataset.take(np.array([5, 6]))  # labels 1, 1

        # Act
        perfect = accuracy(confusion_matrix(np.array([1, 1]), subset))
        half = accuracy(confusion_matrix(np.array([1, 0]), subset))

        # Assert
        with check:
            assert perfect == pytest.approx(1.0)
        with check:
            assert half == pytest.approx(0.5)

    def test_end_to_end_accuracy_is_in_unit_interval(self, house_dataset: Dataset) -> None:
        """Held-out accuracy on the 10-row table with ratio 0.8 should be a number in [0, 1]."""
        # Arrange
        train, test = split_dataset(house_dataset, 0.8)
        model = fit_model(train, random_state=0)

        # Act
        score = accuracy(confusion_matrix(predict(model, test), test))

        # Assert
        with check:
            assert (len(train), len(test)) == (8, 2)
        with check:
            assert not math.isnan(score)
        with check:
            assert 0.0 <= score <= 1.0

    def test_empty_matrix_has_zero_accuracy(self) -> None:
        """An empty confusion matrix should give 0.0 rather than NaN."""
        # Act & Assert
        assert accuracy(np.zeros((0, 0), dtype=np.int64)) == 0.0

    def test_length_mismatch_raises(self, house_dataset: Dataset) -> None:
        """Predictions must pair up with dataset rows."""
        # Act & Assert
        with pytest.raises(ShapeError):
            confusion_matrix(np.array([0, 1]), house_dataset)


class TestFeatureImportance:
    """Tests for feature_importance."""

    def test_one_score_per_feature_summing_to_one(self, house_dataset: Dataset) -> None:
        """A tree with at least one split should have importances summing to 1."""
        # Arrange
        model = fit_model(house_dataset, random_state=0)

        # Act
        importances = feature_importance(model)

        # Assert
        with check:
            assert importances.shape == (house_dataset.feature_count,)
        with check:
            assert importances.sum() == pytest.approx(1.0)

    def test_single_leaf_tree_has_zero_importances(self, house_dataset: Dataset) -> None:
        """A tree without splits attributes nothing to any feature."""
        # Arrange
        one_class = house_dataset.take(np.array([0, 1, 2]))

        # Act
        importances = feature_importance(fit_model(one_class))

        # Assert
        assert importances.tolist() == [0.0, 0.0, 0.0]
