"""Tests for label files and importance ranking."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from pytest_check import check

from housetree.exceptions import DataFileError, ShapeError
from housetree.loading import load_table
from housetree.results import (
    FeatureImportance,
    format_importances,
    rank_importances,
    truncate_at_first_zero,
    write_labels,
)


class TestWriteLabels:
    """Tests for write_labels."""

    def test_one_label_per_line_without_header(self, tmp_path: Path) -> None:
        """The file should hold one integer per line and nothing else."""
        # Arrange
        path = tmp_path / "predictions.csv"

        # Act
        written = write_labels(path, np.array([3, 1, 4], dtype=np.int64))

        # Assert
        with check:
            assert written == path
        with check:
            assert path.read_text(encoding="utf-8").splitlines() == ["3", "1", "4"]

    def test_written_labels_load_back_as_a_single_column(self, tmp_path: Path) -> None:
        """Reading the file without a header should recover the labels in order."""
        # Arrange
        path = tmp_path / "labels.csv"
        labels = [0, 2, 2, 1, 0]

        # Act
        write_labels(path, labels)
        table = load_table(path, has_header=False)

        # Assert
        assert table.rows[:, 0].astype(np.int64).tolist() == labels

    def test_existing_file_is_truncated(self, tmp_path: Path) -> None:
        """Writing again should replace the previous contents."""
        # Arrange
        path = tmp_path / "labels.csv"
        write_labels(path, [1, 1, 1, 1])

        # Act
        write_labels(path, [5])

        # Assert
        assert path.read_text(encoding="utf-8").splitlines() == ["5"]

    def test_creates_missing_parent_directories(self, tmp_path: Path) -> None:
        """Output directories should be created on demand."""
        # Arrange
        path = tmp_path / "outputs" / "nested" / "labels.csv"

        # Act
        write_labels(path, [7])

        # Assert
        assert path.exists()

    def test_unwritable_destination_raises_data_file_error(self, tmp_path: Path) -> None:
        """A parent path that is a regular file cannot hold the output."""
        # Arrange
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x", encoding="utf-8")

        # Act
        with pytest.raises(DataFileError) as exc_info:
            write_labels(blocker / "labels.csv", [1])

        # Assert
        assert exc_info.value.path == blocker / "labels.csv"


class TestRankImportances:
    """Tests for rank_importances."""

    def test_sorts_descending_by_score(self) -> None:
        """Pairs should come back highest score first."""
        # Act
        ranked = rank_importances(["a", "b", "c"], [0.2, 0.5, 0.3])

        # Assert
        assert ranked == (
            FeatureImportance("b", 0.5),
            FeatureImportance("c", 0.3),
            FeatureImportance("a", 0.2),
        )

    def test_ties_keep_original_order(self) -> None:
        """Equal scores should keep their relative input order."""
        # Act
        ranked = rank_importances(["x", "y", "z", "w"], [0.25, 0.5, 0.25, 0.0])

        # Assert
        assert [item.name for item in ranked] == ["y", "x", "z", "w"]

    def test_ranking_is_idempotent(self) -> None:
        """Ranking an already ranked list should not change it."""
        # Arrange
        ranked = rank_importances(["a", "b", "c", "d"], np.array([0.1, 0.4, 0.1, 0.4]))

        # Act
        reranked = rank_importances([item.name for item in ranked], [item.score for item in ranked])

        # Assert
        assert reranked == ranked

    def test_length_mismatch_raises_shape_error(self) -> None:
        """Names and scores must pair up."""
        # Act & Assert
        with pytest.raises(ShapeError):
            rank_importances(["a", "b"], [1.0])


class TestTruncateAtFirstZero:
    """Tests for truncate_at_first_zero."""

    def test_cuts_before_first_zero(self) -> None:
        """Everything from the first zero score on should be dropped."""
        # Arrange
        ranked = [FeatureImportance("a", 0.3), FeatureImportance("b", 0.0), FeatureImportance("c", 0.1)]

        # Act
        result = truncate_at_first_zero(ranked)

        # Assert
        assert result == (FeatureImportance("a", 0.3),)

    def test_no_zero_keeps_everything(self) -> None:
        """Without a zero score the input comes back whole."""
        # Arrange
        ranked = [FeatureImportance("a", 0.7), FeatureImportance("b", 0.3)]

        # Act & Assert
        assert truncate_at_first_zero(ranked) == tuple(ranked)

    def test_leading_zero_gives_empty_result(self) -> None:
        """A first score of zero leaves nothing."""
        # Act & Assert
        assert truncate_at_first_zero([FeatureImportance("a", 0.0)]) == ()


class TestFormatImportances:
    """Tests for format_importances."""

    def test_formats_percentages_with_two_decimals(self) -> None:
        """Scores should be shown as percentages."""
        # Arrange
        ranked = (FeatureImportance("LotArea", 0.6182), FeatureImportance("OverallQual", 0.25))

        # Act
        lines = format_importances(ranked)

        # Assert
        assert lines == ["LotArea: 61.82%", "OverallQual: 25.00%"]
