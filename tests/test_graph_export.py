"""Tests for DOT export of decision trees."""

from __future__ import annotations

from pathlib import Path

import graphviz
import pytest
from pytest_check import check

from housetree.dataset import Dataset
from housetree.exceptions import DataFileError, InvariantViolationError
from housetree.graph_export import (
    build_tree_digraph,
    export_tree_graph,
    format_threshold,
    graph_node_id,
    write_graph,
)
from housetree.training import fit_model
from housetree.tree_structure import DecisionNode, DecisionTreeStructure

HEADER = [
    "digraph Tree {",
    "\tnode [fontname=helvetica shape=box style=rounded]",
    "\tedge [fontname=helvetica]",
]


def _stump(feature_threshold: float) -> DecisionTreeStructure:
    """Build a one-split tree on feature 0.

    Args:
        feature_threshold (float): Split threshold of the root.

    Returns:
        DecisionTreeStructure: A root with two leaves.
    """
    return DecisionTreeStructure(
        nodes=(
            DecisionNode(node_id=0, feature_index=0, threshold=feature_threshold, true_child=1, false_child=2),
            DecisionNode(node_id=1, prediction=0),
            DecisionNode(node_id=2, prediction=1),
        )
    )


@pytest.fixture
def two_level_tree() -> DecisionTreeStructure:
    """A tree splitting on LotArea, then on OverallQual in the true branch.

    Returns:
        DecisionTreeStructure: Five nodes in pre-order.
    """
    return DecisionTreeStructure(
        nodes=(
            DecisionNode(node_id=0, feature_index=0, threshold=3750.0, true_child=1, false_child=4, samples=10),
            DecisionNode(node_id=1, feature_index=1, threshold=4.5, true_child=2, false_child=3, samples=5),
            DecisionNode(node_id=2, prediction=0, samples=2),
            DecisionNode(node_id=3, prediction=1, samples=3),
            DecisionNode(node_id=4, prediction=2, samples=5),
        )
    )


class TestExportTreeGraph:
    """Tests for export_tree_graph."""

    def test_two_level_tree_lines(self, two_level_tree: DecisionTreeStructure) -> None:
        """Nodes and edges should be emitted depth-first, true branch first."""
        # Act
        lines = export_tree_graph(two_level_tree, ["LotArea", "OverallQual"])

        # Assert
        assert lines == [
            *HEADER,
            '\tnode_0 [label="Feature LotArea <= 3750"]',
            "\tnode_0 -> node_1 [label=true]",
            "\tnode_0 -> node_4 [label=false]",
            '\tnode_1 [label="Feature OverallQual <= 4.5"]',
            "\tnode_1 -> node_2 [label=true]",
            "\tnode_1 -> node_3 [label=false]",
            "\tnode_2 [label=0]",
            "\tnode_3 [label=1]",
            "\tnode_4 [label=2]",
            "}",
        ]

    def test_single_leaf_has_one_node_and_no_edges(self) -> None:
        """A root leaf should produce exactly one node line."""
        # Arrange
        tree = DecisionTreeStructure(nodes=(DecisionNode(node_id=0, prediction=1),))

        # Act
        lines = export_tree_graph(tree, ["LotArea"])

        # Assert
        with check:
            assert lines == [*HEADER, "\tnode_0 [label=1]", "}"]
        with check:
            assert not any("->" in line for line in lines)

    def test_thresholds_keep_six_significant_digits(self) -> None:
        """Long thresholds should be shortened to six significant digits."""
        # Act
        lines = export_tree_graph(_stump(1.23456789), ["x"])

        # Assert
        assert '\tnode_0 [label="Feature x <= 1.23457"]' in lines

    def test_tiny_threshold_is_not_rounded_to_zero(self) -> None:
        """A threshold below 1e-4 should still be shown as a non-zero value."""
        # Act
        lines = export_tree_graph(_stump(1e-5), ["x"])

        # Assert
        assert '\tnode_0 [label="Feature x <= 1e-05"]' in lines

    def test_quotes_in_feature_names_are_escaped(self) -> None:
        """Feature names should not break out of the quoted label."""
        # Act
        lines = export_tree_graph(_stump(2.0), ['Area "sq ft"'])

        # Assert
        assert '\tnode_0 [label="Feature Area \\"sq ft\\" <= 2"]' in lines

    def test_backslashes_in_feature_names_are_literal(self) -> None:
        """A backslash in a feature name should not start a DOT escape sequence."""
        # Act
        lines = export_tree_graph(_stump(2.0), ["C:\\area"])

        # Assert
        assert '\tnode_0 [label="Feature C:\\\\area <= 2"]' in lines

    def test_fitted_model_export_is_deterministic_and_ids_unique(self, house_dataset: Dataset) -> None:
        """Two exports of one model should match, with one node line per tree node."""
        # Arrange
        model = fit_model(house_dataset, random_state=0)

        # Act
        first = export_tree_graph(model, model.feature_names)
        second = export_tree_graph(model, model.feature_names)

        # Assert
        node_lines = [line for line in first if "[label=" in line and "->" not in line]
        node_ids = [line.split()[0] for line in node_lines]
        with check:
            assert first == second
        with check:
            assert len(node_ids) == len(model.tree)
        with check:
            assert len(set(node_ids)) == len(node_ids)
        with check:
            assert sum("->" in line for line in first) == 2 * (len(model.tree) - model.leaf_count)

    def test_unknown_feature_index_raises(self, two_level_tree: DecisionTreeStructure) -> None:
        """A feature index past the end of the names should be reported, not skipped."""
        # Act
        with pytest.raises(InvariantViolationError) as exc_info:
            export_tree_graph(two_level_tree, ["LotArea"])

        # Assert
        with check:
            assert exc_info.value.node_id == 1
        with check:
            assert exc_info.value.feature_index == 1


class TestBuildTreeDigraph:
    """Tests for build_tree_digraph."""

    def test_returns_named_digraph_matching_export(self, two_level_tree: DecisionTreeStructure) -> None:
        """The graph object should be the source of the exported lines."""
        # Act
        dot = build_tree_digraph(two_level_tree, ["LotArea", "OverallQual"])

        # Assert
        with check:
            assert isinstance(dot, graphviz.Digraph)
        with check:
            assert dot.name == "Tree"
        with check:
            assert dot.source.splitlines() == export_tree_graph(two_level_tree, ["LotArea", "OverallQual"])


class TestFormatThreshold:
    """Tests for format_threshold."""

    @pytest.mark.parametrize(
        ("threshold", "expected"),
        [(3750.0, "3750"), (4.5, "4.5"), (0.000123456789, "0.000123457"), (123456789.0, "1.23457e+08")],
    )
    def test_significant_digits(self, threshold: float, expected: str) -> None:
        """Thresholds should use general format with six significant digits.

        Args:
            threshold (float): Raw split threshold.
            expected (str): Label text.
        """
        # Act & Assert
        assert format_threshold(threshold) == expected


class TestGraphNodeId:
    """Tests for graph_node_id."""

    def test_uses_pre_order_index(self) -> None:
        """Identifiers should be derived from the node id."""
        # Act & Assert
        assert graph_node_id(DecisionNode(node_id=12, prediction=0)) == "node_12"


class TestWriteGraph:
    """Tests for write_graph."""

    def test_writes_lines_to_file(self, tmp_path: Path, two_level_tree: DecisionTreeStructure) -> None:
        """The file should contain the exported lines in order."""
        # Arrange
        lines = export_tree_graph(two_level_tree, ["LotArea", "OverallQual"])
        path = tmp_path / "tree.dot"

        # Act
        written = write_graph(path, lines)

        # Assert
        with check:
            assert written == path
        with check:
            assert path.read_text(encoding="utf-8").splitlines() == lines

    def test_unwritable_destination_raises_data_file_error(self, tmp_path: Path) -> None:
        """A parent path that is a regular file cannot hold the graph."""
        # Arrange
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")

        # Act & Assert
        with pytest.raises(DataFileError):
            write_graph(blocker / "tree.dot", ["digraph Tree {", "}"])
