"""Serialize a decision tree as a Graphviz DOT directed graph.

The graph is assembled with `graphviz.Digraph`, which handles quoting of
identifiers and labels. Node ids are `node_<pre-order index>`, so two exports
of the same model are identical line for line.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Final

import graphviz
from loguru import logger

from housetree.exceptions import DataFileError, InvariantViolationError
from housetree.training import TrainedModel
from housetree.tree_structure import DecisionNode, DecisionTreeStructure

__all__ = [
    "GRAPH_NAME",
    "THRESHOLD_SIGNIFICANT_DIGITS",
    "build_tree_digraph",
    "export_tree_graph",
    "format_threshold",
    "graph_node_id",
    "write_graph",
]

GRAPH_NAME: Final[str] = "Tree"
THRESHOLD_SIGNIFICANT_DIGITS: Final[int] = 6

_NODE_ATTR: Final[dict[str, str]] = {"shape": "box", "style": "rounded", "fontname": "helvetica"}
_EDGE_ATTR: Final[dict[str, str]] = {"fontname": "helvetica"}


def build_tree_digraph(
    model: TrainedModel | DecisionTreeStructure,
    feature_names: Sequence[str],
) -> graphviz.Digraph:
    """Build a `graphviz.Digraph` of a decision tree, walking it depth-first in pre-order.

    Each leaf becomes one node labeled with its predicted class. Each internal
    node becomes one node labeled `Feature <name> <= <threshold>` followed by a
    `true` edge to the child taken when the condition holds and a `false` edge
    to the other child; the true subtree is then added before the false one.

    Args:
        model (TrainedModel | DecisionTreeStructure): The fitted model, or its
            node arena.
        feature_names (Sequence[str]): Names indexed by each node's
            `feature_index`.

    Returns:
        graphviz.Digraph: The graph, named `Tree`, with box-shaped nodes.

    Raises:
        InvariantViolationError: If a node's feature index does not resolve in
            `feature_names`.
    """
    tree = model.tree if isinstance(model, TrainedModel) else model
    dot = graphviz.Digraph(GRAPH_NAME, node_attr=_NODE_ATTR, edge_attr=_EDGE_ATTR)
    _add_subtree(dot, tree, tree.root, feature_names)
    return dot


def export_tree_graph(
    model: TrainedModel | DecisionTreeStructure,
    feature_names: Sequence[str],
) -> list[str]:
    """Describe a decision tree as DOT lines.

    Args:
        model (TrainedModel | DecisionTreeStructure): The fitted model, or its
            node arena.
        feature_names (Sequence[str]): Names indexed by each node's
            `feature_index`.

    Returns:
        list[str]: The DOT source of `build_tree_digraph`, one entry per line,
            `digraph Tree {` first and `}` last.

    Raises:
        InvariantViolationError: If a node's feature index does not resolve in
            `feature_names`.

    Examples:
        >>> tree = DecisionTreeStructure(nodes=(DecisionNode(node_id=0, prediction=3),))
        >>> export_tree_graph(tree, ["LotArea"])[-2].strip()
        'node_0 [label=3]'
    """
    return build_tree_digraph(model, feature_names).source.splitlines()


def write_graph(path: Path | str, lines: Sequence[str]) -> Path:
    """Write a graph description to disk, one line per entry.

    Args:
        path (Path | str): Destination file, typically `tree.dot`.
        lines (Sequence[str]): Lines from `export_tree_graph`.

    Returns:
        Path: The written file.

    Raises:
        DataFileError: If the file cannot be created or written.
    """
    destination = Path(path)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as exc:
        raise DataFileError("Cannot write graph file", path=destination) from exc
    logger.debug("Wrote {} graph lines to {}", len(lines), destination)
    return destination


def graph_node_id(node: DecisionNode) -> str:
    """Return the DOT identifier of a node.

    Args:
        node (DecisionNode): A tree node.

    Returns:
        str: `node_<pre-order index>`.
    """
    return f"node_{node.node_id}"


def format_threshold(threshold: float) -> str:
    """Format a split threshold with six significant digits (`3750`, `4.5`, `1e-05`)."""
    return f"{threshold:.{THRESHOLD_SIGNIFICANT_DIGITS}g}"


# Private helpers


def _add_subtree(
    dot: graphviz.Digraph,
    tree: DecisionTreeStructure,
    node: DecisionNode,
    feature_names: Sequence[str],
) -> None:
    """Add `node` and, recursively, its subtree to `dot`.

    Args:
        dot (graphviz.Digraph): The graph being built; modified in place.
        tree (DecisionTreeStructure): The arena holding `node`.
        node (DecisionNode): The node to add.
        feature_names (Sequence[str]): Names for resolving feature indices.
    """
    node_id = graph_node_id(node)
    if node.is_leaf:
        dot.node(node_id, label=str(node.prediction))
        return

    feature_name = graphviz.escape(_resolve_feature_name(node, feature_names))
    threshold = format_threshold(float(node.threshold))  # type: ignore[arg-type]
    dot.node(node_id, label=f"Feature {feature_name} <= {threshold}")

    true_child, false_child = tree.children(node)
    dot.edge(node_id, graph_node_id(true_child), label="true")
    dot.edge(node_id, graph_node_id(false_child), label="false")
    _add_subtree(dot, tree, true_child, feature_names)
    _add_subtree(dot, tree, false_child, feature_names)


def _resolve_feature_name(node: DecisionNode, feature_names: Sequence[str]) -> str:
    """Look up the name of the feature an internal node splits on.

    Args:
        node (DecisionNode): An internal node.
        feature_names (Sequence[str]): Candidate names.

    Returns:
        str: The feature name.

    Raises:
        InvariantViolationError: If the index is missing or out of range.
    """
    feature_index = node.feature_index
    if feature_index is None or not (0 <= feature_index < len(feature_names)):
        raise InvariantViolationError(
            f"Node {node.node_id} splits on feature index {feature_index}, "
            f"but only {len(feature_names)} feature names are known",
            node_id=node.node_id,
            feature_index=-1 if feature_index is None else feature_index,
        )
    return feature_names[feature_index]
