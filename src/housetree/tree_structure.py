"""Immutable node arena describing the decisions of a fitted tree.

Nodes live in a flat tuple; children are referenced by position. Node ids are
assigned in pre-order (a node before its children, the "true" branch before
the "false" branch), so the root is always node 0 and ids are stable for a
given fitted estimator.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import numpy as np
from sklearn.tree import DecisionTreeClassifier

__all__ = ["DecisionNode", "DecisionTreeStructure"]


@dataclass(frozen=True)
class DecisionNode:
    """One node of a decision tree.

    A leaf carries `prediction` and no split fields. An internal node carries
    `feature_index`, `threshold` and both child ids; samples with
    `feature <= threshold` follow `true_child`, all others `false_child`.

    Attributes:
        node_id (int): Pre-order index of this node; equals its arena position.
        prediction (int | None): Predicted class label (leaves only).
        feature_index (int | None): Column index of the split feature.
        threshold (float | None): Split threshold.
        true_child (int | None): Node id followed when the condition holds.
        false_child (int | None): Node id followed when the condition fails.
        samples (int): Number of training samples that reached this node.
    """

    node_id: int
    prediction: int | None = None
    feature_index: int | None = None
    threshold: float | None = None
    true_child: int | None = None
    false_child: int | None = None
    samples: int = 0

    @property
    def is_leaf(self) -> bool:
        """Whether this node has no children."""
        return self.true_child is None


@dataclass(frozen=True)
class DecisionTreeStructure:
    """Arena of decision nodes, root at index 0.

    Attributes:
        nodes (tuple[DecisionNode, ...]): Nodes in pre-order; `nodes[i].node_id == i`.
    """

    nodes: tuple[DecisionNode, ...]

    def __post_init__(self) -> None:
        """Validate that the arena is non-empty and ids match positions.

        Raises:
            ValueError: If the arena is empty or a node id differs from its position.
        """
        if not self.nodes:
            raise ValueError("A decision tree needs at least one node")
        for position, node in enumerate(self.nodes):
            if node.node_id != position:
                raise ValueError(f"Node at position {position} has node_id {node.node_id}")

    def __len__(self) -> int:
        """Return the number of nodes."""
        return len(self.nodes)

    def __iter__(self) -> Iterator[DecisionNode]:
        """Iterate over nodes in pre-order."""
        return iter(self.nodes)

    def __getitem__(self, node_id: int) -> DecisionNode:
        """Return the node with the given id."""
        return self.nodes[node_id]

    @property
    def root(self) -> DecisionNode:
        """The root node."""
        return self.nodes[0]

    @property
    def leaf_count(self) -> int:
        """Number of leaf nodes."""
        return sum(1 for node in self.nodes if node.is_leaf)

    def children(self, node: DecisionNode) -> tuple[DecisionNode, DecisionNode]:
        """Return the `(true_child, false_child)` nodes of an internal node.

        Args:
            node (DecisionNode): An internal node of this tree.

        Returns:
            tuple[DecisionNode, DecisionNode]: The true and false children.

        Raises:
            ValueError: If `node` is a leaf.
        """
        if node.true_child is None or node.false_child is None:
            raise ValueError(f"Node {node.node_id} is a leaf and has no children")
        return self.nodes[node.true_child], self.nodes[node.false_child]

    @classmethod
    def from_estimator(cls, estimator: DecisionTreeClassifier) -> DecisionTreeStructure:
        """Extract the node arena from a fitted sklearn classifier.

        Walks `estimator.tree_` from its root, left (`<=`) child first, and
        renumbers nodes in visiting order.

        Args:
            estimator (DecisionTreeClassifier): A fitted classifier.

        Returns:
            DecisionTreeStructure: The tree's nodes in pre-order.
        """
        nodes: list[DecisionNode] = []
        _walk_estimator_tree(estimator.tree_, estimator.classes_, sklearn_node_id=0, nodes=nodes)
        return cls(nodes=tuple(nodes))


# Private helpers


def _walk_estimator_tree(
    sklearn_tree: Any,
    classes: np.ndarray,
    *,
    sklearn_node_id: int,
    nodes: list[DecisionNode],
) -> int:
    """Recursively append one sklearn node and its subtree to `nodes`.

    Args:
        sklearn_tree (Any): The `tree_` internal structure of a fitted estimator.
        classes (np.ndarray): The estimator's `classes_`, indexed by the
            argmax of a node's value vector.
        sklearn_node_id (int): Index of the node in `sklearn_tree`.
        nodes (list[DecisionNode]): Accumulator; the node is placed at the
            position equal to its pre-order id.

    Returns:
        int: The pre-order id assigned to the node.
    """
    node_id = len(nodes)
    samples = int(sklearn_tree.n_node_samples[sklearn_node_id])
    left_child = sklearn_tree.children_left[sklearn_node_id]
    right_child = sklearn_tree.children_right[sklearn_node_id]

    if left_child == right_child:  # Both are TREE_LEAF (-1) at leaves
        class_index = int(np.argmax(sklearn_tree.value[sklearn_node_id][0]))
        nodes.append(DecisionNode(node_id=node_id, prediction=int(classes[class_index]), samples=samples))
        return node_id

    # Reserve the slot so the parent precedes its children.
    nodes.append(DecisionNode(node_id=node_id))
    true_child = _walk_estimator_tree(sklearn_tree, classes, sklearn_node_id=int(left_child), nodes=nodes)
    false_child = _walk_estimator_tree(sklearn_tree, classes, sklearn_node_id=int(right_child), nodes=nodes)
    nodes[node_id] = DecisionNode(
        node_id=node_id,
        feature_index=int(sklearn_tree.feature[sklearn_node_id]),
        threshold=float(sklearn_tree.threshold[sklearn_node_id]),
        true_child=true_child,
        false_child=false_child,
        samples=samples,
    )
    return node_id
