# -*- coding: utf-8 -*-
"""
ginitree.tree
=============

This module implements a binary decision tree classifier that chooses its
splits by weighted Gini impurity.  Inputs are numeric feature matrices and
one‑hot label matrices; predictions are one‑hot label vectors.  Growth is
limited by ``max_depth``, ``min_samples_split``, ``min_samples_leaf`` and
``max_leaf_nodes``.  There is no pruning.

In addition to training, prediction and evaluation, the classifier provides
utilities for rule tracing, rule export, pretty printing of the tree and
Graphviz export.

The module also contains the ``TreeNode`` dataclass which holds each node of
the tree (internal or leaf) and the private ``_TreeBuilder`` which grows a
tree for a single ``train`` call.
"""

from __future__ import annotations
import logging
import numbers
from dataclasses import dataclass
from typing import Mapping

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils import check_array, check_scalar

from .base import Classifier
from ._exceptions import DataError, FeatureBoundsError, NotFittedError, TreeStructureError
from ._importance import FeatureImportanceTracker
from ._splitter import _majority_code, find_best_split, label_codes


logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _check_data(features, labels) -> tuple[np.ndarray, np.ndarray]:
    if features is None or labels is None:
        raise DataError("features and labels must not be None")
    try:
        X = check_array(features, dtype=np.float64)
        Y = check_array(labels, dtype=np.float64)
    except ValueError as exc:
        raise DataError(str(exc)) from exc
    if X.shape[0] != Y.shape[0]:
        raise DataError(f"row count mismatch: {X.shape[0]} feature rows, "
                        f"{Y.shape[0]} label rows")
    return X, Y


def _check_one_hot(Y: np.ndarray) -> None:
    if not np.all((Y == 0.0) | (Y == 1.0)):
        raise DataError("labels must only contain 0 and 1")
    bad = np.flatnonzero(Y.sum(axis=1) != 1.0)
    if bad.size:
        raise DataError(f"label row {int(bad[0])} is not one-hot")


def _class_index(label: np.ndarray) -> int:
    return int(np.argmax(label))


def _name(fn, index: int) -> str:
    return fn[index] if (fn is not None and 0 <= index < len(fn)) else f"X[{index}]"


def _class_name(cn, label: np.ndarray) -> str:
    idx = _class_index(label)
    return str(cn[idx]) if cn is not None else str(idx)


# -----------------------------------------------------------------------------
# Node
# -----------------------------------------------------------------------------
@dataclass
class TreeNode:
    """A single node of the tree.

    Every node stores the majority label of the training rows that reached
    it; internal nodes also carry ``feature_index``/``threshold``.  Rows with
    ``x[feature_index] < threshold`` go ``left``, the rest go ``right``.
    """

    predicted_label: np.ndarray
    n_samples: int
    feature_index: int | None = None
    threshold: float | None = None
    left: TreeNode | None = None
    right: TreeNode | None = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def children(self) -> tuple[TreeNode, TreeNode]:
        """Both children of an internal node; raises if either is missing."""
        if self.left is None:
            raise TreeStructureError("Left node is missing on an internal node")
        if self.right is None:
            raise TreeStructureError("Right node is missing on an internal node")
        return self.left, self.right

    @property
    def n_leaves(self) -> int:
        count, stack = 0, [self]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                count += 1
            else:
                stack.extend(ch for ch in (node.left, node.right) if ch is not None)
        return count

    @property
    def depth(self) -> int:
        deepest, stack = 0, [(self, 0)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            stack.extend((ch, level + 1) for ch in (node.left, node.right) if ch is not None)
        return deepest


# -----------------------------------------------------------------------------
# Builder
# -----------------------------------------------------------------------------
class _TreeBuilder:
    """Grows one tree.  Owns the importance tracker and the leaf count."""

    def __init__(self, X: np.ndarray, Y: np.ndarray, *, max_depth: int | None,
                 min_samples_split: int, min_samples_leaf: int,
                 max_leaf_nodes: int | None):
        self.X = X
        self.label_values, self.codes = label_codes(Y)
        self.n_values = len(self.label_values)
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.min_samples_leaf = min_samples_leaf
        self.max_leaf_nodes = max_leaf_nodes
        self.importances = FeatureImportanceTracker()
        # the root starts out as the only leaf
        self.n_leaves = 1

    def build(self) -> TreeNode:
        """
        Grow the tree over all training rows.

        Nodes are grown depth first with an explicit stack of
        ``(rows, depth, parent, side)`` tasks, left subtree before right, so
        the depth of the tree is not limited by the interpreter's recursion
        limit.
        """
        root = None
        stack = [(np.arange(self.X.shape[0]), 0, None, None)]
        while stack:
            rows, depth, parent, side = stack.pop()
            node, split_rows = self._grow(rows, depth)
            if parent is None:
                root = node
            else:
                setattr(parent, side, node)
            if split_rows is not None:
                left_rows, right_rows = split_rows
                # right is pushed first so the left subtree is finished before it
                stack.append((right_rows, depth + 1, node, "right"))
                stack.append((left_rows, depth + 1, node, "left"))
        return root

    def _should_stop(self, codes: np.ndarray, depth: int) -> bool:
        if self.max_depth is not None and depth >= self.max_depth:
            return True
        if codes.shape[0] < self.min_samples_split:
            return True
        if self.max_leaf_nodes is not None and self.n_leaves >= self.max_leaf_nodes:
            return True
        return bool(np.all(codes == codes[0]))

    def _grow(self, rows: np.ndarray, depth: int):
        """
        Create the node for the training rows ``rows``.

        The node gets the majority label of its rows whatever happens next.
        If a stopping rule holds, or the best split leaves fewer than
        ``min_samples_leaf`` rows on a side, the node is a leaf and ``None``
        is returned for the split.  Otherwise the split's importance credit is
        committed and the row indices of both sides are returned.
        """
        codes = self.codes[rows]
        node = TreeNode(predicted_label=self.label_values[_majority_code(codes)].copy(),
                        n_samples=int(rows.shape[0]))
        if self._should_stop(codes, depth):
            return node, None

        split = find_best_split(self.X[rows], codes, self.n_values)
        if split is None:
            return node, None
        left_rows = rows[split.left_mask]
        right_rows = rows[~split.left_mask]
        if left_rows.shape[0] < self.min_samples_leaf or right_rows.shape[0] < self.min_samples_leaf:
            return node, None

        self.importances.merge(split.credit)
        self.n_leaves += 1
        node.feature_index = split.feature_index
        node.threshold = split.threshold
        return node, (left_rows, right_rows)


# -----------------------------------------------------------------------------
# Classifier
# -----------------------------------------------------------------------------
class GiniTreeClassifier(ClassifierMixin, BaseEstimator, Classifier):
    """
    Binary decision tree classifier driven by Gini impurity.

    At each node every value of every feature is tried as a threshold; the
    split with the lowest size‑weighted Gini impurity wins.  Thresholds are
    literal feature values and rows go left when ``x[j] < threshold``.
    Labels are one‑hot rows, compared by exact value.

    Training cost is O(n² · f) per node for ``n`` rows and ``f`` features, so
    the full build is super‑linear in the dataset size.

    Parameters
    ----------
    max_depth : int or None, default=None
        Maximum depth of the tree.  If ``None`` the depth is unbounded.
    min_samples_split : int, default=2
        Minimum number of rows a node needs before a split is attempted.
    min_samples_leaf : int, default=1
        Minimum number of rows required on each side of an accepted split.
        When the best split violates it the node becomes a leaf.
    max_leaf_nodes : int or None, default=None
        Maximum number of leaves.  The tree grows depth first, so once the
        budget is spent the remaining nodes (right‑hand ones last) stay
        leaves.  ``None`` means unbounded.

    Attributes
    ----------
    tree_ : TreeNode or None
        Root of the fitted tree; ``None`` before training or after a failed
        ``train``.
    n_features_ : int or None
        Number of features seen during training.
    n_classes_ : int or None
        Width of the one‑hot label rows seen during training.

    Notes
    -----
    - ``train``/``evaluate`` report bad data by returning ``False``/``0.0``
      and logging an error.  ``fit`` is the scikit‑learn spelling of
      ``train`` and raises ``ValueError`` instead.
    - A single instance must not be trained from several threads at once.
    """

    def __init__(
        self,
        *,
        max_depth: int | None = None,
        min_samples_split: int = 2,
        min_samples_leaf: int = 1,
        max_leaf_nodes: int | None = None,
    ):
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.min_samples_leaf = min_samples_leaf
        self.max_leaf_nodes = max_leaf_nodes

        self.tree_ = None
        self.n_features_ = None
        self.n_classes_ = None
        self._importances = FeatureImportanceTracker()

    def _check_params(self):
        if self.max_depth is not None:
            check_scalar(self.max_depth, "max_depth", numbers.Integral, min_val=0)
        check_scalar(self.min_samples_split, "min_samples_split", numbers.Integral, min_val=1)
        check_scalar(self.min_samples_leaf, "min_samples_leaf", numbers.Integral, min_val=1)
        if self.max_leaf_nodes is not None:
            check_scalar(self.max_leaf_nodes, "max_leaf_nodes", numbers.Integral, min_val=1)

    def _check_fitted(self) -> TreeNode:
        tree = getattr(self, "tree_", None)
        if tree is None:
            raise NotFittedError("Estimator not fitted. Call train(...) first.")
        return tree

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def train(self, features, labels) -> bool:
        """
        Build the tree from a feature matrix and a one‑hot label matrix.

        Parameters
        ----------
        features : array-like of shape (n_samples, n_features)
            Finite numeric training rows.
        labels : array-like of shape (n_samples, n_classes)
            One‑hot label rows, one per feature row.

        Returns
        -------
        bool
            ``True`` on success.  ``False`` if the data is invalid (None,
            empty, mismatched row counts, non‑finite values, labels that are
            not one‑hot) or the build failed; the error is logged and the
            classifier is left untrained.

        Raises
        ------
        ValueError
            If a hyperparameter is out of range; the classifier is left
            untrained.
        TypeError
            If a hyperparameter is not an integer.
        """
        self.tree_ = None
        self.n_features_ = None
        self.n_classes_ = None
        self._importances = FeatureImportanceTracker()
        self._check_params()

        try:
            X, Y = _check_data(features, labels)
            _check_one_hot(Y)
        except DataError as exc:
            logger.error("Invalid training data: %s", exc)
            return False

        try:
            builder = _TreeBuilder(
                X, Y,
                max_depth=None if self.max_depth is None else int(self.max_depth),
                min_samples_split=int(self.min_samples_split),
                min_samples_leaf=int(self.min_samples_leaf),
                max_leaf_nodes=None if self.max_leaf_nodes is None else int(self.max_leaf_nodes),
            )
            tree = builder.build()
        except Exception:
            logger.exception("An error occurred during training")
            return False

        self.tree_ = tree
        self.n_features_ = X.shape[1]
        self.n_classes_ = Y.shape[1]
        self._importances = builder.importances
        logger.debug("Built decision tree on %d rows: %d leaves, depth %d",
                     X.shape[0], tree.n_leaves, tree.depth)
        return True

    def fit(self, X, y):
        """scikit‑learn style training; raises ``ValueError`` where ``train`` returns ``False``."""
        if not self.train(X, y):
            raise ValueError("Training failed; see the log for details.")
        return self

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def predict(self, feature) -> np.ndarray:
        """
        Predict the one‑hot label of a feature vector.

        Parameters
        ----------
        feature : array-like of shape (n_features,) or (n_samples, n_features)
            A single vector, or a matrix of vectors.

        Returns
        -------
        ndarray of shape (n_classes,) or (n_samples, n_classes)
            The label of the leaf each vector reaches.

        Raises
        ------
        NotFittedError
            If the classifier has not been trained.
        FeatureBoundsError
            If a vector is too short for a split on its path.
        TreeStructureError
            If the path needs a child that does not exist.
        """
        tree = self._check_fitted()
        x = np.asarray(feature, dtype=float)
        if x.ndim == 1:
            return self._predict_row(x, tree)
        if x.ndim == 2:
            if x.shape[0] == 0:
                return np.empty((0, self.n_classes_), dtype=float)
            return np.array([self._predict_row(row, tree) for row in x])
        raise ValueError(f"Expected a 1-D vector or 2-D matrix, got {x.ndim} dimensions")

    def _step(self, x: np.ndarray, node: TreeNode) -> tuple[TreeNode, bool]:
        """Child of internal ``node`` that ``x`` is routed to, and whether it is the left one."""
        if node.feature_index is None or node.threshold is None:
            raise TreeStructureError("Internal node has no split")
        if node.feature_index >= x.shape[0]:
            raise FeatureBoundsError(
                f"Split feature index {node.feature_index} is out of bounds "
                f"for a feature vector of length {x.shape[0]}")

        if x[node.feature_index] < node.threshold:
            if node.left is None:
                raise TreeStructureError("Left node is missing when trying to traverse left")
            return node.left, True
        if node.right is None:
            raise TreeStructureError("Right node is missing when trying to traverse right")
        return node.right, False

    def _predict_row(self, x: np.ndarray, node: TreeNode) -> np.ndarray:
        while not node.is_leaf:
            node, _ = self._step(x, node)
        return node.predicted_label.copy()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def evaluate(self, features, labels) -> float:
        """
        Fraction of rows whose predicted label equals the expected one exactly.

        Invalid data (None, empty or mismatched row counts) is logged and
        gives ``0.0``.  The accuracy is logged at INFO level.

        Raises
        ------
        NotFittedError
            If the classifier has not been trained.
        """
        tree = self._check_fitted()
        try:
            X, Y = _check_data(features, labels)
        except DataError as exc:
            logger.error("Invalid test data: %s", exc)
            return 0.0

        correct = sum(1 for x, y in zip(X, Y)
                      if np.array_equal(self._predict_row(x, tree), y))
        accuracy = correct / X.shape[0]
        logger.info("Decision tree accuracy: %.2f%%", accuracy * 100)
        return float(accuracy)

    def get_feature_importances(self) -> Mapping[int, float]:
        """
        Normalised importance of each feature used by the tree.

        Each accepted split credits its feature with the impurity of every
        strictly improving candidate found while searching it.  The returned
        read‑only mapping sums to 1; it is empty when the tree is a single
        leaf or the classifier is untrained.
        """
        return self._importances.normalized()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def get_depth(self) -> int:
        return self._check_fitted().depth

    def get_n_leaves(self) -> int:
        return self._check_fitted().n_leaves

    def predict_rule(self, X, feature_names=None) -> list[str]:
        """
        Return the decision rule (antecedent) followed by each input row.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Input rows.
        feature_names : list[str], optional
            Names for the features; ``X[i]`` is used otherwise.

        Returns
        -------
        list[str]
            One antecedent string per row, ``"<root>"`` for a single leaf.
        """
        tree = self._check_fitted()
        Xp = np.atleast_2d(np.asarray(X, dtype=float))
        return [self._trace_rule(x, tree, feature_names) for x in Xp]

    def export_rules(self, *, feature_names=None, class_names=None) -> list[str]:
        """
        Export every root‑to‑leaf path as ``"<antecedent> => <class>"``.

        The class is the index of the 1 in the leaf's one‑hot label, or
        ``class_names[index]`` when names are given.
        """
        tree = self._check_fitted()
        rules: list[str] = []
        self._collect_rules(tree, rules, feature_names, class_names)
        return rules

    def export_graphviz(self, filename: str | None = None, *, feature_names=None,
                        class_names=None, format: str = "png") -> str:
        """
        Export the tree structure in Graphviz format.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file (the extension is determined by
            ``format``).  If None, the DOT source is returned and no file is
            written.
        feature_names : list[str], optional
            Names for the input features.
        class_names : list[str], optional
            Names for the classes, indexed by one‑hot position.
        format : str, default="png"
            Graphviz output format.  ``'dot'`` writes the DOT source directly
            and does not call the external ``dot`` command.

        Returns
        -------
        str
            Path to the written file, or the DOT source if ``filename`` is None.

        Raises
        ------
        NotFittedError
            If the classifier has not been trained.
        RuntimeError
            If the ``graphviz`` package is not installed.
        """
        tree = self._check_fitted()
        try:
            import graphviz
        except ImportError:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.")
        dot = graphviz.Digraph(format=format)
        self._add_graph_nodes(dot, tree, feature_names, class_names)

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
            return f"{filename}.{format}"
        except graphviz.ExecutableNotFound:
            logger.warning("Graphviz 'dot' executable not found; writing DOT source instead")
            fallback_path = f"{filename}.dot"
            dot.save(fallback_path)
            return fallback_path

    def print_tree(self, feature_names=None, class_names=None):
        """Pretty‑print the decision tree to ``stdout``."""
        tree = self._check_fitted()
        self._print_node(tree, feature_names, class_names)

    def _trace_rule(self, x, node: TreeNode, fn=None):
        parts = []
        while not node.is_leaf:
            name = _name(fn, node.feature_index)
            threshold = node.threshold
            node, went_left = self._step(x, node)
            parts.append(f"{name} {'<' if went_left else '>='} {threshold:.4f}")
        return " AND ".join(parts) if parts else "<root>"

    def _collect_rules(self, root: TreeNode, rules, fn, cn):
        stack = [(root, [])]
        while stack:
            node, parts = stack.pop()
            if node.is_leaf:
                body = " AND ".join(parts) if parts else "<root>"
                rules.append(f"{body} => {_class_name(cn, node.predicted_label)}")
                continue
            left_child, right_child = node.children()
            name = _name(fn, node.feature_index)
            stack.append((right_child, parts + [f"{name} >= {node.threshold:.4f}"]))
            stack.append((left_child, parts + [f"{name} < {node.threshold:.4f}"]))

    def _add_graph_nodes(self, dot, root: TreeNode, fn, cn):
        stack = [(root, "0")]
        while stack:
            node, name = stack.pop()
            if node.is_leaf:
                dot.node(name, f"class={_class_name(cn, node.predicted_label)}\nsamples={node.n_samples}",
                         shape="box", style="filled", color="lightgrey")
                continue
            left_child, right_child = node.children()
            label = f"{_name(fn, node.feature_index)} < {node.threshold:.4f}\nsamples={node.n_samples}"
            dot.node(name, label, shape="ellipse", style="filled", color="lightblue")
            l_id, r_id = name + "L", name + "R"
            dot.edge(name, l_id, label="True")
            dot.edge(name, r_id, label="False")
            stack.append((right_child, r_id))
            stack.append((left_child, l_id))

    def _print_node(self, root: TreeNode, fn=None, cn=None):
        # items are either a node to render or a finished line
        stack = [(root, "")]
        while stack:
            node, indent = stack.pop()
            if isinstance(node, str):
                print(node)
                continue
            if node.is_leaf:
                print(f"{indent}Predict {_class_name(cn, node.predicted_label)} | samples={node.n_samples}")
                continue
            left_child, right_child = node.children()
            print(f"{indent}if {_name(fn, node.feature_index)} < {node.threshold:.4f}:")
            stack.append((right_child, indent + "  "))
            stack.append((f"{indent}else:", None))
            stack.append((left_child, indent + "  "))
