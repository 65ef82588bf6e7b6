"""
ginitree._splitter
==================

Split evaluation for the tree builder.  Labels are one-hot rows; rows are
grouped by their exact value (no tolerance, no string conversion), so a label
matrix is first reduced to integer *codes*, one per distinct label vector.

The split search is exhaustive: every value of every feature present in the
current subset is tried as a threshold, giving O(n) candidates per feature,
each scored in O(n).  A node with ``n`` rows and ``f`` features therefore costs
O(n^2 * f).
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field

import numpy as np


# -----------------------------------------------------------------------------
# Label grouping
# -----------------------------------------------------------------------------
def label_codes(labels: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Group label rows by exact value.

    Parameters
    ----------
    labels : ndarray of shape (n_samples, n_classes)
        One-hot label matrix.

    Returns
    -------
    values : ndarray of shape (n_distinct, n_classes)
        The distinct label rows.
    codes : ndarray of shape (n_samples,)
        For each input row, the index of its value in ``values``.
    """
    labels = np.asarray(labels, dtype=float)
    values, codes = np.unique(labels, axis=0, return_inverse=True)
    return values, np.asarray(codes, dtype=np.intp).reshape(-1)


def _majority_code(codes: np.ndarray) -> int:
    # Counter keeps insertion order and most_common is stable, so ties go to
    # the label seen first in row order.
    return Counter(codes.tolist()).most_common(1)[0][0]


def majority_label(labels: np.ndarray) -> np.ndarray:
    """Most frequent label row; ties resolve to the first one encountered."""
    labels = np.asarray(labels, dtype=float)
    if labels.shape[0] == 0:
        raise ValueError("majority_label needs at least one label row")
    values, codes = label_codes(labels)
    return values[_majority_code(codes)].copy()


# -----------------------------------------------------------------------------
# Impurity
# -----------------------------------------------------------------------------
def _gini_codes(codes: np.ndarray, n_values: int) -> float:
    n = codes.shape[0]
    if n == 0:
        return 0.0
    p = np.bincount(codes, minlength=n_values) / n
    return float(1.0 - np.sum(p * p))


def _weighted_gini_codes(left: np.ndarray, right: np.ndarray, n_values: int) -> float:
    n_left, n_right = left.shape[0], right.shape[0]
    total = n_left + n_right
    if total == 0:
        return 0.0
    return (n_left / total) * _gini_codes(left, n_values) + \
           (n_right / total) * _gini_codes(right, n_values)


def gini_impurity(labels: np.ndarray) -> float:
    """``1 - sum(p_c ** 2)`` over the distinct label rows of ``labels``."""
    labels = np.asarray(labels, dtype=float)
    if labels.shape[0] == 0:
        return 0.0
    values, codes = label_codes(labels)
    return _gini_codes(codes, len(values))


def weighted_gini(left_labels: np.ndarray, right_labels: np.ndarray) -> float:
    """Gini impurity of each side weighted by its share of the rows."""
    left_labels = np.asarray(left_labels, dtype=float)
    right_labels = np.asarray(right_labels, dtype=float)
    n_left, n_right = left_labels.shape[0], right_labels.shape[0]
    total = n_left + n_right
    if total == 0:
        return 0.0
    return (n_left / total) * gini_impurity(left_labels) + \
           (n_right / total) * gini_impurity(right_labels)


# -----------------------------------------------------------------------------
# Split search
# -----------------------------------------------------------------------------
@dataclass
class Split:
    """Best binary split found for one node.

    ``left_mask`` selects the rows with ``X[:, feature_index] < threshold``;
    the remaining rows go right.  ``credit`` holds the importance credit
    gathered while searching: for every strictly improving candidate, its
    impurity is added to the candidate's feature.
    """

    feature_index: int
    threshold: float
    impurity: float
    left_mask: np.ndarray
    credit: dict[int, float] = field(default_factory=dict)


def find_best_split(X: np.ndarray, codes: np.ndarray, n_values: int) -> Split | None:
    """
    Exhaustively search the lowest weighted Gini split of ``X``.

    Features are scanned in index order and, within a feature, thresholds in
    row order.  Only a strictly lower impurity replaces the current best, so
    ties keep the first candidate.  A value repeated within a feature scores
    the same as its first occurrence and is skipped, as is the smallest value
    of a feature, which would leave the left side empty.

    Parameters
    ----------
    X : ndarray of shape (n_samples, n_features)
        Feature rows reaching the node.
    codes : ndarray of shape (n_samples,)
        Label code of each row (see :func:`label_codes`).
    n_values : int
        Number of distinct label codes.

    Returns
    -------
    Split or None
        ``None`` when no feature takes two distinct values.
    """
    n_features = X.shape[1]
    best_impurity = np.inf
    best: tuple[int, float, np.ndarray] | None = None
    credit: dict[int, float] = {}
    for j in range(n_features):
        col = X[:, j]
        for value in dict.fromkeys(col.tolist()):
            left = col < value
            if not left.any():
                continue
            impurity = _weighted_gini_codes(codes[left], codes[~left], n_values)
            if impurity < best_impurity:
                best_impurity = impurity
                credit[j] = credit.get(j, 0.0) + impurity
                best = (j, value, left)

    if best is None:
        return None
    j, value, left = best
    return Split(feature_index=j, threshold=float(value), impurity=float(best_impurity),
                 left_mask=left, credit=credit)
