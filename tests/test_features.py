import math

import numpy as np
import pytest
from ginitree import GiniTreeClassifier
from ginitree._importance import FeatureImportanceTracker

A = [1.0, 0.0]
B = [0.0, 1.0]


def _noisy_dataset(n=60, seed=0):
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n, 3))
    cls = ((X[:, 0] + 0.5 * X[:, 2]) > 0).astype(int)
    # flip a few labels so the tree needs several splits
    cls[rng.choice(n, size=n // 10, replace=False)] ^= 1
    return X, np.eye(2)[cls]


def test_tracker_normalizes_to_one():
    tracker = FeatureImportanceTracker()
    tracker.add(0, 0.25)
    tracker.add(2, 0.5)
    tracker.add(0, 0.25)
    assert tracker.raw == {0: 0.5, 2: 0.5}
    assert dict(tracker.normalized()) == {0: 0.5, 2: 0.5}


def test_tracker_empty_and_zero_total():
    tracker = FeatureImportanceTracker()
    assert dict(tracker.normalized()) == {}
    tracker.merge({1: 0.0, 3: 0.0})
    assert dict(tracker.normalized()) == {1: 0.5, 3: 0.5}


def test_tracker_rejects_negative_credit():
    with pytest.raises(ValueError):
        FeatureImportanceTracker().add(0, -0.1)


def test_importances_sum_to_one_when_split():
    X, Y = _noisy_dataset()
    clf = GiniTreeClassifier(max_depth=6)
    assert clf.train(X, Y)
    imp = clf.get_feature_importances()
    assert len(imp) > 0
    assert math.isclose(sum(imp.values()), 1.0)
    assert all(v >= 0 for v in imp.values())
    assert set(imp) <= {0, 1, 2}


def test_importances_are_read_only():
    X = np.array([[0, 0], [0, 1], [5, 5], [5, 6]], dtype=float)
    clf = GiniTreeClassifier()
    clf.train(X, np.array([A, A, B, B]))
    imp = clf.get_feature_importances()
    assert dict(imp) == {0: 1.0}
    with pytest.raises(TypeError):
        imp[0] = 0.0


def test_importances_empty_for_single_leaf():
    X = np.array([[1.0], [2.0], [3.0], [4.0]])
    clf = GiniTreeClassifier(min_samples_leaf=3)
    assert clf.train(X, np.array([A, A, B, B]))
    assert clf.tree_.is_leaf
    assert dict(clf.get_feature_importances()) == {}


def test_importances_empty_before_training():
    assert dict(GiniTreeClassifier().get_feature_importances()) == {}


def test_importances_reset_by_retraining():
    X, Y = _noisy_dataset()
    clf = GiniTreeClassifier()
    clf.train(X, Y)
    assert len(clf.get_feature_importances()) > 0
    clf.train(X, np.tile(A, (len(X), 1)))
    assert dict(clf.get_feature_importances()) == {}
