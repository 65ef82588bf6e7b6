import numpy as np
from ginitree import GiniTreeClassifier

A = [1.0, 0.0]
B = [0.0, 1.0]


def test_classifier_smoke():
    X = np.array([[0, 0], [0, 1], [5, 5], [5, 6]], dtype=float)
    Y = np.array([A, A, B, B])
    clf = GiniTreeClassifier(max_depth=5, min_samples_split=2, min_samples_leaf=1)
    assert clf.train(X, Y) is True
    assert np.array_equal(clf.predict([0, 0]), A)
    assert np.array_equal(clf.predict([5, 5]), B)
    assert clf.evaluate(X, Y) == 1.0
    _ = clf.export_rules(class_names=['A', 'B'])
    _ = clf.get_feature_importances()


def test_fit_returns_self():
    X = np.array([[1.0], [2.0], [3.0], [4.0]])
    Y = np.array([A, A, B, B])
    clf = GiniTreeClassifier()
    assert clf.fit(X, Y) is clf
    assert clf.predict(X).shape == (4, 2)
