import os

import numpy as np
import pytest
from ginitree import GiniTreeClassifier, TreeNode, TreeStructureError

A = [1.0, 0.0]
B = [0.0, 1.0]


def _fitted():
    X = np.array([[0, 0], [0, 1], [5, 5], [5, 6]], dtype=float)
    return GiniTreeClassifier().fit(X, np.array([A, A, B, B]))


def test_export_rules():
    clf = _fitted()
    assert clf.export_rules() == ["X[0] < 5.0000 => 0", "X[0] >= 5.0000 => 1"]
    rules = clf.export_rules(feature_names=['height', 'width'], class_names=['no', 'yes'])
    assert rules == ["height < 5.0000 => no", "height >= 5.0000 => yes"]


def test_export_rules_single_leaf():
    clf = GiniTreeClassifier().fit([[1.0], [2.0]], [B, B])
    assert clf.export_rules() == ["<root> => 1"]


def test_predict_rule():
    clf = _fitted()
    assert clf.predict_rule([[0, 0], [5, 5]]) == ["X[0] < 5.0000", "X[0] >= 5.0000"]
    assert clf.predict_rule([9, 9], feature_names=['h', 'w']) == ["h >= 5.0000"]


def test_print_tree(capsys):
    clf = _fitted()
    clf.print_tree(class_names=['no', 'yes'])
    out = capsys.readouterr().out
    assert "if X[0] < 5.0000:" in out
    assert "Predict no | samples=2" in out
    assert "else:" in out


def test_introspection():
    clf = _fitted()
    assert clf.get_depth() == 1
    assert clf.get_n_leaves() == 2
    assert clf.tree_.n_samples == 4


def test_graphviz_source():
    pytest.importorskip("graphviz")
    src = _fitted().export_graphviz(class_names=['no', 'yes'])
    assert "X[0] < 5.0000" in src
    assert "class=no" in src


def test_graphviz_dot_file(tmp_path):
    pytest.importorskip("graphviz")
    out_path = _fitted().export_graphviz(str(tmp_path / "tree"), format="dot")
    assert out_path.endswith(".dot")
    assert os.path.exists(out_path)


def _malformed():
    # internal node whose left child was never attached
    clf = GiniTreeClassifier()
    leaf = TreeNode(predicted_label=np.array(B), n_samples=1)
    clf.tree_ = TreeNode(predicted_label=np.array(A), n_samples=2,
                         feature_index=0, threshold=1.0, left=None, right=leaf)
    return clf


def test_exports_raise_structure_error_on_missing_child(capsys):
    clf = _malformed()
    with pytest.raises(TreeStructureError):
        clf.export_rules()
    with pytest.raises(TreeStructureError):
        clf.print_tree()
    assert capsys.readouterr().out == ""
    with pytest.raises(TreeStructureError):
        clf.predict_rule([[0.0]])
    assert clf.predict_rule([[2.0]]) == ["X[0] >= 1.0000"]


def test_graphviz_raises_structure_error_on_missing_child():
    pytest.importorskip("graphviz")
    with pytest.raises(TreeStructureError):
        _malformed().export_graphviz()
