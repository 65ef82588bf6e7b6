import logging

import numpy as np
from sklearn.datasets import load_iris
from sklearn.model_selection import train_test_split
from ginitree import GiniTreeClassifier

logging.basicConfig(level=logging.INFO)

iris = load_iris()
X = iris.data
Y = np.eye(len(iris.target_names))[iris.target]  # one-hot labels

X_train, X_test, Y_train, Y_test = train_test_split(X, Y, test_size=0.3, random_state=42)

clf = GiniTreeClassifier(max_depth=4, min_samples_split=4, min_samples_leaf=2, max_leaf_nodes=8)
if not clf.train(X_train, Y_train):
    raise SystemExit("training failed")

clf.evaluate(X_test, Y_test)
clf.print_tree(feature_names=list(iris.feature_names), class_names=list(iris.target_names))

for idx, weight in sorted(clf.get_feature_importances().items()):
    print(f"{iris.feature_names[idx]:<20} {weight:.3f}")
