# ginitree/__init__.py
"""
ginitree: a Gini-impurity binary decision tree in Python (scikit-learn style).

Exports:
    - GiniTreeClassifier
    - Classifier
    - TreeNode
    - DataError, TreeStructureError, FeatureBoundsError, NotFittedError
"""
import logging

from .base import Classifier
from .tree import GiniTreeClassifier, TreeNode
from ._exceptions import DataError, FeatureBoundsError, NotFittedError, TreeStructureError

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "GiniTreeClassifier",
    "Classifier",
    "TreeNode",
    "DataError",
    "TreeStructureError",
    "FeatureBoundsError",
    "NotFittedError",
]
__version__ = "0.1.0"
