from sklearn.exceptions import NotFittedError


class DataError(ValueError):
    """Data not in the expected format."""


class TreeStructureError(RuntimeError):
    """The tree is malformed: a traversal needs a child that does not exist."""


class FeatureBoundsError(IndexError):
    """A feature vector is too short for a split stored in the tree."""


__all__ = ["DataError", "TreeStructureError", "FeatureBoundsError", "NotFittedError"]
