"""
ginitree.base
=============

The capability set shared by every classifier of the library.  Each algorithm
keeps its own model state; the base class only fixes the method signatures.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

import numpy as np


class Classifier(ABC):
    """Train / predict / evaluate contract over one-hot encoded labels."""

    @abstractmethod
    def train(self, features, labels) -> bool:
        """Fit the model.  Returns ``False`` instead of raising on bad data."""

    @abstractmethod
    def predict(self, feature) -> np.ndarray:
        """Return the one-hot label predicted for ``feature``."""

    @abstractmethod
    def evaluate(self, features, labels) -> float:
        """Return the fraction of rows whose prediction matches exactly."""
