from __future__ import annotations
from types import MappingProxyType
from typing import Mapping


class FeatureImportanceTracker:
    """Per-feature impurity credit accumulated over one tree build.

    One tracker belongs to a single ``train`` call.  Raw values only grow;
    :meth:`normalized` returns a read-only snapshot that sums to 1.
    """

    def __init__(self):
        self._raw: dict[int, float] = {}

    def __len__(self) -> int:
        return len(self._raw)

    def add(self, feature_index: int, impurity: float) -> None:
        if impurity < 0:
            raise ValueError(f"importance credit must be non-negative, got {impurity}")
        key = int(feature_index)
        self._raw[key] = self._raw.get(key, 0.0) + float(impurity)

    def merge(self, credit: Mapping[int, float]) -> None:
        for feature_index, impurity in credit.items():
            self.add(feature_index, impurity)

    @property
    def raw(self) -> dict[int, float]:
        return dict(self._raw)

    def normalized(self) -> Mapping[int, float]:
        if not self._raw:
            return MappingProxyType({})
        total = sum(self._raw.values())
        if total <= 0.0:
            # Every credited split was perfect: share the credit equally.
            share = 1.0 / len(self._raw)
            return MappingProxyType({k: share for k in self._raw})
        return MappingProxyType({k: v / total for k, v in self._raw.items()})
