"""
Index and point value types.

An Index is an integer offset into image space (column, row, slice[, frame]).
A Point is a real-valued world (patient) position of the same dimensionality.
Geometry converts between them.

Inputs:
    - Sequences of numbers

Outputs:
    - Immutable Index / Point values, diff dims between indices

Requirements:
    - Standard library only
"""

from typing import Iterable, List, Tuple


class Index:
    """Immutable integer coordinate, at least 3 dimensions."""

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[int]):
        values = tuple(int(v) for v in values)
        if len(values) < 3:
            raise ValueError(f"Cannot create index with less than 3 dimensions: {values}")
        self._values: Tuple[int, ...] = values

    @property
    def values(self) -> Tuple[int, ...]:
        return self._values

    def get_values(self) -> List[int]:
        return list(self._values)

    def get(self, i: int) -> int:
        return self._values[i]

    def length(self) -> int:
        return len(self._values)

    def can_compare(self, other: "Index") -> bool:
        return other is not None and self.length() == other.length()

    def compare(self, other: "Index") -> List[int]:
        """
        Get the dimensions where this index and the other differ.

        Raises:
            ValueError: If the indices do not have the same length
        """
        if not self.can_compare(other):
            raise ValueError("Cannot compare indices of different lengths")
        return [i for i, (a, b) in enumerate(zip(self._values, other._values)) if a != b]

    def add(self, other: "Index") -> "Index":
        if not self.can_compare(other):
            raise ValueError("Cannot add indices of different lengths")
        return Index(a + b for a, b in zip(self._values, other._values))

    def with_value(self, dim: int, value: int) -> "Index":
        values = list(self._values)
        values[dim] = value
        return Index(values)

    def to_string(self) -> str:
        return "(" + ",".join(str(v) for v in self._values) + ")"

    def __eq__(self, other):
        if not isinstance(other, Index):
            return NotImplemented
        return self._values == other._values

    def __hash__(self):
        return hash(self._values)

    def __len__(self):
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __repr__(self):
        return f"Index{self.to_string()}"


def diff_dims(previous: Index, current: Index) -> List[int]:
    """
    Dimensions that changed between two indices.

    Indices of different lengths are compared up to the shorter length and
    every dimension beyond it counts as changed. A missing previous index
    means every dimension changed.
    """
    if previous is None:
        return list(range(current.length()))
    if previous.can_compare(current):
        return previous.compare(current)
    min_len = min(previous.length(), current.length())
    max_len = max(previous.length(), current.length())
    dims = [i for i in range(min_len) if previous.get(i) != current.get(i)]
    dims.extend(range(min_len, max_len))
    return dims


class Point:
    """Immutable real-valued world position."""

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[float]):
        self._values: Tuple[float, ...] = tuple(float(v) for v in values)

    @property
    def values(self) -> Tuple[float, ...]:
        return self._values

    def get_values(self) -> List[float]:
        return list(self._values)

    def get(self, i: int) -> float:
        return self._values[i]

    def length(self) -> int:
        return len(self._values)

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return self._values == other._values

    def __hash__(self):
        return hash(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return "Point(" + ", ".join(f"{v:g}" for v in self._values) + ")"
