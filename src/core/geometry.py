"""
Image geometry and orientation matrices.

This module provides the 3x3 orientation matrix used for view orientation and
the Geometry object converting between image indices and world positions.

Inputs:
    - Slice origins, size, spacing, direction cosines

Outputs:
    - Index <-> Point conversions, bounds checks

Requirements:
    - numpy
    - core.coordinates (Index, Point)
"""

from typing import List, Optional, Sequence

import numpy as np

from core.coordinates import Index, Point


class Matrix33:
    """3x3 matrix, row-major values."""

    def __init__(self, values: Sequence[float]):
        self._array = np.asarray(values, dtype=float).reshape(3, 3)

    @property
    def array(self) -> np.ndarray:
        return self._array.copy()

    def get(self, row: int, col: int) -> float:
        return float(self._array[row, col])

    def multiply_vector(self, vector: Sequence[float]) -> np.ndarray:
        return self._array @ np.asarray(vector, dtype=float)

    def get_inverse(self) -> "Matrix33":
        return Matrix33(np.linalg.inv(self._array).ravel())

    def get_third_col_major_direction(self) -> int:
        """Index of the largest absolute value of the third column."""
        return int(np.argmax(np.abs(self._array[:, 2])))

    def __eq__(self, other):
        if not isinstance(other, Matrix33):
            return NotImplemented
        return np.array_equal(self._array, other._array)

    def __repr__(self):
        return f"Matrix33({self._array.ravel().tolist()})"


def get_identity_mat33() -> Matrix33:
    return Matrix33(np.eye(3).ravel())


def get_axial_mat33() -> Matrix33:
    return get_identity_mat33()


def get_coronal_mat33() -> Matrix33:
    return Matrix33([1, 0, 0, 0, 0, 1, 0, -1, 0])


def get_sagittal_mat33() -> Matrix33:
    return Matrix33([0, 0, -1, 1, 0, 0, 0, -1, 0])


def get_mat33_from_name(name: str) -> Matrix33:
    """
    Get an orientation matrix from its name.

    Raises:
        ValueError: If the name is not axial, coronal or sagittal
    """
    matrices = {
        "axial": get_axial_mat33,
        "coronal": get_coronal_mat33,
        "sagittal": get_sagittal_mat33,
    }
    if name not in matrices:
        raise ValueError(f"Unknown orientation name: '{name}'")
    return matrices[name]()


class Geometry:
    """
    Image geometry: slice origins, size, spacing and direction cosines.

    The size has 3 components (columns, rows, slices) and gains a 4th one
    (frames) once frames are appended.
    """

    def __init__(
        self,
        origins: Sequence[Point],
        size: Sequence[int],
        spacing: Sequence[float],
        orientation: Optional[Matrix33] = None,
    ):
        if len(origins) == 0:
            raise ValueError("Geometry needs at least one origin")
        if len(size) < 3 or len(spacing) < 3:
            raise ValueError("Geometry size and spacing need 3 components")
        self._origins: List[Point] = list(origins)
        self._size: List[int] = [int(s) for s in size]
        self._spacing = np.asarray(spacing[:3], dtype=float)
        self._orientation = orientation if orientation is not None else get_identity_mat33()
        self._inverse = self._orientation.get_inverse()

    def get_size(self) -> List[int]:
        return list(self._size)

    def get_spacing(self) -> List[float]:
        return self._spacing.tolist()

    def get_orientation(self) -> Matrix33:
        return self._orientation

    def get_origin(self) -> Point:
        return self._origins[0]

    def get_origins(self) -> List[Point]:
        return list(self._origins)

    def append_origin(self, origin: Point, index: int) -> None:
        """Insert a slice origin at the given slice index."""
        self._origins.insert(index, origin)
        self._size[2] = len(self._origins)

    def append_frame(self) -> None:
        """Grow the 4th (frame) dimension by one."""
        if len(self._size) == 3:
            self._size.append(2)
        else:
            self._size[3] += 1

    def index_to_world(self, index: Index) -> Point:
        origin = np.asarray(self.get_origin().values[:3], dtype=float)
        local = np.asarray(index.values[:3], dtype=float) * self._spacing
        world = origin + self._orientation.multiply_vector(local)
        values = world.tolist() + [float(v) for v in index.values[3:]]
        return Point(values)

    def world_to_index(self, point: Point) -> Index:
        origin = np.asarray(self.get_origin().values[:3], dtype=float)
        local = self._inverse.multiply_vector(np.asarray(point.values[:3], dtype=float) - origin)
        values = np.rint(local / self._spacing).astype(int).tolist()
        values += [int(round(v)) for v in point.values[3:]]
        return Index(values)

    def is_index_in_bounds(self, index: Index, dirs: Optional[Sequence[int]] = None) -> bool:
        """
        Check that an index lies inside the image along the given dimensions.

        Args:
            index: The index to check
            dirs: Dimensions to check, all by default

        Returns:
            True if 0 <= index[d] < size[d] for every checked d
        """
        if dirs is None:
            dirs = range(index.length())
        for d in dirs:
            size = self._size[d] if d < len(self._size) else 1
            if d >= index.length():
                return False
            if not 0 <= index.get(d) < size:
                return False
        return True
