"""
Unit tests for index/point value types and image geometry
(core.coordinates, core.geometry).

Tests Index comparison and arithmetic, diff dims, Matrix33 orientation
helpers, index <-> world conversion and bounds checks.
Runnable with pytest or unittest.
"""

import unittest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.coordinates import Index, Point, diff_dims
from core.geometry import (
    Geometry,
    Matrix33,
    get_coronal_mat33,
    get_identity_mat33,
    get_mat33_from_name,
    get_sagittal_mat33,
)


def make_geometry(size=(4, 3, 2), spacing=(1.0, 1.0, 1.0)):
    origins = [Point([0.0, 0.0, k * spacing[2]]) for k in range(size[2])]
    return Geometry(origins, list(size), list(spacing))


class TestIndex(unittest.TestCase):
    """Tests for Index."""

    def test_less_than_three_dimensions_raises(self):
        with self.assertRaises(ValueError):
            Index([0, 1])

    def test_compare_returns_differing_dims(self):
        self.assertEqual(Index([0, 1, 2]).compare(Index([0, 2, 3])), [1, 2])
        self.assertEqual(Index([0, 1, 2]).compare(Index([0, 1, 2])), [])

    def test_compare_different_lengths_raises(self):
        with self.assertRaises(ValueError):
            Index([0, 0, 0]).compare(Index([0, 0, 0, 0]))

    def test_add(self):
        self.assertEqual(Index([1, 2, 3]).add(Index([0, 0, 1])), Index([1, 2, 4]))

    def test_to_string_and_equality(self):
        self.assertEqual(Index([1, 2, 3]).to_string(), "(1,2,3)")
        self.assertEqual(Index([1, 2, 3]), Index((1, 2, 3)))
        self.assertEqual(hash(Index([1, 2, 3])), hash(Index([1, 2, 3])))
        self.assertNotEqual(Index([1, 2, 3]), Index([1, 2, 4]))

    def test_with_value_does_not_mutate(self):
        index = Index([1, 2, 3])
        self.assertEqual(index.with_value(2, 0), Index([1, 2, 0]))
        self.assertEqual(index, Index([1, 2, 3]))


class TestDiffDims(unittest.TestCase):
    """Tests for diff_dims."""

    def test_no_previous_means_all_dims(self):
        self.assertEqual(diff_dims(None, Index([0, 0, 0, 0])), [0, 1, 2, 3])

    def test_same_length(self):
        self.assertEqual(diff_dims(Index([0, 0, 0]), Index([0, 0, 1])), [2])

    def test_longer_current_adds_extra_dims(self):
        self.assertEqual(diff_dims(Index([0, 0, 1]), Index([0, 0, 1, 0])), [3])

    def test_shorter_current_adds_extra_dims(self):
        self.assertEqual(diff_dims(Index([1, 0, 1, 0]), Index([0, 0, 1])), [0, 3])


class TestMatrix33(unittest.TestCase):
    """Tests for orientation matrices."""

    def test_identity_scrolls_along_slices(self):
        self.assertEqual(get_identity_mat33().get_third_col_major_direction(), 2)

    def test_coronal_scrolls_along_rows(self):
        self.assertEqual(get_coronal_mat33().get_third_col_major_direction(), 1)

    def test_sagittal_scrolls_along_columns(self):
        self.assertEqual(get_sagittal_mat33().get_third_col_major_direction(), 0)

    def test_from_name(self):
        self.assertEqual(get_mat33_from_name("coronal"), get_coronal_mat33())
        with self.assertRaises(ValueError):
            get_mat33_from_name("oblique")

    def test_inverse(self):
        matrix = get_sagittal_mat33()
        product = Matrix33((matrix.array @ matrix.get_inverse().array).ravel())
        self.assertEqual(product, get_identity_mat33())


class TestGeometry(unittest.TestCase):
    """Tests for Geometry conversions and bounds."""

    def test_index_to_world(self):
        geometry = make_geometry(spacing=(0.5, 0.5, 2.0))
        self.assertEqual(geometry.index_to_world(Index([2, 1, 1])), Point([1.0, 0.5, 2.0]))

    def test_world_to_index_rounds(self):
        geometry = make_geometry()
        self.assertEqual(geometry.world_to_index(Point([1.2, 1.8, 0.9])), Index([1, 2, 1]))

    def test_round_trip_keeps_frame_component(self):
        geometry = make_geometry()
        index = Index([3, 2, 1, 4])
        self.assertEqual(geometry.world_to_index(geometry.index_to_world(index)), index)

    def test_bounds(self):
        geometry = make_geometry()
        self.assertTrue(geometry.is_index_in_bounds(Index([3, 2, 1])))
        self.assertFalse(geometry.is_index_in_bounds(Index([4, 0, 0])))
        self.assertFalse(geometry.is_index_in_bounds(Index([0, 0, -1])))

    def test_bounds_on_selected_dims(self):
        geometry = make_geometry()
        # column out of range but only slices are checked
        self.assertTrue(geometry.is_index_in_bounds(Index([10, 0, 1]), [2]))
        self.assertFalse(geometry.is_index_in_bounds(Index([0, 0, 2]), [2]))

    def test_missing_frame_dimension_has_size_one(self):
        geometry = make_geometry()
        self.assertTrue(geometry.is_index_in_bounds(Index([0, 0, 0, 0]), [2, 3]))
        self.assertFalse(geometry.is_index_in_bounds(Index([0, 0, 0, 1]), [2, 3]))

    def test_append_frame_grows_fourth_dimension(self):
        geometry = make_geometry()
        geometry.append_frame()
        self.assertEqual(geometry.get_size(), [4, 3, 2, 2])
        geometry.append_frame()
        self.assertEqual(geometry.get_size(), [4, 3, 2, 3])


if __name__ == "__main__":
    unittest.main()
