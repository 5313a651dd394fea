"""
Unit tests for building images and views from DICOM datasets
(core.dicom_image, core.view_factory).

Datasets are created in memory with pydicom; no DICOM files are needed.
Runnable with pytest or unittest.
"""

import unittest
import sys
import os
import tempfile

import numpy as np
from pydicom.dataset import Dataset, FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, generate_uid

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.coordinates import Index
from core.dicom_image import (
    get_window_presets_from_datasets,
    image_from_datasets,
    sort_datasets,
)
from core.view_factory import create_view
from core.window_level import WindowLevel
from utils.config_manager import ConfigManager


def make_slice(z, instance_number, pixels=None, window=None, explanation=None,
               photometric="MONOCHROME2", modality="CT", intercept=-1024.0):
    """Single-frame 3 rows x 4 columns CT slice."""
    if pixels is None:
        pixels = np.full((3, 4), 1000 + instance_number, dtype=np.uint16)
    file_meta = FileMetaDataset()
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian
    ds = Dataset()
    ds.file_meta = file_meta
    ds.SOPInstanceUID = generate_uid()
    ds.Modality = modality
    ds.InstanceNumber = instance_number
    ds.ImagePositionPatient = [0.0, 0.0, float(z)]
    ds.ImageOrientationPatient = [1.0, 0.0, 0.0, 0.0, 1.0, 0.0]
    ds.PixelSpacing = [0.7, 0.5]
    ds.SliceThickness = 2.5
    ds.Rows, ds.Columns = pixels.shape
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = photometric
    ds.BitsAllocated = 16
    ds.BitsStored = 12
    ds.HighBit = 11
    ds.PixelRepresentation = 0
    ds.RescaleSlope = 1.0
    ds.RescaleIntercept = intercept
    if window is not None:
        ds.WindowCenter = window[0]
        ds.WindowWidth = window[1]
    if explanation is not None:
        ds.WindowCenterWidthExplanation = explanation
    ds.PixelData = pixels.astype(np.uint16).tobytes()
    return ds


class TestImageFromDatasets(unittest.TestCase):
    """Tests for image_from_datasets."""

    def test_slices_sorted_along_normal(self):
        datasets = [make_slice(2.5, 2), make_slice(0.0, 1)]
        self.assertEqual([ds.InstanceNumber for ds in sort_datasets(datasets)], [1, 2])

    def test_geometry_and_meta(self):
        datasets = [make_slice(2.5, 2), make_slice(0.0, 1)]
        image = image_from_datasets(datasets)
        geometry = image.get_geometry()
        self.assertEqual(geometry.get_size(), [4, 3, 2])
        self.assertEqual(geometry.get_spacing(), [0.5, 0.7, 2.5])
        meta = image.get_meta()
        self.assertEqual(meta["BitsStored"], 12)
        self.assertFalse(meta["IsSigned"])
        self.assertEqual(meta["Modality"], "CT")
        self.assertEqual(image.get_image_uid(Index([0, 0, 1])), datasets[0].SOPInstanceUID)

    def test_samples_and_rescale(self):
        image = image_from_datasets([make_slice(2.5, 2), make_slice(0.0, 1)])
        self.assertEqual(image.get_value_at_index(Index([0, 0, 0])), 1001)
        self.assertEqual(image.get_rescaled_value_at_index(Index([3, 2, 1])), 1002 - 1024.0)
        self.assertTrue(image.is_constant_rsi())

    def test_per_slice_rescale(self):
        image = image_from_datasets([make_slice(0.0, 1), make_slice(2.5, 2, intercept=-1000.0)])
        self.assertFalse(image.is_constant_rsi())
        self.assertEqual(image.get_rescale_slope_and_intercept(1).get_intercept(), -1000.0)

    def test_empty_raises(self):
        with self.assertRaises(ValueError):
            image_from_datasets([])

    def test_size_mismatch_raises(self):
        datasets = [make_slice(0.0, 1), make_slice(2.5, 2, pixels=np.zeros((2, 2), dtype=np.uint16))]
        with self.assertRaises(ValueError):
            image_from_datasets(datasets)


class TestWindowPresetsFromDatasets(unittest.TestCase):
    """Tests for get_window_presets_from_datasets."""

    def test_shared_preset(self):
        datasets = [make_slice(0.0, 1, window=(40, 400), explanation="SOFT"),
                    make_slice(2.5, 2, window=(40, 400), explanation="SOFT")]
        presets = get_window_presets_from_datasets(datasets)
        self.assertEqual(list(presets), ["SOFT"])
        self.assertFalse(presets["SOFT"].perslice)
        self.assertEqual(presets["SOFT"].wl, [WindowLevel(40, 400)])

    def test_per_slice_preset(self):
        datasets = [make_slice(2.5, 2, window=(50, 500)),
                    make_slice(0.0, 1, window=(40, 400))]
        presets = get_window_presets_from_datasets(datasets)
        self.assertTrue(presets["Default"].perslice)
        self.assertEqual(presets["Default"].wl, [WindowLevel(40, 400), WindowLevel(50, 500)])

    def test_invalid_width_skipped(self):
        presets = get_window_presets_from_datasets([make_slice(0.0, 1, window=(40, 0))])
        self.assertEqual(presets, {})


class TestCreateView(unittest.TestCase):
    """Tests for create_view."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.config = ConfigManager(config_dir=self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_preset_order(self):
        datasets = [make_slice(0.0, 1, window=(40, 400), explanation="SOFT"),
                    make_slice(2.5, 2, window=(40, 400), explanation="SOFT")]
        view = create_view(datasets, self.config)
        self.assertEqual(
            view.get_window_presets_names(),
            ["SOFT", "mediastinum", "lung", "bone", "brain", "head", "minmax"],
        )
        self.assertEqual(view.get_current_index(), Index([0, 0, 0]))
        self.assertEqual(view.get_current_window_lut().get_window_level(), WindowLevel(40, 400))
        self.assertEqual(view.get_current_preset_name(), "SOFT")

    def test_without_config_uses_minmax(self):
        view = create_view([make_slice(0.0, 1), make_slice(2.5, 2)])
        self.assertEqual(view.get_window_presets_names(), ["minmax"])
        view.get_current_window_lut()
        # rescaled range is [-23, -22]
        self.assertEqual(view.get_current_window_level(), WindowLevel(-22.5, 1))

    def test_monochrome1_uses_inverse_colour_map(self):
        datasets = [make_slice(0.0, 1, photometric="MONOCHROME1")]
        view = create_view(datasets, self.config)
        self.assertEqual(view.get_colour_map().name, "inv_plain")

    def test_configured_colour_map(self):
        self.config.set_colour_map_name("hot")
        view = create_view([make_slice(0.0, 1)], self.config)
        self.assertEqual(view.get_colour_map().name, "hot")


if __name__ == "__main__":
    unittest.main()
