"""
DICOM to Image conversion.

This module builds an Image (samples, geometry, per-slice rescale, meta) and
its window presets from a list of single-frame pydicom datasets of a series.

Inputs:
    - pydicom Datasets (one per slice)

Outputs:
    - Image instance
    - Window presets (name -> WindowPreset), per-slice when the dataset
      window values change along the series

Requirements:
    - numpy, pydicom
    - core.geometry, core.coordinates, core.rescale, core.window_level, core.image
"""

import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np
from pydicom.dataset import Dataset

from core.coordinates import Point
from core.geometry import Geometry, Matrix33
from core.image import Image
from core.rescale import get_rsi_from_dataset
from core.window_level import (
    WindowLevel,
    WindowPreset,
    get_window_level_presets_from_dataset,
    parse_window_value,
)

logger = logging.getLogger(__name__)


def _get_orientation_cosines(dataset: Dataset) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    values = parse_window_value(getattr(dataset, 'ImageOrientationPatient', None))
    if len(values) != 6:
        values = [1.0, 0.0, 0.0, 0.0, 1.0, 0.0]
    row = np.asarray(values[:3], dtype=float)
    col = np.asarray(values[3:], dtype=float)
    return row, col, np.cross(row, col)


def _get_position(dataset: Dataset, default_z: float) -> np.ndarray:
    values = parse_window_value(getattr(dataset, 'ImagePositionPatient', None))
    if len(values) != 3:
        return np.asarray([0.0, 0.0, default_z])
    return np.asarray(values, dtype=float)


def sort_datasets(datasets: Sequence[Dataset]) -> List[Dataset]:
    """
    Sort slices along the normal of the first slice orientation.

    Slices without ImagePositionPatient keep InstanceNumber order.
    """
    if not datasets:
        return []
    _, _, normal = _get_orientation_cosines(datasets[0])

    def sort_key(item):
        order, dataset = item
        if hasattr(dataset, 'ImagePositionPatient'):
            return float(np.dot(_get_position(dataset, 0.0), normal))
        return float(getattr(dataset, 'InstanceNumber', order) or order)

    return [dataset for _, dataset in sorted(enumerate(datasets), key=sort_key)]


def _get_geometry(datasets: Sequence[Dataset]) -> Geometry:
    first = datasets[0]
    row, col, normal = _get_orientation_cosines(first)
    pixel_spacing = parse_window_value(getattr(first, 'PixelSpacing', None))
    if len(pixel_spacing) != 2:
        pixel_spacing = [1.0, 1.0]
    slice_spacing = float(getattr(first, 'SliceThickness', 1.0) or 1.0)

    positions = [_get_position(ds, i * slice_spacing) for i, ds in enumerate(datasets)]
    if len(positions) > 1:
        distance = abs(float(np.dot(positions[1] - positions[0], normal)))
        if distance > 0:
            slice_spacing = distance

    # columns of the orientation matrix: row cosine, column cosine, normal
    orientation = Matrix33(np.column_stack([row, col, normal]).ravel())
    size = [int(first.Columns), int(first.Rows), len(datasets)]
    # spacing order follows the index: column step, row step, slice step
    spacing = [float(pixel_spacing[1]), float(pixel_spacing[0]), slice_spacing]
    return Geometry([Point(p) for p in positions], size, spacing, orientation)


def _get_meta(first: Dataset) -> Dict:
    return {
        "BitsStored": int(getattr(first, 'BitsStored', 16)),
        "IsSigned": int(getattr(first, 'PixelRepresentation', 0)) == 1,
        "PhotometricInterpretation": str(getattr(first, 'PhotometricInterpretation', 'MONOCHROME2')),
        "Modality": str(getattr(first, 'Modality', '')),
        "RecommendedDisplayFrameRate": getattr(first, 'RecommendedDisplayFrameRate', None),
    }


def get_window_presets_from_datasets(datasets: Sequence[Dataset]) -> Dict[str, WindowPreset]:
    """
    Collect the window presets of a series.

    A preset name whose values differ between slices becomes a per-slice
    preset holding one WindowLevel per slice (it must be present on every
    slice, otherwise only the first slice value is kept).
    """
    datasets = sort_datasets(datasets)
    per_name: Dict[str, List[WindowLevel]] = {}
    for dataset in datasets:
        for name, wl in get_window_level_presets_from_dataset(dataset):
            per_name.setdefault(name, []).append(wl)

    presets: Dict[str, WindowPreset] = {}
    for name, wls in per_name.items():
        all_equal = all(wl.equals(wls[0]) for wl in wls)
        if not all_equal and len(wls) == len(datasets):
            presets[name] = WindowPreset(name, wls, perslice=True)
        else:
            if not all_equal:
                logger.warning("Preset '%s' missing on some slices, using first value", name)
            presets[name] = WindowPreset(name, [wls[0]])
    return presets


def image_from_datasets(datasets: Sequence[Dataset]) -> Image:
    """
    Build an Image from the single-frame datasets of a series.

    Raises:
        ValueError: If no dataset is given or slices do not share their size
    """
    if not datasets:
        raise ValueError("Cannot create an image without datasets")
    datasets = sort_datasets(datasets)
    first = datasets[0]
    for dataset in datasets[1:]:
        if dataset.Rows != first.Rows or dataset.Columns != first.Columns:
            raise ValueError("All slices of an image must have the same size")

    buffer = np.stack([np.asarray(dataset.pixel_array) for dataset in datasets])
    uids = [str(getattr(ds, 'SOPInstanceUID', i)) for i, ds in enumerate(datasets)]
    return Image(
        _get_geometry(datasets),
        buffer,
        meta=_get_meta(first),
        rsis=[get_rsi_from_dataset(dataset) for dataset in datasets],
        image_uids=uids,
    )
