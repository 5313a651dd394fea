"""
Window/level values, presets and DICOM window helpers.

This module defines the immutable WindowLevel (center, width) pair and the
WindowPreset registry entry, and extracts window presets from DICOM datasets.

Inputs:
    - Center/width values
    - pydicom Dataset

Outputs:
    - Display intensities (0-255), preset lists

Requirements:
    - numpy, pydicom
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from pydicom.dataset import Dataset
from pydicom.multival import MultiValue

MANUAL_PRESET_NAME = "manual"
MINMAX_PRESET_NAME = "minmax"


class WindowLevel:
    """Immutable linear intensity window."""

    __slots__ = ("_center", "_width")

    def __init__(self, center: float, width: float):
        self._center = float(center)
        self._width = float(width)

    def get_center(self) -> float:
        return self._center

    def get_width(self) -> float:
        return self._width

    @property
    def center(self) -> float:
        return self._center

    @property
    def width(self) -> float:
        return self._width

    def get_min(self) -> float:
        return self._center - self._width / 2.0

    def get_max(self) -> float:
        return self._center + self._width / 2.0

    def apply(self, values):
        """
        Map calibrated values to display intensities in [0, 255].

        Works on scalars and numpy arrays; arrays come back as uint8.
        """
        scaled = (np.asarray(values, dtype=np.float64) - self.get_min()) / self._width * 255.0
        clipped = np.clip(scaled, 0.0, 255.0).astype(np.uint8)
        if clipped.ndim == 0:
            return int(clipped)
        return clipped

    def equals(self, other: Optional["WindowLevel"]) -> bool:
        return (
            other is not None
            and self._center == other._center
            and self._width == other._width
        )

    def __eq__(self, other):
        if not isinstance(other, WindowLevel):
            return NotImplemented
        return self.equals(other)

    def __hash__(self):
        return hash((self._center, self._width))

    def __repr__(self):
        return f"WindowLevel(center={self._center:g}, width={self._width:g})"


@dataclass
class WindowPreset:
    """
    Named window/level preset.

    A per-slice preset holds one WindowLevel per secondary offset (frame).
    The minmax preset starts with wl=None and is resolved on first use.
    """

    name: str
    wl: Optional[List[WindowLevel]] = None
    perslice: bool = False

    @classmethod
    def from_center_width(cls, name: str, center: float, width: float) -> "WindowPreset":
        return cls(name=name, wl=[WindowLevel(center, width)])

    def is_resolved(self) -> bool:
        return self.wl is not None and len(self.wl) != 0


def parse_window_value(value) -> List[float]:
    """Parse a WindowCenter/WindowWidth-like value into a list of floats."""
    if value is None:
        return []
    if isinstance(value, (MultiValue, list, tuple)):
        return [float(x) for x in value]
    if isinstance(value, str):
        if '\\' in value:
            return [float(p.strip()) for p in value.split('\\') if p.strip()]
        if value.strip().startswith('[') and value.strip().endswith(']'):
            inner = value.strip()[1:-1]
            return [float(p.strip()) for p in inner.split(',') if p.strip()]
        return [float(value)]
    return [float(value)]


def get_window_level_presets_from_dataset(dataset: Dataset) -> List[Tuple[str, WindowLevel]]:
    """
    Get all window center/width presets from a DICOM dataset.

    Preset names come from WindowCenterWidthExplanation when present,
    otherwise "Default" for the first one and "Preset N" for the others.
    Values with a width below 1 are skipped.

    Returns:
        List of (preset_name, WindowLevel)
    """
    window_centers = parse_window_value(getattr(dataset, 'WindowCenter', None))
    window_widths = parse_window_value(getattr(dataset, 'WindowWidth', None))
    explanations = getattr(dataset, 'WindowCenterWidthExplanation', None)
    if explanations is None:
        explanations = []
    elif isinstance(explanations, str):
        explanations = [explanations]
    else:
        explanations = [str(e) for e in explanations]

    presets = []
    num_presets = max(len(window_centers), len(window_widths))
    if len(window_centers) == 0 or len(window_widths) == 0:
        return presets
    for i in range(num_presets):
        wc = window_centers[i] if i < len(window_centers) else window_centers[-1]
        ww = window_widths[i] if i < len(window_widths) else window_widths[-1]
        if ww < 1:
            continue
        if i < len(explanations) and explanations[i].strip():
            name = explanations[i].strip()
        else:
            name = "Default" if i == 0 else f"Preset {i + 1}"
        presets.append((name, WindowLevel(wc, ww)))
    return presets


class PerSlicePresetError(RuntimeError):
    """Raised when trying to replace an installed per-slice preset."""
