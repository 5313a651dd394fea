"""
Rescale slope/intercept and the rescale lookup table.

This module provides the RSI value type, the lookup table mapping stored raw
samples to calibrated values, and rescale parameter extraction from DICOM
datasets.

Inputs:
    - Slope/intercept pairs, BitsStored
    - pydicom Dataset

Outputs:
    - Calibrated value tables (numpy float arrays)
    - (rescale_slope, rescale_intercept) tuples

Requirements:
    - numpy, pydicom
"""

import logging
from typing import Optional, Tuple

import numpy as np
from pydicom.dataset import Dataset
from pydicom.multival import MultiValue

logger = logging.getLogger(__name__)


class RescaleSlopeAndIntercept:
    """Rescale slope and intercept (RSI) pair."""

    __slots__ = ("_slope", "_intercept")

    def __init__(self, slope: float = 1.0, intercept: float = 0.0):
        self._slope = float(slope)
        self._intercept = float(intercept)

    def get_slope(self) -> float:
        return self._slope

    def get_intercept(self) -> float:
        return self._intercept

    def apply(self, value):
        """Works on scalars and numpy arrays."""
        return value * self._slope + self._intercept

    def is_id(self) -> bool:
        return self._slope == 1.0 and self._intercept == 0.0

    def to_string(self) -> str:
        return f"{self._slope:g}, {self._intercept:g}"

    def __eq__(self, other):
        if not isinstance(other, RescaleSlopeAndIntercept):
            return NotImplemented
        return self._slope == other._slope and self._intercept == other._intercept

    def __hash__(self):
        return hash((self._slope, self._intercept))

    def __repr__(self):
        return f"RescaleSlopeAndIntercept({self.to_string()})"


class RescaleLut:
    """
    Raw sample -> calibrated value table for every sample of a bit depth.

    Signed data covers [-2**(bits-1), 2**(bits-1)), unsigned [0, 2**bits).
    The table is built on first use and is addressed by sample offset
    (raw value minus the domain minimum).
    """

    def __init__(self, rsi: RescaleSlopeAndIntercept, bits_stored: int, is_signed: bool = False):
        self._rsi = rsi
        self._bits_stored = int(bits_stored)
        self._length = 2 ** self._bits_stored
        self._is_signed = bool(is_signed)
        self._min_sample = -(self._length // 2) if self._is_signed else 0
        self._lut: Optional[np.ndarray] = None

    def get_rsi(self) -> RescaleSlopeAndIntercept:
        return self._rsi

    def get_bits_stored(self) -> int:
        return self._bits_stored

    def get_length(self) -> int:
        return self._length

    def is_signed(self) -> bool:
        return self._is_signed

    def get_min_sample(self) -> int:
        return self._min_sample

    def is_ready(self) -> bool:
        return self._lut is not None

    def initialise(self) -> None:
        if self._lut is not None:
            return
        samples = np.arange(self._min_sample, self._min_sample + self._length, dtype=np.float64)
        self._lut = self._rsi.apply(samples)

    def get_table(self) -> np.ndarray:
        self.initialise()
        return self._lut

    def get_value(self, raw: int) -> float:
        """Calibrated value of a raw sample."""
        return float(self.get_table()[int(raw) - self._min_sample])


def _first_value(value):
    if isinstance(value, (list, tuple, MultiValue)):
        return value[0]
    return value


def get_rescale_parameters(dataset: Dataset) -> Tuple[Optional[float], Optional[float]]:
    """
    Extract rescale parameters from DICOM dataset.

    Args:
        dataset: pydicom Dataset

    Returns:
        Tuple of (rescale_slope, rescale_intercept), None for an absent or invalid tag
    """
    try:
        rescale_slope = None
        if hasattr(dataset, 'RescaleSlope'):
            rescale_slope = float(_first_value(dataset.RescaleSlope))

        rescale_intercept = None
        if hasattr(dataset, 'RescaleIntercept'):
            rescale_intercept = float(_first_value(dataset.RescaleIntercept))

        return rescale_slope, rescale_intercept
    except (TypeError, ValueError) as e:
        logger.warning("Error extracting rescale parameters: %s", e)
        return None, None


def get_rsi_from_dataset(dataset: Dataset) -> RescaleSlopeAndIntercept:
    """RSI of a dataset, identity when the tags are absent."""
    slope, intercept = get_rescale_parameters(dataset)
    return RescaleSlopeAndIntercept(
        slope if slope is not None else 1.0,
        intercept if intercept is not None else 0.0,
    )

