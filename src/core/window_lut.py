"""
Window lookup table.

Composes a RescaleLut with a WindowLevel into a raw sample -> display
intensity (0-255) table. The table is stale after every set_window_level and
must be regenerated with update() before it is read for rendering.

Inputs:
    - RescaleLut, WindowLevel

Outputs:
    - uint8 display table (numpy)

Requirements:
    - numpy
    - core.rescale (RescaleLut), core.window_level (WindowLevel)
"""

from typing import Optional

import numpy as np

from core.rescale import RescaleLut
from core.window_level import WindowLevel


class WindowLut:
    """Window lookup table over the raw sample domain of its RescaleLut."""

    def __init__(self, rescale_lut: RescaleLut, is_signed: bool):
        self._rescale_lut = rescale_lut
        self._is_signed = bool(is_signed)
        self._window_level: Optional[WindowLevel] = None
        self._lut: Optional[np.ndarray] = None
        self._dirty = True

    def get_rescale_lut(self) -> RescaleLut:
        return self._rescale_lut

    def is_signed(self) -> bool:
        return self._is_signed

    def get_window_level(self) -> Optional[WindowLevel]:
        return self._window_level

    def set_window_level(self, wl: WindowLevel) -> None:
        """Replace the window level; the table needs an update() afterwards."""
        self._window_level = wl
        self._dirty = True

    def is_dirty(self) -> bool:
        return self._dirty

    def update(self) -> None:
        """Regenerate the full display table from the rescaled values."""
        if self._window_level is None:
            raise RuntimeError("Cannot update a window LUT without window level")
        self._lut = self._window_level.apply(self._rescale_lut.get_table())
        self._dirty = False

    def get_table(self) -> np.ndarray:
        if self._lut is None:
            raise RuntimeError("Window LUT table not generated, call update() first")
        return self._lut

    def get_value(self, raw: int) -> int:
        """Display intensity of a raw sample."""
        return int(self.get_table()[int(raw) - self._rescale_lut.get_min_sample()])

    def apply(self, raw_values: np.ndarray) -> np.ndarray:
        """Display intensities of an array of raw samples."""
        offsets = np.asarray(raw_values).astype(np.int64) - self._rescale_lut.get_min_sample()
        return self.get_table()[offsets]
