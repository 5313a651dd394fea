"""
Image volume.

In-memory image holding raw samples per frame, per-slice rescale
slope/intercept, meta data and the geometry. Views consume it through
get_geometry, get_rescale_slope_and_intercept, get_meta,
get_secondary_offset, get_rescaled_data_range, can_quantify,
get_rescaled_value_at_index and get_image_uid, and listen to its
"appendframe" event.

Inputs:
    - Geometry, numpy sample buffer (slices, rows, columns[, samples])
    - Meta dict (BitsStored, IsSigned, PhotometricInterpretation, ...)

Outputs:
    - Raw/rescaled values, data range, events

Requirements:
    - numpy
    - core.geometry, core.coordinates, core.rescale
    - utils.listener_handler
"""

from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from core.coordinates import Index
from core.geometry import Geometry
from core.rescale import RescaleSlopeAndIntercept
from utils.listener_handler import ListenerHandler


class Image:
    """
    Image volume with one sample buffer per frame.

    Buffers have shape (slices, rows, columns) for single sample data or
    (slices, rows, columns, samples) for colour data.
    """

    def __init__(
        self,
        geometry: Geometry,
        buffer: np.ndarray,
        meta: Optional[Dict[str, Any]] = None,
        rsis: Optional[Sequence[RescaleSlopeAndIntercept]] = None,
        image_uids: Optional[Sequence[str]] = None,
    ):
        size = geometry.get_size()
        buffer = np.asarray(buffer)
        if buffer.shape[:3] != (size[2], size[1], size[0]):
            raise ValueError(
                f"Buffer shape {buffer.shape[:3]} does not match geometry size {size[:3]}"
            )
        self._geometry = geometry
        self._frames: List[np.ndarray] = [buffer]
        self._meta: Dict[str, Any] = {
            "BitsStored": 16,
            "IsSigned": False,
            "PhotometricInterpretation": "MONOCHROME2",
        }
        if meta:
            self._meta.update(meta)
        number_of_slices = size[2]
        if rsis is None:
            rsis = [RescaleSlopeAndIntercept()] * number_of_slices
        if len(rsis) != number_of_slices:
            raise ValueError("Need one rescale slope/intercept per slice")
        self._rsis: List[RescaleSlopeAndIntercept] = list(rsis)
        if image_uids is None:
            image_uids = [str(i) for i in range(number_of_slices)]
        self._image_uids: List[str] = list(image_uids)
        self._data_range: Optional[Dict[str, float]] = None
        self._listener_handler = ListenerHandler()

    def get_geometry(self) -> Geometry:
        return self._geometry

    def get_meta(self) -> Dict[str, Any]:
        return self._meta

    def get_photometric_interpretation(self) -> str:
        return str(self._meta.get("PhotometricInterpretation", "MONOCHROME2"))

    def get_number_of_components(self) -> int:
        buffer = self._frames[0]
        return 1 if buffer.ndim == 3 else buffer.shape[3]

    def is_constant_rsi(self) -> bool:
        return all(rsi == self._rsis[0] for rsi in self._rsis)

    def get_rescale_slope_and_intercept(
            self, index: Union[Index, int, None] = None) -> RescaleSlopeAndIntercept:
        """
        Get the RSI of a slice.

        Args:
            index: Index (its slice component is used) or slice number;
                slice 0 when None
        """
        if index is None:
            slice_number = 0
        elif isinstance(index, Index):
            slice_number = index.get(2)
        else:
            slice_number = int(index)
        return self._rsis[slice_number]

    def get_secondary_offset(self, index: Index) -> int:
        """Offset of the index over the dimensions above the slice plane."""
        size = self._geometry.get_size()
        offset = 0
        stride = 1
        for dim in range(2, index.length()):
            offset += index.get(dim) * stride
            stride *= size[dim] if dim < len(size) else 1
        return offset

    def get_image_uid(self, index: Optional[Index] = None) -> str:
        if index is None:
            return self._image_uids[0]
        return self._image_uids[index.get(2)]

    def can_quantify(self) -> bool:
        return self.get_number_of_components() == 1

    def get_slice_buffer(self, index: Index) -> np.ndarray:
        """Raw samples of the slice (and frame) of an index: (rows, columns[, samples])."""
        frame = index.get(3) if index.length() > 3 else 0
        return self._frames[frame][index.get(2)]

    def get_value_at_index(self, index: Index):
        sample = self.get_slice_buffer(index)[index.get(1), index.get(0)]
        if np.ndim(sample) == 0:
            return sample.item()
        return sample.tolist()

    def get_rescaled_value_at_index(self, index: Index) -> float:
        rsi = self.get_rescale_slope_and_intercept(index)
        return float(rsi.apply(self.get_value_at_index(index)))

    def get_rescaled_data_range(self) -> Dict[str, float]:
        """Rescaled value range over all slices and frames, cached."""
        if self._data_range is None:
            low = None
            high = None
            for frame in self._frames:
                for slice_number, samples in enumerate(frame):
                    rescaled = self._rsis[slice_number].apply(samples.astype(np.float64))
                    slice_min = float(rescaled.min())
                    slice_max = float(rescaled.max())
                    low = slice_min if low is None else min(low, slice_min)
                    high = slice_max if high is None else max(high, slice_max)
            self._data_range = {"min": low, "max": high}
        return self._data_range

    def append_frame(self, buffer: np.ndarray) -> None:
        """
        Append a frame (time point) and fire "appendframe".

        Raises:
            ValueError: If the buffer shape differs from the first frame
        """
        buffer = np.asarray(buffer)
        if buffer.shape != self._frames[0].shape:
            raise ValueError("Appended frame must have the same shape as the first one")
        self._frames.append(buffer)
        self._geometry.append_frame()
        self._data_range = None
        self._fire_event({
            "type": "appendframe",
            "frame": len(self._frames) - 1,
        })

    def add_event_listener(self, event_type: str, callback) -> int:
        return self._listener_handler.add(event_type, callback)

    def remove_event_listener(self, event_type: str, ref) -> bool:
        return self._listener_handler.remove(event_type, ref)

    def _fire_event(self, event: Dict[str, Any]) -> None:
        self._listener_handler.fire_event(event)
