"""
Display data generation.

Builds the RGBA display buffer of one slice of a view's image, dispatching on
the photometric interpretation: monochrome data goes through the window LUT
and the colour map, palette colour through the colour map only, RGB through
the window LUT per channel, and YBR_FULL through a YBR -> RGB conversion.

Inputs:
    - View (image, current index, window LUT, colour map, alpha function)

Outputs:
    - RGBA uint8 array (rows, columns, 4)

Requirements:
    - numpy
"""

from enum import Enum

import numpy as np


class UnsupportedPhotometricError(ValueError):
    """Raised for photometric interpretations that cannot be displayed."""


class PhotometricInterpretation(Enum):
    MONOCHROME1 = "MONOCHROME1"
    MONOCHROME2 = "MONOCHROME2"
    PALETTE_COLOR = "PALETTE COLOR"
    RGB = "RGB"
    YBR_FULL = "YBR_FULL"

    @classmethod
    def from_string(cls, value: str) -> "PhotometricInterpretation":
        """
        Raises:
            UnsupportedPhotometricError: If the value is not supported
        """
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnsupportedPhotometricError(
                f"Unsupported photometric interpretation: {value}") from None

    def is_monochrome(self) -> bool:
        return self in (PhotometricInterpretation.MONOCHROME1, PhotometricInterpretation.MONOCHROME2)


def convert_ybr_full_to_rgb(ybr_array: np.ndarray) -> np.ndarray:
    """
    Convert a YBR_FULL array (..., 3) to RGB using ITU-R BT.601 coefficients.

    Returns:
        RGB array (0-255 uint8) with the same shape
    """
    Y = ybr_array[..., 0].astype(np.float32)
    Cb = ybr_array[..., 1].astype(np.float32) - 128.0
    Cr = ybr_array[..., 2].astype(np.float32) - 128.0
    R = Y + 1.402 * Cr
    G = Y - 0.344136 * Cb - 0.714136 * Cr
    B = Y + 1.772 * Cb
    rgb = np.stack([R, G, B], axis=-1)
    return np.clip(rgb, 0, 255).astype(np.uint8)


def _alpha(alpha_function, values: np.ndarray) -> np.ndarray:
    shape = values.shape[:2]
    if values.ndim == 3:
        flat = values.reshape(-1, values.shape[2])
        alphas = [alpha_function(list(v)) for v in flat]
    else:
        alphas = [alpha_function(v) for v in values.ravel()]
    return np.asarray(alphas, dtype=np.uint8).reshape(shape)


def _rgba(rgb: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    return np.concatenate([rgb, alpha[..., np.newaxis]], axis=-1).astype(np.uint8)


def generate_image_data(view) -> np.ndarray:
    """
    Generate the RGBA display data of the current slice of a view. The window
    LUT is the one resolved for that slice.

    Raises:
        UnsupportedPhotometricError: For unknown photometric interpretations
    """
    image = view.get_image()
    interpretation = PhotometricInterpretation.from_string(image.get_photometric_interpretation())
    samples = image.get_slice_buffer(view.get_current_index())
    alpha = _alpha(view.get_alpha_function(), samples)

    if interpretation.is_monochrome():
        display = view.get_current_window_lut().apply(samples)
        rgb = view.get_colour_map().apply(display)
    elif interpretation is PhotometricInterpretation.PALETTE_COLOR:
        values = samples.astype(np.int64)
        if image.get_meta()["BitsStored"] == 16:
            values = values >> 8
        rgb = view.get_colour_map().apply(np.clip(values, 0, 255))
    elif interpretation is PhotometricInterpretation.RGB:
        rgb = view.get_current_window_lut().apply(samples[..., :3])
    else:
        rgb = convert_ybr_full_to_rgb(samples[..., :3])
    return _rgba(rgb, alpha)
