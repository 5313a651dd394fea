"""
Colour maps for monochrome display.

A colour map turns an 8-bit display intensity into an RGB triplet. The plain
and inverse plain maps are built directly; the others are sampled from
matplotlib colormaps.

Inputs:
    - Colour map name

Outputs:
    - ColourMap with 256-entry red/green/blue uint8 arrays

Requirements:
    - numpy, matplotlib
"""

from dataclasses import dataclass
from typing import List

import matplotlib
import numpy as np

# name -> matplotlib colormap name
_MATPLOTLIB_MAPS = {
    "hot": "hot",
    "rainbow": "rainbow",
    "jet": "jet",
    "bone": "bone",
    "gray": "gray",
    "viridis": "viridis",
    "pet": "gist_heat",
}


@dataclass(frozen=True, eq=False)
class ColourMap:
    name: str
    red: np.ndarray
    green: np.ndarray
    blue: np.ndarray

    def apply(self, values: np.ndarray) -> np.ndarray:
        """Map uint8 intensities to an (..., 3) uint8 RGB array."""
        values = np.asarray(values, dtype=np.uint8)
        return np.stack([self.red[values], self.green[values], self.blue[values]], axis=-1)


def _plain(name: str, inverse: bool) -> ColourMap:
    ramp = np.arange(256, dtype=np.uint8)
    if inverse:
        ramp = ramp[::-1].copy()
    return ColourMap(name, ramp, ramp.copy(), ramp.copy())


def _from_matplotlib(name: str, cmap_name: str) -> ColourMap:
    cmap = matplotlib.colormaps[cmap_name]
    rgba = cmap(np.linspace(0.0, 1.0, 256))
    rgb = np.rint(rgba[:, :3] * 255.0).astype(np.uint8)
    return ColourMap(name, rgb[:, 0].copy(), rgb[:, 1].copy(), rgb[:, 2].copy())


def get_colour_map_names() -> List[str]:
    return ["plain", "inv_plain"] + list(_MATPLOTLIB_MAPS)


def get_colour_map(name: str) -> ColourMap:
    """
    Get a colour map by name.

    Raises:
        ValueError: If the name is unknown
    """
    if name == "plain":
        return _plain(name, False)
    if name == "inv_plain":
        return _plain(name, True)
    if name in _MATPLOTLIB_MAPS:
        return _from_matplotlib(name, _MATPLOTLIB_MAPS[name])
    raise ValueError(f"Unknown colour map: '{name}'")


PLAIN = get_colour_map("plain")
