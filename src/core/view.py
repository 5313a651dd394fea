"""
View

This module holds the display state of one image: the current position, the
window/level (current value, presets, window LUT cache), the colour map, the
alpha function and the view orientation. Every state change is published as
an event through the view listener handler.

Inputs:
    - Image (geometry, rescale slope/intercept, meta data)
    - Index/position changes, window/level changes, preset selection
    - Colour map and alpha function changes

Outputs:
    - Window LUT for the current slice
    - Events: wlchange, wlpresetadd, colourchange, positionchange,
      alphafuncchange

Requirements:
    - core.coordinates, core.geometry, core.rescale, core.window_level,
      core.window_lut, core.colour_maps, core.image_data
    - utils.listener_handler
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from core.colour_maps import PLAIN, ColourMap
from core.coordinates import Index, Point, diff_dims
from core.geometry import Matrix33
from core.image import Image
from core.image_data import generate_image_data
from core.rescale import RescaleLut, RescaleSlopeAndIntercept
from core.window_level import (
    MANUAL_PRESET_NAME,
    MINMAX_PRESET_NAME,
    PerSlicePresetError,
    WindowLevel,
    WindowPreset,
)
from core.window_lut import WindowLut
from utils.listener_handler import ListenerHandler

logger = logging.getLogger(__name__)

VIEW_EVENT_NAMES = [
    "wlchange",
    "wlpresetadd",
    "colourchange",
    "positionchange",
    "opacitychange",
    "alphafuncchange",
]

DEFAULT_PLAYBACK_FPS = 10


def _default_alpha_function(_value) -> int:
    return 0xff


class View:
    """
    Display state of an image.

    Stores the current position rather than the index so that it stays
    valid when the geometry changes; the index is derived on demand.
    """

    def __init__(self, image: Image):
        """
        Initialize the view.

        Args:
            image: The associated image
        """
        self._image = image
        self._image_listener = image.add_event_listener("appendframe", self._on_append_frame)

        # Window LUTs, indexed per rescale slope/intercept string
        self._window_luts: Dict[str, WindowLut] = {}
        # Insertion ordered; minmax is resolved at first use
        self._window_presets: Dict[str, WindowPreset] = {
            MINMAX_PRESET_NAME: WindowPreset(MINMAX_PRESET_NAME),
        }
        self._current_preset_name: Optional[str] = None
        self._current_wl: Optional[WindowLevel] = None

        self._colour_map: ColourMap = PLAIN
        self._alpha_function: Callable[[Any], int] = _default_alpha_function
        self._current_position: Optional[Point] = None
        # None keeps the original slice ordering
        self._orientation: Optional[Matrix33] = None

        self._listener_handler = ListenerHandler()

    def get_image(self) -> Image:
        return self._image

    def set_image(self, image: Image) -> None:
        self._image.remove_event_listener("appendframe", self._image_listener)
        self._image = image
        self._image_listener = image.add_event_listener("appendframe", self._on_append_frame)

    def get_orientation(self) -> Optional[Matrix33]:
        return self._orientation

    def set_orientation(self, orientation: Optional[Matrix33]) -> None:
        self._orientation = orientation

    def init(self) -> None:
        self.set_initial_index()

    def set_initial_index(self) -> None:
        """Set the current index to zero on every dimension, silently."""
        size = self._image.get_geometry().get_size()
        self.set_current_index(Index([0] * len(size)), silent=True)

    @staticmethod
    def get_playback_milliseconds(recommended_display_frame_rate: Optional[float] = None) -> int:
        """
        Get the milliseconds per frame for a frame rate.

        Args:
            recommended_display_frame_rate: Frames per second, 10 if not set
        """
        if not recommended_display_frame_rate:
            recommended_display_frame_rate = DEFAULT_PLAYBACK_FPS
        return round(1000 / recommended_display_frame_rate)

    def _on_append_frame(self, _event: Dict[str, Any]) -> None:
        # first appended frame: current index gains the frame dimension
        index = self.get_current_index()
        if index is not None and index.length() == 3:
            self.set_current_index(Index(index.get_values() + [0]))

    # ------------------------------------------------------------------
    # Alpha function / colour map

    def get_alpha_function(self) -> Callable[[Any], int]:
        return self._alpha_function

    def set_alpha_function(self, func: Callable[[Any], int]) -> None:
        self._alpha_function = func
        self._fire_event({"type": "alphafuncchange"})

    def get_colour_map(self) -> ColourMap:
        return self._colour_map

    def set_default_colour_map(self, colour_map: ColourMap) -> None:
        """Set the colour map without firing an event."""
        self._colour_map = colour_map

    def set_colour_map(self, colour_map: ColourMap) -> None:
        self._colour_map = colour_map
        wl = self.get_current_window_lut().get_window_level()
        self._fire_event({
            "type": "colourchange",
            "wc": wl.get_center(),
            "ww": wl.get_width(),
        })

    # ------------------------------------------------------------------
    # Window LUTs and presets

    def get_current_window_lut(self, rsi: Optional[RescaleSlopeAndIntercept] = None) -> WindowLut:
        """
        Get the window LUT for the current slice, updated to the current
        window level.

        Args:
            rsi: Optional rescale slope/intercept, the one of the current
                slice otherwise

        Returns:
            The window LUT, with an up to date table
        """
        if self.get_current_index() is None:
            self.set_initial_index()
        current_index = self.get_current_index()
        if rsi is None:
            rsi = self._image.get_rescale_slope_and_intercept(current_index)

        wl = None
        preset = self._window_presets.get(self._current_preset_name) \
            if self._current_preset_name is not None else None
        if preset is not None and preset.perslice and preset.is_resolved():
            offset = self._image.get_secondary_offset(current_index)
            if offset < len(preset.wl):
                wl = preset.wl[offset]
        if wl is None:
            if self._current_wl is None:
                self.set_window_level_preset_by_id(0, silent=True)
            wl = self._current_wl

        key = rsi.to_string()
        wlut = self._window_luts.get(key)
        if wlut is None:
            # the rescale part is always built from the first slice
            meta = self._image.get_meta()
            rescale_lut = RescaleLut(
                self._image.get_rescale_slope_and_intercept(0),
                meta["BitsStored"],
                meta["IsSigned"],
            )
            wlut = WindowLut(rescale_lut, meta["IsSigned"])
            self.add_window_lut(wlut, rsi)

        lut_wl = wlut.get_window_level()
        if not wl.equals(lut_wl):
            wlut.set_window_level(wl)
            wlut.update()
            if lut_wl is None or \
                    lut_wl.get_width() != wl.get_width() or \
                    lut_wl.get_center() != wl.get_center():
                self._fire_event({
                    "type": "wlchange",
                    "value": [wl.get_center(), wl.get_width()],
                    "wc": wl.get_center(),
                    "ww": wl.get_width(),
                    "skip_generate": True,
                })
        return wlut

    def add_window_lut(self, wlut: WindowLut, rsi: Optional[RescaleSlopeAndIntercept] = None) -> None:
        """
        Store a window LUT.

        Args:
            wlut: The window LUT
            rsi: Cache key, the LUT rescale RSI if not provided
        """
        if rsi is None:
            rsi = wlut.get_rescale_lut().get_rsi()
        self._window_luts[rsi.to_string()] = wlut

    def get_window_luts(self) -> Dict[str, WindowLut]:
        return dict(self._window_luts)

    def get_window_presets(self) -> Dict[str, WindowPreset]:
        return dict(self._window_presets)

    def get_window_presets_names(self) -> List[str]:
        return list(self._window_presets)

    def set_window_presets(self, presets: Dict[str, WindowPreset]) -> None:
        self._window_presets = dict(presets)

    def add_window_presets(self, presets: Dict[str, WindowPreset]) -> None:
        """
        Merge presets into the registry.

        New names fire "wlpresetadd"; existing names are replaced silently.

        Raises:
            PerSlicePresetError: If an existing per-slice preset would be replaced
        """
        for name, preset in presets.items():
            existing = self._window_presets.get(name)
            if existing is not None:
                if existing.perslice:
                    raise PerSlicePresetError(f"Cannot replace per-slice preset: '{name}'")
                self._window_presets[name] = preset
            else:
                self._window_presets[name] = preset
                self._fire_event({
                    "type": "wlpresetadd",
                    "name": name,
                })

    def get_current_preset_name(self) -> Optional[str]:
        return self._current_preset_name

    def get_current_window_level(self) -> Optional[WindowLevel]:
        return self._current_wl

    def get_window_level_preset(self, name: str) -> WindowLevel:
        """
        Resolve the window level of a preset for the current index.

        Raises:
            ValueError: If the preset name is unknown
        """
        preset = self._window_presets.get(name)
        if preset is None:
            raise ValueError(f"Unknown window level preset: '{name}'")
        if name == MINMAX_PRESET_NAME and not preset.is_resolved():
            preset.wl = [self.get_window_level_min_max()]
        wl = preset.wl[0]
        if preset.perslice:
            if self.get_current_index() is None:
                self.set_initial_index()
            offset = self._image.get_secondary_offset(self.get_current_index())
            # frames beyond the preset values keep the first one
            if offset < len(preset.wl):
                wl = preset.wl[offset]
        return wl

    def get_window_level_min_max(self) -> WindowLevel:
        """Window level covering the full rescaled data range."""
        data_range = self._image.get_rescaled_data_range()
        low = data_range["min"]
        width = data_range["max"] - low
        # flat images still need a usable window
        if width < 1:
            logger.warning("Zero or negative window width, defaulting to one.")
            width = 1
        return WindowLevel(low + width / 2, width)

    def set_window_level_min_max(self) -> None:
        wl = self.get_window_level_min_max()
        self.set_window_level(wl.get_center(), wl.get_width(), MINMAX_PRESET_NAME)

    def set_window_level(self, center: float, width: float,
                         name: str = MANUAL_PRESET_NAME, silent: bool = False) -> None:
        """
        Set the window level.

        Widths below 1 are ignored.

        Args:
            center: The window center
            width: The window width
            name: Associated preset name
            silent: Flag forwarded as the event skip_generate
        """
        if width < 1:
            return
        new_wl = WindowLevel(center, width)
        if new_wl.equals(self._current_wl):
            return
        previous = self._current_wl
        is_new_width = previous is None or previous.get_width() != new_wl.get_width()
        is_new_center = previous is None or previous.get_center() != new_wl.get_center()
        self._current_wl = new_wl
        self._current_preset_name = name
        if is_new_width or is_new_center:
            self._fire_event({
                "type": "wlchange",
                "value": [new_wl.get_center(), new_wl.get_width()],
                "wc": new_wl.get_center(),
                "ww": new_wl.get_width(),
                "skip_generate": silent,
            })

    def set_window_level_preset(self, name: str, silent: bool = False) -> None:
        wl = self.get_window_level_preset(name)
        self.set_window_level(wl.get_center(), wl.get_width(), name, silent)

    def set_window_level_preset_by_id(self, preset_id: int, silent: bool = False) -> None:
        names = self.get_window_presets_names()
        if not 0 <= preset_id < len(names):
            raise ValueError(f"Unknown window level preset id: {preset_id}")
        self.set_window_level_preset(names[preset_id], silent)

    # ------------------------------------------------------------------
    # Position

    def get_current_position(self) -> Optional[Point]:
        return self._current_position

    def get_current_index(self) -> Optional[Index]:
        if self._current_position is None:
            return None
        return self._image.get_geometry().world_to_index(self._current_position)

    def get_scroll_index(self) -> int:
        """Dimension scrolled through: from the orientation, 2 by default."""
        if self._orientation is not None:
            return self._orientation.get_third_col_major_direction()
        return 2

    def _get_check_dirs(self, index: Index) -> List[int]:
        dirs = [self.get_scroll_index()]
        if index.length() == 4:
            dirs.append(3)
        return dirs

    def can_set_position(self, position: Point) -> bool:
        geometry = self._image.get_geometry()
        index = geometry.world_to_index(position)
        return geometry.is_index_in_bounds(index, self._get_check_dirs(index))

    def get_origin(self, position: Optional[Point] = None) -> Point:
        geometry = self._image.get_geometry()
        origin_index = 0
        if position is not None:
            origin_index = geometry.world_to_index(position).get(2)
        return geometry.get_origins()[origin_index]

    def set_current_position(self, position: Point, silent: bool = False) -> bool:
        """
        Set the current position.

        Returns:
            False if the position is out of bounds
        """
        geometry = self._image.get_geometry()
        index = geometry.world_to_index(position)
        if not geometry.is_index_in_bounds(index, self._get_check_dirs(index)):
            if not silent:
                self._fire_event({
                    "type": "positionchange",
                    "value": [index.get_values(), position.get_values()],
                    "valid": False,
                })
            return False
        return self.set_current_index(index, silent)

    def set_current_index(self, index: Index, silent: bool = False) -> bool:
        """
        Set the current index.

        Out of bounds indices are refused without event.

        Returns:
            False if the index is out of bounds
        """
        geometry = self._image.get_geometry()
        position = geometry.index_to_world(index)
        if not geometry.is_index_in_bounds(index, self._get_check_dirs(index)):
            return False

        dims = diff_dims(self.get_current_index(), index)
        self._current_position = position

        if not silent:
            event = {
                "type": "positionchange",
                "value": [index.get_values(), position.get_values()],
                "diff_dims": dims,
                "valid": True,
                "data": {
                    "image_uid": self._image.get_image_uid(index),
                },
            }
            # only the scroll dims are checked, the pixel may be outside
            if self._image.can_quantify() and geometry.is_index_in_bounds(index):
                event["value"].append(self._image.get_rescaled_value_at_index(index))
            self._fire_event(event)
        return True

    def _step_index(self, dim: int, step: int, silent: bool) -> bool:
        index = self.get_current_index()
        if index is None:
            self.set_initial_index()
            index = self.get_current_index()
        values = [0] * index.length()
        if dim < len(values):
            values[dim] = step
        else:
            logger.warning("Cannot step index along dimension %d of %d", dim, len(values))
        return self.set_current_index(index.add(Index(values)), silent)

    def increment_index(self, dim: int, silent: bool = False) -> bool:
        return self._step_index(dim, 1, silent)

    def decrement_index(self, dim: int, silent: bool = False) -> bool:
        return self._step_index(dim, -1, silent)

    def increment_scroll_index(self, silent: bool = False) -> bool:
        return self.increment_index(self.get_scroll_index(), silent)

    def decrement_scroll_index(self, silent: bool = False) -> bool:
        return self.decrement_index(self.get_scroll_index(), silent)

    # ------------------------------------------------------------------

    def generate_image_data(self):
        """RGBA display data of the current slice."""
        if self.get_current_index() is None:
            self.set_initial_index()
        return generate_image_data(self)

    def clone(self) -> "View":
        """
        Copy of this view for another viewport.

        Window LUTs and listeners are shared, the preset registry is copied.
        """
        copy_view = View(self._image)
        for key, wlut in self._window_luts.items():
            copy_view._window_luts[key] = wlut
        copy_view.set_window_presets({
            name: WindowPreset(preset.name, list(preset.wl) if preset.wl is not None else None,
                               preset.perslice)
            for name, preset in self._window_presets.items()
        })
        copy_view.set_default_colour_map(self._colour_map)
        copy_view.set_orientation(self._orientation)
        copy_view._listener_handler.set_listeners(self._listener_handler.get_listeners())
        return copy_view

    def add_event_listener(self, event_type: str, callback) -> int:
        return self._listener_handler.add(event_type, callback)

    def remove_event_listener(self, event_type: str, ref) -> bool:
        return self._listener_handler.remove(event_type, ref)

    def _fire_event(self, event: Dict[str, Any]) -> None:
        self._listener_handler.fire_event(event)
