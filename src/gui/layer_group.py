"""
Layer Group

This module manages one viewport: an ordered list of view layers drawn on top
of each other, the zoom (fit scale and added scale) and the offset. It
re-publishes its layers' events and its own zoom/offset changes so that the
Stage can synchronize viewports.

Inputs:
    - Views to display, container size
    - Zoom/translation requests

Outputs:
    - Events: layer events (with "dataindex"), "zoomchange", "offsetchange"
    - Fit scale for the Stage

Requirements:
    - core.view (View, VIEW_EVENT_NAMES)
    - gui.view_layer (ViewLayer)
    - utils.listener_handler
"""

from typing import Any, Dict, List, Optional, Tuple

from core.view import VIEW_EVENT_NAMES, View
from gui.view_layer import ViewLayer
from utils.listener_handler import ListenerHandler


def _xyz(values: Dict[str, float]) -> Dict[str, float]:
    return {"x": float(values["x"]), "y": float(values["y"]), "z": float(values.get("z", 1.0))}


class LayerGroup:
    """
    Viewport holding view layers.

    The displayed scale is the fit scale (set by the Stage) times the added
    scale (user zoom).
    """

    def __init__(self, group_id: str):
        """
        Initialize the layer group.

        Args:
            group_id: Identifier of the group (e.g. the host widget name)
        """
        self._group_id = group_id
        self._view_layers: List[ViewLayer] = []
        self._layer_handles: List[List[Tuple[str, int]]] = []
        self._active_view_layer_index: Optional[int] = None

        self._fit_scale = 1.0
        self._scale = {"x": 1.0, "y": 1.0, "z": 1.0}
        self._offset = {"x": 0.0, "y": 0.0, "z": 0.0}
        self._container_size: Optional[Tuple[float, float]] = None
        self._draw_count = 0

        self._listener_handler = ListenerHandler()

    def get_group_id(self) -> str:
        return self._group_id

    def get_number_of_view_layers(self) -> int:
        return len(self._view_layers)

    def add_view_layer(self, view: View, data_index: int) -> ViewLayer:
        """
        Add a layer displaying a view; it becomes the active layer.

        Returns:
            The created view layer
        """
        view_layer = ViewLayer(view, data_index)
        handles = []
        for event_type in VIEW_EVENT_NAMES:
            handles.append((event_type, view_layer.add_event_listener(event_type, self._fire_event)))
        self._view_layers.append(view_layer)
        self._layer_handles.append(handles)
        self._active_view_layer_index = len(self._view_layers) - 1
        return view_layer

    def get_active_view_layer(self) -> Optional[ViewLayer]:
        if self._active_view_layer_index is None:
            return None
        return self._view_layers[self._active_view_layer_index]

    def set_active_view_layer(self, index: int) -> None:
        if not 0 <= index < len(self._view_layers):
            raise ValueError(f"Invalid view layer index: {index}")
        self._active_view_layer_index = index

    def get_view_layers_by_data_index(self, data_index: int) -> List[ViewLayer]:
        return [layer for layer in self._view_layers if layer.get_data_index() == data_index]

    # ------------------------------------------------------------------
    # Scale / offset

    def set_container_size(self, width: float, height: float) -> None:
        self._container_size = (float(width), float(height))

    def calculate_fit_scale(self) -> Optional[float]:
        """
        Scale fitting the active layer image into the container.

        Returns:
            The fit scale, None without content or container size
        """
        layer = self.get_active_view_layer()
        if layer is None or self._container_size is None:
            return None
        geometry = layer.get_view().get_image().get_geometry()
        size = geometry.get_size()
        spacing = geometry.get_spacing()
        real_width = size[0] * spacing[0]
        real_height = size[1] * spacing[1]
        if real_width <= 0 or real_height <= 0:
            return None
        width, height = self._container_size
        return min(width / real_width, height / real_height)

    def get_fit_scale(self) -> float:
        return self._fit_scale

    def set_fit_scale(self, scale: float) -> None:
        self._fit_scale = float(scale)

    def get_added_scale(self) -> Dict[str, float]:
        return dict(self._scale)

    def get_scale(self) -> Dict[str, float]:
        """Displayed scale: fit scale times added scale."""
        return {key: value * self._fit_scale for key, value in self._scale.items()}

    def set_scale(self, scale: Dict[str, float], center: Optional[Dict[str, float]] = None) -> None:
        """
        Set the added scale.

        Args:
            scale: {"x", "y"[, "z"]} scale
            center: Optional point kept fixed on screen while zooming
        """
        new_scale = _xyz(scale)
        if center is not None:
            for key in ("x", "y"):
                ratio = self._scale[key] / new_scale[key]
                self._offset[key] = center[key] - (center[key] - self._offset[key]) * ratio
        self._scale = new_scale

    def add_scale(self, step: float, center: Optional[Dict[str, float]] = None) -> None:
        """
        Zoom by a relative step and fire "zoomchange".

        Args:
            step: Relative step, e.g. 0.1 for +10%
            center: Optional zoom center
        """
        factor = 1.0 + step
        new_scale = {key: value * factor for key, value in self._scale.items()}
        self.set_scale(new_scale, center)
        value = [new_scale["x"], new_scale["y"], new_scale["z"]]
        if center is not None:
            value += [center["x"], center["y"], center.get("z", 0.0)]
        self._fire_event({
            "type": "zoomchange",
            "value": value,
        })

    def get_offset(self) -> Dict[str, float]:
        return dict(self._offset)

    def set_offset(self, offset: Dict[str, float]) -> None:
        self._offset = {"x": float(offset["x"]), "y": float(offset["y"]),
                        "z": float(offset.get("z", 0.0))}

    def add_translation(self, translation: Dict[str, float]) -> None:
        """Move the offset and fire "offsetchange"."""
        self.set_offset({
            "x": self._offset["x"] + translation.get("x", 0.0),
            "y": self._offset["y"] + translation.get("y", 0.0),
            "z": self._offset["z"] + translation.get("z", 0.0),
        })
        self._fire_event({
            "type": "offsetchange",
            "value": [self._offset["x"], self._offset["y"], self._offset["z"]],
        })

    # ------------------------------------------------------------------

    def get_draw_count(self) -> int:
        return self._draw_count

    def draw(self) -> None:
        for layer in self._view_layers:
            layer.draw()
        self._draw_count += 1

    def reset(self) -> None:
        """Back to no added zoom and no offset."""
        self._scale = {"x": 1.0, "y": 1.0, "z": 1.0}
        self._offset = {"x": 0.0, "y": 0.0, "z": 0.0}

    def empty(self) -> None:
        """Remove all view layers."""
        for layer, handles in zip(self._view_layers, self._layer_handles):
            for event_type, handle in handles:
                layer.remove_event_listener(event_type, handle)
            layer.detach()
        self._view_layers = []
        self._layer_handles = []
        self._active_view_layer_index = None

    def add_event_listener(self, event_type: str, callback) -> int:
        return self._listener_handler.add(event_type, callback)

    def remove_event_listener(self, event_type: str, ref) -> bool:
        return self._listener_handler.remove(event_type, ref)

    def count_listeners(self, event_type: str) -> int:
        return self._listener_handler.count(event_type)

    def _fire_event(self, event: Dict[str, Any]) -> None:
        self._listener_handler.fire_event(event)
