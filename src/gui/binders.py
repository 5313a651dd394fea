"""
Layer Group Binders

A binder translates an event fired by one layer group into the equivalent
state change on another layer group. The Stage wires one callback per
(binder, peer layer group).

Inputs:
    - Layer group events (wlchange, positionchange, zoomchange,
      offsetchange, opacitychange)

Outputs:
    - State changes on the target layer group

Requirements:
    - core.coordinates (Point)
    - gui.layer_group (LayerGroup)
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Sequence

from core.coordinates import Point
from gui.layer_group import LayerGroup

BinderCallback = Callable[[Dict[str, Any]], None]


class LayerGroupBinder(ABC):
    """
    Abstract base class for binders. Binders hold no state.
    """

    name = ""

    @abstractmethod
    def get_event_type(self) -> str:
        """Type of the event this binder listens to."""
        pass

    @abstractmethod
    def get_callback(self, layer_group: LayerGroup) -> BinderCallback:
        """Callback applying an event to the given layer group."""
        pass

    def __repr__(self):
        return f"{type(self).__name__}()"


class WindowLevelBinder(LayerGroupBinder):
    """Applies window/level to the first layer showing the same data."""

    name = "WindowLevel"

    def get_event_type(self) -> str:
        return "wlchange"

    def get_callback(self, layer_group: LayerGroup) -> BinderCallback:
        def callback(event):
            view_layers = layer_group.get_view_layers_by_data_index(event.get("dataindex"))
            if len(view_layers) != 0:
                view_layers[0].get_view().set_window_level(event["value"][0], event["value"][1])
        return callback


class PositionBinder(LayerGroupBinder):
    """Moves the active layer to the event world position."""

    name = "Position"

    def get_event_type(self) -> str:
        return "positionchange"

    def get_callback(self, layer_group: LayerGroup) -> BinderCallback:
        def callback(event):
            view_layer = layer_group.get_active_view_layer()
            if view_layer is None:
                return
            view_layer.get_view().set_current_position(Point(event["value"][1]))
        return callback


class ZoomBinder(LayerGroupBinder):
    name = "Zoom"

    def get_event_type(self) -> str:
        return "zoomchange"

    def get_callback(self, layer_group: LayerGroup) -> BinderCallback:
        def callback(event):
            value = event["value"]
            scale = {"x": value[0], "y": value[1], "z": value[2]}
            center = None
            if len(value) == 6:
                center = {"x": value[3], "y": value[4], "z": value[5]}
            layer_group.set_scale(scale, center)
            layer_group.draw()
        return callback


class OffsetBinder(LayerGroupBinder):
    name = "Offset"

    def get_event_type(self) -> str:
        return "offsetchange"

    def get_callback(self, layer_group: LayerGroup) -> BinderCallback:
        def callback(event):
            value = event["value"]
            layer_group.set_offset({"x": value[0], "y": value[1], "z": value[2]})
            layer_group.draw()
        return callback


class OpacityBinder(LayerGroupBinder):
    """Only propagates to view layers of the same data."""

    name = "Opacity"

    def get_event_type(self) -> str:
        return "opacitychange"

    def get_callback(self, layer_group: LayerGroup) -> BinderCallback:
        def callback(event):
            if event.get("dataindex") is None:
                return
            view_layers = layer_group.get_view_layers_by_data_index(event["dataindex"])
            if len(view_layers) != 0:
                view_layers[0].set_opacity(event["value"])
                view_layers[0].draw()
        return callback


BINDER_CLASSES = {
    cls.name: cls
    for cls in (WindowLevelBinder, PositionBinder, ZoomBinder, OffsetBinder, OpacityBinder)
}


def binders_from_names(names: Sequence[str]) -> List[LayerGroupBinder]:
    """
    Create binders from their configuration names.

    Raises:
        ValueError: If a name is unknown
    """
    binders = []
    for name in names:
        if name not in BINDER_CLASSES:
            raise ValueError(f"Unknown binder name: '{name}'")
        binders.append(BINDER_CLASSES[name]())
    return binders
