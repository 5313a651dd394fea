"""
View Signals

This module bridges layer group events to Qt signals so that widgets (window
level controls, slice navigator, zoom display) can follow a synchronized
viewport without knowing about the listener mechanism.

Inputs:
    - LayerGroup events

Outputs:
    - Qt signals for window/level, position, zoom, offset and opacity

Requirements:
    - PySide6
    - gui.layer_group
"""

from typing import List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from gui.layer_group import LayerGroup


class ViewSignals(QObject):
    """
    Qt signal relay of one layer group.
    """

    # Signals
    window_level_changed = Signal(float, float)  # (center, width)
    position_changed = Signal(list, list)  # (index values, world position)
    zoom_changed = Signal(list)  # [x, y, z(, cx, cy, cz)]
    offset_changed = Signal(list)  # [x, y, z]
    opacity_changed = Signal(float)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._layer_group: Optional[LayerGroup] = None
        self._handles: List[Tuple[str, int]] = []

    def attach(self, layer_group: LayerGroup) -> None:
        """
        Start relaying the events of a layer group.

        A previously attached layer group is detached first.
        """
        self.detach()
        self._layer_group = layer_group
        for event_type, callback in (
            ("wlchange", self._on_wl_change),
            ("positionchange", self._on_position_change),
            ("zoomchange", self._on_zoom_change),
            ("offsetchange", self._on_offset_change),
            ("opacitychange", self._on_opacity_change),
        ):
            self._handles.append((event_type, layer_group.add_event_listener(event_type, callback)))

    def detach(self) -> None:
        if self._layer_group is None:
            return
        for event_type, handle in self._handles:
            self._layer_group.remove_event_listener(event_type, handle)
        self._handles = []
        self._layer_group = None

    def _on_wl_change(self, event) -> None:
        self.window_level_changed.emit(float(event["value"][0]), float(event["value"][1]))

    def _on_position_change(self, event) -> None:
        # Out of bounds notifications carry no committed position
        if not event.get("valid", True):
            return
        index, position = event["value"][0], event["value"][1]
        self.position_changed.emit(list(index), list(position))

    def _on_zoom_change(self, event) -> None:
        self.zoom_changed.emit(list(event["value"]))

    def _on_offset_change(self, event) -> None:
        self.offset_changed.emit(list(event["value"]))

    def _on_opacity_change(self, event) -> None:
        self.opacity_changed.emit(float(event["value"]))
