"""
View Layer

This module wraps a View for display inside a layer group: it relays the view
events (tagged with the layer data index) and owns the layer opacity and the
last generated display data.

Inputs:
    - View, data index
    - Opacity changes, draw requests

Outputs:
    - Relayed view events with "dataindex", "opacitychange" events
    - RGBA display data of the current slice

Requirements:
    - numpy
    - core.view (View, VIEW_EVENT_NAMES)
    - utils.listener_handler
"""

from typing import Any, Dict, List, Optional

import numpy as np

from core.view import VIEW_EVENT_NAMES, View
from utils.listener_handler import ListenerHandler


class ViewLayer:
    """
    Display layer of one view.

    Features:
    - View event relay (adds the data index)
    - Opacity in [0, 1]
    - Display data generation on draw
    """

    def __init__(self, view: View, data_index: int):
        """
        Initialize the view layer.

        Args:
            view: The displayed view
            data_index: Index of the displayed data in the application
        """
        self._view = view
        self._data_index = data_index
        self._opacity = 1.0
        self._image_data: Optional[np.ndarray] = None
        self._listener_handler = ListenerHandler()
        self._view_handles: List[tuple] = []
        for event_type in VIEW_EVENT_NAMES:
            handle = view.add_event_listener(event_type, self._relay_event)
            self._view_handles.append((event_type, handle))

    def get_view(self) -> View:
        return self._view

    def get_data_index(self) -> int:
        return self._data_index

    def get_opacity(self) -> float:
        return self._opacity

    def set_opacity(self, alpha: float) -> None:
        """
        Set the layer opacity, clamped to [0, 1].

        Fires "opacitychange" when the value changes.
        """
        alpha = min(max(float(alpha), 0.0), 1.0)
        if alpha == self._opacity:
            return
        self._opacity = alpha
        self._fire_event({
            "type": "opacitychange",
            "value": alpha,
            "dataindex": self._data_index,
        })

    def get_image_data(self) -> Optional[np.ndarray]:
        return self._image_data

    def draw(self) -> None:
        """Regenerate the display data of the current slice."""
        self._image_data = self._view.generate_image_data()

    def detach(self) -> None:
        """Stop relaying the view events."""
        for event_type, handle in self._view_handles:
            self._view.remove_event_listener(event_type, handle)
        self._view_handles = []

    def _relay_event(self, event: Dict[str, Any]) -> None:
        relayed = dict(event)
        relayed["dataindex"] = self._data_index
        self._fire_event(relayed)

    def add_event_listener(self, event_type: str, callback) -> int:
        return self._listener_handler.add(event_type, callback)

    def remove_event_listener(self, event_type: str, ref) -> bool:
        return self._listener_handler.remove(event_type, ref)

    def _fire_event(self, event: Dict[str, Any]) -> None:
        self._listener_handler.fire_event(event)
