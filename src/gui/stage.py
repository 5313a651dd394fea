"""
Stage

This module controls a list of layer groups (viewports) and their
synchronization through binders.

For every ordered pair (source, peer) of layer groups and every binder, the
source gets a listener applying the binder to the peer. While the binder is
applied, the peer's own listeners for that binder are removed: the change
makes the peer fire the same event type, and that echo must not travel back
to the source or on to the other peers.

Inputs:
    - Layer group creation requests
    - Binder list

Outputs:
    - Synchronized layer groups
    - Common fit scale across layer groups

Requirements:
    - gui.layer_group (LayerGroup), gui.binders (LayerGroupBinder)
    - utils.debug_log
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from gui.binders import BinderCallback, LayerGroupBinder
from gui.layer_group import LayerGroup
from gui.view_layer import ViewLayer
from utils.debug_log import debug_log

logger = logging.getLogger(__name__)


class Stage:
    """
    Manages layer groups and their synchronization.

    Features:
    - Layer group creation and lookup
    - N-way binder wiring without event echo
    - Fit scale synchronization
    """

    def __init__(self):
        """Initialize an empty stage."""
        self._layer_groups: List[LayerGroup] = []
        self._active_layer_group_index: Optional[int] = None
        self._binders: List[LayerGroupBinder] = []
        # (binder, peer index) -> callback, stable for exact removal
        self._callback_store: Dict[Tuple[LayerGroupBinder, int], BinderCallback] = {}
        # (source index, binder, peer index) -> listener handle on the source
        self._handles: Dict[Tuple[int, LayerGroupBinder, int], int] = {}

    def get_layer_group(self, index: int) -> LayerGroup:
        return self._layer_groups[index]

    def get_number_of_layer_groups(self) -> int:
        return len(self._layer_groups)

    def get_active_layer_group(self) -> Optional[LayerGroup]:
        if self._active_layer_group_index is None:
            return None
        return self._layer_groups[self._active_layer_group_index]

    def set_active_layer_group(self, index: int) -> None:
        if not 0 <= index < len(self._layer_groups):
            raise ValueError(f"Invalid layer group index: {index}")
        self._active_layer_group_index = index

    def get_layer_group_by_id(self, group_id: str) -> Optional[LayerGroup]:
        for layer_group in self._layer_groups:
            if layer_group.get_group_id() == group_id:
                return layer_group
        return None

    def get_view_layers_by_data_index(self, data_index: int) -> List[ViewLayer]:
        result = []
        for layer_group in self._layer_groups:
            result.extend(layer_group.get_view_layers_by_data_index(data_index))
        return result

    def get_binders(self) -> List[LayerGroupBinder]:
        return list(self._binders)

    def is_bound(self) -> bool:
        return len(self._handles) != 0

    def add_layer_group(self, group_id: Optional[str] = None) -> LayerGroup:
        """
        Create a layer group; it becomes the active one.

        A bound stage is unbound and rebound so that the new group takes
        part in every pairwise wiring.

        Args:
            group_id: Optional identifier, "layerGroupN" by default

        Returns:
            The new layer group
        """
        index = len(self._layer_groups)
        if group_id is None:
            group_id = f"layerGroup{index}"
        layer_group = LayerGroup(group_id)
        was_bound = self.is_bound()
        if was_bound:
            self.unbind_layer_groups()
        self._layer_groups.append(layer_group)
        self._active_layer_group_index = index
        if was_bound:
            self.bind_layer_groups()
        return layer_group

    def set_binders(self, binders: Sequence[LayerGroupBinder]) -> None:
        """
        Set the layer group binders and bind.

        Raises:
            ValueError: If binders is None
        """
        if binders is None:
            raise ValueError("Cannot set null binders")
        if len(self._binders) != 0:
            self.unbind_layer_groups()
        self._binders = list(binders)
        self._callback_store = {}
        self.bind_layer_groups()

    def bind_layer_groups(self) -> None:
        """Wire every binder between every pair of layer groups."""
        if len(self._layer_groups) < 2 or len(self._binders) == 0:
            return
        for index in range(len(self._layer_groups)):
            for binder in self._binders:
                self._add_event_listeners(index, binder)
        logger.debug("Bound %d layer groups with %s", len(self._layer_groups), self._binders)
        debug_log("stage.py:bind_layer_groups", "bound", {
            "layer_groups": len(self._layer_groups),
            "binders": [binder.get_event_type() for binder in self._binders],
        })

    def unbind_layer_groups(self) -> None:
        if len(self._layer_groups) < 2 or len(self._binders) == 0 or not self.is_bound():
            return
        for index in range(len(self._layer_groups)):
            for binder in self._binders:
                self._remove_event_listeners(index, binder)
        logger.debug("Unbound %d layer groups", len(self._layer_groups))
        debug_log("stage.py:unbind_layer_groups", "unbound", {
            "layer_groups": len(self._layer_groups),
        })

    def _get_binder_callback(self, binder: LayerGroupBinder, index: int) -> BinderCallback:
        """
        Get the callback applying a binder to the layer group at index.
        Created on first request.
        """
        key = (binder, index)
        callback = self._callback_store.get(key)
        if callback is None:
            def callback(event):
                self._remove_event_listeners(index, binder)
                try:
                    binder.get_callback(self._layer_groups[index])(event)
                finally:
                    self._add_event_listeners(index, binder)
            self._callback_store[key] = callback
        return callback

    def _add_event_listeners(self, index: int, binder: LayerGroupBinder) -> None:
        """Listen on the layer group at index for the binder, towards every peer."""
        source = self._layer_groups[index]
        for peer_index in range(len(self._layer_groups)):
            if peer_index == index:
                continue
            key = (index, binder, peer_index)
            if key in self._handles:
                continue
            self._handles[key] = source.add_event_listener(
                binder.get_event_type(),
                self._get_binder_callback(binder, peer_index),
            )

    def _remove_event_listeners(self, index: int, binder: LayerGroupBinder) -> None:
        source = self._layer_groups[index]
        for peer_index in range(len(self._layer_groups)):
            if peer_index == index:
                continue
            handle = self._handles.pop((index, binder, peer_index), None)
            if handle is not None:
                source.remove_event_listener(binder.get_event_type(), handle)

    def sync_layer_group_scale(self) -> None:
        """Apply the smallest fit scale to every layer group that has one."""
        fit_scales = {}
        for index, layer_group in enumerate(self._layer_groups):
            scale = layer_group.calculate_fit_scale()
            if scale is not None:
                fit_scales[index] = scale
        if not fit_scales:
            return
        min_scale = min(fit_scales.values())
        for index in fit_scales:
            self._layer_groups[index].set_fit_scale(min_scale)

    def draw(self) -> None:
        for layer_group in self._layer_groups:
            layer_group.draw()

    def reset(self) -> None:
        for layer_group in self._layer_groups:
            layer_group.reset()

    def empty(self) -> None:
        """Unbind and remove every layer group."""
        self.unbind_layer_groups()
        for layer_group in self._layer_groups:
            layer_group.empty()
        self._layer_groups = []
        self._active_layer_group_index = None
        self._callback_store = {}
