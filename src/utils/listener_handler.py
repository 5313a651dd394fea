"""
Listener Handler

This module implements the synchronous observer used by views, view layers,
layer groups and images to publish state changes.

Inputs:
    - Listener registrations (event type + callable)
    - Events (dicts with at least a "type" key)

Outputs:
    - Subscription handles (int) usable for exact removal
    - Synchronous listener calls, in registration order

Requirements:
    - Standard library only
"""

import itertools
from typing import Any, Callable, Dict, List, Tuple, Union

Listener = Callable[[Dict[str, Any]], None]
ListenerRef = Union[int, Listener]


class ListenerHandler:
    """
    Keeps listeners per event type and dispatches events to them.

    Each registration gets its own integer handle. Removing by handle is
    exact even when the same callable is registered several times.
    """

    _handle_counter = itertools.count(1)

    def __init__(self):
        """Initialize an empty handler."""
        self._listeners: Dict[str, List[Tuple[int, Listener]]] = {}

    def add(self, event_type: str, callback: Listener) -> int:
        """
        Register a listener.

        Args:
            event_type: Event type string (e.g. "wlchange")
            callback: Callable receiving the event dict

        Returns:
            Subscription handle
        """
        handle = next(self._handle_counter)
        self._listeners.setdefault(event_type, []).append((handle, callback))
        return handle

    def remove(self, event_type: str, ref: ListenerRef) -> bool:
        """
        Remove a listener by handle or by callback identity.

        When a callback is given, only its first registration is removed.

        Returns:
            True if a listener was removed
        """
        entries = self._listeners.get(event_type)
        if not entries:
            return False
        for i, (handle, callback) in enumerate(entries):
            if (isinstance(ref, int) and handle == ref) or callback is ref:
                del entries[i]
                return True
        return False

    def has_listeners(self, event_type: str) -> bool:
        return len(self._listeners.get(event_type, [])) != 0

    def count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    def fire_event(self, event: Dict[str, Any]) -> None:
        """
        Call every listener registered for event["type"].

        Dispatch runs over a snapshot: listeners added during the call are not
        invoked for this event, listeners removed during the call still are.
        """
        entries = self._listeners.get(event["type"])
        if not entries:
            return
        for _handle, callback in list(entries):
            callback(event)

    def get_listeners(self) -> Dict[str, List[Tuple[int, Listener]]]:
        return {key: list(value) for key, value in self._listeners.items()}

    def set_listeners(self, listeners: Dict[str, List[Tuple[int, Listener]]]) -> None:
        self._listeners = {key: list(value) for key, value in listeners.items()}
