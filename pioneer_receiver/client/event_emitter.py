# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Minimal named-event publish/subscribe support.
"""

from __future__ import annotations

import logging

from ..internal_types import *
from ..pkg_logging import logger as pkg_logger

class EventEmitter:
    """
    Any number of observers may register for a named event; each emitted event is
    delivered to that name's observers synchronously, in registration order.

    An exception raised by an observer is logged to self.logger and does not
    prevent delivery to the remaining observers.
    """

    logger: logging.Logger = pkg_logger
    _listeners: Dict[str, List[Tuple[EventCallback, bool]]]

    def __init__(self) -> None:
        self._listeners = {}

    def on(self, event_name: str, callback: EventCallback) -> EventCallback:
        """Registers callback for event_name. Returns callback, so it can be used as a decorator."""
        self._listeners.setdefault(event_name, []).append((callback, False))
        return callback

    def once(self, event_name: str, callback: EventCallback) -> EventCallback:
        """Registers callback for only the next emission of event_name."""
        self._listeners.setdefault(event_name, []).append((callback, True))
        return callback

    def off(self, event_name: str, callback: EventCallback) -> None:
        """Unregisters all registrations of callback for event_name. Unknown callbacks are ignored."""
        listeners = self._listeners.get(event_name)
        if listeners is None:
            return
        listeners[:] = [ entry for entry in listeners if entry[0] != callback ]
        if len(listeners) == 0:
            del self._listeners[event_name]

    def listener_count(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, []))

    def emit(self, event_name: str, *args: Any) -> bool:
        """Delivers args to every observer of event_name.

        Returns:
            True if there were any observers.
        """
        listeners = self._listeners.get(event_name)
        if not listeners:
            return False
        snapshot = list(listeners)
        if any(once for _, once in snapshot):
            self._listeners[event_name] = [ entry for entry in listeners if not entry[1] ]
            if len(self._listeners[event_name]) == 0:
                del self._listeners[event_name]
        for callback, _ in snapshot:
            try:
                callback(*args)
            except Exception as e:
                self.logger.exception(f"{self}: Observer of '{event_name}' raised exception: {e}")
        return True
