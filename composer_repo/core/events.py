"""
Synchronous event dispatcher for package lifecycle events.

Listeners run in subscription order inside the dispatching call. An
exception raised by a listener propagates to the dispatcher's caller.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

from composer_repo.domain.models import Package

logger = logging.getLogger(__name__)


class UpdaterEvent:
    PACKAGE_REMOVE = "package_remove"

    def __init__(self, package: Package):
        self.package = package


Listener = Callable[[UpdaterEvent], None]


class EventDispatcher:
    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, event_name: str, listener: Listener) -> None:
        self._listeners.setdefault(event_name, []).append(listener)

    def unsubscribe(self, event_name: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_name, [])
        if listener in listeners:
            listeners.remove(listener)

    def dispatch(self, event: UpdaterEvent, event_name: str) -> UpdaterEvent:
        listeners = self._listeners.get(event_name, [])
        logger.debug(f"Dispatching {event_name} to {len(listeners)} listener(s)")
        for listener in list(listeners):
            listener(event)
        return event
