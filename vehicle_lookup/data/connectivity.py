"""
Online/offline signal.

Readable synchronously; listeners hear about transitions. A transition does
not start a sync on its own; refreshes are always triggered explicitly.
"""
from __future__ import annotations

from typing import Callable

from vehicle_lookup.config import START_OFFLINE

Listener = Callable[[bool], None]


class ConnectivityMonitor:
    def __init__(self, online: bool = not START_OFFLINE) -> None:
        self._online = online
        self._listeners: list[Listener] = []

    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        print(f"  Connectivity: {'online' if online else 'offline'}")
        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception as exc:
                print(f"  Warning: connectivity listener failed: {exc}")
