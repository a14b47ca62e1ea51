# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Navigation - In-memory history feeding the router.

The router never navigates by itself. An application keeps a ``History``,
listens to it, and resolves each new location::

    history = History()
    router = Router(routes, base_url="https://example.com")

    async def render(path, context):
        page = await router.resolve(path, context)
        ...

    remove = history.add_navigation_listener(
        lambda path, context: pending.append(render(path, context))
    )
    history.navigate("/users/42", {"user": "alice"})

Every entry is a ``HistoryState(path, context)``: the same payload a
browser history entry carries, and the same two values ``resolve`` accepts.
Listeners are called synchronously, in registration order, on ``navigate``,
``back`` and ``forward``.

Module-level ``navigate`` and ``add_navigation_listener`` act on a shared
default ``History``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

__all__ = [
    "History",
    "HistoryState",
    "NavigationListener",
    "add_navigation_listener",
    "default_history",
    "navigate",
]

NavigationListener = Callable[[Any, Any], None]


@dataclass(frozen=True, slots=True)
class HistoryState:
    """One history entry."""

    path: Any
    context: Any = None


class History:
    """Linear history with a cursor, like a browser session history."""

    __slots__ = ("_entries", "_index", "_listeners")

    def __init__(self) -> None:
        self._entries: list[HistoryState] = []
        self._index = -1
        self._listeners: list[NavigationListener] = []

    @property
    def state(self) -> HistoryState | None:
        """Current entry, or None before the first navigation."""
        return self._entries[self._index] if self._index >= 0 else None

    @property
    def entries(self) -> tuple[HistoryState, ...]:
        return tuple(self._entries)

    def navigate(self, path: Any, context: Any = None) -> HistoryState:
        """Push a new entry, dropping forward entries, and notify listeners."""
        state = HistoryState(path=path, context=context)
        del self._entries[self._index + 1 :]
        self._entries.append(state)
        self._index = len(self._entries) - 1
        self._dispatch(state)
        return state

    def back(self) -> HistoryState | None:
        """Move one entry back; no-op on the first entry."""
        return self._go(-1)

    def forward(self) -> HistoryState | None:
        """Move one entry forward; no-op on the last entry."""
        return self._go(1)

    def _go(self, delta: int) -> HistoryState | None:
        target = self._index + delta
        if not 0 <= target < len(self._entries):
            return None
        self._index = target
        state = self._entries[target]
        self._dispatch(state)
        return state

    def add_navigation_listener(self, listener: NavigationListener) -> Callable[[], None]:
        """Register ``listener(path, context)``; return a function removing it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _dispatch(self, state: HistoryState) -> None:
        for listener in list(self._listeners):
            listener(state.path, state.context)


default_history = History()


def navigate(path: Any, context: Any = None) -> HistoryState:
    """Navigate the default history."""
    return default_history.navigate(path, context)


def add_navigation_listener(listener: NavigationListener) -> Callable[[], None]:
    """Listen to the default history."""
    return default_history.add_navigation_listener(listener)
