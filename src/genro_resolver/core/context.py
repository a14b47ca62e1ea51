# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""RouterContext - Per-action view of one resolution.

Every action receives a fresh ``RouterContext``. It combines the data the
caller passed to ``resolve`` with the fields the engine owns:

- ``branch``: routes from the root to the matched leaf
- ``route`` / ``parent``: the route being executed and the one before it
- ``result``: the ``URLPatternResult`` of the match
- ``params`` / ``search``: route captures (from the pathname, or from the
  fragment in hash mode) and search capture groups
- ``query``: the search string parsed into a dict
- ``router`` / ``url``: the router instance and the absolute URL
- ``context``: the caller value, unchanged
- ``next()``: coroutine running the rest of the branch

When the caller context is a mapping its keys are readable both as attributes
and as items. Engine fields always win over caller keys with the same name.

Example::

    async def layout(ctx):
        body = await ctx.next()
        return f"<main data-user={ctx.user}>{body}</main>"

    await router.resolve("/users/42", {"user": "alice"})
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl

if TYPE_CHECKING:  # pragma: no cover
    from .pattern import URLPatternResult
    from .route import Route

__all__ = ["RouterContext", "RESERVED_FIELDS"]

RESERVED_FIELDS = (
    "branch",
    "context",
    "next",
    "params",
    "parent",
    "query",
    "result",
    "route",
    "router",
    "search",
    "url",
)


class RouterContext(Mapping[str, Any]):
    """Read-only context handed to each action.

    Behaves as a mapping over caller fields plus engine fields, with
    attribute access for both.
    """

    __slots__ = ("_fields", "_caller")

    def __init__(
        self,
        *,
        context: Any,
        branch: tuple[Route, ...],
        route: Route,
        parent: Route | None,
        result: URLPatternResult,
        router: Any,
        url: str,
        next: Callable[[], Awaitable[Any]],  # noqa: A002 - public field name
        params: Mapping[str, Any] | None = None,
    ) -> None:
        caller = dict(context) if isinstance(context, Mapping) else {}
        fields = {
            "context": context,
            "branch": branch,
            "route": route,
            "parent": parent,
            "result": result,
            "params": dict(result.pathname.groups if params is None else params),
            "search": dict(result.search.groups),
            "query": dict(parse_qsl(result.search.input, keep_blank_values=True)),
            "router": router,
            "url": url,
            "next": next,
        }
        object.__setattr__(self, "_caller", caller)
        object.__setattr__(self, "_fields", fields)

    def evolve(self, **changes: Any) -> RouterContext:
        """Return a copy with some engine fields replaced.

        Used by plugins that transform engine data (for instance validated
        params) before the action sees it.
        """
        unknown = set(changes) - set(RESERVED_FIELDS)
        if unknown:
            raise KeyError(f"Not engine fields: {', '.join(sorted(unknown))}")
        clone = object.__new__(RouterContext)
        object.__setattr__(clone, "_caller", self._caller)
        object.__setattr__(clone, "_fields", {**self._fields, **changes})
        return clone

    async def next(self) -> Any:
        """Run the next route of the branch and return its result."""
        return await self._fields["next"]()

    def __getitem__(self, key: str) -> Any:
        if key in self._fields:
            return self._fields[key]
        return self._caller[key]

    def __iter__(self) -> Iterator[str]:
        yield from self._fields
        yield from (key for key in self._caller if key not in self._fields)

    def __len__(self) -> int:
        return len(self._fields) + sum(1 for key in self._caller if key not in self._fields)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"RouterContext has no field {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("RouterContext is read-only")

    def __repr__(self) -> str:
        route = self._fields["route"]
        return f"RouterContext(route={route.path!r}, url={self._fields['url']!r})"
