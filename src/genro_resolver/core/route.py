"""Route declarations and tree traversal for Genro Resolver.

A ``Route`` is an immutable node:

- ``path``: segment pattern (``"users"``, ``"/:id(\\d+)"``, ``"*"``)
- ``action``: optional sync or async callable receiving a ``RouterContext``
- ``children``: optional ordered child routes; non-empty children turn the
  route into middleware for its descendants
- extension fields: any other keyword argument, readable as an attribute

Routes can be written as mappings too; the router coerces them::

    Route("/users", children=[
        Route("", action=list_users),
        Route("/:id", action=show_user, title="User"),
    ])

    {"path": "/users", "children": [{"path": "", "action": list_users}]}

Leading and trailing slashes of each ``path`` are irrelevant: segments are
normalized before being joined into the full pattern of a branch.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

__all__ = ["Route", "iter_branches", "join_segments", "normalize_segment"]


class Route:
    """Immutable route node.

    Attributes:
        path: Segment pattern for this node.
        action: Handler invoked when the route takes part in a resolution.
        children: Tuple of child routes, or None for a plain leaf.
        extra: Read-only mapping of extension fields.
    """

    __slots__ = ("path", "action", "children", "extra")

    def __init__(
        self,
        path: str,
        action: Callable[..., Any] | None = None,
        children: Iterable[Route | Mapping[str, Any]] | None = None,
        **extra: Any,
    ) -> None:
        if not isinstance(path, str):
            raise TypeError(f"Route path must be a string, got {type(path).__name__}")
        if action is not None and not callable(action):
            raise TypeError(f"Route action for {path!r} must be callable")
        object.__setattr__(self, "path", path)
        object.__setattr__(self, "action", action)
        object.__setattr__(
            self,
            "children",
            None if children is None else tuple(Route.coerce(child) for child in children),
        )
        object.__setattr__(self, "extra", MappingProxyType(dict(extra)))

    @classmethod
    def coerce(cls, value: Route | Mapping[str, Any]) -> Route:
        """Return ``value`` as a Route, converting mapping declarations."""
        if isinstance(value, Route):
            return value
        if isinstance(value, Mapping):
            if "path" not in value:
                raise TypeError(f"Route declaration without 'path': {dict(value)!r}")
            return cls(**value)
        raise TypeError(f"Cannot build a Route from {type(value).__name__}")

    @property
    def is_leaf(self) -> bool:
        """True when the route has no children and can be a match target."""
        return not self.children

    def get(self, name: str, default: Any = None) -> Any:
        """Return extension field ``name`` or ``default``."""
        return self.extra.get(name, default)

    def __getattr__(self, name: str) -> Any:
        # only reached for names that are not slots
        try:
            return object.__getattribute__(self, "extra")[name]
        except KeyError:
            raise AttributeError(f"Route {self.path!r} has no field {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Route is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Route is immutable")

    def __repr__(self) -> str:
        parts = [repr(self.path)]
        if self.action is not None:
            parts.append(f"action={getattr(self.action, '__name__', self.action)!r}")
        if self.children:
            parts.append(f"children={len(self.children)}")
        parts.extend(f"{key}={value!r}" for key, value in self.extra.items())
        return f"Route({', '.join(parts)})"


def iter_branches(
    routes: Iterable[Route], parents: tuple[Route, ...] = ()
) -> Iterator[tuple[Route, ...]]:
    """Yield the root-to-node chain of every route, depth first, in order."""
    for route in routes:
        chain = (*parents, route)
        yield chain
        if route.children:
            yield from iter_branches(route.children, chain)


def normalize_segment(path: str) -> str:
    """Strip leading and trailing slashes from one route segment."""
    return path.strip("/")


def join_segments(branch: Iterable[Route]) -> str:
    """Join the normalized non-empty segments of ``branch`` with ``/``."""
    return "/".join(segment for segment in (normalize_segment(r.path) for r in branch) if segment)
