"""Genro Resolver - Hierarchical route resolution with action chains.

Public API surface turning a tree of route declarations into ordered URL
patterns, resolving paths against them, and running the matched branch as a
middleware-style chain of actions with an explicit ``next()`` continuation.

Public exports:
    - ``Router``: Compiles routes and resolves paths (with plugin support)
    - ``Route``: Immutable route declaration
    - ``RouterContext``: Per-action view of a resolution
    - ``RouterOptions``: Validated router configuration
    - ``URLPattern``: Built-in URL pattern primitive
    - ``History``, ``navigate``, ``add_navigation_listener``: navigation helpers
    - ``NotFound``, ``CompileError``, ``PatternSyntaxError``: router errors

Built-in plugins (logging, pydantic) are auto-registered on first import.

Example::

    from genro_resolver import Route, Router

    async def layout(ctx):
        return f"A-{await ctx.next()}-B"

    router = Router(
        Route("/foo", action=layout, children=[
            Route("/bar", action=lambda ctx: "C"),
        ]),
        base_url="https://example.com",
    )

    await router.resolve("/foo/bar")   # "A-C-B"
"""

from importlib import import_module

__version__ = "0.1.0"

from .core import (
    BaseRouter,
    Route,
    Router,
    RouterContext,
    RouterOptions,
    URLPattern,
    URLPatternResult,
)
from .exceptions import (
    CompileError,
    NotFound,
    NotFoundError,
    PatternSyntaxError,
    RouterError,
)
from .navigation import History, HistoryState, add_navigation_listener, navigate

# Import plugins to trigger auto-registration (lazy to avoid cycles)
for _plugin in ("logging", "pydantic"):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

__all__ = [
    "BaseRouter",
    "Router",
    "Route",
    "RouterContext",
    "RouterOptions",
    "URLPattern",
    "URLPatternResult",
    "History",
    "HistoryState",
    "navigate",
    "add_navigation_listener",
    "RouterError",
    "CompileError",
    "PatternSyntaxError",
    "NotFound",
    "NotFoundError",
]
