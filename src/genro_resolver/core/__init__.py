"""Core runtime aggregator for Genro Resolver.

Exposes the runtime building blocks from a single module:
``BaseRouter``, ``Router``, ``Route``, ``RouterContext``, ``RouterOptions``,
``URLPattern``.

Public API:
    - ``BaseRouter``: Plugin-free compile and resolve engine
    - ``Router``: Plugin-enabled router with middleware support
    - ``Route``: Immutable route declaration
    - ``RouterContext``: Context handed to actions
    - ``URLPattern``: Default pattern compiler

Importing this module performs only imports; it does not register plugins
or instantiate routers.
"""

from .base_router import BaseRouter, Resolution
from .context import RouterContext
from .options import RouterOptions
from .pattern import Pattern, URLPattern, URLPatternComponentResult, URLPatternResult
from .route import Route, iter_branches
from .router import Router

__all__ = [
    "BaseRouter",
    "Pattern",
    "Resolution",
    "Route",
    "Router",
    "RouterContext",
    "RouterOptions",
    "URLPattern",
    "URLPatternComponentResult",
    "URLPatternResult",
    "iter_branches",
]
