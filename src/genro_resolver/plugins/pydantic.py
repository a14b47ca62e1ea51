"""Pydantic validation plugin for Genro Resolver.

Validates and coerces captured path parameters before an action runs.

A route opts in by declaring ``param_types``: a mapping from capture name to
a type, or to a ``(type, default)`` tuple. At compile time (``on_compile``)
the plugin builds a Pydantic model for every such route. At call time
(``wrap_action``) it validates ``ctx.params`` and hands the action a context
whose ``params`` hold the coerced values. Captures not declared in
``param_types`` pass through untouched.

Example::

    from genro_resolver import Route, Router

    router = Router(
        Route("/users/:id(\\\\d+)", action=show_user, param_types={"id": int}),
    ).plug("pydantic")

    # inside show_user: ctx.params["id"] == 42 (an int)

A value that fails validation raises ``pydantic.ValidationError`` from the
action, so it reaches the router's error handler like any action error.

Configuration::

    # Skip validation for a single route
    Route("/raw/:id", action=raw, param_types={"id": int}, pydantic_disabled=True)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import create_model

from genro_resolver.core.router import Router
from genro_resolver.plugins._base_plugin import BasePlugin


class PydanticPlugin(BasePlugin):
    """Validate captured params with Pydantic using ``param_types`` routes.

    Builds one validation model per declaring route when branches are
    compiled and validates params at call time.
    """

    plugin_code = "pydantic"
    plugin_description = "Validates captured params using Pydantic models"

    __slots__ = ("_models",)

    def __init__(self, router, **config: Any):
        self._models: dict[Any, Any] = {}
        super().__init__(router, **config)

    def configure(self, disabled: bool = False):  # type: ignore[override]
        """Configure pydantic plugin options.

        Args:
            disabled: If True, skip validation for this router/route.
        """
        pass

    def on_compile(self, router: Router, branch: tuple[Any, ...]) -> None:
        """Build a Pydantic model for each route of the branch declaring param_types."""
        for route in branch:
            if route in self._models:
                continue
            declared = route.get("param_types")
            if not declared:
                continue
            fields = {}
            for param_name, annotation in declared.items():
                if isinstance(annotation, tuple):
                    fields[param_name] = annotation
                else:
                    fields[param_name] = (annotation, ...)
            model_name = route.get("name") or route.path.strip("/").replace("/", "_") or "root"
            self._models[route] = create_model(f"{model_name}_Params", **fields)  # type: ignore[call-overload]

    def wrap_action(self, router: Router, route: Any, call_next: Callable):
        """Validate params with the cached Pydantic model before calling."""
        model = self._models.get(route)
        if model is None:
            # No param_types on this route, passthrough
            return call_next

        async def wrapper(ctx):
            # Check disabled config at runtime (not at wrap time)
            if self.configuration(route).get("disabled"):
                return await call_next(ctx)
            validated = model.model_validate(ctx.params)
            params = {**ctx.params, **validated.model_dump()}
            return await call_next(ctx.evolve(params=params))

        return wrapper

    def get_model(self, route: Any) -> Any:
        """Return the Pydantic model built for ``route``, or None."""
        return self._models.get(route)


Router.register_plugin(PydanticPlugin)
