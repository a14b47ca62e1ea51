"""Router with plugin pipeline for Genro Resolver.

``Router`` adds middleware to ``BaseRouter``: plugin classes are registered
once, process wide, and attached by name to individual routers. Every
attached plugin wraps the action of every route of the tree.

Internal state
--------------
- ``_plugins``: attached plugin instances, first attached first.
- ``_plugins_by_name``: plugin name → instance, used for ``router.<name>``.
- ``_plugin_info``: configuration store the plugins read and write.

Registry
--------
``Router.register_plugin(plugin_class, name=None)`` accepts ``BasePlugin``
subclasses declaring a ``plugin_code``. Registering a second class under an
existing code is an error unless ``name`` is given explicitly.

Attaching
---------
``plug(name, **config)`` builds the plugin, replays ``on_compile`` for every
compiled branch, re-wraps the actions and returns the router, so calls chain.
Attach plugins before resolving; a running resolution may mix wrapped and
unwrapped actions otherwise.

Wrapping order
--------------
The first plugin attached is the outermost layer. A layer whose plugin is
disabled for the route (``set_plugin_enabled`` or an ``<code>_enabled``
route field) hands the context straight to the next layer.

Example::

    from genro_resolver import Route, Router

    router = (
        Router([Route("/users/:id", action=show_user, param_types={"id": int})])
        .plug("logging")
        .plug("pydantic")
    )
"""

from __future__ import annotations

from typing import Any

from genro_resolver.core.base_router import ActionCall, BaseRouter, Branch
from genro_resolver.core.context import RouterContext
from genro_resolver.core.route import Route
from genro_resolver.plugins._base_plugin import BasePlugin

__all__ = ["Router"]

_PLUGINS: dict[str, type[BasePlugin]] = {}


class Router(BaseRouter):
    """BaseRouter plus plugin registry, attachment and action wrapping."""

    __slots__ = BaseRouter.__slots__ + (
        "_plugins",
        "_plugins_by_name",
        "_plugin_info",
    )

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        # plugin state must exist before BaseRouter compiles and wraps actions
        self._plugins: list[BasePlugin] = []
        self._plugins_by_name: dict[str, BasePlugin] = {}
        self._plugin_info: dict[str, dict[str, Any]] = {}
        super().__init__(*args, **kwargs)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    @classmethod
    def register_plugin(cls, plugin_class: type[BasePlugin], name: str | None = None) -> None:
        """Make ``plugin_class`` attachable by name on every router.

        Args:
            plugin_class: ``BasePlugin`` subclass with a ``plugin_code``.
            name: Registry key; defaults to ``plugin_code``. An explicit name
                replaces whatever was registered under it.

        Raises:
            TypeError: ``plugin_class`` is not a ``BasePlugin`` subclass.
            ValueError: ``plugin_code`` is empty, or another class already
                uses it.
        """
        if not (isinstance(plugin_class, type) and issubclass(plugin_class, BasePlugin)):
            raise TypeError(f"{plugin_class!r} is not a BasePlugin subclass")
        code = getattr(plugin_class, "plugin_code", "")
        if not code:
            raise ValueError(f"{plugin_class.__name__} is missing plugin_code")
        key = name or code
        current = _PLUGINS.get(key)
        if name is None and current is not None and current is not plugin_class:
            raise ValueError(
                f"Plugin '{key}' already registered by {current.__name__}"
            )
        _PLUGINS[key] = plugin_class

    @classmethod
    def available_plugins(cls) -> dict[str, type[BasePlugin]]:
        """Registered plugin classes by name (a copy)."""
        return dict(_PLUGINS)

    # ------------------------------------------------------------------
    # Attachment
    # ------------------------------------------------------------------
    def plug(self, plugin: str, **config: Any) -> Router:
        """Attach the registered plugin ``plugin`` and return the router.

        ``config`` goes to the plugin's ``configure()``, validated there.

        Raises:
            TypeError: ``plugin`` is not a name.
            ValueError: The name is unknown or already attached here.
        """
        if not isinstance(plugin, str):
            raise TypeError(f"plug() expects a plugin name, got {type(plugin).__name__}")
        plugin_class = _PLUGINS.get(plugin)
        if plugin_class is None:
            known = ", ".join(sorted(_PLUGINS)) or "none"
            raise ValueError(f"Unknown plugin '{plugin}' (registered: {known})")
        if plugin in self._plugins_by_name:
            raise ValueError(f"Plugin '{plugin}' is already attached to this router")
        instance = plugin_class(self, **config)
        self._plugins.append(instance)
        self._plugins_by_name[instance.name] = instance
        for _, branch in self._patterns:
            instance.on_compile(self, branch)
        self._rebuild_actions()
        return self

    def iter_plugins(self) -> list[BasePlugin]:
        """Attached plugins, outermost first."""
        return list(self._plugins)

    def get_config(self, plugin_name: str, route: Route | None = None) -> dict[str, Any]:
        """Configuration of an attached plugin, with ``route`` overrides merged."""
        return self._plugin(plugin_name).configuration(route)

    def set_plugin_enabled(self, plugin_name: str, enabled: bool = True) -> None:
        """Switch an attached plugin on or off for the whole router."""
        self._plugin(plugin_name)
        self._plugin_info[plugin_name]["enabled"] = bool(enabled)

    def is_plugin_enabled(self, plugin_name: str, route: Route | None = None) -> bool:
        return bool(self.get_config(plugin_name, route).get("enabled", True))

    def _plugin(self, plugin_name: str) -> BasePlugin:
        try:
            return self._plugins_by_name[plugin_name]
        except KeyError:
            raise AttributeError(f"No plugin named '{plugin_name}' attached to router") from None

    def __getattr__(self, name: str) -> Any:
        # router.logging, router.pydantic, ...
        if name.startswith("_"):
            raise AttributeError(name)
        return self._plugin(name)

    # ------------------------------------------------------------------
    # BaseRouter hooks
    # ------------------------------------------------------------------
    def _wrap_action(self, route: Route, call_next: ActionCall) -> ActionCall:
        layer = call_next
        for plugin in reversed(self._plugins):
            layer = self._gate(plugin, route, plugin.wrap_action(self, route, layer), layer)
        return layer

    def _gate(
        self,
        plugin: BasePlugin,
        route: Route,
        wrapped: ActionCall,
        bypass: ActionCall,
    ) -> ActionCall:
        async def gated(ctx: RouterContext) -> Any:
            if self.is_plugin_enabled(plugin.name, route):
                return await wrapped(ctx)
            return await bypass(ctx)

        return gated

    def _after_branch_compiled(self, branch: Branch) -> None:
        for plugin in self._plugins:
            plugin.on_compile(self, branch)
