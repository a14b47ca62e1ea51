"""Plugin contract for Genro Resolver.

A plugin is middleware attached to one ``Router``. It sees every compiled
branch once (``on_compile``) and wraps the action of every route
(``wrap_action``). Concrete plugins set two class attributes:

- ``plugin_code``: registry name, also the prefix of per-route fields
- ``plugin_description``: one line shown in listings

and are built by the router as ``PluginClass(router, **config)``.

Configuration
-------------
A subclass declares its options as the keyword parameters of
``configure()``. The method body is usually empty: subclassing wraps it so
that every call

1. expands ``flags="enabled,before:off"`` into boolean keywords,
2. validates the keywords against the signature (``pydantic.validate_call``),
3. stores them in the router's ``_plugin_info[plugin_code]``.

``configuration(route)`` reads the store and overlays the route fields named
``<plugin_code>_<option>``::

    Route("/health", action=health, logging_before=False)
    Route("/raw/:id", action=raw, pydantic_disabled=True)
    Route("/quiet", action=quiet, logging_flags="enabled:off")

Example::

    class TimingPlugin(BasePlugin):
        plugin_code = "timing"
        plugin_description = "Stores the last action duration"

        def configure(self, enabled: bool = True):
            pass

        def wrap_action(self, router, route, call_next):
            async def timed(ctx):
                started = time.perf_counter()
                try:
                    return await call_next(ctx)
                finally:
                    self.last = time.perf_counter() - started
            return timed
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from genro_toolbox import dictExtract
from pydantic import validate_call

__all__ = ["BasePlugin"]


def _wrap_configure(configure: Callable) -> Callable:
    checked = validate_call(configure)

    @wraps(configure)
    def configure_and_store(self: BasePlugin, *, flags: str | None = None, **options: Any) -> None:
        if flags:
            options.update(self._parse_flags(flags))
        checked(self, **options)
        self._write_config(options)

    return configure_and_store


class BasePlugin:
    """Base class for router middleware with validated configuration."""

    __slots__ = ("name", "_router")

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        own = cls.__dict__.get("configure")
        if own is not None:
            cls.configure = _wrap_configure(own)  # type: ignore[method-assign]

    def __init__(self, router: Any, **config: Any):
        self.name = self.plugin_code
        self._router = router
        self._store().setdefault(self.name, {"enabled": True})
        self.configure(**config)

    def _store(self) -> dict[str, Any]:
        return self._router._plugin_info  # type: ignore[no-any-return]

    def _write_config(self, options: dict[str, Any]) -> None:
        if options:
            self._store().setdefault(self.name, {}).update(options)

    def configuration(self, route: Any = None) -> dict[str, Any]:
        """Return the router level options, overlaid with ``route`` fields.

        Args:
            route: Route whose ``<plugin_code>_*`` extension fields override
                the router level values. ``<plugin_code>_flags`` is expanded
                like the ``flags`` argument of ``configure()``.
        """
        merged = dict(self._store().get(self.name, {}))
        if route is not None:
            merged.update(
                dictExtract(
                    dict(route.extra), f"{self.plugin_code}_", slice_prefix=True, pop=False
                )
            )
        flags = merged.pop("flags", None)
        if isinstance(flags, str):
            merged.update(self._parse_flags(flags))
        return merged

    @staticmethod
    def _parse_flags(flags: str) -> dict[str, bool]:
        """``"enabled,before:off"`` -> ``{"enabled": True, "before": False}``."""
        parsed: dict[str, bool] = {}
        for item in (part.strip() for part in flags.split(",")):
            if not item:
                continue
            key, _, state = item.partition(":")
            parsed[key.strip()] = state.strip().lower() != "off"
        return parsed

    # ------------------------------------------------------------------
    # Overridable hooks
    # ------------------------------------------------------------------
    def configure(self, *, flags: str | None = None) -> None:
        """Declare accepted options as keyword parameters in subclasses.

        The base version only understands ``flags``.
        """
        if flags:
            self._write_config(self._parse_flags(flags))

    def on_compile(self, router: Any, branch: tuple[Any, ...]) -> None:  # pragma: no cover - default no-op
        """Called once per compiled leaf branch, at construction or at plug time.

        Precompute per-route data here (models, labels) for ``wrap_action``.
        """

    def wrap_action(self, router: Any, route: Any, call_next: Callable) -> Callable:
        """Return an async ``(ctx) -> result`` callable around ``call_next``.

        Args:
            router: Router owning ``route``.
            route: Route whose action is being wrapped.
            call_next: Next layer, ending with the action itself.
        """
        return call_next
