"""Logging plugin for Genro Resolver.

Reports every action run by the router, with its duration::

    /users/:id start
    /users/:id end (0.42 ms)

Routes are labelled by their ``name`` field when they have one, otherwise by
their ``path``.

Options (``plug("logging", ...)`` or ``logging_<option>`` route fields):
    - ``enabled``: turn the plugin on or off (default True; checked by the
      router before this plugin runs)
    - ``before``: emit the start line (default True)
    - ``after``: emit the end line with timing (default True)
    - ``log``: send lines to the ``genro_resolver`` logger (default True)
    - ``print``: send lines to stdout instead (default False)

With ``log`` on and no handler configured anywhere, lines go to stdout.

Example::

    from genro_resolver import Route, Router

    router = Router([
        Route("/users", action=list_users),
        Route("/health", action=health, logging_before=False),
    ]).plug("logging")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from genro_resolver.core.router import Router
from genro_resolver.plugins._base_plugin import BasePlugin

_DEFAULTS = {"before": True, "after": True, "log": True, "print": False}


class LoggingPlugin(BasePlugin):
    """Start/end lines with timing around every action."""

    plugin_code = "logging"
    plugin_description = "Logs action runs with timing"

    __slots__ = ("_logger",)

    def __init__(self, router, *, logger: logging.Logger | None = None, **config):
        self._logger = logger or logging.getLogger("genro_resolver")
        super().__init__(router, **config)

    def configure(  # type: ignore[override]
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        log: bool = True,
        print: bool = False,  # noqa: A002 - option name
    ):
        pass

    def wrap_action(self, router, route, call_next: Callable):
        label = route.get("name") or route.path or "''"

        async def logged(ctx):
            options = self._options_for(route)
            if options["before"]:
                self._write(f"{label} start", options)
            started = time.perf_counter()
            result = await call_next(ctx)
            if options["after"]:
                elapsed = (time.perf_counter() - started) * 1000
                self._write(f"{label} end ({elapsed:.2f} ms)", options)
            return result

        return logged

    def _options_for(self, route) -> dict[str, bool]:
        configured = self.configuration(route)
        return {
            key: default if configured.get(key) is None else bool(configured[key])
            for key, default in _DEFAULTS.items()
        }

    def _write(self, line: str, options: dict[str, bool]) -> None:
        if options["print"]:
            print(line)
        elif options["log"]:
            if self._has_handlers():
                self._logger.info(line)
            else:
                print(line)

    def _has_handlers(self) -> bool:
        check = getattr(self._logger, "hasHandlers", None) or getattr(
            self._logger, "has_handlers", None
        )
        return callable(check) and bool(check())


Router.register_plugin(LoggingPlugin)
