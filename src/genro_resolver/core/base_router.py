"""Plugin-free router runtime for Genro Resolver.

This module exposes :class:`BaseRouter`, which compiles a route tree into an
ordered list of patterns and resolves paths by running the matched branch as
a chain of actions. Subclasses add middleware but must preserve these
semantics.

Constructor
-----------
Constructor signature::

    BaseRouter(routes, options=None, **option_kwargs)

- ``routes`` is a ``Route``, a mapping declaration, or a sequence of them.
- ``options`` is a ``RouterOptions`` or a mapping; keyword arguments
  override it (see :mod:`genro_resolver.core.options`).
- Slots: ``_routes`` (root routes), ``_options``, ``_patterns`` (ordered
  ``(pattern, branch)`` pairs), ``_actions`` (route → wrapped action).

Compilation
-----------
The tree is walked depth first (``iter_branches``). Only leaves are match
targets: a route with children is middleware and is reached through one of
its descendants (declare an index child with ``path=""`` to make the
parent's own boundary reachable). For each leaf the normalized segments of
the branch are joined with ``/``, prefixed with ``#/`` in hash mode, and
compiled with ``options.pattern_compiler`` against ``options.base_url``.
Malformed patterns raise ``CompileError`` from the constructor.

Resolution
----------
``resolve(path, context=None)``:

1. ``path`` is percent-encoded and resolved against ``base_url`` (``url_for``).
2. Patterns are tried in declaration order; the first match selects the
   branch. No match raises ``NotFound`` (or the class registered for
   ``"not_found"``); the error handler is not consulted.
3. A ``Resolution`` walks the branch with a private cursor. Routes without
   action are skipped; each action receives a fresh ``RouterContext`` whose
   ``next()`` continues the walk. An action that never awaits ``next()``
   ends the chain there. Reaching the end of the branch yields ``None``.
4. An exception escaping the chain goes to ``options.error_handler`` when
   configured (exactly once, with the context of the action that raised);
   its return value is the result. Otherwise it propagates unchanged.

Calling ``next()`` more than once from the same action is undefined
behavior: the cursor is shared by the whole resolution and simply advances.

Hooks for subclasses
--------------------
- ``_wrap_action``: override to wrap each route's action (middleware).
- ``_after_branch_compiled``: invoked once per compiled leaf branch.
"""

from __future__ import annotations

import asyncio
import inspect
import re
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

from genro_resolver.exceptions import CompileError, NotFound, PatternSyntaxError, is_not_found

from .context import RouterContext
from .options import RouterOptions, build_options
from .pattern import Pattern, URLPatternResult
from .route import Route, iter_branches, join_segments

__all__ = ["BaseRouter", "Resolution"]

Branch = tuple[Route, ...]
ActionCall = Callable[[RouterContext], Awaitable[Any]]

# reserved and already-escaped characters stay as written
_URL_SAFE = "/:?#[]@!$&'()*+,;=%~"


def as_coroutine(action: Callable[..., Any]) -> ActionCall:
    """Adapt a sync or async action to a coroutine function."""

    async def call(ctx: RouterContext) -> Any:
        result = action(ctx)
        if inspect.isawaitable(result):
            result = await result
        return result

    return call


class Resolution:
    """State of one ``resolve`` call: the matched branch and its cursor.

    Attributes:
        error: Last exception seen escaping an action, if any.
        error_context: Context of the action that raised ``error``.
        params: Capture groups handed to every action (hash groups in hash mode).
    """

    __slots__ = (
        "router",
        "branch",
        "result",
        "url",
        "context",
        "error",
        "error_context",
        "params",
        "_cursor",
    )

    def __init__(
        self,
        router: BaseRouter,
        branch: Branch,
        result: URLPatternResult,
        url: str,
        context: Any,
    ) -> None:
        self.router = router
        self.branch = branch
        self.result = result
        self.url = url
        self.context = context
        # hash mode patterns capture in the fragment, the pathname is pinned
        groups = result.hash.groups if router.options.hash else result.pathname.groups
        self.params = dict(groups)
        self.error: BaseException | None = None
        self.error_context: RouterContext | None = None
        self._cursor = 0

    async def next(self) -> Any:
        """Run the next route of the branch that has an action."""
        branch = self.branch
        while self._cursor < len(branch):
            index = self._cursor
            self._cursor += 1
            route = branch[index]
            call = self.router._actions.get(route)
            if call is None:
                continue
            ctx = RouterContext(
                context=self.context,
                branch=branch,
                route=route,
                parent=branch[index - 1] if index else None,
                result=self.result,
                router=self.router,
                url=self.url,
                next=self.next,
                params=self.params,
            )
            try:
                return await call(ctx)
            except Exception as error:
                # keep the innermost context when the error bubbles through parents
                if self.error is not error:
                    self.error = error
                    self.error_context = ctx
                raise
        return None


class BaseRouter:
    """Plugin-free router over an immutable route tree.

    Responsibilities:
        - Compile leaf branches into ordered patterns at construction
        - Select the first matching branch for a path
        - Run the branch as a continuation chain and route errors
    """

    __slots__ = ("_routes", "_options", "_patterns", "_actions")

    def __init__(
        self,
        routes: Route | Mapping[str, Any] | Iterable[Route | Mapping[str, Any]],
        options: RouterOptions | Mapping[str, Any] | None = None,
        **option_kwargs: Any,
    ) -> None:
        self._options = build_options(options, option_kwargs)
        if isinstance(routes, (Route, Mapping)):
            routes = [routes]
        self._routes: tuple[Route, ...] = tuple(Route.coerce(route) for route in routes)
        self._patterns: list[tuple[Pattern, Branch]] = []
        self._actions: dict[Route, ActionCall] = {}
        self._compile()

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------
    @property
    def routes(self) -> tuple[Route, ...]:
        """Root routes as declared."""
        return self._routes

    @property
    def options(self) -> RouterOptions:
        """Validated router options."""
        return self._options

    @property
    def patterns(self) -> tuple[tuple[Pattern, Branch], ...]:
        """Compiled ``(pattern, branch)`` pairs in match order."""
        return tuple(self._patterns)

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------
    def _compile(self) -> None:
        for branch in iter_branches(self._routes):
            if branch[-1].is_leaf:
                self._patterns.append((self._compile_pattern(branch), branch))
        for _, branch in self._patterns:
            self._after_branch_compiled(branch)
        self._rebuild_actions()

    def _compile_pattern(self, branch: Branch) -> Pattern:
        joined = join_segments(branch)
        source = f"#/{joined}" if self._options.hash else joined
        try:
            return self._options.pattern_compiler(source, self._options.base_url)  # type: ignore[no-any-return]
        except CompileError:
            raise
        except (ValueError, TypeError, re.error) as exc:
            raise PatternSyntaxError(source, str(exc)) from exc

    def _rebuild_actions(self) -> None:
        """Rebuild wrapped actions for every route that declares one."""
        actions: dict[Route, ActionCall] = {}
        for branch in iter_branches(self._routes):
            route = branch[-1]
            if route.action is not None and route not in actions:
                actions[route] = self._wrap_action(route, as_coroutine(route.action))
        self._actions = actions

    def _wrap_action(self, route: Route, call_next: ActionCall) -> ActionCall:
        return call_next

    def _after_branch_compiled(self, branch: Branch) -> None:  # pragma: no cover - hook
        """Hook invoked once per compiled branch (subclasses may override)."""
        return None

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------
    def url_for(self, path: Any) -> str:
        """Return ``path`` as an absolute URL.

        Relative paths resolve against ``base_url`` whatever its scheme
        (``app://``, ``capacitor://`` included). Characters outside URL syntax
        are percent-encoded as a browser does: ``"/a b"`` becomes ``"/a%20b"``.
        """
        target = quote(str(path), safe=_URL_SAFE)
        if urlsplit(target).scheme:
            return target
        base = urlsplit(self._options.base_url)
        # urljoin only resolves references against schemes it knows
        joined = urlsplit(urljoin(urlunsplit(("http", *base[1:])), target))
        return urlunsplit((base.scheme, *joined[1:]))

    def match(self, path: Any) -> tuple[URLPatternResult, Branch] | None:
        """Return the first ``(result, branch)`` matching ``path``, or None.

        Only the matching phase runs; no action is executed.
        """
        url = self.url_for(path)
        for pattern, branch in self._patterns:
            result = pattern.exec(url)
            if result is not None:
                return result, branch
        return None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    async def resolve(
        self,
        path: Any,
        context: Any = None,
        *,
        errors: Mapping[str, type[Exception]] | None = None,
    ) -> Any:
        """Resolve ``path`` and run the matched branch.

        Args:
            path: Absolute URL or path relative to ``base_url``.
            context: Caller data forwarded unchanged to every action.
            errors: Optional mapping of error codes to exception classes,
                overriding ``options.errors`` for this call::

                    await router.resolve("/missing", errors={"not_found": HTTPNotFound})

        Returns:
            The value produced by the first action of the branch, or None.

        Raises:
            NotFound: If no pattern matches (or the mapped custom class).
            Exception: Any action error when no error handler is configured.
        """
        url = self.url_for(path)
        found = self.match(url)
        if found is None:
            exceptions = {**self._options.errors, **(errors or {})}
            raise exceptions.get(NotFound.code, NotFound)(url)
        result, branch = found
        resolution = Resolution(self, branch, result, url, context)
        try:
            return await resolution.next()
        except Exception as error:
            handler = self._options.error_handler
            if handler is None or is_not_found(error):
                raise
            ctx = resolution.error_context if resolution.error is error else None
            outcome = handler(error, ctx)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            return outcome

    def resolve_sync(self, path: Any, context: Any = None, **kwargs: Any) -> Any:
        """Run :meth:`resolve` to completion on a fresh event loop."""
        return asyncio.run(self.resolve(path, context, **kwargs))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(routes={len(self._routes)}, patterns={len(self._patterns)})"
