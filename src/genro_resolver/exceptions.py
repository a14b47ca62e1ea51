# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Exceptions for Genro Resolver.

Every router error carries a ``code`` tag. Dispatch logic (for instance the
error handler bypass for missing routes) checks the tag rather than the
class, so custom exception classes registered through ``errors=`` keep the
same behaviour as long as they expose the right code.

Any other exception raised by an action is an action error: it is never
wrapped and reaches either the configured error handler or the caller of
``resolve`` unchanged.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "RouterError",
    "CompileError",
    "PatternSyntaxError",
    "NotFound",
    "NotFoundError",
    "is_not_found",
]


class RouterError(Exception):
    """Base class for errors raised by the router itself.

    Attributes:
        code: Tag used to dispatch on the error kind.
    """

    code: str = "router_error"


class CompileError(RouterError):
    """Raised when a route tree cannot be compiled into patterns.

    Always surfaces from the ``Router`` constructor, never from ``resolve``.
    """

    code = "compile_error"


class PatternSyntaxError(CompileError):
    """Raised when a pattern string is malformed.

    Attributes:
        pattern: The offending pattern string.
        reason: Short description of the problem.
    """

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class NotFound(RouterError):
    """Raised when the resolved URL matches no compiled pattern (404).

    This error is never handed to the router's error handler. Declare a
    catch-all (``*``) route as the last sibling to turn it into a regular
    action result.

    Attributes:
        url: The absolute URL that could not be matched.
        status: Conventional HTTP status, always 404.
    """

    code = "not_found"
    status = 404

    def __init__(self, url: Any = None) -> None:
        self.url = None if url is None else str(url)
        super().__init__(f"No route matches '{self.url}'" if self.url else "No route matches")


NotFoundError = NotFound


def is_not_found(error: BaseException) -> bool:
    """Return True if ``error`` is tagged as a missing route."""
    return getattr(error, "code", None) == NotFound.code
