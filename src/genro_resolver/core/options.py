"""Router configuration for Genro Resolver.

``RouterOptions`` is a frozen pydantic model validated once when the router
is built. Both snake_case names and the camelCase names of the browser API
are accepted::

    Router(routes, base_url="https://example.com/app/", hash=True)
    Router(routes, {"baseURL": "https://example.com/app/", "errorHandler": on_error})

Options
-------
- ``base_url``: absolute URL every relative path resolves against
  (default ``http://localhost/``).
- ``hash``: anchor patterns after ``#/`` instead of the pathname.
- ``error_handler``: ``handler(error, context)`` called for errors raised by
  actions; its (possibly awaited) return value becomes the result. Never
  called for missing routes. ``context`` is the ``RouterContext`` of the
  action that raised, or None when it cannot be determined.
- ``pattern_compiler``: ``compiler(pattern, base_url) -> Pattern``; defaults
  to the built-in ``URLPattern``.
- ``errors``: custom exception classes by error code (``"not_found"``).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from genro_resolver.exceptions import NotFound

from .pattern import URLPattern

__all__ = ["DEFAULT_BASE_URL", "ERROR_CODES", "RouterOptions", "build_options"]

DEFAULT_BASE_URL = "http://localhost/"

ERROR_CODES: set[str] = {NotFound.code}


class RouterOptions(BaseModel):
    """Validated, immutable router configuration."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    base_url: str = Field(default=DEFAULT_BASE_URL, alias="baseURL")
    hash: bool = False
    error_handler: Callable[..., Any] | None = Field(default=None, alias="errorHandler")
    pattern_compiler: Callable[..., Any] = Field(default=URLPattern, alias="patternCompiler")
    errors: dict[str, type[Exception]] = Field(default_factory=dict)

    @field_validator("base_url", mode="before")
    @classmethod
    def _absolute_base_url(cls, value: Any) -> str:
        text = str(value)
        split = urlsplit(text)
        if not split.scheme or not split.netloc:
            raise ValueError(f"base_url must be an absolute URL, got {text!r}")
        return text

    @field_validator("errors")
    @classmethod
    def _known_error_codes(cls, value: dict[str, type[Exception]]) -> dict[str, type[Exception]]:
        unknown = set(value) - ERROR_CODES
        if unknown:
            raise ValueError(f"Unknown error codes: {', '.join(sorted(unknown))}")
        return value


def build_options(
    options: RouterOptions | Mapping[str, Any] | None, overrides: Mapping[str, Any]
) -> RouterOptions:
    """Merge an options object or mapping with keyword overrides."""
    if isinstance(options, RouterOptions):
        if not overrides:
            return options
        base: dict[str, Any] = options.model_dump()
    else:
        base = dict(options or {})
    return RouterOptions.model_validate({**base, **overrides})
