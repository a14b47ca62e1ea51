"""URL pattern primitive for Genro Resolver.

The router needs a single capability from its pattern layer::

    pattern = compile(pattern_string, base_url)
    result = pattern.exec(url)      # URLPatternResult or None

``URLPattern`` is the built-in implementation. It follows the URL Pattern
model (one matcher per URL component) restricted to what routes need.

Pattern string
--------------
The string is split at the first unescaped ``#``:

- the part before is the **pathname** pattern. A relative pathname is
  anchored at the base URL directory (everything up to the last ``/`` of the
  base pathname); an absolute one (``/...``) at the root.
- the part after is the **hash** pattern. When only a hash is given
  (``#/foo``) the pathname must equal the base pathname exactly.

Protocol, hostname and port always come from the base URL. The search
component matches anything; so does the hash when no hash pattern is given.

Syntax (pathname and hash)
--------------------------
- literal text; ``\\`` escapes the next character
- ``:name`` captures one segment (``[^/]+?``)
- ``:name(regex)`` captures with a custom regular expression
- ``(regex)`` captures with a numbered name (``"0"``, ``"1"``, ...)
- ``*`` captures anything (numbered)
- ``?``, ``+``, ``*`` right after a capture make it optional, repeated, or
  both; a ``/`` immediately before the capture belongs to the unit, so
  ``/users/:id?`` matches both ``/users`` and ``/users/42``.

Malformed strings raise :class:`~genro_resolver.exceptions.PatternSyntaxError`.

Example::

    pattern = URLPattern("users/:id(\\\\d+)", "https://example.com/app/")
    result = pattern.exec("https://example.com/app/users/42?tab=info")
    result.pathname.groups   # {"id": "42"}
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlsplit

from genro_resolver.exceptions import PatternSyntaxError

__all__ = [
    "Pattern",
    "PatternCompiler",
    "URLPattern",
    "URLPatternComponentResult",
    "URLPatternResult",
    "compile_component",
]

SEGMENT_REGEX = "[^/]+?"
WILDCARD_REGEX = ".*"
_NAME_START = re.compile(r"[A-Za-z_]")
_NAME_CHAR = re.compile(r"[A-Za-z0-9_]")
_MODIFIERS = "?+*"
_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}


@dataclass(frozen=True, slots=True)
class URLPatternComponentResult:
    """Match result for a single URL component."""

    input: str
    groups: dict[str, str | None] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class URLPatternResult:
    """Result of :meth:`URLPattern.exec`, one entry per URL component."""

    inputs: tuple[str, ...]
    protocol: URLPatternComponentResult
    username: URLPatternComponentResult
    password: URLPatternComponentResult
    hostname: URLPatternComponentResult
    port: URLPatternComponentResult
    pathname: URLPatternComponentResult
    search: URLPatternComponentResult
    hash: URLPatternComponentResult


@runtime_checkable
class Pattern(Protocol):
    """Compiled matcher for one route's full path."""

    def exec(self, url: str) -> URLPatternResult | None: ...


PatternCompiler = Callable[[str, str], Pattern]


@dataclass(slots=True)
class _Capture:
    name: str
    regex: str
    modifier: str = ""
    prefix: str = ""


class _Tokenizer:
    """Turn one component pattern into literal chunks and captures."""

    __slots__ = ("pattern", "source", "pos", "tokens", "names", "counter")

    def __init__(self, pattern: str, source: str) -> None:
        self.pattern = pattern
        self.source = source
        self.pos = 0
        self.tokens: list[str | _Capture] = []
        self.names: set[str] = set()
        self.counter = 0

    def fail(self, reason: str) -> PatternSyntaxError:
        return PatternSyntaxError(self.pattern, f"{reason} at position {self.pos}")

    def run(self) -> list[str | _Capture]:
        source = self.source
        while self.pos < len(source):
            char = source[self.pos]
            if char == "\\":
                if self.pos + 1 >= len(source):
                    raise self.fail("trailing escape character")
                self._literal(source[self.pos + 1])
                self.pos += 2
            elif char == ":":
                self.pos += 1
                name = self._read_name()
                regex = self._read_regex() if self._peek() == "(" else SEGMENT_REGEX
                self._capture(name, regex)
            elif char == "(":
                self._capture(self._next_index(), self._read_regex())
            elif char == "*":
                self.pos += 1
                self._capture(self._next_index(), WILDCARD_REGEX)
            elif char == ")":
                raise self.fail("unbalanced ')'")
            elif char in "{}":
                raise self.fail(f"grouping with '{char}' is not supported")
            elif char in "?+":
                raise self.fail(f"modifier '{char}' without a preceding capture")
            else:
                self._literal(char)
                self.pos += 1
        return self.tokens

    def _peek(self) -> str:
        return self.source[self.pos] if self.pos < len(self.source) else ""

    def _literal(self, char: str) -> None:
        if self.tokens and isinstance(self.tokens[-1], str):
            self.tokens[-1] += char
        else:
            self.tokens.append(char)

    def _next_index(self) -> str:
        name = str(self.counter)
        self.counter += 1
        return name

    def _read_name(self) -> str:
        start = self.pos
        if not _NAME_START.match(self._peek()):
            raise self.fail("missing capture name after ':'")
        while self.pos < len(self.source) and _NAME_CHAR.match(self.source[self.pos]):
            self.pos += 1
        return self.source[start : self.pos]

    def _read_regex(self) -> str:
        # self.pos is on the opening parenthesis
        source = self.source
        depth = 0
        in_class = False
        start = self.pos + 1
        while self.pos < len(source):
            char = source[self.pos]
            if char == "\\":
                self.pos += 2
                continue
            if in_class:
                in_class = char != "]"
            elif char == "[":
                in_class = True
            elif char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    regex = source[start : self.pos]
                    self.pos += 1
                    if not regex:
                        raise self.fail("empty regular expression")
                    try:
                        re.compile(regex)
                    except re.error as exc:
                        raise self.fail(f"invalid regular expression ({exc})") from exc
                    return regex
            self.pos += 1
        raise self.fail("unbalanced '('")

    def _capture(self, name: str, regex: str) -> None:
        if name in self.names:
            raise self.fail(f"duplicate capture name '{name}'")
        self.names.add(name)
        capture = _Capture(name=name, regex=regex)
        if self._peek() and self._peek() in _MODIFIERS:
            capture.modifier = self._peek()
            self.pos += 1
            last = self.tokens[-1] if self.tokens else None
            if isinstance(last, str) and last.endswith("/"):
                capture.prefix = "/"
                self.tokens[-1] = last[:-1]
                if not self.tokens[-1]:
                    self.tokens.pop()
        self.tokens.append(capture)


def compile_component(pattern: str, source: str) -> tuple[str, dict[str, str]]:
    """Compile one component pattern into a regex body.

    Args:
        pattern: Full pattern string, used in error messages.
        source: The component part of the pattern.

    Returns:
        ``(regex_body, group_map)`` where ``group_map`` maps internal regex
        group names to the public capture names.
    """
    parts: list[str] = []
    groups: dict[str, str] = {}
    for token in _Tokenizer(pattern, source).run():
        if isinstance(token, str):
            parts.append(re.escape(token))
            continue
        group = f"_g{len(groups)}"
        groups[group] = token.name
        prefix = re.escape(token.prefix)
        if token.modifier in ("+", "*"):
            inner = f"(?:{token.regex})(?:{prefix}(?:{token.regex}))*"
        else:
            inner = token.regex
        unit = f"{prefix}(?P<{group}>{inner})"
        if token.modifier in ("?", "*"):
            unit = f"(?:{unit})?"
        parts.append(unit)
    return "".join(parts), groups


def _split_hash(pattern: str) -> tuple[str, str | None]:
    pos = 0
    while pos < len(pattern):
        char = pattern[pos]
        if char == "\\":
            pos += 2
            continue
        if char == "#":
            return pattern[:pos], pattern[pos + 1 :]
        pos += 1
    return pattern, None


def _normalized_port(scheme: str, port: int | None) -> str:
    if port is None or _DEFAULT_PORTS.get(scheme) == port:
        return ""
    return str(port)


class _Component:
    __slots__ = ("regex", "groups")

    def __init__(self, body: str, groups: dict[str, str] | None = None) -> None:
        self.regex = re.compile(body)
        self.groups = groups or {}

    def match(self, value: str) -> URLPatternComponentResult | None:
        found = self.regex.fullmatch(value)
        if found is None:
            return None
        captured = found.groupdict()
        return URLPatternComponentResult(
            input=value,
            groups={public: captured[group] for group, public in self.groups.items()},
        )


def _exact(value: str) -> _Component:
    return _Component(re.escape(value))


def _wildcard() -> _Component:
    return _Component(f"(?P<_g0>{WILDCARD_REGEX})", {"_g0": "0"})


class URLPattern:
    """Compiled URL pattern anchored to a base URL.

    Args:
        pattern: Pattern string (see module documentation).
        base_url: Absolute URL supplying protocol, host, port and the
            directory relative pathnames are resolved against.

    Raises:
        PatternSyntaxError: If the pattern or the base URL is malformed.
    """

    __slots__ = ("pattern", "base_url", "_components")

    def __init__(self, pattern: str, base_url: str) -> None:
        self.pattern = pattern
        self.base_url = str(base_url)
        base = urlsplit(self.base_url)
        if not base.scheme or not base.netloc:
            raise PatternSyntaxError(pattern, f"base URL {self.base_url!r} is not absolute")
        try:
            base_port = base.port
        except ValueError as exc:
            raise PatternSyntaxError(pattern, f"base URL {self.base_url!r} has an invalid port") from exc

        path_part, hash_part = _split_hash(pattern)
        base_path = base.path or "/"
        if not path_part and hash_part is not None:
            pathname = _exact(base_path)
        else:
            body, groups = compile_component(pattern, path_part)
            if not path_part.startswith("/"):
                body = re.escape(base_path[: base_path.rfind("/") + 1]) + body
            pathname = _Component(body, groups)
        if hash_part is None:
            hash_component = _wildcard()
        else:
            hash_component = _Component(*compile_component(pattern, hash_part))

        scheme = base.scheme.lower()
        self._components: dict[str, _Component] = {
            "protocol": _exact(scheme),
            "username": _exact(base.username or ""),
            "password": _exact(base.password or ""),
            "hostname": _exact((base.hostname or "").lower()),
            "port": _exact(_normalized_port(scheme, base_port)),
            "pathname": pathname,
            "search": _wildcard(),
            "hash": hash_component,
        }

    def exec(self, url: Any) -> URLPatternResult | None:
        """Match ``url`` (absolute) and return per-component results or None."""
        text = str(url)
        split = urlsplit(text)
        try:
            port = split.port
        except ValueError:
            return None
        scheme = split.scheme.lower()
        values = {
            "protocol": scheme,
            "username": split.username or "",
            "password": split.password or "",
            "hostname": (split.hostname or "").lower(),
            "port": _normalized_port(scheme, port),
            "pathname": split.path or "/",
            "search": split.query,
            "hash": split.fragment,
        }
        results: dict[str, URLPatternComponentResult] = {}
        for name, component in self._components.items():
            matched = component.match(values[name])
            if matched is None:
                return None
            results[name] = matched
        return URLPatternResult(inputs=(text,), **results)

    def test(self, url: Any) -> bool:
        """Return True if ``url`` matches this pattern."""
        return self.exec(url) is not None

    def __repr__(self) -> str:
        return f"URLPattern({self.pattern!r}, {self.base_url!r})"
