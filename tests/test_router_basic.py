# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for Router resolution and the action chain."""

import asyncio

import pytest

from genro_resolver import NotFound, Route, Router

BASE = "https://example.com"


def _router(routes, **options):
    options.setdefault("base_url", BASE)
    return Router(routes, **options)


@pytest.mark.asyncio
async def test_resolves_named_capture():
    router = _router([Route("/foo/:id", action=lambda ctx: f"Foo-{ctx.params['id']}")])

    assert await router.resolve("/foo/42") == "Foo-42"
    with pytest.raises(NotFound) as exc_info:
        await router.resolve("/bar")
    assert exc_info.value.url == "https://example.com/bar"
    assert exc_info.value.status == 404


@pytest.mark.asyncio
async def test_resolves_nested_chain_around_next():
    async def outer(ctx):
        return "A-" + (await ctx.next()) + "-B"

    router = _router(
        Route("/foo", action=outer, children=[Route("/bar", action=lambda ctx: "C")])
    )

    assert await router.resolve("/foo/bar") == "A-C-B"


@pytest.mark.asyncio
async def test_caller_context_is_forwarded_verbatim():
    payload = {"user": "x"}
    router = _router([Route("/me", action=lambda ctx: (ctx.user, ctx["user"], ctx.context))])

    user_attr, user_item, raw = await router.resolve("/me", payload)

    assert user_attr == "x"
    assert user_item == "x"
    assert raw is payload


@pytest.mark.asyncio
async def test_non_mapping_context_is_available_as_context():
    router = _router([Route("/foo", action=lambda ctx: f"Foo--{ctx.context}")])

    assert await router.resolve("/foo", "CTX") == "Foo--CTX"
    assert await router.resolve("/foo", "XTC") == "Foo--XTC"


@pytest.mark.asyncio
async def test_engine_fields_win_over_caller_keys():
    router = _router([Route("/foo", action=lambda ctx: (ctx.url, ctx.route.path, ctx.context["url"]))])

    url, path, spoofed = await router.resolve("/foo", {"url": "spoof", "route": None})

    assert url == "https://example.com/foo"
    assert path == "/foo"
    assert spoofed == "spoof"


@pytest.mark.asyncio
async def test_next_ordering_is_onion_like():
    log = []

    async def parent(ctx):
        log.append("before")
        await ctx.next()
        log.append("after")

    def child(ctx):
        log.append("child")

    router = _router(Route("/p", action=parent, children=[Route("/c", action=child)]))
    await router.resolve("/p/c")

    assert log == ["before", "child", "after"]


@pytest.mark.asyncio
async def test_leaf_without_action_resolves_to_none():
    router = _router([Route("/empty")])
    assert await router.resolve("/empty") is None


@pytest.mark.asyncio
async def test_route_without_action_passes_through():
    router = _router(Route("/shell", children=[Route("/page", action=lambda ctx: "page")]))
    assert await router.resolve("/shell/page") == "page"


@pytest.mark.asyncio
async def test_next_at_end_of_branch_returns_none():
    async def leaf(ctx):
        return ("end", await ctx.next())

    router = _router([Route("/leaf", action=leaf)])
    assert await router.resolve("/leaf") == ("end", None)


@pytest.mark.asyncio
async def test_action_without_next_truncates_branch():
    calls = []

    def guard(ctx):
        return "blocked"

    def child(ctx):
        calls.append("child")
        return "child"

    router = _router(Route("/admin", action=guard, children=[Route("/panel", action=child)]))

    assert await router.resolve("/admin/panel") == "blocked"
    assert calls == []


@pytest.mark.asyncio
async def test_first_declared_route_wins():
    router = _router(
        [
            Route("/items/:id", action=lambda ctx: "param"),
            Route("/items/new", action=lambda ctx: "literal"),
        ]
    )

    assert await router.resolve("/items/new") == "param"
    assert await router.resolve("/items/7") == "param"


@pytest.mark.asyncio
async def test_catch_all_replaces_not_found():
    router = _router(
        [
            Route("/foo", action=lambda ctx: "foo"),
            Route("*", action=lambda ctx: f"404:{ctx.params['0']}"),
        ]
    )

    assert await router.resolve("/foo") == "foo"
    assert await router.resolve("/foo/bar") == "404:foo/bar"


@pytest.mark.asyncio
async def test_nested_catch_all_as_last_sibling():
    router = _router(
        Route(
            "/app",
            children=[
                Route("/home", action=lambda ctx: "home"),
                Route("*", action=lambda ctx: f"missing:{ctx.params['0']}"),
            ],
        )
    )

    assert await router.resolve("/app/home") == "home"
    assert await router.resolve("/app/zzz") == "missing:zzz"
    with pytest.raises(NotFound):
        await router.resolve("/elsewhere")


@pytest.mark.asyncio
async def test_branch_route_and_parent_fields():
    seen = {}

    async def record(ctx):
        seen[ctx.route.path] = (ctx.parent, ctx.branch)
        return await ctx.next()

    leaf = Route("/leaf", action=record)
    mid = Route("/mid", action=record, children=[leaf])
    root = Route("/root", action=record, children=[mid])
    router = _router(root)

    await router.resolve("/root/mid/leaf")

    assert seen["/root"] == (None, (root, mid, leaf))
    assert seen["/mid"][0] is root
    assert seen["/leaf"][0] is mid


@pytest.mark.asyncio
async def test_index_child_makes_parent_boundary_reachable():
    async def layout(ctx):
        return f"[{await ctx.next()}]"

    router = _router(
        Route(
            "/users",
            action=layout,
            children=[
                Route("", action=lambda ctx: "index"),
                Route("/:id", action=lambda ctx: f"user {ctx.params['id']}"),
            ],
        )
    )

    assert await router.resolve("/users") == "[index]"
    assert await router.resolve("/users/7") == "[user 7]"


@pytest.mark.asyncio
async def test_parent_with_children_is_not_a_match_target():
    router = _router(Route("/users", action=lambda ctx: "list", children=[Route("/:id")]))

    with pytest.raises(NotFound):
        await router.resolve("/users")


@pytest.mark.asyncio
async def test_slashes_in_declared_segments_are_normalized():
    router = _router(Route("users/", children=[Route("//:id/", action=lambda ctx: ctx.params["id"])]))
    assert await router.resolve("/users/9") == "9"


@pytest.mark.asyncio
async def test_context_exposes_router_url_and_query():
    router = _router([Route("/search", action=lambda ctx: (ctx.router, ctx.url, ctx.query))])

    owner, url, query = await router.resolve("/search?q=abc&page=2")

    assert owner is router
    assert url == "https://example.com/search?q=abc&page=2"
    assert query == {"q": "abc", "page": "2"}


@pytest.mark.asyncio
async def test_custom_base_url():
    router = Router(
        [Route("/foo", action=lambda ctx: f"Foo--{ctx.url}")],
        baseURL="https://vaadin.com",
    )

    with pytest.raises(NotFound):
        await router.resolve("https://example.com/foo")
    assert await router.resolve("https://vaadin.com/foo") == "Foo--https://vaadin.com/foo"


@pytest.mark.asyncio
async def test_base_url_directory_prefixes_routes():
    router = Router([Route("/foo", action=lambda ctx: "foo")], base_url="https://example.com/app/")

    assert await router.resolve("foo") == "foo"
    assert await router.resolve("https://example.com/app/foo") == "foo"
    with pytest.raises(NotFound):
        await router.resolve("/foo")


@pytest.mark.asyncio
async def test_hash_mode():
    router = _router([Route("/foo/:id", action=lambda ctx: ctx.params["id"])], hash=True)

    assert await router.resolve("#/foo/7") == "7"
    with pytest.raises(NotFound):
        await router.resolve("/foo/7")


@pytest.mark.asyncio
async def test_hash_mode_captures_reach_params():
    router = _router([Route("/users/:id/:tab?", action=lambda ctx: dict(ctx.params))], hash=True)

    assert await router.resolve("#/users/7") == {"id": "7", "tab": None}
    assert await router.resolve("#/users/7/posts") == {"id": "7", "tab": "posts"}


@pytest.mark.asyncio
async def test_custom_scheme_base_url():
    router = Router([Route("/foo/:id", action=lambda ctx: ctx.url)], base_url="app://host/")

    assert await router.resolve("/foo/1") == "app://host/foo/1"
    assert await router.resolve("foo/2") == "app://host/foo/2"


@pytest.mark.asyncio
async def test_custom_scheme_base_url_in_hash_mode():
    router = Router(
        [Route("/foo/:id", action=lambda ctx: ctx.params["id"])],
        base_url="capacitor://localhost/",
        hash=True,
    )

    assert await router.resolve("#/foo/3") == "3"


@pytest.mark.asyncio
async def test_paths_are_percent_encoded():
    router = _router([Route("/foo/:id", action=lambda ctx: ctx.params["id"])])

    assert await router.resolve("/foo/a b") == "a%20b"
    assert await router.resolve("/foo/a%20b") == "a%20b"
    assert router.url_for("/x y?q=1") == "https://example.com/x%20y?q=1"


@pytest.mark.asyncio
async def test_mapping_declarations():
    router = _router(
        [
            {
                "path": "/foo",
                "action": lambda ctx: f"<{ctx.route.title}>",
                "title": "Foo",
            },
            {"path": "/bar", "children": [{"path": "/:id", "action": lambda ctx: ctx.params["id"]}]},
        ]
    )

    assert await router.resolve("/foo") == "<Foo>"
    assert await router.resolve("/bar/3") == "3"


@pytest.mark.asyncio
async def test_extension_fields_reach_the_action():
    router = _router([Route("/x", action=lambda ctx: ctx.route.title, title="Hello")])
    assert await router.resolve("/x") == "Hello"


@pytest.mark.asyncio
async def test_concurrent_resolutions_are_independent():
    async def slow(ctx):
        await asyncio.sleep(0.01 if ctx.params["id"] == "1" else 0)
        return f"{ctx.params['id']}:{await ctx.next()}"

    router = _router(Route("/item/:id", action=slow, children=[Route("", action=lambda ctx: ctx.user)]))

    first, second = await asyncio.gather(
        router.resolve("/item/1", {"user": "a"}),
        router.resolve("/item/2", {"user": "b"}),
    )

    assert first == "1:a"
    assert second == "2:b"


def test_resolve_sync():
    router = _router([Route("/foo/:id", action=lambda ctx: f"Foo-{ctx.params['id']}")])
    assert router.resolve_sync("/foo/1") == "Foo-1"


def test_match_runs_no_action():
    calls = []
    leaf = Route("/foo/:id", action=lambda ctx: calls.append("ran"))
    router = _router([leaf])

    result, branch = router.match("/foo/5")

    assert branch == (leaf,)
    assert result.pathname.groups == {"id": "5"}
    assert calls == []
    assert router.match("/nope") is None


def test_patterns_follow_declaration_order():
    first = Route("/a")
    second = Route("/b", children=[Route("/c"), Route("")])
    router = _router([first, second])

    branches = [branch for _, branch in router.patterns]

    assert branches == [(first,), (second, second.children[0]), (second, second.children[1])]
    assert router.routes == (first, second)
