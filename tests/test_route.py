"""Tests for Route declarations and branch traversal."""

import pytest

from genro_resolver import Route
from genro_resolver.core.route import iter_branches, join_segments, normalize_segment


def test_route_fields():
    action = lambda ctx: None  # noqa: E731
    route = Route("/users", action=action, title="Users")

    assert route.path == "/users"
    assert route.action is action
    assert route.children is None
    assert route.title == "Users"
    assert route.get("title") == "Users"
    assert route.get("missing", "x") == "x"
    assert route.is_leaf


def test_route_is_immutable():
    route = Route("/users")

    with pytest.raises(AttributeError):
        route.path = "/other"
    with pytest.raises(AttributeError):
        route.title = "Users"
    with pytest.raises(AttributeError):
        del route.path


def test_extension_fields_are_read_only():
    route = Route("/users", title="A")

    with pytest.raises(TypeError):
        route.extra["title"] = "B"
    assert route.title == "A"


def test_missing_extension_field_raises_attribute_error():
    with pytest.raises(AttributeError, match="no field 'title'"):
        Route("/users").title


def test_children_are_coerced_to_routes():
    route = Route("/users", children=[{"path": ":id", "title": "User"}, Route("")])

    assert isinstance(route.children, tuple)
    assert all(isinstance(child, Route) for child in route.children)
    assert route.children[0].title == "User"
    assert not route.is_leaf


def test_empty_children_keep_route_a_leaf():
    assert Route("/users", children=[]).is_leaf


def test_coerce():
    route = Route("/a")
    assert Route.coerce(route) is route
    assert Route.coerce({"path": "/b"}).path == "/b"
    with pytest.raises(TypeError):
        Route.coerce("/c")
    with pytest.raises(TypeError):
        Route(42)


def test_iter_branches_is_depth_first_in_order():
    c = Route("c")
    b = Route("b", children=[c])
    d = Route("d")
    a = Route("a", children=[b, d])
    e = Route("e")

    assert list(iter_branches([a, e])) == [(a,), (a, b), (a, b, c), (a, d), (e,)]


@pytest.mark.parametrize(
    "segments, expected",
    [
        (["/users", "/:id"], "users/:id"),
        (["users/", ""], "users"),
        (["/", "/docs/", "*"], "docs/*"),
        ([""], ""),
    ],
)
def test_join_segments(segments, expected):
    assert join_segments([Route(path) for path in segments]) == expected


def test_normalize_segment():
    assert normalize_segment("//a/b//") == "a/b"


def test_repr():
    def show(ctx):
        return None

    route = Route("/x", action=show, children=[Route("y")], title="X")
    assert repr(route) == "Route('/x', action='show', children=1, title='X')"
