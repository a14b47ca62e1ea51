from __future__ import annotations

import asyncio

from genro_resolver import NotFound, Route, Router


async def layout(ctx):
    """Wraps every page in a frame; the page itself is produced by next()."""
    body = await ctx.next()
    return f"<main user={ctx.user}>{body}</main>"


async def require_admin(ctx):
    # Guard: stop the chain unless the caller is an admin
    if not ctx.get("admin"):
        return "<p>forbidden</p>"
    return await ctx.next()


def users_index(ctx):
    return "<ul><li>alice</li><li>bob</li></ul>"


def user_detail(ctx):
    return f"<h1>User {ctx.params['id']}</h1>"


def not_found_page(ctx):
    return f"<p>Nothing at /{ctx.params['0']}</p>"


routes = Route(
    "/",
    action=layout,
    children=[
        Route(
            "/users",
            children=[
                Route("", action=users_index),
                Route(r"/:id(\d+)", action=user_detail),
            ],
        ),
        Route("/admin", action=require_admin, children=[Route("", action=lambda ctx: "admin panel")]),
        Route("*", action=not_found_page),
    ],
)


async def main():
    router = Router(routes, base_url="https://example.com")

    print("--- Layout Chain Demo ---")
    for path in ("/users", "/users/42", "/admin", "/nowhere/else"):
        print(f"{path:15} -> {await router.resolve(path, {'user': 'alice'})}")

    print(f"{'/admin (admin)':15} -> {await router.resolve('/admin', {'user': 'root', 'admin': True})}")

    # Without the catch-all, a missing route raises NotFound
    bare = Router([Route("/only", action=lambda ctx: "only")], base_url="https://example.com")
    try:
        await bare.resolve("/missing")
    except NotFound as exc:
        print(f"\nNotFound: {exc.url} (status {exc.status})")


if __name__ == "__main__":
    asyncio.run(main())
