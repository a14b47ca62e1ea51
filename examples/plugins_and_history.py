from __future__ import annotations

import logging

from genro_resolver import History, Route, Router

logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")


def show_order(ctx):
    # ctx.params["number"] is an int thanks to the pydantic plugin
    return {"order": ctx.params["number"], "next": ctx.params["number"] + 1}


def on_error(error, ctx):
    where = ctx.route.path if ctx is not None else "?"
    return {"error": type(error).__name__, "route": where}


router = (
    Router(
        [
            Route("/orders/:number", action=show_order, param_types={"number": int}, name="order"),
            Route("/health", action=lambda ctx: "ok", logging_flags="enabled:off"),
        ],
        base_url="https://shop.example.com",
        error_handler=on_error,
    )
    .plug("logging")
    .plug("pydantic")
)

if __name__ == "__main__":
    history = History()
    history.add_navigation_listener(
        lambda path, context: print(f"{path:12} -> {router.resolve_sync(path, context)}")
    )

    print("--- Plugins and History Demo ---")
    history.navigate("/orders/41")
    history.navigate("/orders/abc")  # validation error, turned into a value by on_error
    history.navigate("/health")  # logging disabled for this route
    history.back()
    history.back()
