from __future__ import annotations

from dynrest_client.navigation import HISTORY_LIMIT, Navigator


def test_navigate_updates_location() -> None:
    nav = Navigator(location="https://app.test/orders?page=2")
    assert nav.current_path == "/orders"

    nav.navigate("/signin")

    assert nav.location == "/signin"
    assert nav.history == ["/signin"]


def test_history_is_bounded() -> None:
    nav = Navigator()

    for i in range(HISTORY_LIMIT + 10):
        nav.navigate(f"/page/{i}")

    assert len(nav.history) == HISTORY_LIMIT
    assert nav.history[0] == "/page/10"
    assert nav.history[-1] == f"/page/{HISTORY_LIMIT + 9}"
