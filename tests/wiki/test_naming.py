"""Tests for page slugs and sidebar ordering."""

from __future__ import annotations

from wikigen.wiki.naming import assign_slugs, navigation_order, page_slug


def test_home_slug_is_case_insensitive() -> None:
    assert page_slug("Home") == page_slug("home") == page_slug("  HOME ") == "Home"


def test_slug_replaces_spaces_and_drops_punctuation() -> None:
    assert page_slug("Storage Layer") == "Storage-Layer"
    assert page_slug("API / Auth (v2)") == "API-Auth-v2"
    assert page_slug("   ") == "Page"
    assert page_slug("???") == "Page"


def test_assign_slugs_resolves_collisions_deterministically() -> None:
    names = ["Auth?", "Auth", "auth!", "Storage"]

    first = assign_slugs(names)
    second = assign_slugs(list(reversed(names)))

    assert first == second
    assert first["Auth"] == "Auth"
    assert sorted(first.values(), key=str.lower) == ["Auth", "Auth-2", "auth-3", "Storage"]
    assert len({slug.lower() for slug in first.values()}) == len(names)


def test_navigation_order_pins_home_and_architecture() -> None:
    assert navigation_order(["Zebra", "Home", "Architecture", "Alpha"]) == [
        "Home",
        "Architecture",
        "Alpha",
        "Zebra",
    ]
    assert navigation_order(["Zebra", "Alpha"]) == ["Alpha", "Zebra"]
