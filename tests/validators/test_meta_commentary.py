"""Tests for the page validators."""

from __future__ import annotations

import pytest

from wikigen.validators import (
    EmptyBodyValidator,
    MetaCommentaryValidator,
    ValidationContext,
    default_validators,
)


@pytest.mark.parametrize(
    "body",
    [
        "I've created comprehensive documentation for the storage layer.",
        "I have now written the wiki page you requested.",
        "This documentation covers the storage layer.",
        "Here is the documentation for the storage layer.",
        "Below is an overview of the module.",
        "Sure, the storage layer is below.",
        "Of course! The page follows.",
        "The layer stores files. Let me know if you need more.",
    ],
)
def test_meta_commentary_is_flagged(body: str) -> None:
    context = ValidationContext(title="Storage", content=f"# Storage\n\n{body}\n\n## Details\n\nMore.")

    issues = MetaCommentaryValidator().validate(context)

    assert len(issues) == 1
    assert issues[0].validator == "meta_commentary"
    assert issues[0].excerpt.startswith(body[:20])


@pytest.mark.parametrize(
    "body",
    [
        "The storage layer persists pages to disk.",
        "Documentation pages are written by the store module.",
        "Here the cache is warmed before each run.",
    ],
)
def test_regular_prose_passes(body: str) -> None:
    context = ValidationContext(title="Storage", content=f"# Storage\n\n{body}")

    assert MetaCommentaryValidator().validate(context) == []


def test_only_the_first_paragraph_is_checked() -> None:
    content = "# Storage\n\n## Overview\n\nPersists pages.\n\nFeel free to ask questions in the issue tracker."
    context = ValidationContext(title="Storage", content=content)

    assert context.first_paragraph() == "Persists pages."
    assert MetaCommentaryValidator().validate(context) == []


def test_empty_body_validator() -> None:
    assert EmptyBodyValidator().validate(ValidationContext(title="A", content="# A\n\n   ")) != []
    assert EmptyBodyValidator().validate(ValidationContext(title="A", content="# A\n\nText")) == []


def test_default_validators_order() -> None:
    assert [validator.name for validator in default_validators()] == ["empty_body", "meta_commentary"]
