"""Tests for prompt template rendering."""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2 import UndefinedError

from wikigen.prompting.constants import TEMPLATE_NAMES
from wikigen.prompting.renderer import DEFAULT_TEMPLATES_DIR, PromptRenderer


def test_every_named_template_is_packaged() -> None:
    for name in TEMPLATE_NAMES:
        assert (DEFAULT_TEMPLATES_DIR / f"{name}.j2").is_file()


def test_home_prompt_includes_structure_and_depth_guidance() -> None:
    prompt = PromptRenderer().render(
        "home",
        project_name="demo",
        structure_text="src/\n  app.py",
        depth="summary",
        existing_content="",
    )

    assert prompt.startswith('Write the Home page of the wiki for the repository "demo".')
    assert "src/\n  app.py" in prompt
    assert "Keep it short" in prompt
    assert "current version of this page" not in prompt


def test_existing_content_is_offered_for_update() -> None:
    prompt = PromptRenderer().render(
        "area",
        area="Storage",
        depth="deep",
        files=[{"path": "store.py", "content": "class Store: ..."}],
        existing_content="# Storage\n\nOld text.",
    )

    assert "--- store.py ---\nclass Store: ..." in prompt
    assert "current version of this page" in prompt
    assert "# Storage\n\nOld text." in prompt
    assert "Be exhaustive" in prompt


def test_architecture_prompt_lists_required_sections() -> None:
    prompt = PromptRenderer().render(
        "architecture",
        project_name="demo",
        page_title="Architecture",
        sections=["Overview", "Components"],
        diagram_title="Diagram",
        structure_text="",
        depth="standard",
        existing_content="",
    )

    assert "- ## Overview\n- ## Components\n- ## Diagram" in prompt


def test_custom_templates_override_defaults(tmp_path: Path) -> None:
    (tmp_path / "home.j2").write_text("Custom home for {{ project_name }}", encoding="utf-8")
    renderer = PromptRenderer(tmp_path)

    assert renderer.render("home", project_name="demo") == "Custom home for demo\n"
    assert renderer.render("extract_areas", architecture_overview="x").startswith("Read the architectural")


def test_missing_custom_directory_falls_back(tmp_path: Path, caplog) -> None:
    with caplog.at_level("WARNING", logger="wikigen"):
        renderer = PromptRenderer(tmp_path / "missing")

    assert "does not exist" in caplog.text
    assert renderer.render("extract_areas", architecture_overview="x")


def test_unknown_template_and_missing_variables() -> None:
    renderer = PromptRenderer()

    with pytest.raises(ValueError):
        renderer.render("nope")
    with pytest.raises(UndefinedError):
        renderer.render("extract_areas")
