"""Named prompt templates rendered with jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from ..logging import get_logger

DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


class PromptRenderer:
    """Renders ``<name>.j2`` templates, preferring a custom directory over the packaged ones."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self.logger = get_logger("prompting")
        self._env = self._create_env(templates_dir)

    def render(self, name: str, **context: Any) -> str:
        """Render the named template with ``context`` substituted."""
        try:
            template = self._env.get_template(f"{name}.j2")
        except TemplateNotFound as exc:
            raise ValueError(f"Unknown prompt template: {name}") from exc
        return template.render(**context).strip() + "\n"

    def _create_env(self, templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir is not None:
            if templates_dir.is_dir():
                self.logger.debug("Using custom prompt templates from %s", templates_dir)
                directories.append(str(templates_dir))
            else:
                self.logger.warning("Prompt template directory %s does not exist; using defaults", templates_dir)
        directories.append(str(DEFAULT_TEMPLATES_DIR))
        # ensure uniqueness preserving order
        ordered = list(dict.fromkeys(directories))
        loader = FileSystemLoader(ordered)
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )


__all__ = ["DEFAULT_TEMPLATES_DIR", "PromptRenderer"]
