"""Tests for the wiki generation pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from wikigen.config import ConfigError, load_config
from wikigen.errors import ExternalToolFailure
from wikigen.llm.mock import MockRunner
from wikigen.models import PageSet, ReconciliationOutcome, RepositoryMode
from wikigen.orchestrator import (
    WikiOrchestrator,
    area_page_name,
    build_store,
    parse_json_list,
    resolve_target_files,
)
from wikigen.wiki.store import DocumentStore

FILES = {
    "src/config.py": "SETTINGS = {}\n",
    "src/storage/disk.py": "def save(page):\n    return page\n",
    "src/utils.py": "def slug(text):\n    return text\n",
    "README.md": "# Demo\n",
}


class FakeStore:
    def __init__(self, pages: Optional[Dict[str, str]] = None) -> None:
        self.pages = dict(pages or {})
        self.prepared = 0
        self.written: Optional[PageSet] = None
        self.reads: List[str] = []

    def prepare(self) -> None:
        self.prepared += 1

    def read_page(self, name: str) -> Optional[str]:
        self.reads.append(name)
        return self.pages.get(name)

    def write_documentation(self, pages: PageSet) -> bool:
        self.written = pages
        return True


class FailingAreaPages(MockRunner):
    def run(self, prompt: str, *, system: str | None = None) -> str:
        if "documentation page for the area" in prompt.split("\n", 1)[0]:
            raise ExternalToolFailure("LLM HTTP request", detail="timed out")
        return super().run(prompt, system=system)


def _orchestrator(store: Optional[FakeStore], producer: MockRunner | None = None) -> WikiOrchestrator:
    return WikiOrchestrator(
        producer=producer or MockRunner(),
        store_factory=lambda config: store,  # type: ignore[arg-type,return-value]
        env={},
    )


def test_full_run_generates_every_page(repo_builder) -> None:
    repo_builder.write(FILES)
    producer = MockRunner()

    summary = _orchestrator(None, producer).run(repo_builder.path())

    assert summary.pages.names() == [
        "Home",
        "Architecture",
        "Configuration Management",
        "Storage Layer",
        "Utilities",
    ]
    assert summary.updated == summary.pages.names()
    assert summary.committed is False
    architecture = summary.pages.get("Architecture").content
    assert architecture.startswith("# Architecture\n\n## Overview")
    assert architecture.rstrip().endswith("```")
    assert "## Diagram\n\n```mermaid" in architecture
    assert summary.outcomes["Architecture"] is ReconciliationOutcome.NORMALIZED
    assert all(not outcome.value.startswith("rejected") for outcome in summary.outcomes.values())
    storage_prompt = next(
        prompt
        for prompt in producer.prompts
        if prompt.startswith('Write the wiki documentation page for the area "Storage Layer"')
    )
    assert "--- src/storage/disk.py ---\ndef save(page):" in storage_prompt


def test_pages_are_written_once_with_existing_content_offered(repo_builder) -> None:
    repo_builder.write(FILES)
    store = FakeStore({"Home": "# Home\n\nPrevious home text."})
    producer = MockRunner()

    summary = _orchestrator(store, producer).run(repo_builder.path())

    assert store.prepared == 1
    assert store.written is summary.pages
    assert summary.committed is True
    assert "Previous home text." in producer.prompts[0]


def test_fresh_mode_does_not_read_prior_pages(repo_builder) -> None:
    repo_builder.write(FILES)
    repo_builder.write({".wikigen.yml": "wiki:\n  mode: fresh\n"})
    store = FakeStore({"Home": "# Home\n\nPrevious home text."})

    _orchestrator(store).run(repo_builder.path())

    assert store.prepared == 0
    assert store.reads == []
    assert store.written is not None


def test_selective_run_only_regenerates_matching_area(repo_builder) -> None:
    repo_builder.write(FILES)
    prior = {
        "Home": "# Home\n\nOld home.",
        "Architecture": "# Architecture\n\nOld architecture.",
        "Configuration Management": "# Configuration Management\n\nOld config.",
    }
    store = FakeStore(prior)

    summary = _orchestrator(store).run(repo_builder.path(), target_files=["./src/storage/disk.py"])

    assert summary.updated == ["Storage Layer"]
    assert summary.pages.get("Home").content == prior["Home"]
    assert summary.pages.get("Architecture").content == prior["Architecture"]
    assert summary.pages.get("Configuration Management").content == prior["Configuration Management"]
    assert "Utilities" not in summary.pages
    assert store.written is summary.pages


def test_selective_run_without_matching_area_skips_write(repo_builder, caplog) -> None:
    repo_builder.write(FILES)
    store = FakeStore({"Home": "# Home\n\nOld.", "Architecture": "# Architecture\n\nOld."})

    with caplog.at_level("WARNING", logger="wikigen"):
        summary = _orchestrator(store).run(repo_builder.path(), target_files=["README.md"])

    assert summary.updated == []
    assert store.written is None
    assert "skipping wiki write" in caplog.text


def test_unmatched_targets_are_reported(repo_builder, caplog) -> None:
    repo_builder.write(FILES)

    with caplog.at_level("WARNING", logger="wikigen"):
        summary = _orchestrator(None).run(repo_builder.path(), target_files=["missing.py"])

    assert "Could not match target file(s): missing.py" in caplog.text
    assert "Utilities" in summary.pages


def test_generation_failure_keeps_prior_page_or_skips(repo_builder, caplog) -> None:
    repo_builder.write(FILES)
    store = FakeStore({"Utilities": "# Utilities\n\nHelpers for slugs."})

    with caplog.at_level("WARNING", logger="wikigen"):
        summary = _orchestrator(store, FailingAreaPages()).run(repo_builder.path())

    assert summary.pages.get("Utilities").content == "# Utilities\n\nHelpers for slugs."
    assert "Storage Layer" not in summary.pages
    assert "Utilities" not in summary.updated
    assert "timed out" in caplog.text


def test_unparseable_area_list_produces_no_area_pages(repo_builder, caplog) -> None:
    repo_builder.write(FILES)

    class NoAreas(MockRunner):
        def run(self, prompt: str, *, system: str | None = None) -> str:
            if prompt.startswith("Read the architectural overview"):
                return "Areas: storage and config"
            return super().run(prompt, system=system)

    with caplog.at_level("WARNING", logger="wikigen"):
        summary = _orchestrator(None, NoAreas()).run(repo_builder.path())

    assert summary.pages.names() == ["Home", "Architecture"]
    assert "Failed to parse architectural areas" in caplog.text


def test_test_mode_uses_mock_generator(repo_builder) -> None:
    repo_builder.write(FILES)
    orchestrator = WikiOrchestrator(store_factory=lambda config: None, env={"TEST_MODE": "true"})

    summary = orchestrator.run(repo_builder.path(), depth="summary")

    assert "Storage Layer" in summary.pages


def test_parse_json_list_handles_fences_and_garbage() -> None:
    assert parse_json_list('```json\n["Storage", "", 3, "Auth"]\n```') == ["Storage", "Auth"]
    assert parse_json_list('{"areas": []}') is None
    assert parse_json_list("not json") is None


def test_area_page_name_flattens_separators() -> None:
    assert area_page_name("  API / Routing\\Handlers ") == "API Routing Handlers"


def test_resolve_target_files(repo_builder) -> None:
    repo_builder.write(FILES)
    tree = repo_builder.scan()
    root = repo_builder.path().resolve()

    matched, unmatched = resolve_target_files(
        ["src/utils.py", str(root / "src" / "config.py"), "../outside.py", "nope.py"], tree, root
    )

    assert matched == {"src/utils.py", "src/config.py"}
    assert unmatched == ["../outside.py", "nope.py"]


def test_build_store_from_config(tmp_path: Path) -> None:
    assert build_store(load_config(tmp_path, env={})) is None

    config = load_config(
        tmp_path,
        env={"GITHUB_WIKI_URL": "https://github.com/o/r.wiki.git", "GITHUB_TOKEN": "t", "WIKI_REPO_MODE": "fresh"},
    )
    store = build_store(config)

    assert isinstance(store, DocumentStore)
    handle = store.repository.handle
    assert handle.remote_url == "https://github.com/o/r.wiki.git"
    assert handle.token == "t"
    assert handle.mode is RepositoryMode.FRESH
    assert store.root == tmp_path.resolve() / ".wiki"


def test_invalid_depth_is_rejected(repo_builder) -> None:
    repo_builder.write(FILES)

    with pytest.raises(ConfigError, match="Unknown depth"):
        _orchestrator(None).run(repo_builder.path(), depth="everything")
