"""Pipeline orchestration for a wiki generation run."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .config import WikiGenConfig, load_config, validate_depth
from .errors import ExternalToolFailure
from .git.repository import RepositoryStateManager
from .llm import ContentProducer, LLMRunner, MockRunner
from .logging import get_logger
from .models import PageSet, ReconciliationOutcome, ReconciliationResult, RepositoryHandle, RepositoryMode
from .postproc.outline import ARCHITECTURE_OUTLINE, Outline
from .postproc.reconcile import ContentReconciler, unwrap_fence
from .prompting.constants import ARCHITECTURE_PAGE, HOME_PAGE, SYSTEM_PROMPT
from .prompting.renderer import PromptRenderer
from .repo_scanner import RepoScanner, RepoTree
from .wiki.store import DocumentStore

MAX_FILE_CHARS = 20_000

StoreFactory = Callable[[WikiGenConfig], Optional[DocumentStore]]


@dataclass
class RunSummary:
    """Result of one generation run."""

    pages: PageSet = field(default_factory=PageSet)
    outcomes: Dict[str, ReconciliationOutcome] = field(default_factory=dict)
    updated: List[str] = field(default_factory=list)
    committed: bool = False


class WikiOrchestrator:
    """Generates the Home, Architecture and per-area pages and persists them to the wiki."""

    def __init__(
        self,
        producer: ContentProducer | None = None,
        scanner: RepoScanner | None = None,
        renderer: PromptRenderer | None = None,
        reconciler: ContentReconciler | None = None,
        store_factory: StoreFactory | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._producer = producer
        self._scanner = scanner
        self._renderer = renderer
        self.reconciler = reconciler or ContentReconciler()
        self._store_factory = store_factory or build_store
        self.env = os.environ if env is None else env
        self.logger = get_logger("orchestrator")

    def run(
        self,
        repo_path: str | Path,
        *,
        target_files: Sequence[str] = (),
        depth: str | None = None,
    ) -> RunSummary:
        """Generate every page for ``repo_path`` and write the result to the wiki."""
        root = Path(repo_path).expanduser().resolve()
        config = load_config(root, env=self.env)
        depth = validate_depth(depth) if depth else config.generation.depth
        self.logger.info("Starting wiki generation for %s (depth=%s)", root, depth)

        tree = self._scan(root, config)
        self.logger.info("Found %d file(s) in repository", len(tree.paths))

        targets, unmatched = resolve_target_files(target_files, tree, root)
        if unmatched:
            self.logger.warning("Could not match target file(s): %s", ", ".join(unmatched))
        selective = bool(targets)
        if selective:
            self.logger.info("Selective regeneration for: %s", ", ".join(sorted(targets)))

        producer = self._resolve_producer(config)
        renderer = self._renderer or PromptRenderer(config.generation.templates_dir)
        store = self._store_factory(config)
        if store is None:
            self.logger.info("No wiki URL configured; pages will not be written")

        reuse = store is not None and (
            config.generation.incremental
            or selective
            or config.wiki.mode in (RepositoryMode.INCREMENTAL, RepositoryMode.REUSE_OR_CLONE)
        )
        if reuse:
            store.prepare()  # type: ignore[union-attr]

        def existing(name: str) -> Optional[str]:
            if not reuse or store is None:
                return None
            return store.read_page(name)

        run = _Run(self, producer, renderer, tree, depth, root.name or "Repository")
        summary = RunSummary()

        home_existing = existing(HOME_PAGE)
        if selective and home_existing:
            self.logger.info("Reusing existing %s page (selective run)", HOME_PAGE)
            summary.pages.add(HOME_PAGE, home_existing)
        else:
            prompt = renderer.render(
                "home",
                project_name=run.project_name,
                structure_text=run.structure_text,
                depth=depth,
                existing_content=home_existing or "",
            )
            run.generate(summary, HOME_PAGE, prompt, existing=home_existing)

        architecture_existing = existing(ARCHITECTURE_PAGE)
        if selective and architecture_existing:
            self.logger.info("Reusing existing %s page (selective run)", ARCHITECTURE_PAGE)
            summary.pages.add(ARCHITECTURE_PAGE, architecture_existing)
        else:
            prompt = renderer.render(
                "architecture",
                project_name=run.project_name,
                page_title=ARCHITECTURE_PAGE,
                sections=[rule.title for rule in ARCHITECTURE_OUTLINE.sections],
                diagram_title=ARCHITECTURE_OUTLINE.diagram.title if ARCHITECTURE_OUTLINE.diagram else "",
                structure_text=run.structure_text,
                depth=depth,
                existing_content=architecture_existing or "",
            )
            run.generate(
                summary,
                ARCHITECTURE_PAGE,
                prompt,
                existing=architecture_existing,
                outline=ARCHITECTURE_OUTLINE,
            )

        architecture = summary.pages.get(ARCHITECTURE_PAGE)
        areas = run.extract_areas(architecture.content) if architecture is not None else []
        if architecture is None:
            self.logger.warning("No architectural overview available; skipping area pages")
        else:
            self.logger.info("Identified %d architectural area(s): %s", len(areas), ", ".join(areas))

        for area in areas:
            name = area_page_name(area)
            area_existing = existing(name)
            files = run.relevant_files(area)
            self.logger.info("Documenting area %s (%d relevant file(s))", area, len(files))

            if not files:
                self.logger.info("No relevant files found for %s; skipping", area)
                if area_existing:
                    summary.pages.add(name, area_existing)
                continue

            if selective and not targets.intersection(files):
                self.logger.info("Skipping %s (no targeted files matched)", area)
                if area_existing:
                    summary.pages.add(name, area_existing)
                continue

            prompt = renderer.render(
                "area",
                area=area,
                depth=depth,
                files=run.file_contents(files),
                existing_content=area_existing or "",
            )
            run.generate(summary, name, prompt, existing=area_existing)

        if store is None:
            return summary

        if selective and not summary.updated:
            self.logger.warning(
                "No documentation pages matched the requested target files; skipping wiki write"
            )
            return summary
        if not len(summary.pages):
            self.logger.warning("No pages were produced; skipping wiki write")
            return summary

        summary.committed = store.write_documentation(summary.pages)
        return summary

    def _scan(self, root: Path, config: WikiGenConfig) -> RepoTree:
        if self._scanner is not None:
            return self._scanner.scan(root)
        excludes = list(config.exclude_paths)
        wiki_path = config.wiki.path
        if wiki_path is not None:
            try:
                excludes.append("/" + wiki_path.resolve().relative_to(root).as_posix() + "/")
            except ValueError:
                pass  # checkout lives outside the documented repository
        return RepoScanner(excludes).scan(root)

    def _resolve_producer(self, config: WikiGenConfig) -> ContentProducer:
        if self._producer is not None:
            return self._producer
        if config.test_mode:
            self.logger.warning("Test mode enabled; using the mock generator (no API calls)")
            return MockRunner()

        llm = config.llm
        kwargs: Dict[str, object] = {}
        if llm.model:
            kwargs["model"] = llm.model
        if llm.base_url is not None:
            kwargs["base_url"] = llm.base_url
        if llm.api_key is not None:
            kwargs["api_key"] = llm.api_key
        if llm.temperature is not None:
            kwargs["temperature"] = llm.temperature
        if llm.max_tokens is not None:
            kwargs["max_tokens"] = llm.max_tokens
        if llm.request_timeout is not None:
            kwargs["request_timeout"] = llm.request_timeout
        self.logger.info("Using LLM provider: %s", llm.provider)
        return LLMRunner(llm.provider, **kwargs)  # type: ignore[arg-type]


class _Run:
    """Per-run state shared by the generation steps."""

    def __init__(
        self,
        orchestrator: WikiOrchestrator,
        producer: ContentProducer,
        renderer: PromptRenderer,
        tree: RepoTree,
        depth: str,
        project_name: str,
    ) -> None:
        self.producer = producer
        self.renderer = renderer
        self.reconciler = orchestrator.reconciler
        self.logger = orchestrator.logger
        self.tree = tree
        self.depth = depth
        self.project_name = project_name
        self.structure_text = tree.render()

    def generate(
        self,
        summary: RunSummary,
        name: str,
        prompt: str,
        *,
        existing: Optional[str],
        outline: Optional[Outline] = None,
    ) -> Optional[ReconciliationResult]:
        try:
            raw = self.producer.run(prompt, system=SYSTEM_PROMPT)
        except ExternalToolFailure as exc:
            if existing:
                self.logger.warning("Generation failed for %s (%s); keeping the existing page", name, exc)
                summary.pages.add(name, existing)
            else:
                self.logger.warning("Generation failed for %s (%s); skipping page", name, exc)
            return None

        result = self.reconciler.reconcile(raw, title=name, existing=existing, outline=outline)
        summary.pages.add(name, result.content)
        summary.outcomes[name] = result.outcome
        summary.updated.append(name)
        self.logger.info("%s page %s", name, result.outcome.value)
        return result

    def extract_areas(self, overview: str) -> List[str]:
        prompt = self.renderer.render("extract_areas", architecture_overview=overview)
        values = self._ask_for_list(prompt, "architectural areas")
        areas: List[str] = []
        seen: Set[str] = set()
        reserved = {HOME_PAGE.lower(), ARCHITECTURE_PAGE.lower()}
        for value in values:
            name = area_page_name(value)
            if not name or name.lower() in seen or name.lower() in reserved:
                continue
            seen.add(name.lower())
            areas.append(value.strip())
        return areas

    def relevant_files(self, area: str) -> List[str]:
        prompt = self.renderer.render(
            "relevant_files",
            area=area,
            structure_text=self.structure_text,
            all_files="\n".join(self.tree.paths),
        )
        files: List[str] = []
        for value in self._ask_for_list(prompt, f"relevant files for {area!r}"):
            path = _normalize_rel_path(value)
            if path not in self.tree:
                self.logger.debug("Ignoring unknown file %r suggested for %s", value, area)
            elif path not in files:
                files.append(path)
        return files

    def file_contents(self, files: Iterable[str]) -> List[Dict[str, str]]:
        contents: List[Dict[str, str]] = []
        for path in files:
            try:
                contents.append({"path": path, "content": self.tree.read(path, limit=MAX_FILE_CHARS)})
            except OSError as exc:
                self.logger.warning("Failed to read file %s: %s", path, exc)
        return contents

    def _ask_for_list(self, prompt: str, what: str) -> List[str]:
        try:
            response = self.producer.run(prompt, system=SYSTEM_PROMPT)
        except ExternalToolFailure as exc:
            self.logger.warning("Failed to fetch %s: %s", what, exc)
            return []
        values = parse_json_list(response)
        if values is None:
            self.logger.warning("Failed to parse %s; response was: %s", what, response.strip()[:200])
            return []
        return values


def parse_json_list(response: str) -> Optional[List[str]]:
    """Parse a JSON array of strings, tolerating a surrounding code fence."""
    text = unwrap_fence(response.strip())
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, list):
        return None
    return [item for item in payload if isinstance(item, str) and item.strip()]


def area_page_name(area: str) -> str:
    """Collapse path separators and whitespace so an area name can title a page."""
    return " ".join(area.replace("/", " ").replace("\\", " ").split())


def resolve_target_files(
    inputs: Sequence[str], tree: RepoTree, root: Path
) -> tuple[Set[str], List[str]]:
    """Match user-supplied paths against crawled files, returning (matched, unmatched)."""
    matched: Set[str] = set()
    unmatched: List[str] = []
    for raw in inputs:
        candidate = _normalize_rel_path(raw)
        if candidate in tree:
            matched.add(candidate)
            continue
        path = Path(raw).expanduser()
        absolute = path if path.is_absolute() else root / path
        try:
            relative = absolute.resolve().relative_to(root).as_posix()
        except ValueError:
            unmatched.append(raw)
            continue
        if relative in tree:
            matched.add(relative)
        else:
            unmatched.append(raw)
    return matched, unmatched


def _normalize_rel_path(value: str) -> str:
    candidate = value.strip().replace("\\", "/")
    while candidate.startswith("./"):
        candidate = candidate[2:]
    return candidate


def build_store(config: WikiGenConfig) -> Optional[DocumentStore]:
    """Create the document store for the configured wiki, or None when no wiki is set."""
    wiki = config.wiki
    if not wiki.enabled or wiki.url is None:
        return None
    handle = RepositoryHandle(
        local_path=wiki.path or config.root / ".wiki",
        remote_url=wiki.url,
        token=wiki.token,
        branch=wiki.branch,
        mode=wiki.mode,
        shallow=wiki.shallow,
    )
    return DocumentStore(RepositoryStateManager(handle), commit_message=wiki.commit_message)


__all__ = [
    "MAX_FILE_CHARS",
    "RunSummary",
    "WikiOrchestrator",
    "area_page_name",
    "build_store",
    "parse_json_list",
    "resolve_target_files",
]
