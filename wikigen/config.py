"""Configuration loading for wikigen (.wikigen.yml plus environment overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .llm.runner import PROVIDERS
from .models import RepositoryMode
from .prompting.constants import DEFAULT_DEPTH, DEPTHS

CONFIG_FILENAME = ".wikigen.yml"
DEFAULT_WIKI_PATH = ".wiki"
DEFAULT_BRANCH = "master"

_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off"}


class ConfigError(RuntimeError):
    """Raised when the configuration file or environment is invalid."""


@dataclass
class WikiConfig:
    """Where the generated wiki lives and how its checkout is managed."""

    url: Optional[str] = None
    path: Optional[Path] = None
    branch: str = DEFAULT_BRANCH
    mode: RepositoryMode = RepositoryMode.INCREMENTAL
    shallow: bool = False
    commit_message: Optional[str] = None
    token: Optional[str] = field(default=None, repr=False)

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass
class LLMConfig:
    """Text-generation backend settings."""

    provider: str = "http"
    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = field(default=None, repr=False)
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None


@dataclass
class GenerationConfig:
    """How much to write and whether prior pages are reused."""

    depth: str = DEFAULT_DEPTH
    incremental: bool = False
    templates_dir: Optional[Path] = None


@dataclass
class WikiGenConfig:
    """Represents the resolved settings for one run."""

    root: Path
    wiki: WikiConfig = field(default_factory=WikiConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    exclude_paths: List[str] = field(default_factory=list)
    test_mode: bool = False


def load_config(repo_path: Path, env: Optional[Mapping[str, str]] = None) -> WikiGenConfig:
    """Load ``.wikigen.yml`` from the repository and apply environment overrides."""
    env = os.environ if env is None else env
    config_file = _resolve_config_path(Path(repo_path))
    root = config_file.parent.resolve()

    data = _read_config(config_file) if config_file.exists() else {}
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    wiki_data = _as_dict(data.get("wiki"))
    llm_data = _as_dict(data.get("llm"))
    generation_data = _as_dict(data.get("generation"))

    wiki_path = _first(env, "GITHUB_WIKI_PATH", "WIKI_REPO_PATH") or _as_str(wiki_data.get("path"))
    mode_value = _first(env, "WIKI_REPO_MODE") or _as_str(wiki_data.get("mode"))
    shallow_value = _first(env, "WIKI_REPO_SHALLOW")

    wiki = WikiConfig(
        url=_first(env, "GITHUB_WIKI_URL", "WIKI_REPO_URL") or _as_str(wiki_data.get("url")),
        path=_resolve_path(root, wiki_path or DEFAULT_WIKI_PATH),
        branch=_first(env, "GITHUB_WIKI_BRANCH") or _as_str(wiki_data.get("branch")) or DEFAULT_BRANCH,
        mode=_parse_mode(mode_value) if mode_value else RepositoryMode.INCREMENTAL,
        shallow=_flag(shallow_value if shallow_value is not None else wiki_data.get("shallow")),
        commit_message=_first(env, "GITHUB_WIKI_COMMIT_MESSAGE") or _as_str(wiki_data.get("commit_message")),
        token=_first(env, "GITHUB_TOKEN", "GH_TOKEN"),
    )

    provider = (_first(env, "LLM_PROVIDER") or _as_str(llm_data.get("provider")) or "http").strip().lower()
    if provider not in PROVIDERS:
        raise ConfigError(f"Unknown LLM provider {provider!r}; expected one of {', '.join(PROVIDERS)}")

    llm = LLMConfig(
        provider=provider,
        model=_first(env, "WIKIGEN_LLM_MODEL") or _as_str(llm_data.get("model")),
        base_url=_first(env, "WIKIGEN_LLM_BASE_URL") or _as_str(llm_data.get("base_url")),
        api_key=_first(env, "WIKIGEN_LLM_API_KEY") or _as_str(llm_data.get("api_key")),
        temperature=_as_float(_first(env, "WIKIGEN_LLM_TEMPERATURE") or llm_data.get("temperature")),
        max_tokens=_as_int(_first(env, "WIKIGEN_LLM_MAX_TOKENS") or llm_data.get("max_tokens")),
        request_timeout=_as_float(_first(env, "WIKIGEN_LLM_TIMEOUT") or llm_data.get("request_timeout")),
    )

    depth = (_first(env, "WIKIGEN_DEPTH") or _as_str(generation_data.get("depth")) or DEFAULT_DEPTH)
    incremental_value = _first(env, "INCREMENTAL_DOCS")
    templates_dir = _as_str(generation_data.get("templates_dir"))
    generation = GenerationConfig(
        depth=validate_depth(depth),
        incremental=_flag(
            incremental_value if incremental_value is not None else generation_data.get("incremental")
        ),
        templates_dir=_resolve_path(root, templates_dir) if templates_dir else None,
    )

    test_mode_value = _first(env, "TEST_MODE")
    return WikiGenConfig(
        root=root,
        wiki=wiki,
        llm=llm,
        generation=generation,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        test_mode=_flag(test_mode_value if test_mode_value is not None else data.get("test_mode")),
    )


def validate_depth(value: str) -> str:
    """Return the normalized depth, raising :class:`ConfigError` for unknown values."""
    normalized = value.strip().lower()
    if normalized not in DEPTHS:
        raise ConfigError(f"Unknown depth {value!r}; expected one of {', '.join(DEPTHS)}")
    return normalized


def _parse_mode(value: str) -> RepositoryMode:
    try:
        return RepositoryMode.parse(value)
    except ValueError as exc:
        choices = ", ".join(mode.value for mode in RepositoryMode)
        raise ConfigError(f"Unknown wiki repository mode {value!r}; expected one of {choices}") from exc


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _resolve_path(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _first(env: Mapping[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value is not None and value.strip():
            return value.strip()
    return None


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES or not lowered:
            return False
        raise ConfigError(f"Expected a boolean value, got {value!r}")
    return False


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "GenerationConfig",
    "LLMConfig",
    "WikiConfig",
    "WikiGenConfig",
    "load_config",
    "validate_depth",
]
