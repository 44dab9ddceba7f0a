"""Configuration management for autocontext."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from autocontext.exceptions import ConfigError

AUTOCONTEXT_DIR = ".autocontext"
CONFIG_FILE = "config.json"


class CompletionConfig(BaseModel):
    """How reference context is assembled for a completion request."""

    max_chars: int = Field(default=4000, ge=0)
    embeddings_enabled: bool = False
    jaccard_window_size: int = Field(default=50, ge=1)
    history_files: int = Field(default=10, ge=0)
    on_source_error: Literal["raise", "skip"] = "raise"


class EmbeddingsConfig(BaseModel):
    """Embeddings retrieval source configuration."""

    max_results: int = Field(default=5, ge=0)
    query_lines: int = Field(default=20, ge=1)
    cache_size: int = Field(default=50, ge=1)


class IndexerConfig(BaseModel):
    """Codebase indexer configuration."""

    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            "__pycache__",
            ".git",
            ".autocontext",
            "dist",
            "build",
            ".venv",
            "venv",
            ".env",
            "*.pyc",
            "*.pyo",
            "*.so",
            "*.dylib",
            "*.dll",
            "*.exe",
            "*.png",
            "*.jpg",
            "*.min.js",
            "*.min.css",
            "*.map",
            "*.lock",
            "package-lock.json",
            "yarn.lock",
        ]
    )
    max_file_size_kb: int = 500
    chunk_lines: int = Field(default=40, ge=1)


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    completion: CompletionConfig = Field(default_factory=CompletionConfig)
    embeddings: EmbeddingsConfig = Field(default_factory=EmbeddingsConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Return the nearest directory at or above `start` holding .autocontext/."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / AUTOCONTEXT_DIR).is_dir():
            return candidate
    return None


def get_config_dir(root: Path) -> Path:
    return root / AUTOCONTEXT_DIR


def load_config(root: Path) -> ProjectConfig:
    """Read .autocontext/config.json, or return defaults named after `root`."""
    config_path = get_config_dir(root) / CONFIG_FILE
    if not config_path.exists():
        return ProjectConfig(name=root.name, root_path=str(root))
    try:
        return ProjectConfig.model_validate_json(config_path.read_text())
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e


def save_config(root: Path, config: ProjectConfig) -> None:
    config_dir = get_config_dir(root)
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / CONFIG_FILE).write_text(config.model_dump_json(indent=2))


def _parent_section(data: dict[str, Any], key: str) -> tuple[dict[str, Any], str]:
    """Resolve 'a.b.c' to the dict holding 'c', raising KeyError for unknown keys."""
    *sections, leaf = key.split(".")
    section = data
    for name in sections:
        section = section.get(name)
        if not isinstance(section, dict):
            raise KeyError(f"Invalid config key: {key}")
    if leaf not in section:
        raise KeyError(f"Invalid config key: {key}")
    return section, leaf


def get_config_value(config: ProjectConfig, key: str) -> Any:
    """Read a value by dotted key, e.g. 'completion.max_chars'."""
    section, leaf = _parent_section(config.model_dump(), key)
    return section[leaf]


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Return a copy of `config` with the dotted `key` set to `value`.

    Raises:
        KeyError: `key` names no setting.
        ConfigError: `value` is not valid for that setting.
    """
    data = config.model_dump()
    section, leaf = _parent_section(data, key)
    section[leaf] = value
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e
