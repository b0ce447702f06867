"""Configuration management for ucmlens."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ucmlens.exceptions import ConfigError

UCMLENS_DIR = ".ucmlens"
CONFIG_FILE = "config.json"


class StoreConfig(BaseModel):
    """Connection settings for the UCM codebase API."""

    host: str = "127.0.0.1"
    port: int = 5858
    timeout: float = 10.0
    suffixify_bindings: bool = True

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/codebase/api"


class ScopeConfig(BaseModel):
    """Default project/branch used when the editor has not set one."""

    project: str = ""
    branch: str = "main"


class CacheConfig(BaseModel):
    """Cache lifetimes (seconds) and size bounds."""

    hover_ttl: float = 30.0
    completion_ttl: float = 10.0  # completion sets go stale faster than hovers
    definition_ttl: float = 300.0
    max_entries: int = 1000


class SearchConfig(BaseModel):
    """Result limits for fuzzy-find queries."""

    resolve_limit: int = 10
    completion_limit: int = 50
    min_completion_length: int = 2
    hash_search_limit: int = 20


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    store: StoreConfig = Field(default_factory=StoreConfig)
    scope: ScopeConfig = Field(default_factory=ScopeConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` to the nearest directory holding .ucmlens/."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / UCMLENS_DIR).is_dir():
            return candidate
    return None


def config_path(root: Path) -> Path:
    return root / UCMLENS_DIR / CONFIG_FILE


def load_config(root: Path) -> ProjectConfig:
    """Load .ucmlens/config.json, or defaults named after `root` if absent."""
    path = config_path(root)
    if not path.exists():
        return ProjectConfig(name=root.name, root_path=str(root))
    try:
        return ProjectConfig.model_validate_json(path.read_text())
    except (OSError, ValidationError) as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e


def save_config(root: Path, config: ProjectConfig) -> None:
    path = config_path(root)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(config.model_dump_json(indent=2))
    except OSError as e:
        raise ConfigError(f"Could not write {path}: {e}") from e


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Return a copy of `config` with a dotted key (e.g. 'store.port') replaced.

    Raises ConfigError for unknown keys and for values the model rejects.
    """
    *sections, field = key.split(".")
    data = config.model_dump()
    target = data
    for section in sections:
        target = target.get(section)
        if not isinstance(target, dict):
            raise ConfigError(f"Unknown config key: {key}")
    if field not in target or isinstance(target[field], dict):
        raise ConfigError(f"Unknown config key: {key}")
    target[field] = value
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e.errors()[0]['msg']}") from e
