"""Configuration handling for git-worktree-cli"""

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from git_worktree_cli.constants import (
    APP_NAME,
    DEFAULT_EDITOR,
    DEFAULT_PROVIDER,
    EDITOR_NONE,
    ENV_CONFIG_DIR,
    ENV_EDITOR,
    PROVIDERS,
)
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)


def expand_path(value: str) -> str:
    """Expand a leading ~ and return an absolute path."""
    if value.startswith("~"):
        home = os.environ.get("HOME") or os.environ.get("USERPROFILE")
        if not home:
            raise ValueError(
                "Cannot expand ~ in path: HOME or USERPROFILE environment variable is not set"
            )
        rest = value[1:].lstrip("/\\")
        return os.path.join(home, rest)
    return os.path.abspath(value)


@dataclass
class Config:
    """Persisted user configuration with validation."""

    default_editor: str = DEFAULT_EDITOR
    git_provider: str = DEFAULT_PROVIDER
    default_worktree_path: Optional[str] = None
    worktree_subfolder: bool = False
    trust: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_default_editor()
        self._validate_git_provider()
        self._validate_default_worktree_path()

    def _validate_default_editor(self):
        """Validate default_editor is not empty."""
        if not self.default_editor or not self.default_editor.strip():
            raise ValueError("default_editor cannot be empty")
        self.default_editor = self.default_editor.strip()

    def _validate_git_provider(self):
        """Validate git_provider is one of allowed values."""
        if self.git_provider not in PROVIDERS:
            raise ValueError(f"git_provider must be one of {list(PROVIDERS)}, got '{self.git_provider}'")

    def _validate_default_worktree_path(self):
        """Normalize default_worktree_path to an absolute path."""
        if self.default_worktree_path is not None:
            if not self.default_worktree_path.strip():
                self.default_worktree_path = None
            else:
                self.default_worktree_path = expand_path(self.default_worktree_path.strip())

    def resolve_editor(self, override: Optional[str] = None) -> str:
        """Editor to use: explicit option, then WT_EDITOR, then the configured default."""
        return override or os.environ.get(ENV_EDITOR) or self.default_editor

    def to_dict(self) -> dict:
        """Convert config to a JSON-serializable dictionary."""
        return {
            "default_editor": self.default_editor,
            "git_provider": self.git_provider,
            "default_worktree_path": self.default_worktree_path,
            "worktree_subfolder": self.worktree_subfolder,
            "trust": self.trust,
        }

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)


def should_skip_editor(editor: str) -> bool:
    """True when the editor value disables opening an editor."""
    return editor.strip().lower() == EDITOR_NONE


def get_config_dir() -> Path:
    """Directory that holds config.json."""
    override = os.environ.get(ENV_CONFIG_DIR)
    if override:
        return Path(override)
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_NAME


class ConfigStore:
    """Reads and writes the persisted configuration file."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else get_config_dir()

    @property
    def path(self) -> Path:
        return self.config_dir / "config.json"

    def load(self) -> Config:
        """Load configuration, falling back to defaults when missing or unreadable."""
        if not self.path.exists():
            return Config()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level value must be an object")
            return Config.from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable config file {self.path}: {e}")
            return Config()

    def save(self, config: Config) -> None:
        """Write configuration to disk."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2)
        os.replace(tmp_path, self.path)
        logger.debug(f"Saved configuration to {self.path}")

    def set(self, key: str, value) -> Config:
        """Update a single key, validate, and persist. Returns the new config."""
        data = self.load().to_dict()
        if key not in data:
            raise KeyError(key)
        data[key] = value
        config = Config.from_dict(data)
        self.save(config)
        return config

    def clear(self, key: str) -> Config:
        """Reset a single key to its default and persist."""
        defaults = Config().to_dict()
        if key not in defaults:
            raise KeyError(key)
        return self.set(key, defaults[key])
