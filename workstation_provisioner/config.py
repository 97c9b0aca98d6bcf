from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .errors import ConfigError

DEFAULT_CONFIG_PATH = "~/.config/workstation-provisioner/config.yaml"
DEFAULT_NVM_VERSION = "v0.39.7"
DEFAULT_SHELL_PROFILES = (".bashrc", ".zshrc")


def _as_list(value: Any, key: str, default: Sequence[str] = ()) -> List[str]:
    """A bare string is one entry, not a sequence of characters."""

    if value is None:
        return list(default)
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise ConfigError(f"{key} must be a string or a list, got {type(value).__name__}")


@dataclass(frozen=True)
class ProvisionConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _section(self, key: str) -> Dict[str, Any]:
        value = self.raw.get(key) or {}
        return value if isinstance(value, dict) else {}

    @property
    def git_name(self) -> Optional[str]:
        v = self._section("git").get("name")
        return str(v) if v else None

    @property
    def git_email(self) -> Optional[str]:
        v = self._section("git").get("email")
        return str(v) if v else None

    @property
    def nvm_version(self) -> str:
        return str(self._section("nvm").get("version") or DEFAULT_NVM_VERSION)

    @property
    def extra_packages(self) -> List[str]:
        items = _as_list(self._section("packages").get("extra"), "packages.extra")
        return [p.strip() for p in items if p.strip()]

    @property
    def shell_profiles(self) -> List[str]:
        return _as_list(self.raw.get("shell_profiles") or None, "shell_profiles", DEFAULT_SHELL_PROFILES)

    @property
    def skip(self) -> List[str]:
        return _as_list(self.raw.get("skip"), "skip")

    @property
    def ssh_comment(self) -> Optional[str]:
        v = self._section("ssh").get("comment")
        return str(v) if v else None

    def validate(self) -> None:
        """Raise ConfigError for list-shaped keys of the wrong type."""

        self.extra_packages
        self.shell_profiles
        self.skip


def load_config(path: Optional[str] = None) -> ProvisionConfig:
    """Load the YAML config.

    With no explicit path the default location is optional; an explicit path
    must exist.
    """

    explicit = path is not None
    p = Path(os.path.expanduser(path or DEFAULT_CONFIG_PATH))
    if not p.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {p}")
        return ProvisionConfig()

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("config must be YAML")

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise ConfigError("PyYAML is required to read the provisioner config") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{p} must contain a mapping/object")

    cfg = ProvisionConfig(raw=raw)
    cfg.validate()
    return cfg
