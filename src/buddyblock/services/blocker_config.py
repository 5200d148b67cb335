from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from buddyblock.config.const import (
    DEFAULT_CHALLENGE_SURFACE,
    DEFAULT_ISSUER,
    DEFAULT_LABEL,
    DEFAULT_SETUP_SURFACE,
    LOCAL_NAMESPACE,
    SYNC_NAMESPACE,
)

CONFIG_FILENAME = "buddyblock.yaml"
ENV_PREFIX = "BUDDYBLOCK_"


def default_base_dir() -> Path:
    return Path(os.environ.get(f"{ENV_PREFIX}HOME", "~/.buddyblock")).expanduser()


@dataclass
class BlockerSettings:
    base_dir: Path | None = None
    challenge_surface: str = DEFAULT_CHALLENGE_SURFACE
    setup_surface: str = DEFAULT_SETUP_SURFACE
    issuer: str = DEFAULT_ISSUER
    label: str = DEFAULT_LABEL
    log_level: str = "INFO"
    log_file: str | None = "logs/buddyblock.log"

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir).expanduser() if self.base_dir else default_base_dir()

    @property
    def config_path(self) -> Path:
        return self.base_dir / CONFIG_FILENAME

    def sync_store_path(self) -> Path:
        return self.base_dir / "state" / f"{SYNC_NAMESPACE}.json"

    def local_store_path(self) -> Path:
        return self.base_dir / "state" / f"{LOCAL_NAMESPACE}.json"

    def log_path(self) -> Path | None:
        if not self.log_file:
            return None
        candidate = Path(self.log_file).expanduser()
        return candidate if candidate.is_absolute() else self.base_dir / candidate

    def with_overrides(self, **overrides: Any) -> "BlockerSettings":
        clean = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **clean)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("base_dir", None)
        return data


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for f in fields(BlockerSettings):
        if f.name == "base_dir":
            continue
        value = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if value is not None:
            overrides[f.name] = value
    return overrides


def load_settings(base_dir: Path | str | None = None) -> BlockerSettings:
    """Read ``buddyblock.yaml`` under the base dir, then apply ``BUDDYBLOCK_*`` env vars."""

    settings = BlockerSettings(base_dir=Path(base_dir) if base_dir else None)
    path = settings.config_path
    if path.exists():
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{path} must contain a mapping")
        known = {f.name for f in fields(BlockerSettings)} - {"base_dir"}
        settings = replace(settings, **{k: v for k, v in raw.items() if k in known})
    return settings.with_overrides(**_env_overrides())


def save_settings(settings: BlockerSettings) -> Path:
    path = settings.config_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(settings.to_dict(), allow_unicode=True, sort_keys=False), encoding="utf-8")
    return path


__all__ = ["BlockerSettings", "load_settings", "save_settings", "default_base_dir"]
