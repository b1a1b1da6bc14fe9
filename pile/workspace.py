"""Workspace root, storage scope, settings and timezone helpers for Pile."""

from __future__ import annotations

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pile.errors import ValidationError
from pile.fileio import read_yaml, write_yaml_atomic
from pile.models import Settings
from pile.store import Store


def workspace_root() -> Path:
    """Get the workspace root directory (the folder a workspace store belongs to)."""
    return Path(os.environ.get("PILE_ROOT", os.getcwd())).expanduser().resolve()


def global_home() -> Path:
    """Get the directory of the global (per-user) store."""
    return Path(
        os.environ.get("PILE_HOME", str(Path.home() / ".pile"))
    ).expanduser().resolve()


# ── Path helpers ──────────────────────────────────────────────

def pile_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / ".pile"


def settings_path(root: Path | None = None) -> Path:
    return pile_dir(root) / "settings.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    return pile_dir(root) / "hooks.yaml"


def log_dir(root: Path | None = None) -> Path:
    return pile_dir(root) / "logs"


def state_path(scope: str, root: Path | None = None) -> Path:
    """Backing file of the store selected by *scope*."""
    if scope == "global":
        return global_home() / "state.json"
    if scope == "workspace":
        return pile_dir(root) / "state.json"
    raise ValidationError(f"Invalid storage scope: {scope!r}")


# ── Settings ──────────────────────────────────────────────────

_ENV_OVERRIDES = {
    "PILE_STORAGE_SCOPE": "storage_scope",
    "PILE_EXPORT_FORMAT": "export_format",
    "PILE_TIMEZONE": "timezone",
}


def load_settings(root: Path | None = None) -> Settings:
    """Load .pile/settings.yaml, then apply PILE_* environment overrides."""
    data = read_yaml(settings_path(root))
    for env_name, key in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None and value.strip():
            data[key] = value.strip()
    return Settings.from_dict(data)


def save_settings(settings: Settings, root: Path | None = None) -> None:
    write_yaml_atomic(settings_path(root), settings.to_dict())


def get_user_timezone(settings: Settings | None = None) -> ZoneInfo:
    """Timezone used to decide what "today" is, defaulting to UTC."""
    name = settings.timezone if settings is not None else "UTC"
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def open_store(settings: Settings | None = None, root: Path | None = None) -> Store:
    """Open the store for the configured scope; the two scopes never share data."""
    if settings is None:
        settings = load_settings(root)
    return Store(state_path(settings.storage_scope, root))
