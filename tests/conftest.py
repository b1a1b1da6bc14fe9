"""Shared test fixtures for Pile tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from pile.events import ChangeSignal
from pile.models import Settings
from pile.repository import Repository
from pile.store import Store


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary workspace and point PILE_ROOT / PILE_HOME at it."""
    root = tmp_path / "workspace"
    (root / ".pile").mkdir(parents=True)
    home = tmp_path / "home"
    home.mkdir()

    settings = {
        "storage_scope": "workspace",
        "export_format": "markdown",
        "spaces_in_indent": 2,
        "enable_completions": False,
        "picker_days": 3,
        "timezone": "UTC",
    }
    (root / ".pile" / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    monkeypatch.setenv("PILE_ROOT", str(root))
    monkeypatch.setenv("PILE_HOME", str(home))
    for name in ("PILE_STORAGE_SCOPE", "PILE_EXPORT_FORMAT", "PILE_TIMEZONE"):
        monkeypatch.delenv(name, raising=False)
    return root


@pytest.fixture
def store() -> Store:
    """In-memory store, isolated per test."""
    return Store()


@pytest.fixture
def signal() -> ChangeSignal:
    return ChangeSignal()


@pytest.fixture
def repo(store: Store, signal: ChangeSignal) -> Repository:
    return Repository(store, signal, Settings(export_format="markdown"))
