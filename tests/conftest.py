"""Shared fixtures isolating tests from the real environment and home directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

import pytest

from pi_worktrees.config import loader


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the default settings path at a temp file and drop PI_WORKTREES_* vars."""
    for key in list(os.environ):
        if key.startswith(loader.ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    settings_path = tmp_path / "home" / ".pi" / "agent" / "pi-worktrees-settings.json"
    monkeypatch.setattr(loader, "SETTINGS_FILE_PATH", settings_path)
    loader.reset_store()
    yield settings_path
    loader.reset_store()


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    """Undo the CLI's ``logging.basicConfig(force=True)`` between tests."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
