"""pi-worktrees package exposing the worktree settings store."""

from __future__ import annotations

from .config import (
    ConfigStore,
    ResolvedConfig,
    WorktreeSettings,
    get_config,
    get_worktree_settings,
    normalize_config,
    reload_config,
    save_worktree_settings,
)

__all__ = [
    "ConfigStore",
    "ResolvedConfig",
    "WorktreeSettings",
    "get_config",
    "get_worktree_settings",
    "normalize_config",
    "reload_config",
    "save_worktree_settings",
]
