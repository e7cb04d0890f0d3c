"""Configuration utilities for pi-worktrees."""

from .schema import (
    ResolvedConfig,
    UnresolvedConfig,
    WorktreeSettings,
)
from .loader import (
    APP_NAME,
    ENV_PREFIX,
    SETTINGS_FILE_PATH,
    ConfigStore,
    SettingsFileError,
    dump_config,
    env_to_dict,
    get_config,
    get_store,
    get_worktree_settings,
    load_defaults,
    merge_dicts,
    normalize_config,
    read_json,
    reload_config,
    reset_store,
    save_worktree_settings,
)

__all__ = [
    "APP_NAME",
    "ENV_PREFIX",
    "SETTINGS_FILE_PATH",
    "ConfigStore",
    "ResolvedConfig",
    "SettingsFileError",
    "UnresolvedConfig",
    "WorktreeSettings",
    "dump_config",
    "env_to_dict",
    "get_config",
    "get_store",
    "get_worktree_settings",
    "load_defaults",
    "merge_dicts",
    "normalize_config",
    "read_json",
    "reload_config",
    "reset_store",
    "save_worktree_settings",
]
