"""Configuration loading, merging and persistence for pi-worktrees."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from .schema import KNOWN_FIELD_NAMES, ResolvedConfig, UnresolvedConfig, WorktreeSettings

APP_NAME = "pi-worktrees"
ENV_PREFIX = f"{APP_NAME.upper().replace('-', '_')}_"
ENV_SEPARATOR = "__"

SETTINGS_FILE_PATH = Path.home() / ".pi" / "agent" / "pi-worktrees-settings.json"

LOGGER = logging.getLogger(__name__)

_CANONICAL_NAMES = {name.lower(): name for name in KNOWN_FIELD_NAMES}

SettingsInput = Union[WorktreeSettings, Mapping[str, Any]]


class SettingsFileError(ValueError):
    """Raised when the settings file cannot be parsed as a JSON object."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


def load_defaults() -> dict[str, Any]:
    """Return the lowest-priority configuration layer."""
    return {"worktree": {}}


def read_json(path: Path) -> dict[str, Any]:
    """Read a JSON settings file if it exists."""
    if not path.exists():
        LOGGER.debug("Settings file %s not found; using defaults.", path)
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise SettingsFileError(path, f"not valid UTF-8 ({exc})") from exc
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SettingsFileError(path, f"invalid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise SettingsFileError(path, "top-level value must be a JSON object")
    LOGGER.debug("Loaded settings file %s", path)
    return data


def _canonical_segment(segment: str) -> str:
    lowered = segment.lower()
    return _CANONICAL_NAMES.get(lowered, lowered)


def env_to_dict(env: Mapping[str, str]) -> dict[str, Any]:
    """Parse prefixed environment variables into a nested dictionary.

    ``PI_WORKTREES_WORKTREE__PARENTDIR=/src`` becomes
    ``{"worktree": {"parentDir": "/src"}}``. Segments are matched against
    known field names without regard to case; values stay strings.
    """
    result: dict[str, Any] = {}
    for key in sorted(env):
        if not key.startswith(ENV_PREFIX):
            continue
        parts = key[len(ENV_PREFIX) :].split(ENV_SEPARATOR)
        if not all(parts):
            LOGGER.debug("Ignoring malformed environment variable %s", key)
            continue
        parts = [_canonical_segment(part) for part in parts]
        ref = result
        for part in parts[:-1]:
            if not isinstance(ref.get(part), dict):
                ref[part] = {}
            ref = ref[part]
        ref[parts[-1]] = env[key]
        LOGGER.debug("Applying environment override %s", key)
    return result


def merge_dicts(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` values into ``base`` recursively."""
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_dicts(dict(base[key]), value)
        elif isinstance(value, Mapping):
            base[key] = merge_dicts({}, value)
        else:
            base[key] = value
    return base


def _build_worktree_settings(config: UnresolvedConfig) -> dict[str, str]:
    # Nested values win over the legacy flat fields.
    nested = config.worktree or WorktreeSettings()
    settings: dict[str, str] = {}
    parent_dir = nested.parent_dir if nested.parent_dir is not None else config.parent_dir
    on_create = nested.on_create if nested.on_create is not None else config.on_create
    if parent_dir is not None:
        settings["parentDir"] = parent_dir
    if on_create is not None:
        settings["onCreate"] = on_create
    return settings


def normalize_config(value: Any) -> ResolvedConfig:
    """Validate raw input and fold the legacy flat shape into ``worktree``."""
    parsed = UnresolvedConfig.model_validate(value)
    return ResolvedConfig.model_validate({"worktree": _build_worktree_settings(parsed)})


def _settings_payload(settings: SettingsInput) -> Any:
    if isinstance(settings, WorktreeSettings):
        return settings.to_dict()
    if isinstance(settings, Mapping):
        return dict(settings)
    return settings


def dump_config(config: ResolvedConfig) -> str:
    """Serialize a resolved config the way it is stored on disk."""
    return json.dumps(config.to_dict(), indent=2) + "\n"


def write_settings_file(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` via a temporary file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    tmp_file = Path(handle.name)
    try:
        with handle:
            handle.write(content)
        os.replace(tmp_file, path)
    except OSError:
        tmp_file.unlink(missing_ok=True)
        raise
    LOGGER.debug("Wrote settings file %s", path)


class ConfigStore:
    """Owns the layered configuration sources and the current snapshot.

    Layers, lowest priority first: defaults, the JSON settings file, then
    ``PI_WORKTREES_*`` environment variables. The snapshot is replaced,
    never mutated, by :meth:`load`, :meth:`reload_config` and
    :meth:`save_worktree_settings`.
    """

    def __init__(
        self,
        settings_path: str | Path | None = None,
        *,
        env: Optional[Mapping[str, str]] = None,
        load: bool = True,
    ) -> None:
        self.settings_path = (
            Path(settings_path).expanduser() if settings_path is not None else SETTINGS_FILE_PATH
        )
        self._env = env
        self._config: Optional[ResolvedConfig] = None
        if load:
            self.load()

    @property
    def env(self) -> Mapping[str, str]:
        return os.environ if self._env is None else self._env

    @property
    def config(self) -> ResolvedConfig:
        """Current configuration snapshot."""
        if self._config is None:
            return self.load()
        return self._config

    def read_file_layer(self) -> dict[str, Any]:
        return read_json(self.settings_path)

    def merged(self) -> dict[str, Any]:
        """Merge defaults, file and environment layers into one raw value."""
        merged = load_defaults()
        merged = merge_dicts(merged, self.read_file_layer())
        merged = merge_dicts(merged, env_to_dict(self.env))
        return merged

    def load(self) -> ResolvedConfig:
        """Re-read every layer and replace the snapshot."""
        try:
            config = normalize_config(self.merged())
        except ValidationError as exc:
            LOGGER.debug("Configuration error in %s:\n%s", self.settings_path, exc)
            raise
        self._config = config
        return config

    def reload_config(self) -> ResolvedConfig:
        return self.load()

    def get_worktree_settings(self) -> WorktreeSettings:
        return self.config.worktree

    def save_worktree_settings(self, settings: SettingsInput) -> ResolvedConfig:
        """Persist ``settings`` to the settings file and reload the snapshot.

        The returned snapshot still reflects environment overrides layered
        on top of the freshly written file.
        """
        normalized = normalize_config({"worktree": _settings_payload(settings)})
        write_settings_file(self.settings_path, dump_config(normalized))
        return self.load()


_default_store: Optional[ConfigStore] = None


def get_store() -> ConfigStore:
    """Return the process-wide store, loading it on first use."""
    global _default_store
    if _default_store is None:
        _default_store = ConfigStore()
    return _default_store


def reset_store() -> None:
    """Drop the process-wide store; the next access reloads from disk and env."""
    global _default_store
    _default_store = None


def get_config() -> ResolvedConfig:
    return get_store().config


def get_worktree_settings() -> WorktreeSettings:
    return get_store().get_worktree_settings()


def save_worktree_settings(settings: SettingsInput) -> ResolvedConfig:
    return get_store().save_worktree_settings(settings)


def reload_config() -> ResolvedConfig:
    """Reload values from env and the settings file."""
    return get_store().reload_config()
