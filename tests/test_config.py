"""Tests for normalization and the layered merge helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pi_worktrees.config import (
    ENV_PREFIX,
    ResolvedConfig,
    WorktreeSettings,
    env_to_dict,
    merge_dicts,
    normalize_config,
)


def test_env_prefix_derived_from_app_name() -> None:
    assert ENV_PREFIX == "PI_WORKTREES_"


@pytest.mark.parametrize(
    "settings",
    [
        {},
        {"parentDir": "/tmp/wt"},
        {"onCreate": "echo hi"},
        {"parentDir": "/tmp/wt", "onCreate": "npm install"},
    ],
)
def test_normalize_nested_settings_pass_through(settings: dict[str, str]) -> None:
    """Nested settings come back unchanged with absent fields omitted."""
    config = normalize_config({"worktree": settings})
    assert isinstance(config, ResolvedConfig)
    assert config.to_dict() == {"worktree": settings}


def test_normalize_drops_none_fields() -> None:
    config = normalize_config({"worktree": {"parentDir": "/tmp/wt", "onCreate": None}})
    assert config.to_dict() == {"worktree": {"parentDir": "/tmp/wt"}}
    assert config.worktree.on_create is None


def test_normalize_nested_wins_over_legacy_flat() -> None:
    config = normalize_config({"worktree": {"parentDir": "A"}, "parentDir": "B"})
    assert config.to_dict() == {"worktree": {"parentDir": "A"}}


def test_normalize_legacy_flat_fallback() -> None:
    config = normalize_config({"parentDir": "B"})
    assert config.to_dict() == {"worktree": {"parentDir": "B"}}


def test_normalize_mixes_nested_and_flat_per_key() -> None:
    config = normalize_config({"worktree": {"onCreate": "make"}, "parentDir": "/flat"})
    assert config.worktree.parent_dir == "/flat"
    assert config.worktree.on_create == "make"


def test_normalize_tolerates_and_drops_unknown_top_level_keys() -> None:
    config = normalize_config({"worktree": {}, "theme": "dark", "retries": 3})
    assert config.to_dict() == {"worktree": {}}


def test_normalize_rejects_unknown_nested_key() -> None:
    with pytest.raises(ValidationError):
        normalize_config({"worktree": {"parentDir": "/tmp", "branchPrefix": "wt/"}})


@pytest.mark.parametrize(
    "value",
    [
        {"worktree": {"parentDir": 42}},
        {"worktree": {"onCreate": ["echo", "hi"]}},
        {"parentDir": True},
        {"onCreate": {"cmd": "echo"}},
        {"worktree": "not-an-object"},
    ],
)
def test_normalize_rejects_wrong_types(value: dict) -> None:
    with pytest.raises(ValidationError):
        normalize_config(value)


def test_normalize_rejects_non_mapping_input() -> None:
    with pytest.raises(ValidationError):
        normalize_config(["parentDir", "/tmp"])


def test_worktree_settings_accepts_attribute_names() -> None:
    settings = WorktreeSettings(parent_dir="/tmp/wt")
    assert settings.to_dict() == {"parentDir": "/tmp/wt"}


def test_env_to_dict_nests_and_canonicalises_names() -> None:
    env = {
        "PI_WORKTREES_WORKTREE__PARENTDIR": "/other",
        "PI_WORKTREES_worktree__onCreate": "echo hi",
        "PI_WORKTREES_PARENTDIR": "/legacy",
        "HOME": "/root",
        "PI_WORKTREESX": "ignored",
    }
    assert env_to_dict(env) == {
        "worktree": {"parentDir": "/other", "onCreate": "echo hi"},
        "parentDir": "/legacy",
    }


def test_env_to_dict_keeps_values_as_strings() -> None:
    assert env_to_dict({"PI_WORKTREES_WORKTREE__PARENTDIR": "123"}) == {
        "worktree": {"parentDir": "123"}
    }


def test_env_to_dict_skips_malformed_names() -> None:
    env = {
        "PI_WORKTREES_": "empty",
        "PI_WORKTREES_WORKTREE__": "trailing",
        "PI_WORKTREES___PARENTDIR": "leading",
    }
    assert env_to_dict(env) == {}


def test_env_to_dict_lowercases_unknown_segments() -> None:
    assert env_to_dict({"PI_WORKTREES_EXTRA__Thing": "x"}) == {"extra": {"thing": "x"}}


def test_merge_dicts_recurses_into_mappings() -> None:
    base = {"worktree": {"parentDir": "/file", "onCreate": "make"}}
    merged = merge_dicts(base, {"worktree": {"parentDir": "/env"}})
    assert merged == {"worktree": {"parentDir": "/env", "onCreate": "make"}}


def test_merge_dicts_does_not_alias_override_mappings() -> None:
    override = {"worktree": {"parentDir": "/env"}}
    merged = merge_dicts({}, override)
    merged["worktree"]["parentDir"] = "/changed"
    assert override["worktree"]["parentDir"] == "/env"
