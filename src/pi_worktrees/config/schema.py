"""Pydantic configuration schema for pi-worktrees."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class WorktreeSettings(BaseModel):
    """Worktree placement and post-create hook settings."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    parent_dir: Optional[StrictStr] = Field(default=None, alias="parentDir")
    on_create: Optional[StrictStr] = Field(default=None, alias="onCreate")

    def to_dict(self) -> dict[str, str]:
        """Return the set fields keyed by their JSON names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class UnresolvedConfig(BaseModel):
    """Raw merged input, tolerating the legacy flat shape and unknown keys."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    worktree: Optional[WorktreeSettings] = None
    # legacy flat shape
    parent_dir: Optional[StrictStr] = Field(default=None, alias="parentDir")
    on_create: Optional[StrictStr] = Field(default=None, alias="onCreate")


class ResolvedConfig(BaseModel):
    """Normalized configuration exposed to the rest of the tool."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    worktree: WorktreeSettings

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# Names matched case-insensitively when mapping environment variables.
KNOWN_FIELD_NAMES = ("worktree", "parentDir", "onCreate")
