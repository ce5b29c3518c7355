"""Pydantic schemas for agntc files.

This module defines the data models for:
- agntc.json (bundle configuration)
- .agntc/manifest.json (installed bundle manifest)
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

# =============================================================================
# Common Types
# =============================================================================

AssetType = Literal["skills", "agents", "hooks"]

# Fixed order used for detection, projection and copying
ASSET_DIRS: tuple[AssetType, ...] = ("skills", "agents", "hooks")


# =============================================================================
# Bundle Configuration (agntc.json)
# =============================================================================


class BundleConfig(BaseModel):
    """Bundle configuration (agntc.json) schema.

    Only ``agents`` is read; any other keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    agents: list[str]

    @field_validator("agents", mode="before")
    @classmethod
    def validate_agents(cls, v: object) -> object:
        """Require a non-empty list."""
        if not isinstance(v, list) or len(v) == 0:
            raise ValueError("agents must not be empty")
        return v

    @field_validator("agents")
    @classmethod
    def keep_string_ids(cls, v: list[object]) -> list[str]:
        """Drop entries that are not strings."""
        return [a for a in v if isinstance(a, str)]


# =============================================================================
# Manifest (.agntc/manifest.json)
# =============================================================================


class ManifestEntry(BaseModel):
    """A single installed bundle.

    ``ref`` and ``commit`` are both None only for locally sourced bundles.
    ``files`` is the complete list of project-relative paths owned by the
    entry; directory paths end with ``/``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ref: str | None
    commit: str | None
    installed_at: str = Field(alias="installedAt")
    agents: list[str]
    files: list[str]
    clone_url: str | None = Field(default=None, alias="cloneUrl")

    @property
    def is_local(self) -> bool:
        """Whether the bundle was installed from a local path."""
        return self.ref is None and self.commit is None


# Mapping of manifest key -> entry
Manifest = dict[str, ManifestEntry]

MANIFEST_ADAPTER: TypeAdapter[dict[str, ManifestEntry]] = TypeAdapter(dict[str, ManifestEntry])
