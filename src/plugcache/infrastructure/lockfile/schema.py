"""Pydantic validation models for the on-disk lock file."""

from __future__ import annotations

from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    StringConstraints,
    TypeAdapter,
    field_validator,
)

from plugcache.domain.entities.lock import LockEntry, LockManifest

Sha512Hex = Annotated[StrictStr, StringConstraints(pattern=r"^[0-9a-fA-F]{128}$")]


class LockEntryModel(BaseModel):
    """One lock file value: ``{"fileName": str, "sha512": str}``."""

    model_config = ConfigDict(extra="forbid")

    file_name: StrictStr = Field(alias="fileName")
    sha512: Sha512Hex

    @field_validator("file_name")
    @classmethod
    def _validate_file_name(cls, v: str) -> str:
        # Must name an entry directly inside the cache directory.
        if v in {"", ".", ".."} or "/" in v or "\\" in v:
            raise ValueError(f"fileName must be a plain file name, got: {v!r}")
        return v


LOCK_FILE_ADAPTER: TypeAdapter[dict[str, LockEntryModel]] = TypeAdapter(
    dict[StrictStr, LockEntryModel]
)


def to_domain_manifest(entries: dict[str, LockEntryModel]) -> LockManifest:
    """Convert validated lock file data to the domain manifest."""
    return LockManifest(
        {
            source_id: LockEntry(file_name=model.file_name, content_hash=model.sha512)
            for source_id, model in entries.items()
        }
    )


def to_lock_document(manifest: LockManifest) -> dict[str, dict[str, str]]:
    """Convert the domain manifest to the JSON document written to disk."""
    return {
        source_id: {"fileName": entry.file_name, "sha512": entry.content_hash}
        for source_id, entry in manifest.snapshot().items()
    }
