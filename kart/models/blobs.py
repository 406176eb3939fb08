"""BlobStore object description."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BlobInfo(BaseModel):
    """What a BlobStore ``head`` returns for one object."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str
    size: int = 0
    metadata: dict[str, str] = Field(default_factory=dict)
    last_modified: datetime | None = None
