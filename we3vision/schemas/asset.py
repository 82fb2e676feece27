"""
Schemas for the key -> URL asset table and uploaded media files.
"""

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from we3vision.schemas.common import APIModel


class AssetUpsert(APIModel):
    url: str
    alt: str = ""

    field_messages = {"url": "url is required"}

    @field_validator("url", mode="before")
    @classmethod
    def validate_url(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("url is required")
        return v.strip()

    @field_validator("alt", mode="before")
    @classmethod
    def validate_alt(cls, v):
        if v is None:
            return ""
        return str(v).strip()


class AssetResponse(APIModel):
    id: int
    key: str
    url: str
    alt: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MediaFile(APIModel):
    """A stored upload: generated filename and its public URL."""
    filename: str
    url: str
