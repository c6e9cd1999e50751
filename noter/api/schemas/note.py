"""
Pydantic schemas for `/note` requests and responses.
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from noter.api.schemas.common import ApiModel

NoteType = Literal["text", "audio"]
SortOrder = Literal["newest", "oldest"]


class NoteOut(ApiModel):
    id: str = Field(alias="_id")
    user_id: str = Field(alias="userID")
    type: NoteType
    heading: str
    content: str
    audio_recording: Optional[str] = None
    audio_duration: Optional[float] = None
    images: List[str] = Field(default_factory=list)
    image_count: int = 0
    is_favourite: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Mongo hands back naive datetimes that are UTC
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class NoteEnvelope(ApiModel):
    note: NoteOut


class NoteMessageOut(ApiModel):
    message: str
    note: NoteOut


class NoteCreateOut(ApiModel):
    message: str
    id: str


class NoteListOut(ApiModel):
    notes: List[NoteOut]
    total: int
    page: int
    per_page: int
    total_pages: int


class NoteUpdatePayload(ApiModel):
    id: str
    heading: Optional[str] = None
    content: Optional[str] = None
    is_favourite: Optional[bool] = None

    @field_validator("is_favourite", mode="before")
    @classmethod
    def _blank_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v
