from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, model_validator


class ContextKind(str, Enum):
    NONE = "none"
    TEXT = "text"
    IMAGE = "image"
    VIDEO_FRAMES = "video_frames"


class ContextPayload(BaseModel):
    """What, if anything, was extracted from the uploaded file.

    `kind` decides the shape of `content`:
    - none: empty string
    - text: extracted (or placeholder) document text
    - image: base64 of the raw image bytes, `mime_type` set
    - video_frames: non-empty list of base64 JPEG frames
    """

    kind: ContextKind = ContextKind.NONE
    content: Union[str, List[str]] = ""
    mime_type: Optional[str] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "ContextPayload":
        if self.kind is ContextKind.VIDEO_FRAMES:
            if not isinstance(self.content, list) or not self.content:
                raise ValueError("video_frames context needs at least one frame")
        elif not isinstance(self.content, str):
            raise ValueError(f"{self.kind.value} context needs string content")
        return self

    @classmethod
    def empty(cls) -> "ContextPayload":
        return cls()


class ChatReply(BaseModel):
    reply: str


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None


class HealthStatus(BaseModel):
    status: str = "healthy"
    api_configured: bool
    api_key_set: bool
