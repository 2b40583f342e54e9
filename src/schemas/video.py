"""Video and video feedback schema definitions."""

from typing import List, Optional

from pydantic import Field

from schemas.base import CamelModel


class VideoFeedback(CamelModel):
    id: str
    video_id: str
    coach_id: str
    rating: Optional[int] = None
    comments: Optional[str] = None
    improvements: List[str] = Field(default_factory=list)
    created_at: str
    updated_at: str


class Video(CamelModel):
    id: str
    user_id: str
    session_id: Optional[str] = None
    url: str
    filename: str
    size: Optional[int] = None
    duration: Optional[float] = None
    created_at: str
    feedback: Optional[VideoFeedback] = None


class CreateVideoRequest(CamelModel):
    url: str = Field(min_length=1)
    filename: str = Field(min_length=1)
    size: Optional[int] = Field(default=None, ge=0)
    duration: Optional[float] = Field(default=None, ge=0)
    session_id: Optional[str] = None


class FeedbackRequest(CamelModel):
    """Fields left as None are not touched when feedback already exists."""

    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comments: Optional[str] = None
    improvements: Optional[List[str]] = None
