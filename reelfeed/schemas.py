from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime


class Video(BaseModel):
    filename: str
    path: str


class Category(BaseModel):
    name: str
    videos: List[Video] = []


class NextVideoResponse(BaseModel):
    video: Video
    category: str


class ResetResponse(BaseModel):
    message: str = "All videos watched! Starting fresh."
    resetViewed: bool = True


# Request models
class InteractionCreate(BaseModel):
    videoPath: str
    category: str
    # Unknown types are accepted and carry no score change
    interactionType: str = Field(..., min_length=1)


class InteractionAck(BaseModel):
    message: str = "Interaction recorded"


class Preference(BaseModel):
    category: str
    score: float


class InitializeResponse(BaseModel):
    status: str = "success"
    created: List[str] = []


class VideoInteraction(BaseModel):
    id: int
    user_id: str
    video_path: str
    category: Optional[str] = None
    interaction_type: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Error responses
class ErrorResponse(BaseModel):
    detail: str


# API status
class HealthCheck(BaseModel):
    status: str
    port: int
    timestamp: str
