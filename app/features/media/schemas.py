import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class VideoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)


class VideoOut(BaseModel):
    """
    Vidéo telle que renvoyée au client.
    `video_url` est toujours une URL utilisable (statique ou signée), ou None.
    """
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    title: str
    description: str
    user_id: uuid.UUID
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None


class VideoListOut(BaseModel):
    items: List[VideoOut]
    total: int
