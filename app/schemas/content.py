from datetime import datetime
from typing import Optional

from app.models.content import ContentStatus, VideoCategory
from app.schemas.common import CamelModel


class VideoRead(CamelModel):
    id: int
    title: str
    description: Optional[str]
    url: str
    thumbnail: Optional[str]
    channel_name: Optional[str]
    status: ContentStatus
    category: VideoCategory
    created_at: datetime


class ArticleRead(CamelModel):
    id: int
    title: str
    description: Optional[str]
    content: str
    author: str
    url: str
    source: Optional[str]
    status: ContentStatus
    created_at: datetime


class VideoApprove(CamelModel):
    category: VideoCategory


class ImportResult(CamelModel):
    msg: str
    imported: int
