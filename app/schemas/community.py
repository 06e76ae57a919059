from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.models.notification import NotificationType
from app.schemas.common import CamelModel


class AuthorRead(CamelModel):
    id: int
    name: str
    photo_url: Optional[str]


class CommentRead(CamelModel):
    id: int
    comment: str
    created_at: datetime
    author: AuthorRead


class PostRead(CamelModel):
    id: int
    content: Optional[str]
    image_url: Optional[str]
    created_at: datetime
    updated_at: datetime
    author: AuthorRead
    comments: List[CommentRead]
    likes_count: int
    is_liked_by_current_user: bool
    time_ago: str


class PostPage(CamelModel):
    posts: List[PostRead]
    current_page: int
    total_pages: int
    total_posts: int


class CommentCreate(CamelModel):
    post_id: int
    comment: str = Field(min_length=1, max_length=2000)


class LikeToggle(CamelModel):
    post_id: int


class PostActionResponse(CamelModel):
    msg: str
    post: PostRead


class NotificationRead(CamelModel):
    id: int
    type: NotificationType
    content: Optional[str]
    is_read: bool
    created_at: datetime
