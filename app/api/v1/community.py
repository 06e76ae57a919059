import logging
import math
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.core.errors import NotFound, ValidationError
from app.db.session import get_db
from app.models.notification import Notification, NotificationType
from app.models.post import Post, PostComment, PostLike
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.community import (
    AuthorRead, CommentCreate, CommentRead, LikeToggle,
    NotificationRead, PostActionResponse, PostPage, PostRead,
)
from app.services.image_storage import CloudinaryStorage, get_image_storage
from app.services.push import FcmPushSender, get_push_sender
from app.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/community", tags=["community"])

MAX_PAGE_SIZE = 50


# ── Presentation helpers ──────────────────────────────────────────────────────

def time_ago(created_at: datetime, now: Optional[datetime] = None) -> str:
    seconds = max(0, int(((now or utcnow()) - as_utc(created_at)).total_seconds()))
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            n = seconds // size
            return f"{n} {unit}{'s' if n != 1 else ''} ago"
    return "just now"


def post_to_read(post: Post, viewer_id: int, now: Optional[datetime] = None) -> PostRead:
    return PostRead(
        id=post.id,
        content=post.content,
        image_url=post.image_url,
        created_at=post.created_at,
        updated_at=post.updated_at,
        author=AuthorRead.model_validate(post.author),
        comments=[CommentRead.model_validate(c) for c in post.comments],
        likes_count=len(post.likes),
        is_liked_by_current_user=any(like.user_id == viewer_id for like in post.likes),
        time_ago=time_ago(post.created_at, now),
    )


async def _load_post(db: AsyncSession, post_id: int) -> Post:
    result = await db.execute(
        select(Post)
        .where(Post.id == post_id)
        .execution_options(populate_existing=True)
    )
    post = result.scalar_one_or_none()
    if not post:
        raise NotFound("Post not found")
    return post


async def _notify(
    db: AsyncSession,
    push: FcmPushSender,
    recipient: User,
    type_: NotificationType,
    content: str,
) -> None:
    """Stores the notification row; the push is best-effort."""
    db.add(Notification(user_id=recipient.id, type=type_, content=content))
    await db.commit()
    if recipient.device_token:
        result = await push.send(recipient.device_token, "MindCare", content)
        if not result.ok:
            logger.warning("Push to user %d not delivered: %s", recipient.id, result.error)


# ── Posts ─────────────────────────────────────────────────────────────────────

@router.post("/createPost", response_model=PostActionResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    content: Optional[str] = Form(None, max_length=5000),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: CloudinaryStorage = Depends(get_image_storage),
    current_user: User = Depends(get_current_user),
):
    has_image = image is not None and bool(image.filename)
    if not (content and content.strip()) and not has_image:
        raise ValidationError("A post needs content or an image.")

    image_url = await storage.upload_image(await image.read(), image.filename) if has_image else None
    post = Post(user_id=current_user.id, content=content.strip() if content else None, image_url=image_url)
    db.add(post)
    await db.commit()
    post = await _load_post(db, post.id)
    logger.info("Post %d created by user %d", post.id, current_user.id)
    return PostActionResponse(msg="Post created successfully.", post=post_to_read(post, current_user.id))


@router.get("/posts", response_model=PostPage)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    total = (await db.execute(select(func.count(Post.id)))).scalar_one()
    result = await db.execute(
        select(Post)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    now = utcnow()
    return PostPage(
        posts=[post_to_read(p, current_user.id, now) for p in result.scalars().all()],
        current_page=page,
        total_pages=math.ceil(total / limit),
        total_posts=total,
    )


@router.post("/addComment", response_model=PostActionResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    push: FcmPushSender = Depends(get_push_sender),
    current_user: User = Depends(get_current_user),
):
    post = await _load_post(db, payload.post_id)
    db.add(PostComment(post_id=post.id, user_id=current_user.id, comment=payload.comment.strip()))
    await db.commit()

    if post.user_id != current_user.id:
        await _notify(
            db, push, post.author, NotificationType.comment,
            f"{current_user.name} commented on your post.",
        )
    post = await _load_post(db, post.id)
    return PostActionResponse(msg="Comment added.", post=post_to_read(post, current_user.id))


@router.post("/likePost", response_model=PostActionResponse)
async def like_post(
    payload: LikeToggle,
    db: AsyncSession = Depends(get_db),
    push: FcmPushSender = Depends(get_push_sender),
    current_user: User = Depends(get_current_user),
):
    """Toggle the caller's like on a post."""
    post = await _load_post(db, payload.post_id)
    result = await db.execute(
        select(PostLike).where(PostLike.post_id == post.id, PostLike.user_id == current_user.id)
    )
    existing = result.scalar_one_or_none()

    if existing:
        await db.delete(existing)
        await db.commit()
        msg = "Like removed."
    else:
        db.add(PostLike(post_id=post.id, user_id=current_user.id))
        await db.commit()
        msg = "Post liked."
        if post.user_id != current_user.id:
            await _notify(
                db, push, post.author, NotificationType.like,
                f"{current_user.name} liked your post.",
            )

    post = await _load_post(db, post.id)
    return PostActionResponse(msg=msg, post=post_to_read(post, current_user.id))


# ── Notifications ─────────────────────────────────────────────────────────────

@router.get("/notifications", response_model=List[NotificationRead])
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return result.scalars().all()


@router.post("/notifications/{notification_id}/read", response_model=MessageResponse)
async def mark_notification_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == current_user.id,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFound("Notification not found")
    notification.is_read = True
    await db.commit()
    return MessageResponse(msg="Notification marked as read.")
