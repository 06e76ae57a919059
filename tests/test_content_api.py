import httpx
import pytest
from sqlalchemy import select

from app.core.errors import ProviderUnavailable
from app.models.content import Article, ContentStatus, Video, VideoCategory
from app.models.user import UserRole
from app.services.content_feeds import fetch_news_articles, fetch_youtube_videos
from tests.conftest import auth_headers


def _seed_content(run):
    async def _insert(session):
        video = Video(title="Breathing", url="https://www.youtube.com/watch?v=1")
        approved = Video(
            title="Calm", url="https://www.youtube.com/watch?v=2",
            status=ContentStatus.approved, category=VideoCategory.relaxamento,
        )
        article = Article(title="Anxiety 101", url="https://news.example.com/a")
        session.add_all([video, approved, article])
        await session.commit()
        return video.id, article.id
    return run(_insert)


# ── Moderation ────────────────────────────────────────────────────────────────

def test_moderation_requires_role(client, create_user):
    user = create_user()
    assert client.get("/api/v1/moderation/videos", headers=auth_headers(user)).status_code == 403


def test_pending_lists_are_paginated(client, create_user, run):
    moderator = create_user(email="mod@example.com", role=UserRole.moderator)
    _seed_content(run)

    resp = client.get("/api/v1/moderation/videos", headers=auth_headers(moderator), params={"limit": 1})
    body = resp.json()
    assert body["success"] is True
    assert [v["title"] for v in body["data"]] == ["Breathing"]
    assert body["pagination"] == {"currentPage": 1, "totalPages": 1, "totalItems": 1}


def test_approve_video_needs_category(client, create_user, run):
    moderator = create_user(email="mod@example.com", role=UserRole.moderator)
    video_id, _ = _seed_content(run)
    url = f"/api/v1/moderation/videos/{video_id}/approve"

    assert client.post(url, headers=auth_headers(moderator), json={}).status_code == 400
    resp = client.post(url, headers=auth_headers(moderator), json={"category": "Meditação"})
    assert resp.status_code == 200

    videos = client.get("/api/v1/exercises/videos", params={"category": "Meditação"}).json()["data"]
    assert [v["title"] for v in videos] == ["Breathing"]


def test_public_video_list_only_approved(client, run):
    _seed_content(run)
    body = client.get("/api/v1/exercises/videos").json()
    assert body["success"] is True
    assert [v["title"] for v in body["data"]] == ["Calm"]


def test_reject_and_approve_article(client, create_user, run):
    moderator = create_user(email="mod@example.com", role=UserRole.moderator)
    reader = create_user()
    _, article_id = _seed_content(run)

    assert client.get("/api/v1/educational/articles", headers=auth_headers(reader)).json()["data"] == []
    resp = client.post(f"/api/v1/moderation/articles/{article_id}/approve", headers=auth_headers(moderator))
    assert resp.status_code == 200
    articles = client.get("/api/v1/educational/articles", headers=auth_headers(reader)).json()["data"]
    assert [a["title"] for a in articles] == ["Anxiety 101"]

    client.post(f"/api/v1/moderation/articles/{article_id}/reject", headers=auth_headers(moderator))

    async def _reviewed(session):
        return await session.get(Article, article_id)
    article = run(_reviewed)
    assert article.status == ContentStatus.rejected
    assert article.reviewed_at is not None


def test_review_unknown_item(client, create_user):
    moderator = create_user(email="mod@example.com", role=UserRole.moderator)
    resp = client.post("/api/v1/moderation/articles/999/reject", headers=auth_headers(moderator))
    assert resp.status_code == 404


# ── Feeds ─────────────────────────────────────────────────────────────────────

async def test_youtube_import_skips_invalid_and_duplicates(db):
    db.add(Video(title="Known", url="https://www.youtube.com/watch?v=known"))
    await db.commit()

    def handler(request):
        assert request.url.params["type"] == "video"
        return httpx.Response(200, json={"items": [
            {"id": {"videoId": "known"}, "snippet": {"title": "Known again"}},
            {"id": {"videoId": "new1"}, "snippet": {"title": "Fresh", "channelTitle": "Calm Channel",
                                                     "thumbnails": {"default": {"url": "https://i.ytimg.com/x.jpg"}}}},
            {"id": {}, "snippet": {"title": "No id"}},
        ]})

    imported = await fetch_youtube_videos(db, transport=httpx.MockTransport(handler))
    assert imported == 1

    rows = (await db.execute(select(Video).order_by(Video.id))).scalars().all()
    assert [(v.title, v.status) for v in rows] == [
        ("Known", ContentStatus.pending),
        ("Fresh", ContentStatus.pending),
    ]
    assert rows[1].channel_name == "Calm Channel"


async def test_news_import_fills_defaults(db):
    def handler(request):
        return httpx.Response(200, json={"articles": [
            {"title": "Sleep well", "url": "https://news.example.com/sleep", "source": {"name": "Folha"}},
            {"title": None, "url": "https://news.example.com/none"},
        ]})

    assert await fetch_news_articles(db, transport=httpx.MockTransport(handler)) == 1
    article = (await db.execute(select(Article))).scalar_one()
    assert article.author == "Unknown author"
    assert article.content == "Content unavailable"
    assert article.source == "Folha"


async def test_feed_failure_raises(db):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    with pytest.raises(ProviderUnavailable):
        await fetch_news_articles(db, transport=transport)


def test_automate_requires_moderator(client, create_user):
    user = create_user()
    assert client.post("/api/v1/automate/videos", headers=auth_headers(user)).status_code == 403


# ── Contact ───────────────────────────────────────────────────────────────────

def test_contact_support(client, mailer):
    resp = client.post("/api/v1/contact/support", json={
        "name": "Ana", "email": "ana@example.com", "subject": "Help", "message": "Hi there",
    })
    assert resp.status_code == 200
    assert mailer.contact_messages == [("Ana", "ana@example.com", "Help", "Hi there")]


def test_contact_requires_email_and_message(client):
    assert client.post("/api/v1/contact/support", json={"message": "Hi"}).status_code == 400
    assert client.post("/api/v1/contact/support", json={"email": "ana@example.com", "message": ""}).status_code == 400


def test_contact_delivery_failure_is_500(client, mailer):
    mailer.ok = False
    resp = client.post("/api/v1/contact/support", json={"email": "ana@example.com", "message": "Hi"})
    assert resp.status_code == 500
