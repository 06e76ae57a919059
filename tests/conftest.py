import asyncio
import os

# Settings are read at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENABLE_REDIS"] = "false"
os.environ["CLEANUP_ENABLED"] = "false"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import app.models  # noqa: F401
from app.core.security import create_access_token, hash_password
from app.db.session import Base, get_db
from app.main import app
from app.models.user import User, UserRole
from app.schemas.geo import PlaceCategory, PointOfInterest, Position
from app.services.delivery import DeliveryResult
from app.services.image_storage import get_image_storage
from app.services.mailer import get_mailer
from app.services.places import get_places_provider
from app.services.push import get_push_sender


# ── Fakes for outbound collaborators ──────────────────────────────────────────

def make_point(id_, lat, lng, category=PlaceCategory.private, rating=None, title=None):
    return PointOfInterest(
        id=id_,
        title=title or f"Place {id_}",
        position=Position(lat=lat, lng=lng),
        category=category,
        rating=rating,
    )


class FakePlacesProvider:
    def __init__(self, points=None, error=None):
        self.points = list(points or [])
        self.error = error
        self.calls = []

    async def fetch_points(self, latitude, longitude, query_terms):
        self.calls.append((latitude, longitude, list(query_terms)))
        if self.error is not None:
            raise self.error
        return list(self.points)

    async def photo_redirect(self, reference, max_width=400):
        return f"https://images.example.com/{reference}?w={max_width}"


class FakeMailer:
    def __init__(self, ok=True):
        self.ok = ok
        self.reset_codes = []
        self.contact_messages = []

    async def send_password_reset(self, email, code):
        self.reset_codes.append((email, code))
        return DeliveryResult.success() if self.ok else DeliveryResult.failure("down")

    async def send_contact(self, name, email, subject, message):
        self.contact_messages.append((name, email, subject, message))
        return DeliveryResult.success() if self.ok else DeliveryResult.failure("down")


class FakePushSender:
    def __init__(self):
        self.sent = []

    async def send(self, device_token, title, body):
        self.sent.append((device_token, title, body))
        return DeliveryResult.success()


class FakeImageStorage:
    async def upload_image(self, data, filename="upload"):
        return f"https://cdn.example.com/{filename}"


# ── Database ──────────────────────────────────────────────────────────────────

@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
async def db(database_url):
    """Session for service-level tests, on the test's own event loop."""
    engine = create_async_engine(database_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = async_sessionmaker(engine, expire_on_commit=False)
    async with maker() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def session_maker(database_url):
    """Session factory for API tests; TestClient runs the app on its own loop."""
    engine = create_async_engine(database_url, poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def run(session_maker):
    """Run ``fn(session)`` to completion from a synchronous test."""
    def _run(fn):
        async def _go():
            async with session_maker() as session:
                return await fn(session)
        return asyncio.run(_go())
    return _run


# ── App ───────────────────────────────────────────────────────────────────────

@pytest.fixture
def places():
    return FakePlacesProvider()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def push():
    return FakePushSender()


@pytest.fixture
def client(session_maker, places, mailer, push):
    async def _get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_places_provider] = lambda: places
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_push_sender] = lambda: push
    app.dependency_overrides[get_image_storage] = FakeImageStorage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(run):
    def _create(email="ana@example.com", password="secret123", name="Ana",
                role=UserRole.user, device_token=None):
        async def _insert(session):
            user = User(
                name=name,
                email=email,
                hashed_password=hash_password(password),
                phone="+55 11 99999-0000",
                role=role,
                device_token=device_token,
                custom_emojis=[],
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user
        return run(_insert)
    return _create


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}
