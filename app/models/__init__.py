# Import every model here so Alembic autogenerate can discover them
# and so Base.metadata.create_all() works in tests.
# Dependency order matters: referenced tables must come before tables
# that FK-reference them.

from app.models.user import User                          # noqa: F401

# everything below FK-references users
from app.models.diary_entry import DiaryEntry             # noqa: F401
from app.models.post import Post, PostComment, PostLike   # noqa: F401
from app.models.notification import Notification          # noqa: F401
from app.models.gamification import Challenge, Progress, Reward  # noqa: F401

from app.models.content import Article, Video             # noqa: F401
from app.models.geo_cache import GeoCacheEntry            # noqa: F401
