from datetime import datetime, timezone
from typing import Any, List

from sqlalchemy import JSON, DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base


class GeoCacheEntry(Base):
    """
    Provider search results for one (rounded coordinates, query terms) key.

    Rows are write-once. A row stops being a hit once it is older than
    GEO_CACHE_TTL_HOURS; the cleanup job deletes such rows.
    """
    __tablename__ = "geo_cache"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    cache_key: Mapped[str] = mapped_column(String(600), nullable=False, index=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    queries: Mapped[List[str]] = mapped_column(JSON, nullable=False)
    results: Mapped[List[Any]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
