"""
Password-reset verification codes.

NoActiveCode → CodeIssued → Verified | Expired | Locked

A code is a 6-digit number stored only as a bcrypt hash. Five consecutive
wrong codes lock verification for RESET_LOCK_MINUTES; while locked every
attempt is rejected, right code or not, and no attempt is counted.
"""
from __future__ import annotations

import enum
import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import DateTime, case, literal, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.core.config import settings
from app.core.errors import Locked, ValidationError
from app.core.security import hash_password, verify_password
from app.models.user import User
from app.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

CODE_RE = re.compile(r"^\d{6}$")

# Expired codes, wrong codes and unknown accounts all get this answer.
INVALID_MESSAGE = "Invalid or expired verification code. Request a new code."


class ResetOutcome(str, enum.Enum):
    verified = "verified"
    expired = "expired"
    invalid_code = "invalid_code"
    locked = "locked"


def generate_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def is_valid_code_format(code: str) -> bool:
    return bool(CODE_RE.match(code or ""))


def is_locked(user: User, now: datetime) -> bool:
    locked_until = as_utc(user.reset_locked_until)
    return locked_until is not None and locked_until > now


def is_expired(user: User, now: datetime) -> bool:
    expires_at = as_utc(user.reset_code_expires_at)
    return not user.reset_code_hash or expires_at is None or expires_at < now


def raise_for_outcome(outcome: ResetOutcome) -> None:
    if outcome == ResetOutcome.locked:
        raise Locked()
    if outcome in (ResetOutcome.expired, ResetOutcome.invalid_code):
        raise ValidationError(INVALID_MESSAGE)


# ── State transitions ─────────────────────────────────────────────────────────

async def request_code(db: AsyncSession, user: User, now: Optional[datetime] = None) -> str:
    """
    Issue a fresh code and return it in clear for delivery.

    An active lock is left in place: a new code does not buy new attempts.
    """
    now = now or utcnow()
    code = generate_code()
    user.reset_code_hash = hash_password(code)
    user.reset_code_expires_at = now + timedelta(minutes=settings.RESET_CODE_TTL_MINUTES)
    user.reset_attempts = 0
    await db.commit()
    logger.info("Reset code issued for user=%d", user.id)
    return code


async def _record_failure(db: AsyncSession, user: User, now: datetime) -> None:
    # Single conditional UPDATE: concurrent failures cannot undercount.
    # Reaching the threshold sets the lock and restarts the count.
    lock_until = literal(now + timedelta(minutes=settings.RESET_LOCK_MINUTES), DateTime(timezone=True))
    attempts = User.reset_attempts + 1
    reaches_limit = attempts >= settings.RESET_MAX_ATTEMPTS
    stmt = (
        update(User)
        .where(User.id == user.id)
        .values(
            reset_attempts=case((reaches_limit, 0), else_=attempts),
            reset_locked_until=case((reaches_limit, lock_until), else_=User.reset_locked_until),
        )
        .returning(User.reset_attempts, User.reset_locked_until)
        .execution_options(synchronize_session=False)
    )
    row = (await db.execute(stmt)).one()
    await db.commit()
    set_committed_value(user, "reset_attempts", row[0])
    set_committed_value(user, "reset_locked_until", row[1])
    if is_locked(user, now):
        logger.warning(
            "Reset locked for user=%d after %d failed attempts",
            user.id, settings.RESET_MAX_ATTEMPTS,
        )


async def _check(db: AsyncSession, user: User, code: str, now: datetime) -> ResetOutcome:
    if is_locked(user, now):
        return ResetOutcome.locked
    if is_expired(user, now):
        return ResetOutcome.expired
    if not verify_password(code, user.reset_code_hash):
        await _record_failure(db, user, now)
        return ResetOutcome.invalid_code
    return ResetOutcome.verified


async def verify_code(
    db: AsyncSession,
    user: User,
    code: str,
    now: Optional[datetime] = None,
) -> ResetOutcome:
    """Check a code without consuming it; success resets the attempt counter."""
    outcome = await _check(db, user, code, now or utcnow())
    if outcome == ResetOutcome.verified:
        user.reset_attempts = 0
        await db.commit()
    return outcome


async def complete_reset(
    db: AsyncSession,
    user: User,
    code: str,
    new_password: str,
    now: Optional[datetime] = None,
) -> ResetOutcome:
    """Verify and consume the code in one step, storing the new password."""
    outcome = await _check(db, user, code, now or utcnow())
    if outcome != ResetOutcome.verified:
        return outcome
    user.hashed_password = hash_password(new_password)
    user.reset_code_hash = None
    user.reset_code_expires_at = None
    user.reset_attempts = 0
    user.reset_locked_until = None
    await db.commit()
    logger.info("Password reset completed for user=%d", user.id)
    return outcome
