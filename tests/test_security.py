from datetime import datetime, timedelta, timezone

from jose import jwt

from app.core.config import settings
from app.core.security import (
    ACCESS, REFRESH,
    create_access_token, create_refresh_token,
    hash_password, token_user_id, verify_password,
)


def _encode(claims):
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def test_tokens_carry_user_id_for_their_own_type():
    assert token_user_id(create_access_token(7, "user"), ACCESS) == 7
    assert token_user_id(create_refresh_token(7, "user"), REFRESH) == 7
    assert token_user_id(create_access_token(7, "user"), REFRESH) is None
    assert token_user_id(create_refresh_token(7, "user"), ACCESS) is None


def test_token_without_numeric_subject_is_rejected():
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    assert token_user_id(_encode({"type": ACCESS, "exp": exp}), ACCESS) is None
    assert token_user_id(_encode({"sub": "abc", "type": ACCESS, "exp": exp}), ACCESS) is None


def test_expired_or_garbage_token_is_rejected():
    exp = datetime.now(timezone.utc) - timedelta(minutes=1)
    assert token_user_id(_encode({"sub": "7", "type": ACCESS, "exp": exp}), ACCESS) is None
    assert token_user_id("not-a-token", ACCESS) is None


def test_verify_password_without_hash():
    assert verify_password("secret", hash_password("secret"))
    assert not verify_password("secret", None)
