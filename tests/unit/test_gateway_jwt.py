"""Unit tests for JWT handler and the account-id dependency."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from config.settings import settings
from src.ge_common.errors import InvalidCredentialsError
from src.ge_gateway.auth.dependencies import get_current_account_id
from src.ge_gateway.auth.jwt_handler import decode_access_token, issue_access_token


def _sign(payload: dict, secret: str | None = None) -> str:
    return jwt.encode(payload, secret or settings.JWT_SECRET, algorithm="HS256")


def test_access_token_contains_correct_claims() -> None:
    token = issue_access_token("acct-123")
    # Decode without verification to inspect claims
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "acct-123"
    assert payload["type"] == "access"


def test_decode_returns_account_id() -> None:
    assert decode_access_token(issue_access_token("acct-abc")) == "acct-abc"


def test_expired_token_raises_credentials_error() -> None:
    token = issue_access_token("acct-abc", expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_wrong_secret_raises_credentials_error() -> None:
    now = datetime.now(UTC)
    token = _sign(
        {"sub": "acct-abc", "type": "access", "exp": now + timedelta(minutes=5)},
        secret="some-other-secret",
    )
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_refresh_token_is_rejected() -> None:
    now = datetime.now(UTC)
    token = _sign({"sub": "acct-abc", "type": "refresh", "exp": now + timedelta(minutes=5)})
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_token_without_subject_is_rejected() -> None:
    now = datetime.now(UTC)
    token = _sign({"type": "access", "exp": now + timedelta(minutes=5)})
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_garbage_token_raises_credentials_error() -> None:
    with pytest.raises(InvalidCredentialsError):
        decode_access_token("not.a.jwt")


async def test_dependency_maps_to_401() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_account_id("not.a.jwt")
    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


async def test_dependency_returns_subject() -> None:
    assert await get_current_account_id(issue_access_token("acct-7")) == "acct-7"
