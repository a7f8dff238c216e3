"""Tests for bearer token authentication"""

import asyncio
import time

import jwt
import pytest
from fastapi import HTTPException

from checkout_service.core.config import Settings
from checkout_service.security.auth import BearerAuth

from .conftest import JWT_SECRET


def make_token(sub="user-1", secret=JWT_SECRET, **claims):
    payload = {"sub": sub, "aud": "authenticated", "exp": int(time.time()) + 3600}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def test_valid_token(settings):
    auth = BearerAuth(settings)

    user = asyncio.run(auth(authorization=f"Bearer {make_token(email='a@example.com')}"))

    assert user.user_id == "user-1"
    assert user.email == "a@example.com"


@pytest.mark.parametrize(
    "header",
    [
        None,
        "",
        "Basic dXNlcjpwYXNz",
        "Bearer ",
    ],
)
def test_missing_or_malformed_header(settings, header):
    with pytest.raises(HTTPException) as exc:
        asyncio.run(BearerAuth(settings)(authorization=header))

    assert exc.value.status_code == 401
    assert exc.value.detail["code"] == "unauthenticated"


@pytest.mark.parametrize(
    "token",
    [
        make_token(secret="a-different-secret-of-sufficient-length"),
        make_token(exp=int(time.time()) - 10),
        make_token(aud="someone-else"),
        "not-a-jwt",
    ],
)
def test_rejected_tokens(settings, token):
    with pytest.raises(HTTPException) as exc:
        BearerAuth(settings).decode(token)

    assert exc.value.status_code == 401


def test_token_without_sub_is_rejected(settings):
    token = jwt.encode(
        {"aud": "authenticated", "exp": int(time.time()) + 60}, JWT_SECRET, algorithm="HS256"
    )

    with pytest.raises(HTTPException):
        BearerAuth(settings).decode(token)


def test_no_secret_configured():
    auth = BearerAuth(Settings(_env_file=None, auth_jwt_secret=None))

    with pytest.raises(HTTPException) as exc:
        auth.decode(make_token())

    assert exc.value.status_code == 401
