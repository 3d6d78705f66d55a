"""Shared fixtures for stateless session tests."""

import os
from http.cookies import SimpleCookie
from typing import Dict, List
from unittest.mock import patch

import pytest

from stateless_session.config import SessionConfig, get_config
from stateless_session.session.codec import SessionCodec

SIGNING_KEY = "key"
COOKIE_NAME = "SESSION"


@pytest.fixture
def codec() -> SessionCodec:
    return SessionCodec(SIGNING_KEY)


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(signing_key=SIGNING_KEY, cookie_name=COOKIE_NAME)


@pytest.fixture
def session_env():
    """Environment with only the signing key set, and a fresh config cache."""
    with patch.dict(os.environ, {"SESSION_SIGNING_KEY": SIGNING_KEY}, clear=True):
        get_config.cache_clear()
        yield
    get_config.cache_clear()


def cookie_header(token: str, name: str = COOKIE_NAME) -> Dict[str, str]:
    """Build a request Cookie header carrying a session token."""
    cookie = SimpleCookie()
    cookie[name] = token
    return {"cookie": cookie[name].OutputString()}


def session_cookies(response, name: str = COOKIE_NAME) -> List:
    """Parse every Set-Cookie header for the session cookie into morsels.

    Works for both Starlette responses and httpx test client responses.
    """
    morsels = []
    for key, value in response.headers.raw:
        if key.lower() != b"set-cookie":
            continue
        cookie = SimpleCookie()
        cookie.load(value.decode("latin-1"))
        if name in cookie:
            morsels.append(cookie[name])
    return morsels
