"""Stateless, signed, cookie-carried sessions for FastAPI and Starlette.

The whole session lives in one HMAC-signed cookie. Mutations made while a
request is handled are coalesced into a single Set-Cookie written when the
response commits.
"""

__version__ = "0.1.0"

from stateless_session.errors import (
    ConfigurationError,
    ReservedAttributeError,
    SessionInvalidatedError,
)
from stateless_session.session import RequestSession, SessionCodec, StatelessSession
from stateless_session.response import (
    CommitTrigger,
    DeferredCookieSink,
    SessionCookie,
    SinkState,
)
from stateless_session.middleware import (
    StatelessSessionMiddleware,
    commit_session,
    get_request_session,
)

__all__ = [
    "__version__",
    "ConfigurationError",
    "ReservedAttributeError",
    "SessionInvalidatedError",
    "RequestSession",
    "SessionCodec",
    "StatelessSession",
    "CommitTrigger",
    "DeferredCookieSink",
    "SessionCookie",
    "SinkState",
    "StatelessSessionMiddleware",
    "commit_session",
    "get_request_session",
]
