"""Response-side cookie handling: deferred writes and the Starlette transport."""

from stateless_session.response.sink import (
    CommitTrigger,
    CookieTransport,
    DeferredCookieSink,
    SessionCookie,
    SinkState,
)
from stateless_session.response.transport import (
    ResponseCookieTransport,
    claim_cookies,
    trigger_for_response,
)

__all__ = [
    "CommitTrigger",
    "CookieTransport",
    "DeferredCookieSink",
    "SessionCookie",
    "SinkState",
    "ResponseCookieTransport",
    "claim_cookies",
    "trigger_for_response",
]
