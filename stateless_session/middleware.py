"""Stateless session middleware for FastAPI.

This module wires the session codec, the request-scoped session handle and
the deferred cookie sink into the Starlette request cycle:

- Reads and authenticates the session cookie on the way in
- Exposes the session handle as ``request.state.session``
- Re-encodes the session on every mutation and defers the cookie write
- Writes at most one session cookie when the response is handed back
"""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from stateless_session.config import SessionConfig, get_config
from stateless_session.response.sink import (
    CommitTrigger,
    DeferredCookieSink,
    SessionCookie,
)
from stateless_session.response.transport import (
    ResponseCookieTransport,
    claim_cookies,
    trigger_for_response,
)
from stateless_session.session.codec import SessionCodec
from stateless_session.session.manager import RequestSession
from stateless_session.session.models import StatelessSession

logger = logging.getLogger(__name__)


class StatelessSessionMiddleware(BaseHTTPMiddleware):
    """Middleware carrying the session in one signed cookie.

    Attributes:
        config: Session configuration
        codec: SessionCodec signing and verifying the cookie
    """

    def __init__(self, app, config: Optional[SessionConfig] = None):
        """Initialize StatelessSessionMiddleware.

        Args:
            app: FastAPI application
            config: Optional SessionConfig (loads from environment if not provided)

        Raises:
            ConfigurationError: If the signing key or cookie name is missing
        """
        super().__init__(app)
        self.config = config or get_config()
        self.codec = SessionCodec(self.config.signing_key)

    @property
    def cookie_name(self) -> str:
        return self.config.cookie_name

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request through the session middleware.

        Args:
            request: Incoming request
            call_next: Next middleware/handler in chain

        Returns:
            Response from handler, carrying the session cookie if it changed
        """
        transport = ResponseCookieTransport()
        sink = DeferredCookieSink(transport, self.cookie_name)

        def schedule_write(session: StatelessSession) -> None:
            sink.set_cookie(self.build_cookie(session))

        request.state.session = RequestSession(
            self.codec,
            token=request.cookies.get(self.cookie_name),
            on_change=schedule_write,
            renew_after_invalidate=self.config.renew_after_invalidate,
        )
        request.state.session_sink = sink

        response = await call_next(request)

        # A handler writing the session cookie itself is the last write of the request
        for cookie in claim_cookies(response, self.cookie_name):
            sink.set_cookie(cookie)
        transport.attach(response)
        sink.commit(trigger_for_response(response))
        sink.close()
        return response

    def build_cookie(self, session: StatelessSession) -> SessionCookie:
        """Build the cookie carrying a session's current state.

        Args:
            session: Session to encode

        Returns:
            SessionCookie that removes the cookie when the session was
            invalidated, or a browser-session cookie otherwise
        """
        return SessionCookie(
            name=self.cookie_name,
            value=self.codec.encode(session),
            max_age=0 if session.invalidated else None,
            path=self.config.cookie_path,
            secure=self.config.cookie_secure,
            httponly=self.config.cookie_httponly,
            samesite=self.config.cookie_samesite,
        )


def get_request_session(request: Request) -> RequestSession:
    """Get the session handle attached by the middleware.

    Args:
        request: Request processed by StatelessSessionMiddleware

    Returns:
        RequestSession for this request

    Raises:
        ValueError: If the middleware is not installed
    """
    handle = getattr(request.state, "session", None)
    if not isinstance(handle, RequestSession):
        raise ValueError("No session handle found in request; is StatelessSessionMiddleware installed?")
    return handle


def commit_session(
    request: Request, trigger: CommitTrigger = CommitTrigger.FLUSH
) -> None:
    """Write the session cookie now instead of when the response returns.

    Use before returning a streaming response whose body should not be able
    to change the session any more.

    Args:
        request: Request processed by StatelessSessionMiddleware
        trigger: Response action that causes the commit
    """
    sink = getattr(request.state, "session_sink", None)
    if sink is None:
        raise ValueError("No session sink found in request; is StatelessSessionMiddleware installed?")
    sink.commit(trigger)
