"""Deferred cookie writes.

The session cookie may be rewritten many times while a request is handled,
but only the last value matters and it can only be written while response
headers are still open. DeferredCookieSink holds back cookies with one
tracked name and writes the latest of them exactly once, when the response
commits.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from stateless_session.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SinkState(Enum):
    """Lifecycle of a sink over one response."""

    OPEN = "open"
    COMMITTED = "committed"
    CLOSED = "closed"


class CommitTrigger(Enum):
    """Response actions that put headers on the wire."""

    FLUSH = "flush"
    STREAM = "stream"
    ERROR = "error"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class SessionCookie:
    """A cookie write request.

    Attributes:
        name: Cookie name
        value: Cookie value
        max_age: Lifetime in seconds; None for a browser-session cookie and
            0 for removal
        path: Path attribute
        secure: Whether to set the Secure flag
        httponly: Whether to set the HttpOnly flag
        samesite: SameSite policy, or None to omit it
    """

    name: str
    value: str
    max_age: Optional[int] = None
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: Optional[str] = "lax"

    @property
    def is_removal(self) -> bool:
        return self.max_age == 0


class CookieTransport(Protocol):
    """Whatever actually writes Set-Cookie headers for a response."""

    def add_cookie(self, cookie: SessionCookie) -> None:
        ...


class DeferredCookieSink:
    """Coalesces writes of one cookie name until the response commits.

    While OPEN, cookies with the tracked name replace each other and are not
    written. The first commit() writes the surviving cookie, if any, and moves
    the sink to COMMITTED; close() ends the response. Cookies with other
    names go straight to the transport in every state.

    Attributes:
        transport: Writer the cookies are handed to
        cookie_name: Name of the cookie whose writes are deferred
        state: Current SinkState
        trigger: CommitTrigger that committed the sink, if any
    """

    def __init__(self, transport: CookieTransport, cookie_name: str):
        """Initialize DeferredCookieSink.

        Args:
            transport: Writer the cookies are handed to
            cookie_name: Name of the cookie whose writes are deferred

        Raises:
            ConfigurationError: If cookie_name is empty
        """
        if not cookie_name:
            raise ConfigurationError("SESSION_COOKIE_NAME", "cookie name must be set")
        self.transport = transport
        self.cookie_name = cookie_name
        self.state = SinkState.OPEN
        self.trigger: Optional[CommitTrigger] = None
        self._pending: Optional[SessionCookie] = None

    @property
    def pending(self) -> Optional[SessionCookie]:
        return self._pending

    def set_cookie(self, cookie: SessionCookie) -> None:
        """Schedule a cookie write.

        Args:
            cookie: Cookie to write
        """
        if cookie.name != self.cookie_name:
            self.transport.add_cookie(cookie)
            return

        if self.state is not SinkState.OPEN:
            logger.warning(
                f"Ignoring write of cookie {cookie.name} after the response "
                f"was committed ({self.state.value})"
            )
            return

        self._pending = cookie

    def commit(self, trigger: CommitTrigger = CommitTrigger.FLUSH) -> None:
        """Write the pending cookie because the response is being sent.

        Only the first call writes anything; later calls are no-ops.

        Args:
            trigger: Response action that caused the commit
        """
        if self.state is not SinkState.OPEN:
            return

        self.state = SinkState.COMMITTED
        self.trigger = trigger
        cookie, self._pending = self._pending, None
        if cookie is not None:
            logger.debug(
                f"Writing cookie {cookie.name} on {trigger.value}"
                f"{' (removal)' if cookie.is_removal else ''}"
            )
            self.transport.add_cookie(cookie)

    def close(self) -> None:
        """Finish the response; commits first if that has not happened."""
        self.commit()
        self.state = SinkState.CLOSED
