"""Request-scoped session handle.

A RequestSession owns the session for exactly one request. It restores the
session from the incoming cookie, creates one lazily when asked, and reports
every mutation to a callback so the caller can schedule a cookie write.
"""

import logging
from typing import Callable, Optional

from stateless_session.session.codec import SessionCodec
from stateless_session.session.models import StatelessSession

logger = logging.getLogger(__name__)


SessionListener = Callable[[StatelessSession], None]


class RequestSession:
    """Lazy view over the session of the current request.

    When a cookie is present but fails authentication, an empty session is
    created straight away, so get_existing() returns a session without the
    forged attributes rather than None.

    Attributes:
        codec: Codec used to authenticate the incoming token
        renew_after_invalidate: Whether get_or_create() replaces an
            invalidated session with a new one
        token_rejected: Whether an incoming token was present but invalid
    """

    def __init__(
        self,
        codec: SessionCodec,
        token: Optional[str] = None,
        on_change: Optional[SessionListener] = None,
        renew_after_invalidate: bool = False,
    ):
        """Initialize RequestSession.

        Args:
            codec: Codec used to authenticate the incoming token
            token: Incoming session cookie value, if any
            on_change: Called with the session after each mutation
            renew_after_invalidate: Whether get_or_create() replaces an
                invalidated session with a new one
        """
        self.codec = codec
        self.renew_after_invalidate = renew_after_invalidate
        self.token_rejected = False
        self._on_change = on_change
        self._session: Optional[StatelessSession] = None

        if token:
            session = codec.decode(token)
            if session is None:
                self.token_rejected = True
                session = StatelessSession.create()
                logger.info(f"Discarded invalid session cookie, started session {session.id}")
            self._attach(session)

    def get_existing(self) -> Optional[StatelessSession]:
        """Get the session restored or created in this request, if any.

        Returns:
            Current StatelessSession, or None if there is none yet
        """
        return self._session

    def get_or_create(self) -> StatelessSession:
        """Get the current session, creating an empty one if needed.

        Repeated calls return the same instance. A new session is not dirty,
        so creating one writes no cookie until it is mutated.

        Returns:
            Existing or newly created StatelessSession
        """
        session = self._session
        if session is None or (session.invalidated and self.renew_after_invalidate):
            session = StatelessSession.create()
            logger.debug(f"Created session {session.id}")
            self._attach(session)
        return session

    def _attach(self, session: StatelessSession) -> None:
        session.listener = self._session_changed
        self._session = session

    def _session_changed(self, session: StatelessSession) -> None:
        # A session replaced after invalidation no longer speaks for the cookie
        if session is not self._session:
            return
        if self._on_change is not None:
            self._on_change(session)
