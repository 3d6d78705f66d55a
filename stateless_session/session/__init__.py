"""Session module for stateless sessions.

This module provides the session model, the signed cookie codec and the
request-scoped session handle.
"""

from stateless_session.session.models import (
    RESERVED_PREFIX,
    StatelessSession,
    generate_session_id,
)
from stateless_session.session.codec import (
    CREATED_AT_KEY,
    ID_KEY,
    SIGNATURE_KEY,
    SessionCodec,
)
from stateless_session.session.manager import RequestSession

__all__ = [
    "RESERVED_PREFIX",
    "StatelessSession",
    "generate_session_id",
    "CREATED_AT_KEY",
    "ID_KEY",
    "SIGNATURE_KEY",
    "SessionCodec",
    "RequestSession",
]
