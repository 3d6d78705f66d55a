"""Signed cookie codec for stateless sessions.

Token format (the session cookie value)::

    {"<attr>":"<value>",...,"__ct":"<created-ms>","__id":"<session-id>","__s":"<hmac>"}

Attribute pairs come first sorted by key, then the creation time and the
session ID. Every key and value is a JSON string literal, so two different
sessions never produce the same text. ``__s`` is an HMAC-SHA1 over the token
without the ``__s`` field and is always the last field.

A token is accepted only if it is byte-for-byte the token this codec would
produce for the content it carries.
"""

import hashlib
import hmac
import json
import logging
import re
from typing import Dict, List, Optional, Tuple

from stateless_session.errors import ConfigurationError, ReservedAttributeError
from stateless_session.session.models import StatelessSession, is_reserved_key

logger = logging.getLogger(__name__)


CREATED_AT_KEY = "__ct"
ID_KEY = "__id"
SIGNATURE_KEY = "__s"

# Browsers drop cookies larger than this
MAX_COOKIE_SIZE = 4096

_MILLIS_PATTERN = re.compile(r"[0-9]+")


class MalformedTokenError(ValueError):
    """Raised internally when a token cannot be parsed into session fields."""


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=True)


def _unique_object(pairs: List[Tuple[str, object]]) -> Dict[str, object]:
    result: Dict[str, object] = {}
    for key, value in pairs:
        if key in result:
            raise MalformedTokenError(f"Duplicate key in token: {key!r}")
        result[key] = value
    return result


class SessionCodec:
    """Encodes sessions into signed tokens and authenticates them back.

    Attributes:
        digestmod: Hash constructor used for the HMAC
    """

    digestmod = hashlib.sha1

    def __init__(self, secret_key: str):
        """Initialize SessionCodec.

        Args:
            secret_key: Signing key shared by every process issuing cookies

        Raises:
            ConfigurationError: If the key is missing or empty
        """
        if not secret_key:
            raise ConfigurationError("SESSION_SIGNING_KEY", "signing key must be set")
        self._key = secret_key.encode("utf-8")

    def sign(self, payload: str) -> str:
        """Compute the hex HMAC of a canonical payload.

        Args:
            payload: Canonical serialization without the signature field

        Returns:
            40 lowercase hex characters
        """
        return hmac.new(self._key, payload.encode("utf-8"), self.digestmod).hexdigest()

    def canonical(
        self, attributes: Dict[str, str], created_at: str, session_id: str
    ) -> str:
        """Build the signature input for a session's content."""
        fields = sorted(attributes.items())
        fields += [(CREATED_AT_KEY, created_at), (ID_KEY, session_id)]
        return "{" + ",".join(f"{_quote(k)}:{_quote(v)}" for k, v in fields) + "}"

    def encode(self, session: StatelessSession) -> str:
        """Encode a session into a signed token.

        Args:
            session: Session to encode

        Returns:
            Token string suitable as a cookie value

        Raises:
            ReservedAttributeError: If an attribute key uses the reserved prefix
        """
        for key in session.attributes:
            if is_reserved_key(key):
                raise ReservedAttributeError(key)

        payload = self.canonical(session.attributes, str(session.created_at), session.id)
        token = self._attach_signature(payload, self.sign(payload))

        if len(token) > MAX_COOKIE_SIZE:
            logger.warning(
                f"Session {session.id} encodes to {len(token)} bytes, "
                f"over the {MAX_COOKIE_SIZE} byte cookie limit, and will not be restored"
            )
        return token

    def decode(self, token: Optional[str]) -> Optional[StatelessSession]:
        """Authenticate a token and restore the session it carries.

        Malformed, oversized, tampered or unsigned tokens are never an error: they yield
        None and the caller starts a fresh session.

        Args:
            token: Cookie value, possibly None

        Returns:
            Restored StatelessSession, or None if the token is not valid
        """
        if not token:
            return None
        if len(token) > MAX_COOKIE_SIZE or not token.startswith("{"):
            logger.debug(f"Rejected session token that is not a cookie-sized object ({len(token)} chars)")
            return None

        try:
            attributes, created_at, session_id, signature = self._parse(token)
        except (ValueError, TypeError, RecursionError) as e:
            logger.debug(f"Rejected malformed session token: {e}")
            return None

        payload = self.canonical(attributes, created_at, session_id)
        expected = self.sign(payload)
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
            logger.debug(f"Rejected session token with bad signature for session {session_id}")
            return None

        # Field order and spacing are part of what was signed
        if token != self._attach_signature(payload, expected):
            logger.debug(f"Rejected non-canonical session token for session {session_id}")
            return None

        return StatelessSession(
            id=session_id,
            created_at=int(created_at),
            attributes=attributes,
        )

    @staticmethod
    def _attach_signature(payload: str, signature: str) -> str:
        return f'{payload[:-1]},{_quote(SIGNATURE_KEY)}:{_quote(signature)}}}'

    @staticmethod
    def _parse(token: str) -> Tuple[Dict[str, str], str, str, str]:
        data = json.loads(token, object_pairs_hook=_unique_object)
        if not isinstance(data, dict):
            raise MalformedTokenError("Token is not an object")

        signature = data.pop(SIGNATURE_KEY, None)
        session_id = data.pop(ID_KEY, None)
        created_at = data.pop(CREATED_AT_KEY, None)
        for name, value in (
            (SIGNATURE_KEY, signature),
            (ID_KEY, session_id),
            (CREATED_AT_KEY, created_at),
        ):
            if not isinstance(value, str) or not value:
                raise MalformedTokenError(f"Missing or invalid field {name}")
        if not _MILLIS_PATTERN.fullmatch(created_at):
            raise MalformedTokenError("Creation time is not a millisecond epoch")

        attributes: Dict[str, str] = {}
        for key, value in data.items():
            if is_reserved_key(key):
                raise MalformedTokenError(f"Unknown reserved field {key!r}")
            if not isinstance(value, str):
                raise MalformedTokenError(f"Attribute {key!r} is not a string")
            attributes[key] = value

        return attributes, created_at, session_id, signature
