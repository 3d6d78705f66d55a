"""Session data model.

A StatelessSession is the in-memory view over the attributes carried in the
session cookie. It records whether it has been mutated or invalidated so the
middleware knows when the cookie needs rewriting.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Callable, Dict, List, Optional

from stateless_session.errors import ReservedAttributeError, SessionInvalidatedError


# Keys starting with this prefix carry session metadata, not user attributes
RESERVED_PREFIX = "__"


def is_reserved_key(key: str) -> bool:
    """Check whether a key lies in the reserved metadata namespace."""
    return key.startswith(RESERVED_PREFIX)


def generate_session_id() -> str:
    """Generate a new unique session ID.

    Returns:
        UUID string for session identification
    """
    return str(uuid.uuid4())


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class StatelessSession:
    """Represents the session state carried in one signed cookie.

    Attributes:
        id: Opaque session identifier, fixed for the session's lifetime
        created_at: Creation time as a millisecond epoch
        attributes: Flat string-to-string attribute map
        dirty: Whether the session changed since it was loaded or created
        invalidated: Whether the session was invalidated in this request
        is_new: Whether the session was created in this request rather than
            restored from a cookie
    """

    id: str
    created_at: int
    attributes: Dict[str, str] = field(default_factory=dict)
    dirty: bool = False
    invalidated: bool = False
    is_new: bool = False
    listener: Optional[Callable[["StatelessSession"], None]] = field(
        default=None, repr=False, compare=False
    )

    @classmethod
    def create(cls) -> "StatelessSession":
        """Create an empty session with a fresh ID and creation time."""
        return cls(id=generate_session_id(), created_at=now_millis(), is_new=True)

    @property
    def creation_time(self) -> datetime:
        return datetime.fromtimestamp(self.created_at / 1000, tz=UTC)

    def get_attribute(self, key: str) -> Optional[str]:
        return self.attributes.get(key)

    def attribute_names(self) -> List[str]:
        return sorted(self.attributes)

    def set_attribute(self, key: str, value: str) -> None:
        """Set an attribute and mark the session dirty.

        Args:
            key: Attribute name, outside the reserved namespace
            value: Attribute value

        Raises:
            TypeError: If key or value is not a string
            ReservedAttributeError: If key starts with the reserved prefix
            SessionInvalidatedError: If the session was invalidated
        """
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError("Session attribute keys and values must be strings")
        if is_reserved_key(key):
            raise ReservedAttributeError(key)
        self._check_valid()

        self.attributes[key] = value
        self._changed()

    def remove_attribute(self, key: str) -> None:
        """Remove an attribute; removing a missing key changes nothing."""
        self._check_valid()
        if key not in self.attributes:
            return
        del self.attributes[key]
        self._changed()

    def invalidate(self) -> None:
        """Destroy the session for the rest of the request.

        Attributes are cleared and a removal cookie will be written. The
        session object stays usable for reads, which all return None.
        """
        self.attributes.clear()
        self.invalidated = True
        self._changed()

    def _check_valid(self) -> None:
        if self.invalidated:
            raise SessionInvalidatedError(self.id)

    def _changed(self) -> None:
        self.dirty = True
        if self.listener is not None:
            self.listener(self)
