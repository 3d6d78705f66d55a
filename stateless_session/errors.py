"""Exception types for stateless sessions.

Configuration problems are fatal and surface at startup. Token problems are
never raised; the codec swallows them and the request gets a fresh session.
"""

from typing import Optional


class ConfigurationError(Exception):
    """Raised when a required configuration variable is missing or invalid."""

    def __init__(self, variable_name: str, message: Optional[str] = None):
        self.variable_name = variable_name
        if message:
            super().__init__(f"{variable_name}: {message}")
        else:
            super().__init__(f"Required configuration value '{variable_name}' is missing or empty")


class ReservedAttributeError(ValueError):
    """Raised when an attribute key falls in the reserved metadata namespace."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Attribute key '{key}' is reserved for session metadata")


class SessionInvalidatedError(RuntimeError):
    """Raised when mutating a session that was invalidated in this request."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} has been invalidated")
