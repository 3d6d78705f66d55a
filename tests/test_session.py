"""Unit tests for the session model and the request-scoped handle."""

import time
from datetime import UTC
from unittest.mock import MagicMock

import pytest

from stateless_session.errors import ReservedAttributeError, SessionInvalidatedError
from stateless_session.session.manager import RequestSession
from stateless_session.session.models import StatelessSession, generate_session_id


class TestStatelessSession:
    """Tests for the StatelessSession dataclass."""

    def test_create_sets_id_and_creation_time(self):
        """Test that a fresh session gets an ID and a millisecond timestamp."""
        before = int(time.time() * 1000)

        session = StatelessSession.create()

        assert session.id
        assert before <= session.created_at <= int(time.time() * 1000)
        assert session.attributes == {}
        assert session.is_new is True
        assert session.dirty is False

    def test_generate_session_id_is_unique(self):
        """Test that generated session IDs are unique."""
        ids = [generate_session_id() for _ in range(100)]

        assert len(set(ids)) == 100

    def test_creation_time_is_utc_datetime(self):
        """Test conversion of the millisecond timestamp."""
        session = StatelessSession(id="s", created_at=1428745523130)

        assert session.creation_time.tzinfo == UTC
        assert session.creation_time.year == 2015

    def test_set_attribute_marks_dirty(self):
        """Test that setting an attribute stores it and marks the session dirty."""
        session = StatelessSession.create()

        session.set_attribute("user", "alice")

        assert session.get_attribute("user") == "alice"
        assert session.dirty is True

    def test_get_missing_attribute_returns_none(self):
        session = StatelessSession.create()

        assert session.get_attribute("missing") is None

    def test_set_attribute_does_not_change_id(self):
        """Test that mutation keeps the session identity."""
        session = StatelessSession.create()
        session_id, created_at = session.id, session.created_at

        session.set_attribute("a", "1")

        assert (session.id, session.created_at) == (session_id, created_at)

    @pytest.mark.parametrize("key", ["__id", "__ct", "__s", "__anything"])
    def test_reserved_keys_are_rejected(self, key):
        """Test that metadata keys cannot be used as attributes."""
        session = StatelessSession.create()
        session.set_attribute("kept", "1")
        session.dirty = False

        with pytest.raises(ReservedAttributeError) as exc_info:
            session.set_attribute(key, "x")

        assert exc_info.value.key == key
        assert session.attributes == {"kept": "1"}
        assert session.dirty is False

    def test_reserved_attribute_error_is_value_error(self):
        assert issubclass(ReservedAttributeError, ValueError)

    def test_single_underscore_keys_are_allowed(self):
        session = StatelessSession.create()

        session.set_attribute("_private", "1")

        assert session.get_attribute("_private") == "1"

    @pytest.mark.parametrize("key,value", [(1, "a"), ("a", 1), ("a", None)])
    def test_non_string_attributes_are_rejected(self, key, value):
        session = StatelessSession.create()

        with pytest.raises(TypeError):
            session.set_attribute(key, value)

    def test_remove_attribute(self):
        """Test that removing an attribute marks the session dirty."""
        session = StatelessSession(id="s", created_at=1, attributes={"a": "1"})

        session.remove_attribute("a")

        assert session.get_attribute("a") is None
        assert session.dirty is True

    def test_remove_missing_attribute_is_noop(self):
        """Test that removing an absent key neither marks dirty nor notifies."""
        listener = MagicMock()
        session = StatelessSession(id="s", created_at=1, listener=listener)

        session.remove_attribute("missing")

        assert session.dirty is False
        listener.assert_not_called()

    def test_attribute_names_are_sorted(self):
        session = StatelessSession(id="s", created_at=1, attributes={"b": "2", "a": "1"})

        assert session.attribute_names() == ["a", "b"]

    def test_invalidate_clears_attributes(self):
        """Test that invalidation empties the session but keeps it readable."""
        session = StatelessSession(id="s", created_at=1, attributes={"a": "1"})

        session.invalidate()

        assert session.invalidated is True
        assert session.dirty is True
        assert session.get_attribute("a") is None
        assert session.attributes == {}

    def test_mutating_invalidated_session_raises(self):
        """Test that an invalidated session refuses further changes."""
        session = StatelessSession.create()
        session.invalidate()

        with pytest.raises(SessionInvalidatedError):
            session.set_attribute("a", "1")
        with pytest.raises(SessionInvalidatedError):
            session.remove_attribute("a")

    def test_listener_is_notified_on_each_change(self):
        listener = MagicMock()
        session = StatelessSession(id="s", created_at=1, listener=listener)

        session.set_attribute("a", "1")
        session.set_attribute("a", "2")
        session.invalidate()

        assert listener.call_count == 3
        listener.assert_called_with(session)


class TestRequestSession:
    """Tests for the RequestSession handle."""

    def test_no_token_means_no_session(self, codec):
        """Test that get_existing does not create a session."""
        handle = RequestSession(codec)

        assert handle.get_existing() is None
        assert handle.get_existing() is None

    def test_get_or_create_is_idempotent(self, codec):
        """Test that repeated calls return the same session."""
        handle = RequestSession(codec)

        first = handle.get_or_create()
        second = handle.get_or_create()

        assert first is second
        assert first.id == second.id
        assert handle.get_existing() is first

    def test_creating_session_does_not_notify(self, codec):
        """Test that an untouched new session schedules no write."""
        on_change = MagicMock()
        handle = RequestSession(codec, on_change=on_change)

        handle.get_or_create()

        on_change.assert_not_called()

    def test_restores_session_from_valid_token(self, codec):
        """Test that a valid token restores attributes and identity."""
        original = StatelessSession(id="sess-1", created_at=1428745523130, attributes={"1": "2"})
        handle = RequestSession(codec, token=codec.encode(original))

        session = handle.get_existing()

        assert session is not None
        assert session.id == "sess-1"
        assert session.get_attribute("1") == "2"
        assert session.dirty is False
        assert handle.token_rejected is False
        assert handle.get_or_create() is session

    def test_invalid_token_yields_fresh_empty_session(self, codec):
        """Test that a forged token is replaced by a present but empty session."""
        original = StatelessSession(id="sess-1", created_at=1428745523130, attributes={"1": "2"})
        token = codec.encode(original)
        forged = token[:-3] + ("0" if token[-3] != "0" else "1") + token[-2:]
        on_change = MagicMock()

        handle = RequestSession(codec, token=forged, on_change=on_change)
        session = handle.get_existing()

        assert session is not None
        assert session.get_attribute("1") is None
        assert session.id != "sess-1"
        assert session.is_new is True
        assert handle.token_rejected is True
        on_change.assert_not_called()

    def test_mutation_notifies_with_session(self, codec):
        on_change = MagicMock()
        handle = RequestSession(codec, on_change=on_change)

        session = handle.get_or_create()
        session.set_attribute("a", "1")

        on_change.assert_called_once_with(session)

    def test_get_or_create_after_invalidate_reuses_session_by_default(self, codec):
        """Test that the invalidated session is returned again."""
        handle = RequestSession(codec)
        session = handle.get_or_create()
        session.invalidate()

        again = handle.get_or_create()

        assert again is session
        assert again.invalidated is True
        assert handle.get_existing() is session

    def test_get_or_create_after_invalidate_can_renew(self, codec):
        """Test that renewal starts a new session with a new identity."""
        on_change = MagicMock()
        handle = RequestSession(codec, on_change=on_change, renew_after_invalidate=True)
        session = handle.get_or_create()
        session.invalidate()
        on_change.reset_mock()

        renewed = handle.get_or_create()

        assert renewed is not session
        assert renewed.id != session.id
        assert renewed.invalidated is False
        assert handle.get_or_create() is renewed
        on_change.assert_not_called()

        renewed.set_attribute("a", "1")
        on_change.assert_called_once_with(renewed)

    def test_replaced_session_no_longer_notifies(self, codec):
        """Test that changes to a session replaced by renewal are not reported."""
        on_change = MagicMock()
        handle = RequestSession(codec, on_change=on_change, renew_after_invalidate=True)
        session = handle.get_or_create()
        session.invalidate()
        handle.get_or_create()
        on_change.reset_mock()

        session.invalidate()

        on_change.assert_not_called()
