"""Tests for the session store and session creation on initialize."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from odoo_mcp_server.services.sessions import (
    Session,
    SessionStore,
    create_session,
    generate_session_id,
)

HEADERS = {
    "x-odoo-url": "http://odoo.test:8069",
    "x-odoo-db": "demo",
    "x-odoo-username": "admin",
    "x-odoo-password": "admin",
}


def _mock_controller(side_effect=None):
    controller = MagicMock()
    controller.handle_tool_call = AsyncMock(
        return_value={"content": [{"type": "text", "text": "Successfully connected"}]},
        side_effect=side_effect,
    )
    return controller


# ---------------------------------------------------------------------------
# SessionStore
# ---------------------------------------------------------------------------

class TestSessionStore:
    """Test the in-memory session store."""

    def test_set_get_delete(self):
        store = SessionStore()
        session = Session("abc")
        store.set(session)

        assert store.get("abc") is session
        assert "abc" in store
        assert len(store) == 1
        assert store.delete("abc") is True
        assert store.get("abc") is None
        assert store.delete("abc") is False

    def test_get_with_empty_id(self):
        store = SessionStore()
        assert store.get(None) is None
        assert store.get("") is None
        assert store.delete(None) is False

    def test_sessions_live_forever_without_ttl(self):
        store = SessionStore()
        session = Session("abc")
        store.set(session)

        with patch.object(Session, "age", return_value=10 ** 9):
            assert store.get("abc") is session

    def test_expired_session_is_evicted_on_lookup(self):
        store = SessionStore(ttl_seconds=60)
        session = Session("abc")
        store.set(session)

        with patch.object(Session, "age", return_value=61):
            assert store.get("abc") is None
        assert len(store) == 0

    def test_ids(self):
        store = SessionStore()
        store.set(Session("a"))
        store.set(Session("b"))
        assert sorted(store.ids()) == ["a", "b"]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class TestSession:
    """Test session attributes."""

    def test_controller_defaults_to_none(self):
        session = Session("abc")
        assert session.controller is None
        assert session.created_at.tzinfo is not None

    def test_controller_is_read_only(self):
        session = Session("abc", controller=MagicMock())
        with pytest.raises(AttributeError):
            session.controller = None


# ---------------------------------------------------------------------------
# create_session
# ---------------------------------------------------------------------------

class TestCreateSession:
    """Test session creation on initialize."""

    def test_generate_session_id_is_unique(self):
        assert generate_session_id() != generate_session_id()

    def test_valid_credentials_connect_exactly_once(self):
        store = SessionStore()
        controller = _mock_controller()
        factory = MagicMock(return_value=controller)

        session = asyncio.run(create_session(store, HEADERS, factory))

        assert store.get(session.id) is session
        assert session.controller is controller
        factory.assert_called_once_with()
        controller.handle_tool_call.assert_awaited_once_with("odoo_connect", {
            "url": "http://odoo.test:8069",
            "database": "demo",
            "username": "admin",
            "password": "admin",
            "transport": "jsonrpc",
        })

    def test_missing_credentials_give_no_controller(self):
        store = SessionStore()
        factory = MagicMock()

        headers = {k: v for k, v in HEADERS.items() if k != "x-odoo-password"}
        session = asyncio.run(create_session(store, headers, factory))

        assert store.get(session.id) is session
        assert session.controller is None
        factory.assert_not_called()

    def test_session_stored_when_connect_raises(self):
        store = SessionStore()
        controller = _mock_controller(side_effect=RuntimeError("backend unreachable"))

        session = asyncio.run(create_session(store, HEADERS, lambda: controller))

        assert store.get(session.id) is session
        assert session.controller is controller

    def test_real_controller_with_failed_login(self, controller_factory, fake_client_cls):
        store = SessionStore()
        headers = dict(HEADERS, **{"x-odoo-password": "wrong"})

        session = asyncio.run(create_session(store, headers, controller_factory))

        assert session.id in store
        assert len(fake_client_cls.instances) == 1
        ping = asyncio.run(session.controller.handle_tool_call("odoo_ping", {}))
        assert "Not connected to Odoo" in ping["content"][0]["text"]
