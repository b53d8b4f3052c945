# -*- coding: utf-8 -*-
"""Session store and lifecycle (create on initialize, lookup, terminate)."""

import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .controller import BackendSessionController, ControllerFactory
from .credentials import extract_credentials

_logger = logging.getLogger(__name__)


class Session:
    """One logical client connection.

    ``controller`` is set at creation time only, when the client supplied
    backend credentials. Sessions without one use the global controller.
    """

    def __init__(self, session_id: str, controller: Optional[BackendSessionController] = None):
        self.id = session_id
        self.created_at = datetime.now(timezone.utc)
        self._created_monotonic = time.monotonic()
        self._controller = controller

    @property
    def controller(self) -> Optional[BackendSessionController]:
        return self._controller

    def age(self) -> float:
        return time.monotonic() - self._created_monotonic


class SessionStore:
    """In-memory session table.

    Args:
        ttl_seconds: Sessions older than this are dropped on lookup. None
            keeps every session until it is deleted.
    """

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = ttl_seconds
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None and self._expired(session):
                del self._sessions[session_id]
                _logger.info(f"MCP: Session {session_id} expired after {self.ttl_seconds}s")
                return None
            return session

    def set(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.id] = session

    def delete(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __contains__(self, session_id) -> bool:
        return self.get(session_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions.keys())

    def _expired(self, session: Session) -> bool:
        return self.ttl_seconds is not None and session.age() > self.ttl_seconds


def generate_session_id() -> str:
    return str(uuid.uuid4())


async def create_session(
    store: SessionStore,
    headers: Mapping[str, Any],
    controller_factory: ControllerFactory,
    connect_tool: str = 'odoo_connect',
) -> Session:
    """Create and store a session for an ``initialize`` request.

    With credentials in ``headers`` the session gets a dedicated controller
    and one connect call is attempted on it. The session is stored whether
    or not that connect succeeds.

    Args:
        store: Session store to add the session to
        headers: Inbound header bag
        controller_factory: Builds a fresh, isolated controller
        connect_tool: Tool called with the extracted credentials

    Returns:
        Session: The stored session
    """
    session_id = generate_session_id()
    controller = None

    credentials = extract_credentials(headers)
    if credentials is not None:
        controller = controller_factory()
        try:
            result = await controller.handle_tool_call(connect_tool, credentials.as_connect_args())
            _logger.info(f"MCP: Session {session_id}: header auto-connect: {_first_text(result)}")
        except Exception as e:
            _logger.error(f"MCP: Session {session_id}: header auto-connect failed: {e}")

    session = Session(session_id, controller)
    store.set(session)
    _logger.info(
        f"MCP: Created session {session_id} "
        f"({'dedicated' if controller else 'global'} controller)"
    )
    return session


def _first_text(result: Any) -> str:
    try:
        return result['content'][0]['text'].splitlines()[0]
    except (KeyError, IndexError, TypeError, AttributeError):
        return 'done'
