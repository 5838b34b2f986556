"""
In-memory session registry.

Maps session ids to their ``AnalysisSession``.
NOTE: This is ephemeral and resets on application restart.
"""

import time
from typing import Dict, Optional

from app.analysis_service.config import settings
from app.analysis_service.services.orchestrator.session_controller import (
    AnalysisSession,
)
from app.analysis_service.utils.logger import get_logger

logger = get_logger(__name__)

_SESSION_STORE: Dict[str, AnalysisSession] = {}


def get_session(session_id: str) -> AnalysisSession:
    """
    Load or create the session for an id.

    Automatically cleans up expired sessions.
    """
    cleanup_expired_sessions()

    if session_id not in _SESSION_STORE:
        logger.info(
            "Creating new analysis session",
            extra={"session_id": session_id},
        )
        _SESSION_STORE[session_id] = AnalysisSession(session_id)

    session = _SESSION_STORE[session_id]
    session.touch()
    return session


def find_session(session_id: str) -> Optional[AnalysisSession]:
    """Return an existing session without creating one."""
    cleanup_expired_sessions()
    return _SESSION_STORE.get(session_id)


def cleanup_expired_sessions(ttl_seconds: Optional[int] = None) -> int:
    """
    Remove inactive sessions from memory.

    Sessions with an analysis in flight are kept regardless of age.

    Returns:
        int: Number of sessions removed.
    """
    ttl = settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    now = time.time()

    expired = [
        session_id
        for session_id, session in _SESSION_STORE.items()
        if not session.is_loading and now - session.last_activity > ttl
    ]

    for session_id in expired:
        _SESSION_STORE.pop(session_id, None)
        logger.info(
            "Expired session cleared from memory",
            extra={"session_id": session_id},
        )

    return len(expired)


def clear_sessions() -> None:
    """Drop every session."""
    _SESSION_STORE.clear()
