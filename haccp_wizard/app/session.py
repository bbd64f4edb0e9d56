#!/usr/bin/env python3
"""
Session management module for the HACCP wizard.

This module stores wizard state per session using Redis, with an in-memory
fallback when Redis is not reachable.
"""

import redis
from typing import Dict, Optional
from .config import Config
from ..schemas.form_models import WizardState
from ..utils.logger import get_logger

logger = get_logger()

class SessionManager:
    """Stores and retrieves wizard state snapshots."""

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        """Initialize the session manager with Redis connection or fallback to in-memory."""
        self.use_redis = True
        self.ttl = Config.SESSION_TTL_SECONDS
        self.memory_sessions: Dict[str, str] = {}  # Fallback in-memory storage

        try:
            self.redis_client = redis_client or redis.Redis(
                host=Config.REDIS_HOST,
                port=Config.REDIS_PORT,
                db=Config.REDIS_DB,
                decode_responses=True
            )
            # Test Redis connection
            self.redis_client.ping()
            logger.info("[SESSION] Using Redis for session storage")
        except redis.RedisError as e:
            logger.info(f"[SESSION] Redis not available ({e}), using in-memory session storage")
            self.use_redis = False
            self.redis_client = None

    def _get_session_key(self, session_id: str) -> str:
        """
        Generate Redis key for a session.

        Args:
            session_id: Unique session identifier

        Returns:
            Redis key for the session
        """
        return f"wizard:{session_id}"

    def create_session(self, session_id: str) -> bool:
        """
        Create a new session holding a fresh wizard state.

        Args:
            session_id: Unique session identifier

        Returns:
            True if session was created, False if it already exists
        """
        if self.exists(session_id):
            return False
        self.save_state(session_id, WizardState())
        return True

    def exists(self, session_id: str) -> bool:
        if self.use_redis:
            return bool(self.redis_client.exists(self._get_session_key(session_id)))
        return session_id in self.memory_sessions

    def get_state(self, session_id: str) -> Optional[WizardState]:
        """
        Retrieve the stored wizard state.

        Args:
            session_id: Unique session identifier

        Returns:
            Wizard state or None if not found
        """
        if self.use_redis:
            raw = self.redis_client.get(self._get_session_key(session_id))
        else:
            raw = self.memory_sessions.get(session_id)
        if not raw:
            return None
        return WizardState.model_validate_json(raw)

    def save_state(self, session_id: str, state: WizardState) -> None:
        """
        Store a wizard state snapshot, refreshing the session TTL.

        Args:
            session_id: Unique session identifier
            state: State to store
        """
        raw = state.model_dump_json()
        if self.use_redis:
            self.redis_client.set(self._get_session_key(session_id), raw, ex=self.ttl)
        else:
            self.memory_sessions[session_id] = raw

    def delete_session(self, session_id: str) -> bool:
        """
        Discard a session.

        Returns:
            True if a session was removed
        """
        if self.use_redis:
            return bool(self.redis_client.delete(self._get_session_key(session_id)))
        return self.memory_sessions.pop(session_id, None) is not None
