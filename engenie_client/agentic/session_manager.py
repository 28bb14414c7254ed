# agentic/session_manager.py
# Search session and message id generation, per-session turn serialization
#
# Each SalesWorkflow owns one search session id so backend state for
# concurrent tabs/windows never mixes.

import logging
import random
import threading
import time
from typing import Dict

logger = logging.getLogger(__name__)

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_SUFFIX_LENGTH = 9


def _random_suffix(length: int = _SUFFIX_LENGTH) -> str:
    return "".join(random.choice(_BASE36_ALPHABET) for _ in range(length))


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionManager:
    """
    Manages search session ids and turn locks.

    Session ID Format:
    search_{milliseconds}_{9 base-36 chars}

    Example:
    - search_1735732530123_k3j9x0a1q
    """

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    @staticmethod
    def generate_session_id() -> str:
        """Generate a unique search session id."""
        session_id = f"search_{_now_ms()}_{_random_suffix()}"
        logger.info(f"[SESSION] Generated search session id: {session_id}")
        return session_id

    @staticmethod
    def generate_message_id() -> str:
        """Generate a message id: millisecond time followed by 9 random base-36 chars."""
        return f"{_now_ms()}{_random_suffix()}"

    def turn_lock(self, session_id: str) -> threading.RLock:
        """
        Get the lock that serializes turns for a session.

        A second turn on the same session waits until the first one finishes.
        """
        with self._registry_lock:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[session_id] = lock
            return lock

    def release(self, session_id: str):
        """Forget the turn lock of a closed session."""
        with self._registry_lock:
            if self._locks.pop(session_id, None) is not None:
                logger.info(f"[SESSION] Released session {session_id}")

