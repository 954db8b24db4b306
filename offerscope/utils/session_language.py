"""
Per-session language memory on top of the shared TTL cache.
"""
import threading
import time
from dataclasses import dataclass, replace
from typing import Optional

from offerscope.utils.logger import get_logger
from offerscope.utils.ttl_cache import TTLCache

logger = get_logger("utils.session_language")

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0


@dataclass(frozen=True)
class SessionLanguage:
    code: str
    confidence: float
    detected_at: float
    message_count: int = 1


class SessionLanguageCache:
    def __init__(self, cache: TTLCache, ttl: float = 300.0):
        self.cache = cache
        self.ttl = ttl
        self.lock = threading.Lock()

    @staticmethod
    def _key(session_id: str) -> str:
        return f"session_language:{session_id}"

    def remember(self, session_id: str, code: str, confidence: float) -> SessionLanguage:
        """Store a detected language; repeats of the same code bump the message count."""
        with self.lock:
            current = self.get(session_id)
            if current is not None and current.code == code:
                entry = replace(current, message_count=current.message_count + 1)
            else:
                entry = SessionLanguage(code=code, confidence=confidence, detected_at=time.time())
            self.cache.set(self._key(session_id), entry, ttl=self.ttl)
        return entry

    def get(self, session_id: str) -> Optional[SessionLanguage]:
        return self.cache.get(self._key(session_id))

    def update_confidence(self, session_id: str, correct: bool) -> Optional[SessionLanguage]:
        """+0.1 on confirmation, -0.2 on correction, kept within [0.1, 1.0]."""
        with self.lock:
            current = self.get(session_id)
            if current is None:
                return None
            if correct:
                confidence = min(MAX_CONFIDENCE, current.confidence + 0.1)
            else:
                confidence = max(MIN_CONFIDENCE, current.confidence - 0.2)
            entry = replace(current, confidence=round(confidence, 4))
            self.cache.set(self._key(session_id), entry, ttl=self.ttl)
        logger.debug(f"Language confidence for session {session_id}: {entry.confidence}")
        return entry

    def clear(self, session_id: str) -> None:
        self.cache.delete(self._key(session_id))
