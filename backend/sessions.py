import logging
import secrets
from datetime import timedelta
from threading import RLock
from typing import Dict, Optional

from models import SessionRecord, utcnow

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Server-side session storage keyed by session id.

    Sessions expire a fixed TTL after creation; access does not extend them.
    Expired entries are dropped when looked up and pruned whenever a new
    session is created.
    """

    def __init__(self, ttl_seconds: int):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = RLock()

    def create(self) -> SessionRecord:
        with self._lock:
            self.prune()
            record = SessionRecord(session_id=secrets.token_urlsafe(32))
            self._sessions[record.session_id] = record
            return record

    def get(self, session_id: Optional[str]) -> Optional[SessionRecord]:
        if not session_id:
            return None
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                return None
            if record.is_expired(self.ttl):
                del self._sessions[session_id]
                return None
            return record

    def set(self, record: SessionRecord) -> None:
        with self._lock:
            self._sessions[record.session_id] = record

    def destroy(self, session_id: Optional[str]) -> None:
        if not session_id:
            return
        with self._lock:
            self._sessions.pop(session_id, None)

    def prune(self) -> int:
        now = utcnow()
        with self._lock:
            expired = [sid for sid, rec in self._sessions.items() if rec.is_expired(self.ttl, now)]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.debug("Pruned %d expired sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
