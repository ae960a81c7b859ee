from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionRecord:
    session_id: str
    is_authenticated: bool = False
    username: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def is_expired(self, ttl: timedelta, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now - self.created_at >= ttl
