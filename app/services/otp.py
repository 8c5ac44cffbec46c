"""In-process OTP challenge store.

One outstanding challenge per identity. Entries live only as long as the
process; a new challenge for the same identity replaces the previous one.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import hmac
import logging
import secrets
import threading
from typing import Callable

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Challenge:
    identity: str
    code: str
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def issue(
        cls, identity: str, code: str, now: datetime, ttl_seconds: int
    ) -> "Challenge":
        return cls(
            identity=identity,
            code=code,
            issued_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def matches(self, code: str) -> bool:
        return hmac.compare_digest(self.code.encode("utf-8"), code.encode("utf-8"))


def generate_code(length: int = 6) -> str:
    value = secrets.randbelow(10**length)
    return str(value).zfill(length)


class OtpStore:
    """Keyed challenge store guarded by a re-entrant lock.

    Sync route handlers run on a worker thread pool, so every read-modify-write
    on the mapping happens under ``self._lock``.
    """

    def __init__(self) -> None:
        self._challenges: dict[str, Challenge] = {}
        self._lock = threading.RLock()

    def put(self, identity: str, challenge: Challenge) -> None:
        with self._lock:
            self.purge_expired(challenge.issued_at)
            self._challenges[identity] = challenge

    def get(self, identity: str) -> Challenge | None:
        with self._lock:
            return self._challenges.get(identity)

    def remove(self, identity: str) -> None:
        with self._lock:
            self._challenges.pop(identity, None)

    def consume(self, identity: str, code: str, now: datetime) -> bool:
        """Remove and accept the challenge if *code* matches and is still live.

        A rejected attempt leaves any stored challenge in place.
        """
        with self._lock:
            challenge = self.get(identity)
            if challenge is None:
                return False
            if challenge.is_expired(now):
                return False
            if not challenge.matches(code):
                return False
            self.remove(identity)
            return True

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [
                identity
                for identity, challenge in self._challenges.items()
                if challenge.is_expired(now)
            ]
            for identity in expired:
                del self._challenges[identity]
        if expired:
            LOGGER.debug("Purged %d expired OTP challenge(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._challenges)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._challenges


otp_store = OtpStore()
