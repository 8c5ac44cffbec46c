from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from app.config import settings

SESSION_TOKEN_TYPE = "session"


class TokenError(ValueError):
    pass


@dataclass(frozen=True)
class SessionTokenData:
    identity: str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionTokenIssuer:
    """Mints and checks stateless HS256 session tokens for a verified identity."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: int = 30,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._clock = clock or _utcnow

    @property
    def expires_in_seconds(self) -> int:
        return self._expire_minutes * 60

    def ensure_configured(self) -> None:
        if not self._secret:
            raise TokenError("JWT secret is not configured")

    def issue(self, identity: str) -> str:
        self.ensure_configured()
        now = self._clock()
        expires_at = now + timedelta(minutes=self._expire_minutes)
        payload = {
            "sub": identity,
            "type": SESSION_TOKEN_TYPE,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> SessionTokenData:
        payload = self._decode(token)
        subject = payload.get("sub")
        if not subject or not isinstance(subject, str):
            raise TokenError("Token subject is missing")
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        return SessionTokenData(identity=subject, expires_at=expires_at)

    def _decode(self, token: str) -> dict:
        if not token:
            raise TokenError("Token is missing")
        if not self._secret:
            raise TokenError("JWT secret is not configured")
        now = self._clock()
        try:
            # Expiry is checked against the injected clock below.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "require": ["exp", "sub"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as exc:
            raise TokenError("Invalid token") from exc
        if payload.get("type") != SESSION_TOKEN_TYPE:
            raise TokenError("Invalid token type")
        try:
            expires_at = int(payload["exp"])
        except (TypeError, ValueError) as exc:
            raise TokenError("Invalid token expiry") from exc
        if expires_at <= int(now.timestamp()):
            raise TokenError("Token has expired")
        return payload


token_issuer = SessionTokenIssuer(
    secret=settings.jwt_secret,
    algorithm=settings.jwt_algorithm,
    expire_minutes=settings.session_token_expire_minutes,
)
