"""Single-admin OTP login.

The admin requests a code by email, submits it back within the OTP window and
receives a signed session token. Sessions are not tracked server-side.
"""

from dataclasses import dataclass
import logging
from typing import Callable, Optional

from app.config import settings
from app.services.email import EmailSendError, Notifier, build_notifier, build_otp_body
from app.services.otp import Challenge, Clock, OtpStore, generate_code, otp_store, utcnow
from app.services.tokens import SessionTokenData, SessionTokenIssuer, token_issuer

LOGGER = logging.getLogger(__name__)

OTP_SENT_MESSAGE = "OTP sent successfully"
OTP_VERIFIED_MESSAGE = "OTP verified successfully"
LOGGED_OUT_MESSAGE = "Logged out successfully"


class AuthError(Exception):
    status_code = 400
    message = "Authentication failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_content(self) -> dict:
        return {"message": self.message}


class Unauthorized(AuthError):
    status_code = 401
    message = "Unauthorized"


class InvalidOrExpiredChallenge(AuthError):
    status_code = 400
    message = "Invalid OTP or OTP expired"


class NotifierFailure(AuthError):
    status_code = 500
    message = "Error sending email"

    def __init__(self, error: str) -> None:
        super().__init__()
        self.error = error

    def to_content(self) -> dict:
        return {"message": self.message, "error": self.error}


@dataclass(frozen=True)
class ChallengeIssued:
    message: str
    expires_in_seconds: int
    code: str


@dataclass(frozen=True)
class SessionGranted:
    token: str
    message: str
    expires_in_seconds: int


class OtpAuthenticator:
    def __init__(
        self,
        admin_identity: str,
        store: OtpStore,
        notifier: Notifier,
        issuer: SessionTokenIssuer,
        otp_ttl_seconds: int = 60,
        otp_length: int = 6,
        email_subject: str = "Your OTP",
        clock: Optional[Clock] = None,
        code_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._admin_identity = admin_identity
        self._store = store
        self._notifier = notifier
        self._issuer = issuer
        self._otp_ttl_seconds = otp_ttl_seconds
        self._email_subject = email_subject
        self._clock = clock or utcnow
        self._code_factory = code_factory or (lambda: generate_code(otp_length))

    def is_admin(self, identity: Optional[str]) -> bool:
        if not self._admin_identity or not identity:
            return False
        return identity == self._admin_identity

    def request_challenge(self, identity: Optional[str]) -> ChallengeIssued:
        if not self.is_admin(identity):
            LOGGER.warning("OTP requested for a non-admin identity")
            raise Unauthorized()

        now = self._clock()
        challenge = Challenge.issue(identity, self._code_factory(), now, self._otp_ttl_seconds)
        # Stored before delivery; a failed send does not withdraw the challenge.
        self._store.put(identity, challenge)

        body = build_otp_body(challenge.code, self._otp_ttl_seconds)
        try:
            self._notifier.send(identity, self._email_subject, body)
        except EmailSendError as exc:
            LOGGER.error("OTP delivery to %s failed: %s", identity, exc)
            raise NotifierFailure(str(exc)) from exc

        LOGGER.info("OTP issued to %s, expires at %s", identity, challenge.expires_at.isoformat())
        return ChallengeIssued(
            message=OTP_SENT_MESSAGE,
            expires_in_seconds=self._otp_ttl_seconds,
            code=challenge.code,
        )

    def verify_challenge(self, identity: Optional[str], code: Optional[str]) -> SessionGranted:
        if not identity or code is None:
            raise InvalidOrExpiredChallenge()
        # Checked before consume; a failure here leaves the challenge in place.
        self._issuer.ensure_configured()
        if not self._store.consume(identity, code, self._clock()):
            LOGGER.info("OTP verification rejected for %s", identity)
            raise InvalidOrExpiredChallenge()

        token = self._issuer.issue(identity)
        LOGGER.info("OTP verified; session issued for %s", identity)
        return SessionGranted(
            token=token,
            message=OTP_VERIFIED_MESSAGE,
            expires_in_seconds=self._issuer.expires_in_seconds,
        )

    def logout(self) -> str:
        # Tokens are stateless; the client is expected to discard its copy.
        return LOGGED_OUT_MESSAGE

    def verify_session(self, token: str) -> SessionTokenData:
        return self._issuer.verify(token)


def build_authenticator() -> OtpAuthenticator:
    return OtpAuthenticator(
        admin_identity=settings.admin_email,
        store=otp_store,
        notifier=build_notifier(),
        issuer=token_issuer,
        otp_ttl_seconds=settings.otp_ttl_seconds,
        otp_length=settings.otp_length,
        email_subject=settings.otp_email_subject,
    )


authenticator = build_authenticator()
