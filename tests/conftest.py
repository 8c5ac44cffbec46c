"""Pytest configuration and shared fixtures.

Environment is set BEFORE importing the app so the settings singleton, the
SQLAlchemy engine and the image directory all point at a throwaway location.
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta, timezone

_TMP_DIR = tempfile.mkdtemp(prefix="package-backend-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["PUBLIC_DIR"] = _TMP_DIR
os.environ["IMAGE_DIR"] = os.path.join(_TMP_DIR, "images")
os.environ["ADMIN_EMAIL"] = "a@x.com"
os.environ["JWT_SECRET"] = "test-secret-0123456789abcdef0123456789"
os.environ["OTP_DEBUG"] = "false"
os.environ["REQUIRE_AUTH_FOR_WRITES"] = "true"

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_asset_store, get_authenticator
from app.main import app
from app.services.assets import AssetStore
from app.services.auth import OtpAuthenticator
from app.services.email import EmailSendError
from app.services.otp import OtpStore
from app.services.tokens import SessionTokenIssuer

ADMIN_EMAIL = "a@x.com"
FIXED_CODE = "123456"
TEST_SECRET = os.environ["JWT_SECRET"]


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class RecordingNotifier:
    """Notifier double that records messages and can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.error: str | None = None

    def send(self, to_email: str, subject: str, body: str) -> None:
        if self.error:
            raise EmailSendError(self.error)
        self.sent.append((to_email, subject, body))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store() -> OtpStore:
    return OtpStore()


@pytest.fixture
def issuer(clock) -> SessionTokenIssuer:
    return SessionTokenIssuer(secret=TEST_SECRET, expire_minutes=30, clock=clock)


@pytest.fixture
def authenticator(store, notifier, issuer, clock) -> OtpAuthenticator:
    return OtpAuthenticator(
        admin_identity=ADMIN_EMAIL,
        store=store,
        notifier=notifier,
        issuer=issuer,
        otp_ttl_seconds=60,
        clock=clock,
        code_factory=lambda: FIXED_CODE,
    )


@pytest.fixture
def images(tmp_path) -> AssetStore:
    return AssetStore(str(tmp_path / "images"))


@pytest.fixture
def client(authenticator, images):
    app.dependency_overrides[get_authenticator] = lambda: authenticator
    app.dependency_overrides[get_asset_store] = lambda: images
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(issuer) -> dict[str, str]:
    return {"Authorization": f"Bearer {issuer.issue(ADMIN_EMAIL)}"}
