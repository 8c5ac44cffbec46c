from __future__ import annotations

import base64
import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional, Protocol
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from app.config import settings

LOGGER = logging.getLogger(__name__)

GMAIL_SEND_ENDPOINT = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


class EmailSendError(RuntimeError):
    pass


class Notifier(Protocol):
    def send(self, to_email: str, subject: str, body: str) -> None: ...


def build_otp_body(code: str, ttl_seconds: int) -> str:
    if ttl_seconds < 60:
        validity = f"{ttl_seconds} second(s)"
    else:
        validity = f"{ttl_seconds // 60} minute(s)"
    return (
        f"Your OTP is: {code}\n\n"
        f"It expires in {validity}.\n\n"
        "If you did not request this code, you can ignore this email."
    )


def build_raw_message(sender: str, recipient: str, subject: str, body: str) -> str:
    lines = [
        f"From: {sender}",
        f"To: {recipient}",
        f"Subject: {subject}",
        "MIME-Version: 1.0",
        "Content-Type: text/plain; charset=utf-8",
        "",
        body,
    ]
    message = "\r\n".join(lines)
    # Gmail API expects base64url-encoded RFC 2822 content.
    return base64.urlsafe_b64encode(message.encode("utf-8")).decode("ascii")


class GmailNotifier:
    """Delivers mail through the Gmail REST API using a stored OAuth token.

    Every failure on the way, including token refresh and token file I/O, is
    reported as ``EmailSendError`` so callers only handle one exception type.
    """

    def __init__(
        self,
        sender: str,
        token_file: str = "",
        credentials_file: str = "",
        timeout: float = 10,
    ) -> None:
        self._sender = sender
        self._token_file = token_file
        self._credentials_file = credentials_file
        self._timeout = timeout

    def send(self, to_email: str, subject: str, body: str) -> None:
        if not self._sender:
            raise EmailSendError("OTP email sender is not configured")

        raw_message = build_raw_message(self._sender, to_email, subject, body)
        token = self._get_access_token()

        request = Request(
            GMAIL_SEND_ENDPOINT,
            data=json.dumps({"raw": raw_message}).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        LOGGER.info("Sending email to=%s subject=%r", to_email, subject)
        self._call(
            request,
            rejected="Failed to send OTP email",
            unreachable="Failed to reach Gmail API",
        )

    def _call(self, request: Request, rejected: str, unreachable: str) -> bytes:
        try:
            with urlopen(request, timeout=self._timeout) as response:
                return response.read()
        except HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            LOGGER.error("%s: status=%s body=%s", rejected, exc.code, error_body)
            raise EmailSendError(rejected) from exc
        except OSError as exc:
            # URLError, socket timeouts and connection resets all land here.
            LOGGER.error("%s: %s", unreachable, exc)
            raise EmailSendError(unreachable) from exc

    def _token_file_path(self) -> Path:
        if self._token_file:
            return Path(self._token_file)
        return Path(__file__).resolve().parents[2] / "credentials" / "token.json"

    def _credentials_file_path(self) -> Path:
        if self._credentials_file:
            return Path(self._credentials_file)
        return Path(__file__).resolve().parents[2] / "credentials" / "credentials.json"

    def _get_access_token(self) -> str:
        token_path = self._token_file_path()
        token_data = _load_json(token_path)

        token = token_data.get("token")
        expiry = _parse_expiry(token_data.get("expiry"))
        if token and expiry and expiry > datetime.now(timezone.utc) + timedelta(minutes=1):
            return token
        return self._refresh_access_token(token_path, token_data)

    def _refresh_access_token(self, token_path: Path, token_data: dict[str, Any]) -> str:
        refresh_token = token_data.get("refresh_token")
        if not refresh_token:
            raise EmailSendError("Gmail refresh token is missing")

        client_id, client_secret = self._resolve_client_details(token_data)
        request = Request(
            token_data.get("token_uri") or DEFAULT_TOKEN_URI,
            data=urlencode(
                {
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                }
            ).encode("utf-8"),
            method="POST",
        )
        raw = self._call(
            request,
            rejected="Failed to refresh Gmail token",
            unreachable="Failed to reach Gmail token endpoint",
        )
        access_token, expiry = _parse_token_response(raw)

        token_data["token"] = access_token
        token_data["expiry"] = expiry.isoformat()
        try:
            _write_json(token_path, token_data)
        except OSError as exc:
            # The fresh token is still usable for this send.
            LOGGER.warning("Could not cache refreshed Gmail token in %s: %s", token_path, exc)
        return access_token

    def _resolve_client_details(self, token_data: dict[str, Any]) -> tuple[str, str]:
        client_id = token_data.get("client_id")
        client_secret = token_data.get("client_secret")
        if client_id and client_secret:
            return client_id, client_secret

        credentials = _load_json(self._credentials_file_path())
        installed = credentials.get("installed", {})
        client_id = installed.get("client_id") or credentials.get("client_id")
        client_secret = installed.get("client_secret") or credentials.get("client_secret")
        if not client_id or not client_secret:
            raise EmailSendError("Gmail client credentials are missing")
        return client_id, client_secret


def _parse_token_response(raw: bytes) -> tuple[str, datetime]:
    try:
        data = json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise EmailSendError("Gmail token endpoint returned an unreadable response") from exc
    if not isinstance(data, dict):
        raise EmailSendError("Gmail token endpoint returned an unreadable response")

    access_token = data.get("access_token")
    if not access_token or not isinstance(access_token, str):
        raise EmailSendError("Gmail token refresh did not return an access token")
    try:
        expires_in = int(data.get("expires_in", 3600))
        expiry = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    except (TypeError, ValueError, OverflowError) as exc:
        raise EmailSendError("Gmail token refresh returned an invalid expiry") from exc
    return access_token, expiry


class LoggingNotifier:
    """Development notifier: writes the message to the log instead of sending it."""

    def send(self, to_email: str, subject: str, body: str) -> None:
        LOGGER.warning("Email delivery disabled; to=%s subject=%r body=%r", to_email, subject, body)


def _parse_expiry(raw_value: Optional[str]) -> Optional[datetime]:
    if not raw_value:
        return None
    try:
        parsed = datetime.fromisoformat(raw_value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _load_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise EmailSendError(f"Missing Gmail file: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise EmailSendError(f"Unreadable Gmail file: {path}") from exc


def _write_json(path: Path, data: dict[str, Any]) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


def build_notifier() -> Notifier:
    if settings.otp_debug and not settings.otp_email_sender:
        LOGGER.warning("OTP_DEBUG is on and no sender is configured; emails will only be logged")
        return LoggingNotifier()
    return GmailNotifier(
        sender=settings.otp_email_sender,
        token_file=settings.gmail_token_file,
        credentials_file=settings.gmail_credentials_file,
        timeout=settings.email_timeout_seconds,
    )
