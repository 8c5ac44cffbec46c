from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.config import settings
from app.dependencies import get_authenticator, get_current_session
from app.schemas.otp import (
    OtpRequest,
    OtpResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
    SessionResponse,
)
from app.schemas.packages import MessageResponse
from app.services.auth import OtpAuthenticator
from app.services.tokens import SessionTokenData, TokenError

router = APIRouter(tags=["auth"])


@router.post("/send-otp", response_model=OtpResponse, response_model_exclude_none=True)
def send_otp(
    payload: Optional[OtpRequest] = None,
    auth: OtpAuthenticator = Depends(get_authenticator),
) -> OtpResponse:
    # A request without a body carries no email, which is never the admin.
    if payload is None:
        payload = OtpRequest()
    issued = auth.request_challenge(payload.email)
    return OtpResponse(
        message=issued.message,
        expires_in_seconds=issued.expires_in_seconds,
        otp=issued.code if settings.otp_debug else None,
    )


@router.post("/verify-otp", response_model=OtpVerifyResponse)
def verify_otp(
    payload: Optional[OtpVerifyRequest] = None,
    auth: OtpAuthenticator = Depends(get_authenticator),
) -> OtpVerifyResponse:
    if payload is None:
        payload = OtpVerifyRequest()
    try:
        granted = auth.verify_challenge(payload.email, payload.otp)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return OtpVerifyResponse(
        token=granted.token,
        message=granted.message,
        token_type="bearer",
        expires_in_seconds=granted.expires_in_seconds,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(auth: OtpAuthenticator = Depends(get_authenticator)) -> MessageResponse:
    return MessageResponse(message=auth.logout())


@router.get("/session", response_model=SessionResponse)
def current_session(
    session: SessionTokenData = Depends(get_current_session),
) -> SessionResponse:
    return SessionResponse(email=session.identity, expires_at=session.expires_at)
