from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from app.config import settings
from app.services.assets import AssetStore, asset_store
from app.services.auth import OtpAuthenticator, authenticator
from app.services.packages import PackageStore, package_store
from app.services.tokens import SessionTokenData, TokenError


def get_authenticator() -> OtpAuthenticator:
    return authenticator


def get_package_store() -> PackageStore:
    return package_store


def get_asset_store() -> AssetStore:
    return asset_store


def get_auth_required() -> bool:
    return settings.require_auth_for_writes


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header",
        )
    return token.strip()


def get_current_session(
    authorization: Optional[str] = Header(default=None),
    auth: OtpAuthenticator = Depends(get_authenticator),
) -> SessionTokenData:
    token = _bearer_token(authorization)
    try:
        session = auth.verify_session(token)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    if not auth.is_admin(session.identity):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return session


def require_admin_for_writes(
    authorization: Optional[str] = Header(default=None),
    auth: OtpAuthenticator = Depends(get_authenticator),
    auth_required: bool = Depends(get_auth_required),
) -> Optional[SessionTokenData]:
    if not auth_required:
        return None
    return get_current_session(authorization, auth)
