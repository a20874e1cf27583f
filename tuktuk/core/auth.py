# tuktuk/core/auth.py
import uuid
from typing import Any, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from tuktuk.core.config import get_settings
from tuktuk.database import get_session
from tuktuk.models.profile import Profile, Role

settings = get_settings()

# auto_error=False => we raise our own 401 with a consistent message
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_auth_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> uuid.UUID:
    """
    Resolve the Supabase auth user id ('sub') from the bearer token.

    Raises:
        HTTPException(401): if the header is missing or the token is bad.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    # Supabase provides sub as a string; enforce UUID
    try:
        return uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )


def get_current_profile(
    user_id: uuid.UUID = Depends(get_auth_user_id),
    session: Session = Depends(get_session),
) -> Profile:
    """
    Load the profile row for the authenticated user.

    Unlike a guest-friendly shop, every route here needs a role, so a
    valid token without a profile row is treated as a broken session:
    the client must sign in again.

    Raises:
        HTTPException(401): no profile for this identity.
        HTTPException(403): profile deactivated.
    """
    profile = session.get(Profile, user_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found. Please sign in again.",
        )
    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )
    return profile


def require_role(role: Role) -> Callable[[Profile], Profile]:
    """
    Build a dependency that only lets profiles with `role` through.
    """

    def dependency(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role != role.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{role.value} access required",
            )
        return profile

    return dependency


require_customer = require_role(Role.CUSTOMER)
require_vendor = require_role(Role.VENDOR)
require_driver = require_role(Role.DRIVER)
require_admin = require_role(Role.ADMIN)
