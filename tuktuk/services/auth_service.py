# tuktuk/services/auth_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session
from supabase import AuthError

from tuktuk.core.supabase_client import supabase_public
from tuktuk.models.business import Business
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.profile import (
    ProfileRead,
    ProfileUpdate,
    SessionRead,
    SignInRequest,
    SignUpRequest,
    SignUpResult,
    VendorSignUpRequest,
)

logger = logging.getLogger(__name__)


class AuthService:
    """
    Registration, sign-in and profile self-service.

    Credentials live in Supabase Auth; this service only exchanges them
    and mirrors identity + role into the profiles table.
    """

    def __init__(self, profile_repo: ProfileRepository, business_repo: BusinessRepository):
        self.profile_repo = profile_repo
        self.business_repo = business_repo

    # ----- Registration -----

    def sign_up(self, session: Session, payload: SignUpRequest) -> SignUpResult:
        """
        Create the Supabase Auth user, then the profile row (and, for
        vendors, the Pending business) in one database transaction.
        """
        if self.profile_repo.get_by_email(session, payload.email) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered",
            )

        auth_response = self._create_auth_user(payload)
        now = datetime.now(timezone.utc)

        profile = Profile(
            id=uuid.UUID(str(auth_response.user.id)),
            full_name=payload.full_name,
            email=payload.email,
            phone_number=payload.phone_number,
            role=payload.role,
            is_active=True,
            popia_consent_timestamp=now,
        )
        self.profile_repo.add(session, profile)

        business: Business | None = None
        if isinstance(payload, VendorSignUpRequest):
            business = Business(
                user_id=profile.id,
                business_name=payload.business_name,
                business_description=payload.business_description,
                address_text=payload.address_text,
                contact_person_name=payload.contact_person_name,
                approval_status="Pending",
            )
            self.business_repo.add(session, business)

        session.commit()
        session.refresh(profile)
        logger.info("Registered %s profile %s", profile.role, profile.id)

        auth_session = auth_response.session
        return SignUpResult(
            profile=ProfileRead.model_validate(profile),
            business_id=business.id if business else None,
            access_token=auth_session.access_token if auth_session else None,
            refresh_token=auth_session.refresh_token if auth_session else None,
        )

    def _create_auth_user(self, payload: SignUpRequest):
        try:
            response = supabase_public().auth.sign_up(
                {
                    "email": payload.email,
                    "password": payload.password,
                    "options": {
                        "data": {
                            "full_name": payload.full_name,
                            "phone_number": payload.phone_number,
                            "role": payload.role,
                        }
                    },
                }
            )
        except AuthError as e:
            logger.warning("Supabase sign-up rejected for %s: %s", payload.email, e)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e) or "Registration failed. Please try again.",
            )

        if response.user is None:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Auth provider did not return a user",
            )
        return response

    # ----- Sign-in -----

    def sign_in(self, session: Session, payload: SignInRequest) -> SessionRead:
        try:
            response = supabase_public().auth.sign_in_with_password(
                {"email": payload.email, "password": payload.password}
            )
        except AuthError as e:
            logger.info("Sign-in failed for %s: %s", payload.email, e)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        if response.session is None or response.user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Sign-in did not produce a session",
            )

        profile = self.profile_repo.get_by_id(session, uuid.UUID(str(response.user.id)))
        if profile is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Profile not found. Please sign in again.",
            )

        return SessionRead(
            access_token=response.session.access_token,
            refresh_token=response.session.refresh_token,
            expires_in=response.session.expires_in,
            profile=ProfileRead.model_validate(profile),
        )

    # ----- Self profile -----

    def update_me(
        self,
        session: Session,
        current: Profile,
        payload: ProfileUpdate,
    ) -> Profile:
        """
        Partial update for profile edits. Role and email are not editable.
        """
        if payload.full_name is not None:
            current.full_name = payload.full_name
        if payload.phone_number is not None:
            current.phone_number = payload.phone_number.strip() or None
        current.updated_at = datetime.now(timezone.utc)
        return self.profile_repo.update(session, current)
