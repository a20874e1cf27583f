# tuktuk/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from tuktuk.database import get_session
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.profile import (
    SessionRead,
    SignInRequest,
    SignUpRequest,
    SignUpResult,
    VendorSignUpRequest,
)
from tuktuk.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

profile_repo = ProfileRepository()
business_repo = BusinessRepository()
service = AuthService(profile_repo, business_repo)


@router.post(
    "/sign-up",
    response_model=SignUpResult,
    status_code=status.HTTP_201_CREATED,
)
def sign_up(
    payload: SignUpRequest,
    session: Session = Depends(get_session),
):
    """
    Register a Customer or Driver.

    - password and confirm_password must match
    - popia_consent must be true
    """
    return service.sign_up(session, payload)


@router.post(
    "/sign-up/vendor",
    response_model=SignUpResult,
    status_code=status.HTTP_201_CREATED,
)
def sign_up_vendor(
    payload: VendorSignUpRequest,
    session: Session = Depends(get_session),
):
    """
    Register a Vendor together with a Pending business awaiting admin review.
    """
    return service.sign_up(session, payload)


@router.post("/sign-in", response_model=SessionRead)
def sign_in(
    payload: SignInRequest,
    session: Session = Depends(get_session),
):
    """
    Exchange email + password for Supabase tokens and the caller's profile.
    """
    return service.sign_in(session, payload)
