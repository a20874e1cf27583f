# tuktuk/routers/profiles.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from tuktuk.core.auth import get_current_profile
from tuktuk.database import get_session
from tuktuk.models.profile import Profile
from tuktuk.repositories.business_repo import BusinessRepository
from tuktuk.repositories.profile_repo import ProfileRepository
from tuktuk.schemas.profile import ProfileRead, ProfileUpdate
from tuktuk.services.auth_service import AuthService

router = APIRouter(prefix="/profiles", tags=["Profiles"])

service = AuthService(ProfileRepository(), BusinessRepository())


@router.get("/me", response_model=ProfileRead)
def read_me(current: Profile = Depends(get_current_profile)):
    """
    Return the authenticated user's profile.
    """
    return current


@router.patch("/me", response_model=ProfileRead)
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(get_current_profile),
):
    """
    Update the authenticated user's profile (partial update).

    Only full_name and phone_number are editable.
    """
    return service.update_me(session, current, payload)
