# tuktuk/repositories/profile_repo.py
import uuid
from datetime import datetime
from typing import Iterable

from sqlalchemy import func
from sqlmodel import Session, select

from tuktuk.models.profile import Profile


class ProfileRepository:
    """
    Data access layer for Profile.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_id(self, session: Session, profile_id: uuid.UUID) -> Profile | None:
        """Return a Profile by primary key, or None if not found."""
        return session.get(Profile, profile_id)

    def get_by_email(self, session: Session, email: str) -> Profile | None:
        stmt = select(Profile).where(Profile.email == email)
        return session.exec(stmt).first()

    def get_many(
        self,
        session: Session,
        profile_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, Profile]:
        """Fetch several profiles at once, keyed by id."""
        ids = {pid for pid in profile_ids if pid is not None}
        if not ids:
            return {}
        stmt = select(Profile).where(Profile.id.in_(ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def count(self, session: Session) -> int:
        value = session.exec(select(func.count()).select_from(Profile)).one()
        return int(value or 0)

    def list_created_between(
        self,
        session: Session,
        start: datetime,
        end: datetime,
    ) -> list[Profile]:
        stmt = (
            select(Profile)
            .where(Profile.created_at >= start, Profile.created_at < end)
            .order_by(Profile.created_at)
        )
        return list(session.exec(stmt).all())

    def count_active_drivers(self, session: Session) -> int:
        stmt = (
            select(func.count())
            .select_from(Profile)
            .where(Profile.role == "Driver", Profile.is_active == True)  # noqa: E712
        )
        value = session.exec(stmt).one()
        return int(value or 0)

    def add(self, session: Session, profile: Profile) -> Profile:
        """Stage a new Profile without committing (signup is multi-step)."""
        session.add(profile)
        session.flush()
        return profile

    def update(self, session: Session, profile: Profile) -> Profile:
        """Persist changes to an existing Profile."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile
