# tuktuk/repositories/business_repo.py
import uuid
from typing import Iterable

from sqlalchemy import func
from sqlmodel import Session, select

from tuktuk.models.business import AuditLog, Business


class BusinessRepository:
    """
    Data access layer for Business and AuditLog.
    """

    # ----- Businesses -----

    def get_by_id(self, session: Session, business_id: uuid.UUID) -> Business | None:
        return session.get(Business, business_id)

    def get_many(
        self,
        session: Session,
        business_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, Business]:
        ids = set(business_ids)
        if not ids:
            return {}
        stmt = select(Business).where(Business.id.in_(ids))
        return {b.id: b for b in session.exec(stmt).all()}

    def get_for_owner(self, session: Session, user_id: uuid.UUID) -> Business | None:
        stmt = select(Business).where(Business.user_id == user_id)
        return session.exec(stmt).first()

    def list_by_status(self, session: Session, approval_status: str) -> list[Business]:
        stmt = (
            select(Business)
            .where(Business.approval_status == approval_status)
            .order_by(Business.business_name)
        )
        return list(session.exec(stmt).all())

    def list_all(self, session: Session) -> list[Business]:
        stmt = select(Business).order_by(Business.created_at.desc())
        return list(session.exec(stmt).all())

    def count_by_status(self, session: Session, approval_status: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Business)
            .where(Business.approval_status == approval_status)
        )
        value = session.exec(stmt).one()
        return int(value or 0)

    def add(self, session: Session, business: Business) -> Business:
        """Stage a new Business without committing."""
        session.add(business)
        session.flush()
        return business

    def update(self, session: Session, business: Business) -> Business:
        session.add(business)
        session.commit()
        session.refresh(business)
        return business

    # ----- Audit log -----

    def add_audit_entry(self, session: Session, entry: AuditLog) -> AuditLog:
        session.add(entry)
        session.commit()
        session.refresh(entry)
        return entry

    def list_audit_entries(self, session: Session, limit: int = 50) -> list[AuditLog]:
        stmt = select(AuditLog).order_by(AuditLog.created_at.desc()).limit(limit)
        return list(session.exec(stmt).all())
