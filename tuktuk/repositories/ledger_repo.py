# tuktuk/repositories/ledger_repo.py
import uuid

from sqlmodel import Session, select

from tuktuk.models.ledger import AccountingLedger


class LedgerRepository:
    """
    Append-only access to accounting_ledger. There is no update or delete.
    """

    def list_all(self, session: Session) -> list[AccountingLedger]:
        return list(session.exec(select(AccountingLedger)).all())

    def list_for_business(
        self,
        session: Session,
        business_id: uuid.UUID,
    ) -> list[AccountingLedger]:
        stmt = (
            select(AccountingLedger)
            .where(AccountingLedger.business_id == business_id)
            .order_by(AccountingLedger.created_at.desc())
        )
        return list(session.exec(stmt).all())

    def append(self, session: Session, entry: AccountingLedger) -> AccountingLedger:
        """Stage an entry; the caller commits (alone or with an order update)."""
        session.add(entry)
        session.flush()
        return entry
