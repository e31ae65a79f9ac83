from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional
from app.models.account import Account
from app.repositories.repository import BaseRepository


def normalize_email(email: Optional[str]) -> str:
    """Lowercase and trim an email address; None becomes an empty string."""
    return (email or "").strip().lower()


class AccountRepository(BaseRepository[Account]):
    """Repository for Account operations."""

    def __init__(self, db: Session):
        super().__init__(Account, db)

    def get_by_email(self, email: str) -> Optional[Account]:
        """Case-insensitive lookup; stored emails may predate normalisation."""
        normalized = normalize_email(email)
        if not normalized:
            return None
        return (
            self.db.query(Account)
            .filter(func.lower(func.trim(Account.email)) == normalized)
            .first()
        )

    def update_display_name(self, account_id: str, display_name: str) -> Optional[Account]:
        return self.update(account_id, {"display_name": display_name})
