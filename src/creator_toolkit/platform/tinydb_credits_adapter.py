"""TinyDB adapter wrapping credits/storage free functions behind CreditLedgerPort."""

from datetime import datetime

from tinydb import TinyDB

from creator_toolkit.features.credits import storage as credit_storage


class TinyDBCreditsAdapter:
    """Wraps creator_toolkit.features.credits.storage behind CreditLedgerPort Protocol."""

    def __init__(self, db: TinyDB | None = None, monthly_credits: int = 600):
        self._db = db
        self._monthly_credits = monthly_credits

    def get_balance(self, user_id: str) -> dict:
        return credit_storage.get_balance(
            user_id, monthly_credits=self._monthly_credits, db=self._db
        )

    def deduct(
        self,
        user_id: str,
        amount: int,
        operation: str,
        metadata: dict | None = None,
    ) -> dict:
        return credit_storage.deduct(
            user_id,
            amount,
            operation,
            metadata,
            monthly_credits=self._monthly_credits,
            db=self._db,
        )

    def renew_expired(self, now: datetime | None = None) -> int:
        return credit_storage.renew_expired(
            now=now, monthly_credits=self._monthly_credits, db=self._db
        )
