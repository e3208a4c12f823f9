"""TinyDB storage operations for credit balances.

The decrement is a single read-check-write performed under the shared TinyDB lock,
so concurrent deductions for the same user serialize and the balance can
never go negative.
"""

from datetime import datetime, timedelta, timezone

from tinydb import Query, TinyDB

from creator_toolkit.platform.tinydb_store import db_lock as _db_lock
from creator_toolkit.platform.tinydb_store import open_db as _db

PERIOD_LENGTH = timedelta(days=30)


def _fresh_balance(user_id: str, monthly_credits: int, now: datetime) -> dict:
    return {
        "user_id": user_id,
        "available_credits": monthly_credits,
        "used_credits": 0,
        "total_credits": monthly_credits,
        "period_start": now.isoformat(),
        "period_end": (now + PERIOD_LENGTH).isoformat(),
    }


def _get_or_seed(database: TinyDB, user_id: str, monthly_credits: int) -> dict:
    """Return the balance row, inserting a fresh window if missing. Lock held by caller."""
    Balance = Query()
    table = database.table("user_credits")
    results = table.search(Balance.user_id == user_id)
    if results:
        return dict(results[0])
    record = _fresh_balance(user_id, monthly_credits, datetime.now(timezone.utc))
    table.insert(record)
    return record


def get_balance(
    user_id: str,
    monthly_credits: int = 600,
    db: TinyDB | None = None,
) -> dict:
    """Return a user's balance. Creates a fresh monthly window if missing."""
    with _db_lock:
        return _get_or_seed(_db(db), user_id, monthly_credits)


def deduct(
    user_id: str,
    amount: int,
    operation: str,
    metadata: dict | None = None,
    monthly_credits: int = 600,
    db: TinyDB | None = None,
) -> dict:
    """Atomically decrement ``available_credits`` by ``amount``.

    Fails without touching the balance when ``amount`` exceeds what is
    available. Every successful deduction is appended to ``credit_usage``.

    Raises:
        ValueError: If ``amount`` is not positive.
    """
    if amount <= 0:
        raise ValueError("amount must be positive")

    with _db_lock:
        database = _db(db)
        current = _get_or_seed(database, user_id, monthly_credits)
        available = current["available_credits"]

        if available < amount:
            return {
                "success": False,
                "remaining": available,
                "error": f"Insufficient credits. Need {amount}, have {available}",
            }

        Balance = Query()
        updated = {
            "available_credits": available - amount,
            "used_credits": current.get("used_credits", 0) + amount,
        }
        database.table("user_credits").update(updated, Balance.user_id == user_id)
        database.table("credit_usage").insert({
            "user_id": user_id,
            "amount": amount,
            "operation": operation,
            "metadata": metadata or {},
            "created_at": datetime.now(timezone.utc).isoformat(),
        })
        return {"success": True, "remaining": updated["available_credits"], "error": None}


def renew_expired(
    now: datetime | None = None,
    monthly_credits: int = 600,
    db: TinyDB | None = None,
) -> int:
    """Start a new monthly window for every balance whose period has ended.

    Returns the number of balances renewed.
    """
    now = now or datetime.now(timezone.utc)

    def _expired(period_end: str) -> bool:
        try:
            return datetime.fromisoformat(period_end) < now
        except (TypeError, ValueError):
            return True

    with _db_lock:
        Balance = Query()
        table = _db(db).table("user_credits")
        expired = table.search(Balance.period_end.test(_expired))
        for row in expired:
            table.update(
                _fresh_balance(row["user_id"], monthly_credits, now),
                Balance.user_id == row["user_id"],
            )
        return len(expired)
