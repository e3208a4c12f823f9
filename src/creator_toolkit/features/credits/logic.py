"""Admission control and charging on top of a CreditLedgerPort."""

from creator_toolkit.features.credits.models import CreditBalance, DeductionResult
from creator_toolkit.platform.errors import InsufficientCreditsError
from creator_toolkit.platform.logging_config import get_logger
from creator_toolkit.platform.protocols import CreditLedgerPort

logger = get_logger(__name__)


def check_balance(ledger: CreditLedgerPort, user_id: str) -> int:
    """Return the user's available credits."""
    return CreditBalance.model_validate(ledger.get_balance(user_id)).available_credits


def ensure_affordable(ledger: CreditLedgerPort, user_id: str, cost: int) -> int:
    """Gate a request before any vendor spend.

    Returns the available balance.

    Raises:
        InsufficientCreditsError: If the balance is below ``cost``.
    """
    available = check_balance(ledger, user_id)
    if available < cost:
        logger.info("credits_insufficient", user_id=user_id, needed=cost, available=available)
        raise InsufficientCreditsError(needed=cost, available=available)
    return available


def charge(
    ledger: CreditLedgerPort,
    user_id: str,
    amount: int,
    operation: str,
    metadata: dict | None = None,
) -> DeductionResult:
    """Deduct credits for work that was already submitted.

    A failed deduction is logged and returned, never raised: the work has
    been paid to the vendor and its result still goes back to the caller.
    """
    if amount <= 0:
        return DeductionResult(success=True, remaining=None)

    result = DeductionResult.model_validate(
        ledger.deduct(user_id, amount, operation, metadata or {})
    )
    if result.success:
        logger.info(
            "credits_deducted",
            user_id=user_id,
            amount=amount,
            operation=operation,
            remaining=result.remaining,
        )
    else:
        logger.error(
            "credits_deduction_failed",
            user_id=user_id,
            amount=amount,
            operation=operation,
            error=result.error,
        )
    return result
