"""Exactly-once crediting of a paid transaction."""

from pydantic import BaseModel

from creditsync.core.exceptions import UserNotFoundError
from creditsync.core.logging import get_logger
from creditsync.models.transaction import GatewayName
from creditsync.stores.base import TransactionLedger, UserDirectory

log = get_logger(__name__)

CREDITS_ADDED = "Credits Added"
PAYMENT_FAILED = "Payment Failed"
ALREADY_VERIFIED = "Payment Already Verified"
TRANSACTION_NOT_FOUND = "Transaction not found"
USER_NOT_FOUND = "User not found"


class ReconcileResult(BaseModel):
    credited: bool
    message: str
    transaction_id: str | None = None
    credit_balance: int | None = None


async def reconcile(
    directory: UserDirectory,
    ledger: TransactionLedger,
    transaction_id: str | None,
    payment_succeeded: bool,
    gateway: GatewayName | None = None,
) -> ReconcileResult:
    """
    Credit the owner of `transaction_id` once, if the gateway reported success.

    The paid flag is claimed with a compare-and-swap before the balance is touched, so
    concurrent callers for the same transaction see exactly one successful claim. If the
    owner no longer exists the claim is released and the transaction stays retryable.
    """
    txn = await ledger.get(transaction_id) if transaction_id else None
    if txn is not None and gateway is not None and txn.gateway != gateway:
        # A transaction can only be settled through the gateway it was opened with
        txn = None
    if txn is None:
        log.warning("reconcile_transaction_not_found", transaction_id=transaction_id)
        return ReconcileResult(credited=False, message=TRANSACTION_NOT_FOUND, transaction_id=transaction_id)

    if not payment_succeeded:
        log.info("reconcile_payment_failed", transaction_id=txn.id, gateway=txn.gateway.value)
        return ReconcileResult(credited=False, message=PAYMENT_FAILED, transaction_id=txn.id)

    claimed = await ledger.claim_payment(txn.id)
    if claimed is None:
        log.info("payment_already_verified", transaction_id=txn.id)
        return ReconcileResult(credited=False, message=ALREADY_VERIFIED, transaction_id=txn.id)

    try:
        balance = await directory.increment_credits(claimed.external_user_id, claimed.credits)
    except UserNotFoundError:
        await ledger.release_payment(claimed.id)
        log.warning("reconcile_user_not_found", transaction_id=claimed.id, external_user_id=claimed.external_user_id)
        return ReconcileResult(credited=False, message=USER_NOT_FOUND, transaction_id=claimed.id)
    except Exception:
        # The increment may or may not have landed; keep the claim so a retry cannot double-credit.
        log.exception("reconcile_credit_failed", transaction_id=claimed.id, external_user_id=claimed.external_user_id)
        raise

    log.info(
        "payment_credited",
        transaction_id=claimed.id,
        external_user_id=claimed.external_user_id,
        credits=claimed.credits,
        balance=balance,
        gateway=claimed.gateway.value,
    )
    return ReconcileResult(credited=True, message=CREDITS_ADDED, transaction_id=claimed.id, credit_balance=balance)
