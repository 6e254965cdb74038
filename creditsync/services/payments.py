"""Credit purchases: open a ledger entry, hand off to a gateway, settle on the way back."""

from typing import Any

from pydantic import BaseModel

from creditsync.core.logging import get_logger
from creditsync.gateways.base import GatewayRegistry
from creditsync.models.plan import resolve_plan
from creditsync.models.transaction import GatewayName
from creditsync.services.reconciliation import TRANSACTION_NOT_FOUND, ReconcileResult, reconcile
from creditsync.stores.base import TransactionLedger, UserDirectory

log = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid Credentials"
PLAN_NOT_FOUND = "Plan not found"


class PaymentInitiation(BaseModel):
    success: bool
    message: str | None = None
    transaction_id: str | None = None
    order: dict[str, Any] | None = None  # pull-style gateways
    session_url: str | None = None  # push-style gateways


async def initiate_payment(
    directory: UserDirectory,
    ledger: TransactionLedger,
    gateways: GatewayRegistry,
    external_user_id: str | None,
    plan_id: str | None,
    gateway_name: GatewayName,
    currency: str,
    return_origin: str | None = None,
) -> PaymentInitiation:
    """
    Validate the user and plan, record an unpaid transaction, then create the gateway order
    with the transaction id as its reference. A gateway failure propagates as GatewayError and
    leaves the transaction unpaid.
    """
    gateway = gateways.get(gateway_name)

    user = await directory.get(external_user_id) if external_user_id else None
    if user is None or not (plan_id or "").strip():
        return PaymentInitiation(success=False, message=INVALID_CREDENTIALS)

    plan = resolve_plan(plan_id.strip())
    if plan is None:
        return PaymentInitiation(success=False, message=PLAN_NOT_FOUND)

    txn = await ledger.create(user.external_id, plan, gateway.name)
    log.info(
        "payment_initiated",
        transaction_id=txn.id,
        external_user_id=user.external_id,
        plan=plan.id.value,
        gateway=gateway.name.value,
    )

    handle = await gateway.create_order(plan.amount_minor_units, currency, txn.id, return_origin=return_origin)
    await ledger.set_gateway_ref(txn.id, handle.reference)
    log.info("gateway_order_created", transaction_id=txn.id, gateway=gateway.name.value, reference=handle.reference)

    return PaymentInitiation(
        success=True,
        transaction_id=txn.id,
        order=handle.raw or None,
        session_url=handle.redirect_url,
    )


async def verify_razorpay_order(
    directory: UserDirectory,
    ledger: TransactionLedger,
    gateways: GatewayRegistry,
    order_id: str | None,
) -> ReconcileResult:
    """Pull-style: ask Razorpay for the order, settle the transaction named by its receipt."""
    gateway = gateways.get(GatewayName.RAZORPAY)
    if not order_id:
        return ReconcileResult(credited=False, message=TRANSACTION_NOT_FOUND)
    status = await gateway.fetch_order_status(order_id)
    return await reconcile(directory, ledger, status.receipt_ref, status.succeeded, gateway=GatewayName.RAZORPAY)


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


async def verify_stripe_checkout(
    directory: UserDirectory,
    ledger: TransactionLedger,
    gateways: GatewayRegistry,
    transaction_id: str | None,
    success: Any,
    confirm_with_gateway: bool = False,
) -> ReconcileResult:
    """
    Push-style: the checkout redirect carries the transaction id and a success flag.
    With `confirm_with_gateway`, the flag is ignored and the Checkout Session is retrieved instead.
    """
    gateway = gateways.get(GatewayName.STRIPE)
    succeeded = _flag(success)
    if confirm_with_gateway and transaction_id:
        txn = await ledger.get(transaction_id)
        if txn is not None and txn.gateway == GatewayName.STRIPE and txn.gateway_ref:
            status = await gateway.fetch_order_status(txn.gateway_ref)
            succeeded = status.succeeded and status.receipt_ref == txn.id
        else:
            succeeded = False
    return await reconcile(directory, ledger, transaction_id, succeeded, gateway=GatewayName.STRIPE)
