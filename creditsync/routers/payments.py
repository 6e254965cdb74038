from typing import Any

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel

from creditsync.core.config import Settings, get_settings
from creditsync.deps import get_directory, get_gateways, get_ledger
from creditsync.gateways.base import GatewayRegistry
from creditsync.models.plan import PLANS
from creditsync.models.transaction import GatewayName
from creditsync.services import payments as payments_service
from creditsync.services.reconciliation import ReconcileResult
from creditsync.stores.base import TransactionLedger, UserDirectory

router = APIRouter()


class PurchaseRequest(BaseModel):
    external_user_id: str | None = None
    plan_id: str | None = None


class RazorpayVerifyRequest(BaseModel):
    razorpay_order_id: str | None = None


class StripeVerifyRequest(BaseModel):
    transaction_id: str | None = None
    success: Any = None  # "true"/"false" from the redirect query string, or a bool


def _envelope(result: ReconcileResult) -> dict:
    body = {"success": result.credited, "message": result.message}
    if result.credit_balance is not None:
        body["credits"] = result.credit_balance
    return body


@router.get("/plans")
async def list_plans():
    """Static plan table."""
    return {
        "success": True,
        "plans": [{"id": p.id.value, "credits": p.credits, "amount": p.amount} for p in PLANS.values()],
    }


@router.post("/razorpay")
async def pay_razorpay(
    body: PurchaseRequest,
    directory: UserDirectory = Depends(get_directory),
    ledger: TransactionLedger = Depends(get_ledger),
    gateways: GatewayRegistry = Depends(get_gateways),
    settings: Settings = Depends(get_settings),
):
    """Create a Razorpay order for a plan; frontend opens checkout with the returned order."""
    result = await payments_service.initiate_payment(
        directory, ledger, gateways, body.external_user_id, body.plan_id, GatewayName.RAZORPAY, settings.currency
    )
    return result.model_dump(exclude_none=True)


@router.post("/razorpay/verify")
async def verify_razorpay(
    body: RazorpayVerifyRequest,
    directory: UserDirectory = Depends(get_directory),
    ledger: TransactionLedger = Depends(get_ledger),
    gateways: GatewayRegistry = Depends(get_gateways),
):
    """Fetch order status from Razorpay and credit the user if paid."""
    result = await payments_service.verify_razorpay_order(directory, ledger, gateways, body.razorpay_order_id)
    return _envelope(result)


@router.post("/stripe")
async def pay_stripe(
    body: PurchaseRequest,
    origin: str | None = Header(None),
    directory: UserDirectory = Depends(get_directory),
    ledger: TransactionLedger = Depends(get_ledger),
    gateways: GatewayRegistry = Depends(get_gateways),
    settings: Settings = Depends(get_settings),
):
    """Create a Stripe Checkout session; success/cancel redirect back to {origin}/verify."""
    result = await payments_service.initiate_payment(
        directory,
        ledger,
        gateways,
        body.external_user_id,
        body.plan_id,
        GatewayName.STRIPE,
        settings.currency,
        return_origin=origin,
    )
    return result.model_dump(exclude_none=True)


@router.post("/stripe/verify")
async def verify_stripe(
    body: StripeVerifyRequest,
    directory: UserDirectory = Depends(get_directory),
    ledger: TransactionLedger = Depends(get_ledger),
    gateways: GatewayRegistry = Depends(get_gateways),
    settings: Settings = Depends(get_settings),
):
    """Settle a Stripe checkout from the redirect's transactionId/success pair."""
    result = await payments_service.verify_stripe_checkout(
        directory,
        ledger,
        gateways,
        body.transaction_id,
        body.success,
        confirm_with_gateway=settings.stripe_confirm_checkout,
    )
    return _envelope(result)
