"""Stripe Checkout: push-style, the redirect back to the client carries the outcome."""

from urllib.parse import urlencode

import stripe

from creditsync.core.exceptions import GatewayError
from creditsync.core.logging import get_logger
from creditsync.gateways.base import OrderHandle, OrderStatus, PaymentGateway
from creditsync.models.transaction import GatewayName

log = get_logger(__name__)

VERIFY_PATH = "/verify"


def checkout_return_url(origin: str, transaction_id: str, success: bool) -> str:
    query = urlencode({"success": "true" if success else "false", "transactionId": transaction_id})
    return f"{origin.rstrip('/')}{VERIFY_PATH}?{query}"


class StripeGateway(PaymentGateway):
    name = GatewayName.STRIPE

    def __init__(self, api_key: str, product_label: str = "Credit Purchase", default_origin: str = "") -> None:
        self._api_key = api_key
        self.product_label = product_label
        self.default_origin = default_origin

    async def create_order(
        self,
        amount_minor_units: int,
        currency: str,
        receipt_ref: str,
        return_origin: str | None = None,
    ) -> OrderHandle:
        origin = return_origin or self.default_origin
        return await self.create_checkout_session(
            amount_minor_units,
            currency,
            self.product_label,
            success_url=checkout_return_url(origin, receipt_ref, True),
            cancel_url=checkout_return_url(origin, receipt_ref, False),
            client_reference_id=receipt_ref,
        )

    async def create_checkout_session(
        self,
        amount_minor_units: int,
        currency: str,
        product_label: str,
        success_url: str,
        cancel_url: str,
        client_reference_id: str | None = None,
    ) -> OrderHandle:
        line_items = [
            {
                "price_data": {
                    "currency": currency.lower(),
                    "product_data": {"name": product_label},
                    "unit_amount": amount_minor_units,
                },
                "quantity": 1,
            }
        ]
        params = {
            "mode": "payment",
            "line_items": line_items,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if client_reference_id:
            params["client_reference_id"] = client_reference_id
        try:
            session = await stripe.checkout.Session.create_async(api_key=self._api_key, **params)
        except stripe.StripeError as e:
            log.error("stripe_session_failed", reference=client_reference_id, error=str(e))
            raise GatewayError(e.user_message or str(e), self.name.value) from e
        return OrderHandle(gateway=self.name, reference=session.id, redirect_url=session.url)

    async def fetch_order_status(self, order_id: str) -> OrderStatus:
        """Retrieve a Checkout Session; `payment_status == "paid"` is the authoritative outcome."""
        try:
            session = await stripe.checkout.Session.retrieve_async(order_id, api_key=self._api_key)
        except stripe.StripeError as e:
            log.error("stripe_session_fetch_failed", session_id=order_id, error=str(e))
            raise GatewayError(e.user_message or str(e), self.name.value) from e
        return OrderStatus(status=session.payment_status or "", receipt_ref=session.client_reference_id)
