"""Razorpay Orders API: pull-style, status fetched by order id."""

import asyncio

import razorpay

from creditsync.core.exceptions import GatewayError
from creditsync.core.logging import get_logger
from creditsync.gateways.base import OrderHandle, OrderStatus, PaymentGateway
from creditsync.models.transaction import GatewayName

log = get_logger(__name__)


class RazorpayGateway(PaymentGateway):
    name = GatewayName.RAZORPAY

    def __init__(self, key_id: str, key_secret: str, client: razorpay.Client | None = None) -> None:
        self.key_id = key_id
        self._client = client or razorpay.Client(auth=(key_id, key_secret))

    async def create_order(
        self,
        amount_minor_units: int,
        currency: str,
        receipt_ref: str,
        return_origin: str | None = None,
    ) -> OrderHandle:
        options = {"amount": amount_minor_units, "currency": currency, "receipt": receipt_ref}
        try:
            # SDK is synchronous (requests)
            order = await asyncio.to_thread(self._client.order.create, options)
        except Exception as e:
            log.error("razorpay_order_failed", receipt=receipt_ref, error=str(e))
            raise GatewayError(str(e), self.name.value) from e
        return OrderHandle(gateway=self.name, reference=order["id"], raw=dict(order))

    async def fetch_order_status(self, order_id: str) -> OrderStatus:
        try:
            order = await asyncio.to_thread(self._client.order.fetch, order_id)
        except Exception as e:
            log.error("razorpay_fetch_failed", order_id=order_id, error=str(e))
            raise GatewayError(str(e), self.name.value) from e
        return OrderStatus(status=order.get("status", ""), receipt_ref=order.get("receipt"))
