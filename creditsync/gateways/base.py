from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from creditsync.core.config import Settings
from creditsync.core.exceptions import GatewayUnavailableError
from creditsync.models.transaction import GatewayName


class OrderHandle(BaseModel):
    """What a gateway hands back for a new order; returned to the client as-is."""
    gateway: GatewayName
    reference: str  # Razorpay order id / Stripe checkout session id
    redirect_url: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)


class OrderStatus(BaseModel):
    status: str
    receipt_ref: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "paid"


class PaymentGateway(ABC):
    name: GatewayName

    @abstractmethod
    async def create_order(
        self,
        amount_minor_units: int,
        currency: str,
        receipt_ref: str,
        return_origin: str | None = None,
    ) -> OrderHandle:
        """Create an order/session whose reference echoes `receipt_ref` back on completion."""
        ...

    @abstractmethod
    async def fetch_order_status(self, order_id: str) -> OrderStatus:
        """Authoritative status lookup by the reference returned from create_order."""
        ...


class GatewayRegistry:
    """Gateways configured at startup, looked up by explicit name."""

    def __init__(self, gateways: list[PaymentGateway] | None = None) -> None:
        self._gateways: dict[GatewayName, PaymentGateway] = {}
        for gateway in gateways or []:
            self.register(gateway)

    def register(self, gateway: PaymentGateway) -> None:
        self._gateways[gateway.name] = gateway

    def get(self, name: GatewayName | str) -> PaymentGateway:
        try:
            key = GatewayName(name)
        except ValueError:
            raise GatewayUnavailableError(str(name)) from None
        gateway = self._gateways.get(key)
        if gateway is None:
            raise GatewayUnavailableError(key.value)
        return gateway

    def available(self) -> list[str]:
        return sorted(name.value for name in self._gateways)


def build_gateways(settings: Settings) -> GatewayRegistry:
    """Construct one client per gateway whose credentials are present."""
    registry = GatewayRegistry()
    if settings.razorpay_enabled:
        from creditsync.gateways.razorpay_gateway import RazorpayGateway
        registry.register(RazorpayGateway(settings.razorpay_key_id, settings.razorpay_key_secret))
    if settings.stripe_enabled:
        from creditsync.gateways.stripe_gateway import StripeGateway
        registry.register(
            StripeGateway(
                settings.stripe_secret_key,
                product_label=settings.stripe_product_label,
                default_origin=settings.frontend_url,
            )
        )
    return registry
