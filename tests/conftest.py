import base64
import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# In-memory stores, no gateway credentials
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("CLERK_WEBHOOK_SECRET", "whsec_" + base64.b64encode(b"test-identity-webhook-secret").decode())
os.environ.setdefault("CURRENCY", "INR")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")

from creditsync.gateways.base import GatewayRegistry, OrderHandle, OrderStatus, PaymentGateway  # noqa: E402
from creditsync.models.transaction import GatewayName  # noqa: E402
from creditsync.models.user import IdentityProfile  # noqa: E402
from creditsync.stores.memory import InMemoryLedger, InMemoryUserDirectory  # noqa: E402


class FakeRazorpay(PaymentGateway):
    name = GatewayName.RAZORPAY

    def __init__(self) -> None:
        self.orders: dict[str, dict] = {}
        self.fail_with: Exception | None = None

    async def create_order(self, amount_minor_units, currency, receipt_ref, return_origin=None):
        if self.fail_with:
            raise self.fail_with
        order_id = f"order_{len(self.orders) + 1}"
        order = {
            "id": order_id,
            "amount": amount_minor_units,
            "currency": currency,
            "receipt": receipt_ref,
            "status": "created",
        }
        self.orders[order_id] = order
        return OrderHandle(gateway=self.name, reference=order_id, raw=order)

    async def fetch_order_status(self, order_id):
        order = self.orders[order_id]
        return OrderStatus(status=order["status"], receipt_ref=order["receipt"])

    def mark_paid(self, order_id: str) -> None:
        self.orders[order_id]["status"] = "paid"


class FakeStripe(PaymentGateway):
    name = GatewayName.STRIPE

    def __init__(self) -> None:
        self.sessions: dict[str, dict] = {}

    async def create_order(self, amount_minor_units, currency, receipt_ref, return_origin=None):
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions[session_id] = {
            "amount": amount_minor_units,
            "currency": currency.lower(),
            "client_reference_id": receipt_ref,
            "origin": return_origin,
            "payment_status": "unpaid",
        }
        return OrderHandle(
            gateway=self.name,
            reference=session_id,
            redirect_url=f"https://checkout.stripe.test/{session_id}",
        )

    async def fetch_order_status(self, order_id):
        session = self.sessions[order_id]
        return OrderStatus(status=session["payment_status"], receipt_ref=session["client_reference_id"])


@pytest.fixture
def directory() -> InMemoryUserDirectory:
    return InMemoryUserDirectory()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def razorpay_gateway() -> FakeRazorpay:
    return FakeRazorpay()


@pytest.fixture
def stripe_gateway() -> FakeStripe:
    return FakeStripe()


@pytest.fixture
def gateways(razorpay_gateway, stripe_gateway) -> GatewayRegistry:
    return GatewayRegistry([razorpay_gateway, stripe_gateway])


@pytest_asyncio.fixture
async def user(directory):
    return await directory.create(
        IdentityProfile(
            external_id="user_2abc",
            email="ada@example.com",
            first_name="Ada",
            last_name="Lovelace",
            photo_url="https://img.example.com/ada.png",
        )
    )


@pytest_asyncio.fixture
async def client(directory, ledger, gateways) -> AsyncGenerator[AsyncClient, None]:
    from creditsync.deps import get_directory, get_gateways, get_ledger
    from creditsync.main import app

    app.dependency_overrides[get_directory] = lambda: directory
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_gateways] = lambda: gateways
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
