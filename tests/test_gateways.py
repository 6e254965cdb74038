from types import SimpleNamespace

import pytest
import stripe

from creditsync.core.config import Settings
from creditsync.core.exceptions import GatewayError, GatewayUnavailableError
from creditsync.gateways.base import GatewayRegistry, PaymentGateway, build_gateways
from creditsync.gateways.razorpay_gateway import RazorpayGateway
from creditsync.gateways.stripe_gateway import StripeGateway, checkout_return_url
from creditsync.models.transaction import GatewayName


class FakeOrders:
    def __init__(self):
        self.created = []
        self.error = None

    def create(self, data):
        if self.error:
            raise self.error
        self.created.append(data)
        return {"id": "order_ABC", "status": "created", **data}

    def fetch(self, order_id):
        return {"id": order_id, "status": "paid", "receipt": "64b7f0c2a1b2c3d4e5f60718"}


@pytest.fixture
def razorpay_client():
    return SimpleNamespace(order=FakeOrders())


async def test_razorpay_create_order_passes_receipt(razorpay_client):
    gateway = RazorpayGateway("rzp_test", "secret", client=razorpay_client)
    handle = await gateway.create_order(1000, "INR", "txn-1")
    assert razorpay_client.order.created == [{"amount": 1000, "currency": "INR", "receipt": "txn-1"}]
    assert handle.reference == "order_ABC"
    assert handle.raw["receipt"] == "txn-1"
    assert handle.redirect_url is None


async def test_razorpay_fetch_status(razorpay_client):
    gateway = RazorpayGateway("rzp_test", "secret", client=razorpay_client)
    status = await gateway.fetch_order_status("order_ABC")
    assert status.succeeded is True
    assert status.receipt_ref == "64b7f0c2a1b2c3d4e5f60718"


async def test_razorpay_errors_become_gateway_errors(razorpay_client):
    razorpay_client.order.error = RuntimeError("Authentication failed")
    gateway = RazorpayGateway("rzp_test", "secret", client=razorpay_client)
    with pytest.raises(GatewayError, match="Authentication failed"):
        await gateway.create_order(1000, "INR", "txn-1")


def test_checkout_return_url():
    url = checkout_return_url("https://app.example.com/", "txn-1", True)
    assert url == "https://app.example.com/verify?success=true&transactionId=txn-1"


async def test_stripe_create_order_builds_checkout_session(monkeypatch):
    calls = []

    async def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

    monkeypatch.setattr(stripe.checkout.Session, "create_async", fake_create)
    gateway = StripeGateway("sk_test", default_origin="http://localhost:5173")
    handle = await gateway.create_order(5000, "INR", "txn-9")

    assert handle.reference == "cs_test_1"
    assert handle.redirect_url == "https://checkout.stripe.com/c/pay/cs_test_1"
    [params] = calls
    assert params["api_key"] == "sk_test"
    assert params["mode"] == "payment"
    assert params["client_reference_id"] == "txn-9"
    assert params["success_url"] == "http://localhost:5173/verify?success=true&transactionId=txn-9"
    assert params["cancel_url"] == "http://localhost:5173/verify?success=false&transactionId=txn-9"
    price = params["line_items"][0]["price_data"]
    assert price == {"currency": "inr", "product_data": {"name": "Credit Purchase"}, "unit_amount": 5000}


async def test_stripe_fetch_status_reads_payment_status(monkeypatch):
    async def fake_retrieve(session_id, **kwargs):
        return SimpleNamespace(payment_status="paid", client_reference_id="txn-9")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve_async", fake_retrieve)
    status = await StripeGateway("sk_test").fetch_order_status("cs_test_1")
    assert status.succeeded is True
    assert status.receipt_ref == "txn-9"


async def test_stripe_errors_become_gateway_errors(monkeypatch):
    async def fake_create(**kwargs):
        raise stripe.APIConnectionError("Network down")

    monkeypatch.setattr(stripe.checkout.Session, "create_async", fake_create)
    with pytest.raises(GatewayError):
        await StripeGateway("sk_test").create_order(1000, "INR", "txn-1", return_origin="https://a.example")


def test_build_gateways_only_registers_configured():
    registry = build_gateways(Settings(stripe_secret_key="sk_test"))
    assert registry.available() == ["stripe"]
    with pytest.raises(GatewayUnavailableError):
        registry.get(GatewayName.RAZORPAY)


def test_build_gateways_both():
    registry = build_gateways(
        Settings(razorpay_key_id="rzp_test", razorpay_key_secret="secret", stripe_secret_key="sk_test")
    )
    assert registry.available() == ["razorpay", "stripe"]
    assert isinstance(registry.get("razorpay"), RazorpayGateway)


def test_registry_rejects_unknown_name():
    with pytest.raises(GatewayUnavailableError):
        GatewayRegistry().get("paypal")


def test_gateway_without_status_lookup_cannot_be_built():
    class CreateOnly(PaymentGateway):
        name = GatewayName.STRIPE

        async def create_order(self, amount_minor_units, currency, receipt_ref, return_origin=None):
            raise NotImplementedError

    with pytest.raises(TypeError):
        CreateOnly()
