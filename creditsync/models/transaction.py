from datetime import datetime
from enum import Enum

from beanie import Document
from pydantic import BaseModel, Field

from creditsync.models.plan import PlanId


class GatewayName(str, Enum):
    RAZORPAY = "razorpay"
    STRIPE = "stripe"


class TransactionRecord(BaseModel):
    id: str
    external_user_id: str
    plan_id: PlanId
    amount: int  # major currency units
    credits: int
    gateway: GatewayName
    gateway_ref: str | None = None  # order id / checkout session id
    paid: bool = False
    created_at: datetime
    paid_at: datetime | None = None


class Transaction(Document):
    """One purchase attempt; `paid` flips false -> true once, on reconciliation."""
    external_user_id: str
    plan_id: PlanId
    amount: int
    credits: int
    gateway: GatewayName
    gateway_ref: str | None = None
    paid: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    paid_at: datetime | None = None

    class Settings:
        name = "transactions"
        indexes = [
            [("external_user_id", 1), ("created_at", -1)],
        ]

    def to_record(self) -> TransactionRecord:
        return TransactionRecord(
            id=str(self.id),
            external_user_id=self.external_user_id,
            plan_id=self.plan_id,
            amount=self.amount,
            credits=self.credits,
            gateway=self.gateway,
            gateway_ref=self.gateway_ref,
            paid=self.paid,
            created_at=self.created_at,
            paid_at=self.paid_at,
        )
