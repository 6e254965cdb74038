from enum import Enum

from pydantic import BaseModel


class PlanId(str, Enum):
    BASIC = "Basic"
    ADVANCED = "Advanced"
    BUSINESS = "Business"


class Plan(BaseModel):
    id: PlanId
    credits: int
    amount: int  # major currency units

    @property
    def amount_minor_units(self) -> int:
        return self.amount * 100


PLANS: dict[PlanId, Plan] = {
    PlanId.BASIC: Plan(id=PlanId.BASIC, credits=100, amount=10),
    PlanId.ADVANCED: Plan(id=PlanId.ADVANCED, credits=500, amount=50),
    PlanId.BUSINESS: Plan(id=PlanId.BUSINESS, credits=5000, amount=250),
}


def resolve_plan(plan_id: str | None) -> Plan | None:
    """Return the plan for an exact plan id, or None."""
    if not plan_id:
        return None
    try:
        return PLANS[PlanId(plan_id)]
    except ValueError:
        return None
