from creditsync.models.plan import PLANS, Plan, PlanId
from creditsync.models.transaction import GatewayName, Transaction, TransactionRecord
from creditsync.models.user import IdentityProfile, User, UserRecord

__all__ = [
    "PLANS",
    "Plan",
    "PlanId",
    "GatewayName",
    "Transaction",
    "TransactionRecord",
    "IdentityProfile",
    "User",
    "UserRecord",
]
