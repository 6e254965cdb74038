from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from creditsync.core.pagination import Page
from creditsync.deps import get_directory, get_ledger
from creditsync.models.transaction import TransactionRecord
from creditsync.services import credits as credits_service
from creditsync.stores.base import TransactionLedger, UserDirectory

router = APIRouter()


class BalanceRequest(BaseModel):
    external_user_id: str | None = None


@router.post("/balance")
async def credits_balance(body: BalanceRequest, directory: UserDirectory = Depends(get_directory)):
    """Return current credit balance for a user."""
    balance = await credits_service.get_balance(directory, body.external_user_id) if body.external_user_id else None
    if balance is None:
        return {"success": False, "message": "User not found"}
    return {"success": True, "credits": balance}


@router.get("/{external_user_id}/transactions")
async def credits_transactions(
    external_user_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    ledger: TransactionLedger = Depends(get_ledger),
):
    """Purchase attempts for a user, newest first."""
    items, limit, offset = await credits_service.list_transactions(ledger, external_user_id, limit, offset)
    page = Page[TransactionRecord](items=items, limit=limit, offset=offset)
    return {"success": True, **page.model_dump(mode="json")}
