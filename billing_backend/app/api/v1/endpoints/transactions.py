"""
Transaction endpoints.

Creation, settlement and deletion are pushed to open dashboards as
`transaction_updated` events.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from billing_backend.app.db.session import get_db
from billing_backend.app.core.dependencies import get_current_user, get_event_broker
from billing_backend.app.models.enums import TransactionDirection, TransactionStatus
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.schemas.common import ApiResponse
from billing_backend.app.schemas.transaction import (
    MonthlyTotals,
    PendingTransactions,
    TransactionCreate,
    TransactionResponse,
    TransactionStats,
)
from billing_backend.app.services import customer_service, transaction_service
from billing_backend.app.services.events import EventBroker, EventType

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("", response_model=ApiResponse[List[TransactionResponse]])
async def list_transactions(
    status_filter: Optional[TransactionStatus] = Query(None, alias="status"),
    direction: Optional[TransactionDirection] = Query(None),
    customer_id: Optional[int] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    transactions = await transaction_service.list_transactions(db, status_filter, direction, customer_id, limit)
    return ApiResponse(data=[TransactionResponse.model_validate(t) for t in transactions])


@router.get("/stats", response_model=ApiResponse[TransactionStats])
async def get_stats(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Income, expense, pending and balance over all transactions."""
    return ApiResponse(data=await transaction_service.stats(db))


@router.get("/monthly", response_model=ApiResponse[List[MonthlyTotals]])
async def get_monthly(
    year: Optional[int] = Query(None, ge=2000, le=2100, description="Defaults to the current year"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Income and expense for each month 1-12, zero-filled."""
    return ApiResponse(data=await transaction_service.monthly_breakdown(db, year))


@router.get("/customer/{customer_id}/pending", response_model=ApiResponse[PendingTransactions])
async def get_customer_pending(
    customer_id: int,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await customer_service.get_customer(db, customer_id)
    transactions = await transaction_service.pending_for_customer(db, customer_id)

    return ApiResponse(data=PendingTransactions(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=sum(t.amount for t in transactions)
    ))


@router.post("", response_model=ApiResponse[TransactionResponse], status_code=status.HTTP_201_CREATED)
async def create_transaction(
    data: TransactionCreate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker)
):
    """Record an income or expense. Customer name and category are snapshotted."""
    transaction = await transaction_service.create_transaction(db, data, actor_id=current_user.id)
    response = TransactionResponse.model_validate(transaction)

    broker.publish(EventType.TRANSACTION_UPDATED, response.model_dump(mode="json"))
    return ApiResponse(message="Transaction created", data=response)


@router.post("/{transaction_id}/mark-settled", response_model=ApiResponse[TransactionResponse])
async def mark_settled(
    transaction_id: int,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker)
):
    """
    Settle a transaction and record the matching income receipt.

    Returns the receipt. Calling it again on the same id records another
    receipt.
    """
    receipt = await transaction_service.mark_settled(db, transaction_id, actor_id=current_user.id)
    response = TransactionResponse.model_validate(receipt)

    # Two rows changed; subscribers refetch
    broker.publish(EventType.TRANSACTION_UPDATED)
    return ApiResponse(message="Payment recorded", data=response)


@router.delete("/{transaction_id}", response_model=ApiResponse[None])
async def delete_transaction(
    transaction_id: int,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker)
):
    await transaction_service.delete_transaction(db, transaction_id, actor_id=current_user.id)

    broker.publish(EventType.TRANSACTION_UPDATED)
    return ApiResponse(message="Transaction deleted")
