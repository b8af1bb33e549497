"""
Transaction service.

Creation with customer snapshot, filtered listing, aggregates, and the
settle operation that writes an invoice/receipt pair.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
from sqlalchemy import select, func, case, extract
from sqlalchemy.ext.asyncio import AsyncSession

from billing_backend.app.core.exceptions import NotFoundError
from billing_backend.app.models.enums import TransactionDirection, TransactionStatus
from billing_backend.app.models.transaction import Transaction
from billing_backend.app.schemas.transaction import (
    MonthlyTotals,
    TransactionCreate,
    TransactionStats,
)
from billing_backend.app.services.audit import AuditAction, log_activity
from billing_backend.app.services.customer_service import get_customer
from billing_backend.app.services.formatting import format_idr

RECEIPT_DESCRIPTION = "Automatic payment receipt"


async def list_transactions(
    db: AsyncSession,
    status: Optional[TransactionStatus] = None,
    direction: Optional[TransactionDirection] = None,
    customer_id: Optional[int] = None,
    limit: Optional[int] = None
) -> List[Transaction]:
    """List transactions newest first, with optional AND-combined filters and cap."""
    query = select(Transaction)

    if status is not None:
        query = query.where(Transaction.status == status)

    if direction is not None:
        query = query.where(Transaction.direction == direction)

    if customer_id is not None:
        query = query.where(Transaction.customer_id == customer_id)

    query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())

    if limit:
        query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_transaction(db: AsyncSession, transaction_id: int) -> Transaction:
    result = await db.execute(select(Transaction).where(Transaction.id == transaction_id))
    transaction = result.scalar_one_or_none()

    if not transaction:
        raise NotFoundError("Transaction", transaction_id)

    return transaction


async def pending_for_customer(db: AsyncSession, customer_id: int) -> List[Transaction]:
    return await list_transactions(db, status=TransactionStatus.PENDING, customer_id=customer_id)


async def create_transaction(db: AsyncSession, data: TransactionCreate, actor_id: int = None) -> Transaction:
    """Create a transaction, snapshotting the customer's current name and category."""
    customer = await get_customer(db, data.customer_id)

    transaction = Transaction(
        customer_id=customer.id,
        customer_name=customer.name,
        customer_category=customer.category,
        category=data.category,
        amount=data.amount,
        direction=data.direction,
        status=data.status,
        description=data.description,
        created_by=actor_id
    )
    db.add(transaction)
    await db.flush()

    await log_activity(
        db, actor_id, AuditAction.CREATE_TRANSACTION,
        f"{data.direction.value}: {format_idr(data.amount)} for {customer.name}"
    )
    await db.commit()
    await db.refresh(transaction)

    return transaction


async def mark_settled(db: AsyncSession, transaction_id: int, actor_id: int = None) -> Transaction:
    """
    Settle a transaction: flip it to SETTLED and insert a settled income
    receipt for the same amount, committed together.

    Not idempotent: settling an already-settled transaction writes
    another receipt.

    Returns:
        The newly created receipt
    """
    original = await get_transaction(db, transaction_id)

    original.status = TransactionStatus.SETTLED

    receipt = Transaction(
        customer_id=original.customer_id,
        customer_name=original.customer_name,
        customer_category=original.customer_category,
        category=original.category,
        amount=original.amount,
        direction=TransactionDirection.INCOME,
        status=TransactionStatus.SETTLED,
        description=RECEIPT_DESCRIPTION,
        created_by=actor_id
    )
    db.add(receipt)
    await db.flush()

    await log_activity(
        db, actor_id, AuditAction.PAYMENT,
        f"Payment: {format_idr(original.amount)} from {original.customer_name}"
    )
    await db.commit()
    await db.refresh(receipt)

    return receipt


async def delete_transaction(db: AsyncSession, transaction_id: int, actor_id: int = None) -> None:
    transaction = await get_transaction(db, transaction_id)
    amount = transaction.amount

    await db.delete(transaction)
    await db.flush()

    await log_activity(db, actor_id, AuditAction.DELETE_TRANSACTION, f"Deleted transaction: {format_idr(amount)}")
    await db.commit()


async def stats(db: AsyncSession) -> TransactionStats:
    """Income, expense, pending (any direction) and balance; zeros when empty."""
    query = select(
        func.coalesce(func.sum(case(
            (Transaction.direction == TransactionDirection.INCOME, Transaction.amount), else_=0
        )), 0),
        func.coalesce(func.sum(case(
            (Transaction.direction == TransactionDirection.EXPENSE, Transaction.amount), else_=0
        )), 0),
        func.coalesce(func.sum(case(
            (Transaction.status == TransactionStatus.PENDING, Transaction.amount), else_=0
        )), 0),
    )
    result = await db.execute(query)
    income, expense, pending = (int(value) for value in result.one())

    return TransactionStats(income=income, expense=expense, pending=pending, balance=income - expense)


async def monthly_breakdown(db: AsyncSession, year: Optional[int] = None) -> List[MonthlyTotals]:
    """
    Income and expense per calendar month of `year` (default: current year).

    Always returns all twelve months, zero-filled.
    """
    year = year or datetime.now(timezone.utc).year
    month = extract("month", Transaction.created_at)

    query = (
        select(
            month.label("month"),
            func.sum(case((Transaction.direction == TransactionDirection.INCOME, Transaction.amount), else_=0)),
            func.sum(case((Transaction.direction == TransactionDirection.EXPENSE, Transaction.amount), else_=0)),
        )
        .where(extract("year", Transaction.created_at) == year)
        .group_by(month)
    )
    result = await db.execute(query)

    totals: Dict[int, MonthlyTotals] = {m: MonthlyTotals(month=m) for m in range(1, 13)}
    for row_month, income, expense in result.all():
        totals[int(row_month)] = MonthlyTotals(month=int(row_month), income=int(income or 0), expense=int(expense or 0))

    return [totals[m] for m in range(1, 13)]
