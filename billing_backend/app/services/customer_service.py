"""
Customer service.

CRUD, filtered listing, and the debtor query used by billing broadcasts.
"""

from typing import List, Optional, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from billing_backend.app.core.exceptions import ConflictError, NotFoundError
from billing_backend.app.models.customer import Customer
from billing_backend.app.models.enums import CustomerCategory, TransactionStatus
from billing_backend.app.models.transaction import Transaction
from billing_backend.app.schemas.customer import CustomerCreate, CustomerUpdate
from billing_backend.app.services.audit import AuditAction, log_activity


async def list_customers(
    db: AsyncSession,
    category: Optional[CustomerCategory] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None
) -> List[Customer]:
    """
    List customers ordered by name.

    All filters are AND-combined; a None filter is no constraint.
    `search` is a case-insensitive substring match on name or phone.
    """
    query = select(Customer)

    if category is not None:
        query = query.where(Customer.category == category)

    if is_active is not None:
        query = query.where(Customer.is_active == is_active)

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Customer.name.ilike(pattern), Customer.phone.ilike(pattern)))

    result = await db.execute(query.order_by(Customer.name, Customer.id))
    return list(result.scalars().all())


async def get_customer(db: AsyncSession, customer_id: int) -> Customer:
    result = await db.execute(select(Customer).where(Customer.id == customer_id))
    customer = result.scalar_one_or_none()

    if not customer:
        raise NotFoundError("Customer", customer_id)

    return customer


async def customers_with_outstanding_balance(db: AsyncSession) -> List[Tuple[Customer, int]]:
    """
    Active customers with at least one pending transaction and a positive
    pending sum, paired with that sum, ordered by name.
    """
    total_debt = func.sum(Transaction.amount).label("total_debt")
    query = (
        select(Customer, total_debt)
        .join(Transaction, Transaction.customer_id == Customer.id)
        .where(
            Transaction.status == TransactionStatus.PENDING,
            Customer.is_active == True
        )
        .group_by(Customer.id)
        .having(func.sum(Transaction.amount) > 0)
        .order_by(Customer.name, Customer.id)
    )

    result = await db.execute(query)
    return [(row[0], int(row[1])) for row in result.all()]


async def create_customer(db: AsyncSession, data: CustomerCreate, actor_id: int = None) -> Customer:
    customer = Customer(**data.model_dump(), created_by=actor_id)
    db.add(customer)
    await db.flush()

    await log_activity(db, actor_id, AuditAction.CREATE_CUSTOMER, f"Added customer: {data.name}")
    await db.commit()
    await db.refresh(customer)

    return customer


async def update_customer(
    db: AsyncSession,
    customer_id: int,
    data: CustomerUpdate,
    actor_id: int = None
) -> Customer:
    customer = await get_customer(db, customer_id)

    values = data.model_dump()
    if values["is_active"] is None:
        values.pop("is_active")

    for field, value in values.items():
        setattr(customer, field, value)

    await log_activity(db, actor_id, AuditAction.UPDATE_CUSTOMER, f"Updated customer: {data.name}")
    await db.commit()
    await db.refresh(customer)

    return customer


async def delete_customer(db: AsyncSession, customer_id: int, actor_id: int = None) -> None:
    """
    Hard-delete a customer.

    Restricted while transactions still reference the customer: their
    history would otherwise dangle.
    """
    customer = await get_customer(db, customer_id)

    count_result = await db.execute(
        select(func.count(Transaction.id)).where(Transaction.customer_id == customer_id)
    )
    dependents = count_result.scalar() or 0
    if dependents:
        raise ConflictError(
            f"Customer '{customer.name}' still has {dependents} transaction(s)",
            {"customer_id": customer_id, "transactions": dependents}
        )

    name = customer.name
    await db.delete(customer)
    await db.flush()

    await log_activity(db, actor_id, AuditAction.DELETE_CUSTOMER, f"Deleted customer: {name}")
    await db.commit()
