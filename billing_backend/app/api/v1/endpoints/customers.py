"""
Customer endpoints.

Every change is pushed to open dashboards as a `customer_updated` event.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from billing_backend.app.db.session import get_db
from billing_backend.app.core.dependencies import get_current_user, get_event_broker
from billing_backend.app.models.enums import CustomerCategory
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.schemas.common import ApiResponse
from billing_backend.app.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate, DebtorResponse
from billing_backend.app.services import customer_service
from billing_backend.app.services.events import EventBroker, EventType

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("", response_model=ApiResponse[List[CustomerResponse]])
async def list_customers(
    category: Optional[CustomerCategory] = Query(None, description="internet | gas"),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Substring of name or phone"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    customers = await customer_service.list_customers(db, category, is_active, search)
    return ApiResponse(data=[CustomerResponse.model_validate(c) for c in customers])


@router.get("/with-pending", response_model=ApiResponse[List[DebtorResponse]])
async def list_debtors(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active customers with outstanding pending transactions and their total debt."""
    rows = await customer_service.customers_with_outstanding_balance(db)
    debtors = [
        DebtorResponse(**CustomerResponse.model_validate(customer).model_dump(), total_debt=total)
        for customer, total in rows
    ]
    return ApiResponse(data=debtors)


@router.get("/{customer_id}", response_model=ApiResponse[CustomerResponse])
async def get_customer(
    customer_id: int,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    customer = await customer_service.get_customer(db, customer_id)
    return ApiResponse(data=CustomerResponse.model_validate(customer))


@router.post("", response_model=ApiResponse[CustomerResponse], status_code=status.HTTP_201_CREATED)
async def create_customer(
    data: CustomerCreate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker)
):
    customer = await customer_service.create_customer(db, data, actor_id=current_user.id)
    response = CustomerResponse.model_validate(customer)

    broker.publish(EventType.CUSTOMER_UPDATED, response.model_dump(mode="json"))
    return ApiResponse(message="Customer created", data=response)


@router.put("/{customer_id}", response_model=ApiResponse[CustomerResponse])
async def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker)
):
    customer = await customer_service.update_customer(db, customer_id, data, actor_id=current_user.id)
    response = CustomerResponse.model_validate(customer)

    broker.publish(EventType.CUSTOMER_UPDATED, response.model_dump(mode="json"))
    return ApiResponse(message="Customer updated", data=response)


@router.delete("/{customer_id}", response_model=ApiResponse[None])
async def delete_customer(
    customer_id: int,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker)
):
    """Delete a customer. 400 while transactions still reference it."""
    await customer_service.delete_customer(db, customer_id, actor_id=current_user.id)

    broker.publish(EventType.CUSTOMER_UPDATED)
    return ApiResponse(message="Customer deleted")
