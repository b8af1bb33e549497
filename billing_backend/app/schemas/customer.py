"""
Customer schemas.

Create payloads also accept the legacy field names used by backups of the
previous system (nama, tipe, whatsapp, username_pppoe, password_pppoe,
alamat, aktif) so old exports can be restored unchanged.
"""

from pydantic import AliasChoices, BaseModel, Field
from datetime import datetime
from typing import Optional
from billing_backend.app.models.enums import CustomerCategory


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, validation_alias=AliasChoices("name", "nama"))
    category: CustomerCategory = Field(..., validation_alias=AliasChoices("category", "tipe"))
    phone: str = Field(..., min_length=1, max_length=50, validation_alias=AliasChoices("phone", "whatsapp"))
    pppoe_username: Optional[str] = Field(default=None, validation_alias=AliasChoices("pppoe_username", "username_pppoe"))
    pppoe_password: Optional[str] = Field(default=None, validation_alias=AliasChoices("pppoe_password", "password_pppoe"))
    address: Optional[str] = Field(default=None, validation_alias=AliasChoices("address", "alamat"))
    is_active: bool = Field(default=True, validation_alias=AliasChoices("is_active", "aktif"))


class CustomerUpdate(CustomerCreate):
    """
    Replacement of the editable customer fields. The active flag is only
    changed when the client sends it.
    """
    is_active: Optional[bool] = Field(default=None, validation_alias=AliasChoices("is_active", "aktif"))


class CustomerResponse(BaseModel):
    id: int
    name: str
    category: CustomerCategory
    phone: str
    pppoe_username: Optional[str] = None
    pppoe_password: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DebtorResponse(CustomerResponse):
    """Active customer with a positive sum of pending transactions."""
    total_debt: int
