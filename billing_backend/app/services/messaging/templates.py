"""
Billing message rendering and phone normalization.
"""

import re
from datetime import date
from typing import Optional

from billing_backend.app.models.customer import Customer
from billing_backend.app.models.enums import CustomerCategory
from billing_backend.app.services.formatting import format_long_date, format_number, format_period

CATEGORY_LABELS = {
    CustomerCategory.INTERNET: "Internet/PPPoE",
    CustomerCategory.GAS: "LPG 3kg",
}

# Each value is substituted for every listed placeholder
PLACEHOLDERS = {
    "name": ("{nama}", "{name}"),
    "amount": ("{jumlah}", "{amount}"),
    "category": ("{tipe}", "{category}"),
    "date": ("{tanggal}", "{date}"),
    "period": ("{periode}", "{period}"),
    "pppoe_username": ("{username}",),
    "pppoe_password": ("{password}",),
}


def normalize_phone(raw: str) -> str:
    """
    Strip everything but digits and rewrite a local leading 0 as the
    Indonesian country code: '0812-3456 789' -> '628123456789'.
    """
    digits = re.sub(r"\D", "", raw or "")
    if digits.startswith("0"):
        digits = "62" + digits[1:]
    return digits


def to_chat_id(phone: str) -> str:
    return f"{phone}@c.us"


def render_template(
    template: str,
    customer: Customer,
    amount: Optional[int] = None,
    today: Optional[date] = None
) -> str:
    """Fill a billing template with the customer's data."""
    today = today or date.today()
    values = {
        "name": customer.name,
        "amount": format_number(amount or 0),
        "category": CATEGORY_LABELS.get(customer.category, str(customer.category)),
        "date": format_long_date(today),
        "period": format_period(today),
        "pppoe_username": customer.pppoe_username or "-",
        "pppoe_password": customer.pppoe_password or "-",
    }

    message = template
    for key, tokens in PLACEHOLDERS.items():
        for token in tokens:
            message = message.replace(token, values[key])
    return message
