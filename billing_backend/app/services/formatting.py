"""
Locale helpers for Indonesian currency and dates.
"""

from datetime import date

MONTHS_ID = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


def format_number(value: int) -> str:
    """12500 -> '12.500'"""
    return f"{int(value):,}".replace(",", ".")


def format_idr(value: int) -> str:
    """12500 -> 'Rp 12.500'"""
    return f"Rp {format_number(value)}"


def format_long_date(day: date) -> str:
    """2026-10-19 -> '19 Oktober 2026'"""
    return f"{day.day} {MONTHS_ID[day.month - 1]} {day.year}"


def format_period(day: date) -> str:
    """2026-10-19 -> 'Oktober 2026'"""
    return f"{MONTHS_ID[day.month - 1]} {day.year}"
