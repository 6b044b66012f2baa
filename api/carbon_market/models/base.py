"""Shared imports for all model modules."""
from datetime import datetime, date, timezone
from decimal import Decimal
from sqlalchemy import (
    Column, String, Text, Integer, Date, DateTime, ForeignKey,
    UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.types import TypeDecorator
from carbon_market.amounts import to_amount
from carbon_market.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DecimalString(TypeDecorator):
    """Decimal persisted as a two-place string; SQLite has no exact numeric type."""

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(to_amount(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)
