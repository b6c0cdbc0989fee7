"""
Database models for Prodboard.

All models are exported here for convenient imports:
    from src.models import User, ContractEntry, CommissionRate, etc.
"""

from src.models.audit import AuditAction, AuditLog
from src.models.base import Base, TimestampMixin
from src.models.contract import (
    ContractEntry,
    ContractStatus,
    PaymentFrequency,
    ProductCategory,
    SubCategory,
)
from src.models.rate import CommissionRate
from src.models.user import User, UserRole

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # User
    "User",
    "UserRole",
    # Contract
    "ContractEntry",
    "ContractStatus",
    "PaymentFrequency",
    "ProductCategory",
    "SubCategory",
    # Rates
    "CommissionRate",
    # Audit
    "AuditLog",
    "AuditAction",
]
