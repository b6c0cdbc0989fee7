"""
Audit trail for contract, rate and account changes.

Entries join the caller's transaction, so a change that rolls back leaves
no audit row behind.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.audit import AuditAction, AuditLog


def _jsonable(value: Any) -> Any:
    """Make amounts, enums and dates storable in the JSON metadata column."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(_jsonable(key)): _jsonable(item) for key, item in value.items()}
    return value


def client_ip(request: Request) -> Optional[str]:
    """Address of the caller; the first proxy hop wins when present."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else None


async def record_action(
    db: AsyncSession,
    request: Request,
    actor_id: int,
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    **details: Any,
) -> AuditLog:
    """
    Add an audit entry for ``action`` performed by ``actor_id``.

    Keyword details end up in ``action_metadata``; Decimal amounts, enum
    members and dates are stored as strings.
    """
    entry = AuditLog(
        user_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=_jsonable(details) if details else None,
        ip_address=client_ip(request),
    )
    db.add(entry)
    return entry
