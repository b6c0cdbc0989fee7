"""Contract entry API endpoints."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_operator
from src.config import settings
from src.db import get_db
from src.models import (
    AuditAction,
    ContractEntry,
    ContractStatus,
    ProductCategory,
    User,
    UserRole,
)
from src.schemas.contract import (
    ContractCreate,
    ContractFigures,
    ContractListResponse,
    ContractPreviewRequest,
    ContractResponse,
    ContractStatusUpdate,
    ContractUpdate,
)
from src.services.contracts import (
    can_access,
    contract_query,
    create_contract,
    delete_contract,
    preview_contract,
    transition_status,
    update_contract,
)
from src.services.errors import ContractValidationError
from src.services.export import export_contracts_csv
from src.services.rates import load_rate_table
from src.utils.audit import record_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", tags=["Contracts"])


def _unprocessable(exc: ContractValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=exc.to_detail(),
    )


async def _get_visible_contract(
    db: AsyncSession,
    contract_id: int,
    current_user: User,
) -> ContractEntry:
    entry = await db.get(ContractEntry, contract_id)
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contract not found",
        )
    if not can_access(entry, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    return entry


@router.get("", response_model=ContractListResponse)
async def list_contracts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
    user_id: Optional[int] = Query(None),
    category: Optional[ProductCategory] = Query(None),
    contract_status: Optional[ContractStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """
    List contracts, newest submission first.

    Operators see contracts they own or supervise; admins see all.
    ``commission_total`` covers the whole filtered list.
    """
    query = contract_query(
        current_user,
        user_id=user_id,
        category=category,
        status=contract_status,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )

    filtered = query.order_by(None).subquery()
    total = await db.scalar(select(func.count()).select_from(filtered))
    commission_total = await db.scalar(
        select(func.coalesce(func.sum(filtered.c.commission_amount), 0))
    )

    query = query.order_by(None).order_by(
        ContractEntry.submission_date.desc(),
        ContractEntry.id.desc(),
    )
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    entries = result.scalars().all()

    return ContractListResponse(
        items=[ContractResponse.model_validate(entry) for entry in entries],
        total=total or 0,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
        commission_total=Decimal(str(commission_total or 0)),
    )


@router.post("", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
async def create_contract_endpoint(
    request: Request,
    data: ContractCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Submit a new contract; all figures are calculated server-side."""
    try:
        entry = await create_contract(db, data, current_user)
    except ContractValidationError as e:
        raise _unprocessable(e)

    await record_action(
        db,
        request,
        current_user.id,
        AuditAction.CREATE_CONTRACT,
        target_type="contract",
        target_id=entry.id,
        sub_category=entry.sub_category,
        commission_amount=entry.commission_amount,
    )

    return ContractResponse.model_validate(entry)


@router.post("/preview", response_model=ContractFigures)
async def preview_contract_endpoint(
    data: ContractPreviewRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """
    Calculate the figures of a contract that is still being entered.

    Uses the same calculation as saving, so the preview always matches
    the stored result. Nothing is persisted.
    """
    user_id = data.user_id or current_user.id
    if user_id != current_user.id and current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot preview with another operator's rates",
        )

    rate_table = await load_rate_table(db, user_id)
    try:
        return preview_contract(rate_table, data)
    except ContractValidationError as e:
        raise _unprocessable(e)


@router.get("/export")
async def export_contracts(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
    user_id: Optional[int] = Query(None),
    category: Optional[ProductCategory] = Query(None),
    contract_status: Optional[ContractStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
):
    """Export the filtered contracts as CSV."""
    query = contract_query(
        current_user,
        user_id=user_id,
        category=category,
        status=contract_status,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    entries = (await db.execute(query)).scalars().all()

    users = (await db.execute(select(User.id, User.display_name))).all()
    operator_names = {row.id: row.display_name for row in users}

    await record_action(
        db,
        request,
        current_user.id,
        AuditAction.EXPORT_CONTRACTS,
        target_type="contract",
        rows=len(entries),
    )

    content = export_contracts_csv(
        entries,
        operator_names=operator_names,
        delimiter=settings.export_delimiter,
    )
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="contracts.csv"'},
    )


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Get a single contract."""
    entry = await _get_visible_contract(db, contract_id, current_user)
    return ContractResponse.model_validate(entry)


@router.put("/{contract_id}", response_model=ContractResponse)
async def update_contract_endpoint(
    request: Request,
    contract_id: int,
    data: ContractUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Edit a contract; figures are recalculated on every edit."""
    entry = await _get_visible_contract(db, contract_id, current_user)
    previous_status = entry.status

    try:
        entry = await update_contract(db, entry, data)
    except ContractValidationError as e:
        raise _unprocessable(e)

    await record_action(
        db,
        request,
        current_user.id,
        AuditAction.UPDATE_CONTRACT,
        target_type="contract",
        target_id=entry.id,
        updated_fields=sorted(data.model_dump(exclude_unset=True)),
        previous_status=previous_status,
        commission_amount=entry.commission_amount,
    )

    return ContractResponse.model_validate(entry)


@router.post("/{contract_id}/status", response_model=ContractResponse)
async def change_contract_status(
    request: Request,
    contract_id: int,
    data: ContractStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """
    Move a contract along submitted → policed → cancelled.

    Cancelled contracts cannot change status again.
    """
    entry = await _get_visible_contract(db, contract_id, current_user)
    previous_status = entry.status

    try:
        transition_status(entry, data.status)
    except ContractValidationError as e:
        raise _unprocessable(e)

    if data.policing_date is not None:
        entry.policing_date = data.policing_date
    if data.commission_received_date is not None:
        entry.commission_received_date = data.commission_received_date

    await record_action(
        db,
        request,
        current_user.id,
        AuditAction.CHANGE_CONTRACT_STATUS,
        target_type="contract",
        target_id=entry.id,
        previous_status=previous_status,
        status=data.status,
    )

    await db.flush()
    await db.refresh(entry)

    logger.info(f"Contract {entry.id} status {previous_status.value} -> {data.status.value}")

    return ContractResponse.model_validate(entry)


@router.delete("/{contract_id}")
async def delete_contract_endpoint(
    request: Request,
    contract_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Delete a contract."""
    entry = await _get_visible_contract(db, contract_id, current_user)

    await record_action(
        db,
        request,
        current_user.id,
        AuditAction.DELETE_CONTRACT,
        target_type="contract",
        target_id=entry.id,
        policy_number=entry.policy_number,
        customer_name=entry.customer_name,
    )

    await delete_contract(db, entry)

    return {"success": True}
