"""Transaction CRUD endpoints."""
from datetime import date
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import check_rate_limit, get_async_session, get_current_user_id
from schemas.common import build_pagination_meta
from schemas.tag import validate_and_normalize_tags
from schemas.transaction import (
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdate,
)
from services import transaction_service
from services.transaction_service import TransactionFilters

router = APIRouter(
    prefix="/transactions", tags=["transactions"], dependencies=[Depends(check_rate_limit)],
)


@router.get("/", response_model=TransactionListResponse)
async def list_transactions(
    page: int = Query(default=1, ge=1, description="Page number"),
    per_page: int = Query(default=20, ge=1, le=100, description="Items per page"),
    search: str | None = Query(
        default=None, description="Search in description, notes, category and tags",
    ),
    date_from: date | None = Query(default=None, description="Filter by date from (YYYY-MM-DD)"),
    date_to: date | None = Query(default=None, description="Filter by date to (YYYY-MM-DD)"),
    category: list[str] | None = Query(default=None, description="Filter by categories"),
    type: Literal["income", "expense", "all"] = Query(
        default="all", description="Filter by type",
    ),
    min_amount: Decimal | None = Query(default=None, description="Minimum amount filter"),
    max_amount: Decimal | None = Query(default=None, description="Maximum amount filter"),
    tag: list[str] | None = Query(default=None, description="Filter by tags"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> TransactionListResponse:
    """List the current user's transactions, newest first, with filters and pagination."""
    try:
        tags = validate_and_normalize_tags(tag) if tag else []
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    filters = TransactionFilters(
        search=search.strip() if search and search.strip() else None,
        date_from=date_from,
        date_to=date_to,
        categories=category or [],
        type=None if type == "all" else type,
        min_amount=min_amount,
        max_amount=max_amount,
        tags=tags,
    )
    transactions, total = await transaction_service.list_transactions(
        db, user_id, filters, offset=(page - 1) * per_page, limit=per_page,
    )
    return TransactionListResponse(
        data=[TransactionResponse.model_validate(t) for t in transactions],
        meta=build_pagination_meta(total, page, per_page),
    )


@router.post("/", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    data: TransactionCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> TransactionResponse:
    """Create a new transaction."""
    transaction = await transaction_service.create_transaction(db, user_id, data)
    return TransactionResponse.model_validate(transaction)


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> TransactionResponse:
    """Get a single transaction by ID."""
    transaction = await transaction_service.get_transaction(db, user_id, transaction_id)
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(transaction)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    data: TransactionUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> TransactionResponse:
    """Update a transaction."""
    transaction = await transaction_service.update_transaction(
        db, user_id, transaction_id, data,
    )
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(transaction)


@router.delete("/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a transaction."""
    deleted = await transaction_service.delete_transaction(db, user_id, transaction_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Transaction not found")
