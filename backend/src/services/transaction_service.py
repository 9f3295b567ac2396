"""Service layer for transaction CRUD, filtering, and category counts."""
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from typing import Literal

from sqlalchemy import ColumnElement, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.tag import Tag, transaction_tags
from models.transaction import Transaction
from schemas.category import CategoryCount
from schemas.transaction import TransactionCreate, TransactionUpdate
from services.tag_service import get_or_create_tags

CLEARABLE_FIELDS = frozenset({"category", "notes"})


@dataclass
class TransactionFilters:
    """
    Criteria for listing transactions. Unset fields do not filter.

    Category and tag lists match any of the given values. Date bounds are
    inclusive calendar days (UTC); amount bounds are inclusive and only apply
    when positive.
    """

    search: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    categories: list[str] = field(default_factory=list)
    type: Literal["income", "expense"] | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    tags: list[str] = field(default_factory=list)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def _build_filters(user_id: int, filters: TransactionFilters) -> list[ColumnElement[bool]]:
    """Translate TransactionFilters into SQL WHERE clauses."""
    clauses: list[ColumnElement[bool]] = [Transaction.user_id == user_id]

    if filters.search:
        pattern = f"%{escape_like(filters.search)}%"
        tag_match = exists(
            select(transaction_tags.c.transaction_id)
            .join(Tag, transaction_tags.c.tag_id == Tag.id)
            .where(
                transaction_tags.c.transaction_id == Transaction.id,
                Tag.name.ilike(pattern, escape="\\"),
            ),
        )
        clauses.append(
            or_(
                Transaction.description.ilike(pattern, escape="\\"),
                Transaction.notes.ilike(pattern, escape="\\"),
                Transaction.category.ilike(pattern, escape="\\"),
                tag_match,
            ),
        )

    if filters.date_from is not None:
        clauses.append(Transaction.date >= _start_of_day(filters.date_from))
    if filters.date_to is not None:
        # Inclusive: everything before the start of the following day
        clauses.append(Transaction.date < _start_of_day(filters.date_to + timedelta(days=1)))

    if filters.categories:
        clauses.append(Transaction.category.in_(filters.categories))

    if filters.type is not None:
        clauses.append(Transaction.type == filters.type)

    # Non-positive bounds are ignored
    if filters.min_amount is not None and filters.min_amount > 0:
        clauses.append(Transaction.amount >= filters.min_amount)
    if filters.max_amount is not None and filters.max_amount > 0:
        clauses.append(Transaction.amount <= filters.max_amount)

    if filters.tags:
        clauses.append(
            exists(
                select(transaction_tags.c.transaction_id)
                .join(Tag, transaction_tags.c.tag_id == Tag.id)
                .where(
                    transaction_tags.c.transaction_id == Transaction.id,
                    Tag.user_id == user_id,
                    Tag.name.in_(filters.tags),
                ),
            ),
        )

    return clauses


async def list_transactions(
    db: AsyncSession,
    user_id: int,
    filters: TransactionFilters,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Transaction], int]:
    """
    List the user's transactions matching `filters`, newest first.

    Returns:
        Tuple of (page of transactions, total count before pagination).
    """
    clauses = _build_filters(user_id, filters)

    total = await db.scalar(select(func.count(Transaction.id)).where(*clauses)) or 0

    result = await db.execute(
        select(Transaction)
        .where(*clauses)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .offset(offset)
        .limit(limit),
    )
    return list(result.scalars().all()), total


async def get_transaction(
    db: AsyncSession, user_id: int, transaction_id: int,
) -> Transaction | None:
    """Get one of the user's transactions, or None if it does not exist or is not theirs."""
    result = await db.execute(
        select(Transaction)
        .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        .options(selectinload(Transaction.tag_objects))
        .execution_options(populate_existing=True),
    )
    return result.scalar_one_or_none()


async def create_transaction(
    db: AsyncSession, user_id: int, data: TransactionCreate,
) -> Transaction:
    """Create a transaction for the user, creating any new tags."""
    fields = data.model_dump(exclude={"tags", "date"})
    transaction = Transaction(
        user_id=user_id,
        date=data.date or datetime.now(UTC),
        **fields,
    )
    transaction.tag_objects = await get_or_create_tags(db, user_id, data.tags)
    db.add(transaction)
    await db.flush()

    # Reload to pick up server-generated timestamps
    created = await get_transaction(db, user_id, transaction.id)
    if created is None:
        raise RuntimeError(f"Transaction {transaction.id} vanished after insert")
    return created


async def update_transaction(
    db: AsyncSession, user_id: int, transaction_id: int, data: TransactionUpdate,
) -> Transaction | None:
    """Apply the provided fields to a transaction. Returns None if not found."""
    transaction = await get_transaction(db, user_id, transaction_id)
    if transaction is None:
        return None

    updates = data.model_dump(exclude_unset=True, exclude={"tags"})
    for name, value in updates.items():
        # An explicit null only clears optional columns
        if value is None and name not in CLEARABLE_FIELDS:
            continue
        setattr(transaction, name, value)
    if data.tags is not None:
        transaction.tag_objects = await get_or_create_tags(db, user_id, data.tags)

    await db.flush()
    return await get_transaction(db, user_id, transaction_id)


async def delete_transaction(db: AsyncSession, user_id: int, transaction_id: int) -> bool:
    """Delete a transaction. Returns False if it does not exist or is not the user's."""
    transaction = await get_transaction(db, user_id, transaction_id)
    if transaction is None:
        return False
    await db.delete(transaction)
    await db.flush()
    return True


async def list_category_counts(db: AsyncSession, user_id: int) -> list[CategoryCount]:
    """
    Categories used by the user's transactions with their counts.

    Sorted by count (most used first), then alphabetically. Uncategorized
    transactions are not listed.
    """
    usage = func.count(Transaction.id)
    result = await db.execute(
        select(Transaction.category, usage.label("count"))
        .where(Transaction.user_id == user_id, Transaction.category.is_not(None))
        .group_by(Transaction.category)
        .order_by(usage.desc(), Transaction.category.asc()),
    )
    return [CategoryCount(name=row.category, count=row.count) for row in result.all()]
