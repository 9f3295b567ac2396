"""Tests for the transaction service layer."""
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models import User
from schemas.transaction import TransactionCreate
from services import transaction_service
from services.transaction_service import TransactionFilters


def _data(amount: str, description: str) -> TransactionCreate:
    return TransactionCreate(description=description, amount=Decimal(amount), type="expense")


async def test_create_transaction_raises_when_reload_finds_nothing(
    session_factory: async_sessionmaker[AsyncSession], user: User,
) -> None:
    """A row missing after insert is an error, not a None result."""
    async with session_factory() as session:
        with patch.object(
            transaction_service, "get_transaction", new=AsyncMock(return_value=None),
        ), pytest.raises(RuntimeError, match="after insert"):
            await transaction_service.create_transaction(session, user.id, _data("5.00", "x"))


async def test_create_transaction_returns_reloaded_row(
    session_factory: async_sessionmaker[AsyncSession], user: User,
) -> None:
    async with session_factory() as session:
        created = await transaction_service.create_transaction(
            session, user.id, _data("5.00", "Lunch"),
        )
        assert created.id is not None
        assert created.created_at is not None
        assert created.tags == []


class TestAmountBounds:
    """Amount bounds only filter when positive."""

    @pytest.fixture
    async def session(
        self, session_factory: async_sessionmaker[AsyncSession], user: User,
    ) -> AsyncSession:
        async with session_factory() as session:
            await transaction_service.create_transaction(session, user.id, _data("-5.00", "Refund"))
            await transaction_service.create_transaction(session, user.id, _data("10.00", "Snack"))
            await transaction_service.create_transaction(session, user.id, _data("40.00", "Dinner"))
            yield session

    async def _descriptions(
        self, session: AsyncSession, user: User, filters: TransactionFilters,
    ) -> set[str]:
        rows, _ = await transaction_service.list_transactions(session, user.id, filters)
        return {row.description for row in rows}

    @pytest.mark.parametrize("bound", ["0", "-1", "-100"])
    async def test__list__non_positive_max_amount_ignored(
        self, session: AsyncSession, user: User, bound: str,
    ) -> None:
        filters = TransactionFilters(max_amount=Decimal(bound))
        assert await self._descriptions(session, user, filters) == {"Refund", "Snack", "Dinner"}

    @pytest.mark.parametrize("bound", ["0", "-10"])
    async def test__list__non_positive_min_amount_ignored(
        self, session: AsyncSession, user: User, bound: str,
    ) -> None:
        filters = TransactionFilters(min_amount=Decimal(bound))
        assert await self._descriptions(session, user, filters) == {"Refund", "Snack", "Dinner"}

    async def test__list__positive_bounds_apply(self, session: AsyncSession, user: User) -> None:
        filters = TransactionFilters(min_amount=Decimal("1"), max_amount=Decimal("20"))
        assert await self._descriptions(session, user, filters) == {"Snack"}
