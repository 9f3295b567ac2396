"""Tag lookup, creation and usage counts."""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.tag import Tag, transaction_tags
from models.transaction import Transaction
from schemas.tag import TagCount


async def get_or_create_tags(db: AsyncSession, user_id: int, names: list[str]) -> list[Tag]:
    """
    Resolve normalized tag names to the user's Tag rows, creating missing ones.

    Returned in the order of `names`.
    """
    if not names:
        return []

    result = await db.execute(
        select(Tag).where(Tag.user_id == user_id, Tag.name.in_(names)),
    )
    existing = {tag.name: tag for tag in result.scalars().all()}

    tags = []
    for name in names:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(user_id=user_id, name=name)
            db.add(tag)
            existing[name] = tag
        tags.append(tag)
    await db.flush()
    return tags


async def list_tag_counts(db: AsyncSession, user_id: int) -> list[TagCount]:
    """
    Tags used by the user's transactions with their counts.

    Sorted by count (most used first), then alphabetically. Tags no longer
    attached to any transaction are omitted.
    """
    usage = func.count(transaction_tags.c.transaction_id)
    result = await db.execute(
        select(Tag.name, usage.label("count"))
        .join(transaction_tags, transaction_tags.c.tag_id == Tag.id)
        .join(Transaction, Transaction.id == transaction_tags.c.transaction_id)
        .where(Tag.user_id == user_id, Transaction.user_id == user_id)
        .group_by(Tag.name)
        .order_by(usage.desc(), Tag.name.asc()),
    )
    return [TagCount(name=row.name, count=row.count) for row in result.all()]
