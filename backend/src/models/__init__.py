"""SQLAlchemy models."""
from models.base import Base, TimestampMixin
from models.tag import Tag, transaction_tags
from models.transaction import Transaction
from models.user import User

__all__ = ["Base", "Tag", "TimestampMixin", "Transaction", "User", "transaction_tags"]
