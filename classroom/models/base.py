"""
Base model class for all SQLAlchemy models.

WHY: Centralizing common model functionality (timestamps, ID) in a base class
ensures consistency across all models and reduces code duplication.
"""

import secrets
import string
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import DeclarativeBase


ID_ALPHABET = string.ascii_letters + string.digits


def generate_id(length: int = 32) -> str:
    """
    Generate an opaque random identifier.

    WHY: Organizations and users are referenced from session tokens and
    URLs, so their keys are random strings rather than sequential integers
    that leak tenant counts.
    """
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def enum_values(enum_cls) -> list[str]:
    """Persist enum members by value (lower-case strings) rather than by name."""
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    WHY: DeclarativeBase provides the foundation for SQLAlchemy 2.0 models
    with improved type hints and async support.
    """

    pass


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.

    WHY: Most models need timestamp tracking for audit trails and debugging.
    Using a mixin ensures consistent timestamp behavior across all models.
    """

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class PrimaryKeyMixin:
    """
    Mixin to add an integer primary key to models.

    WHY: Catalog rows (departments, subjects, classes) use an
    auto-incrementing integer primary key.
    """

    id = Column(Integer, primary_key=True, index=True)


class StringPrimaryKeyMixin:
    """Mixin to add an opaque string primary key (see generate_id)."""

    id = Column(String(32), primary_key=True, default=generate_id)
