# ABOUTME: SQLAlchemy ORM models for the SQL store backend.
# ABOUTME: Defines the reflections and subscribers tables.

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Reflection(Base):
    """A daily reflection entry."""

    __tablename__ = "reflections"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(String(64), nullable=False)
    # Insertion order, used as the stable order for equal dates
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    __table_args__ = (Index("ix_reflections_date", date),)

    def __repr__(self) -> str:
        return f"<Reflection {self.id} {self.date}: {self.title[:50]}>"


class Subscriber(Base):
    """A newsletter subscriber."""

    __tablename__ = "subscribers"

    email: Mapped[str] = mapped_column(String(320), primary_key=True)
    date: Mapped[str] = mapped_column(String(64), nullable=False)
    selected: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        status = "selected" if self.selected else "not selected"
        return f"<Subscriber {self.email} ({status})>"
