"""SQLAlchemy ORM models."""

from __future__ import annotations

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class SignalRecord(Base):
    """A signal that has already been alerted on. One row per signal id."""

    __tablename__ = "signals"

    id: Mapped[str] = mapped_column(String(500), primary_key=True)
    tag: Mapped[str] = mapped_column(String(50), nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)  # epoch ms
    query: Mapped[str] = mapped_column(String(500), nullable=False)
