"""SQLAlchemy ORM models for the rate table and the conversion ledger."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from currency_converter.database import Base


class CurrencyRate(Base):
    """Current canonical rate for one currency, unique per code."""

    __tablename__ = "currency_rates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(3), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(String(120), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False)
    as_of: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<CurrencyRate code={self.code} rate={self.rate}>"


class CurrencyConversion(Base):
    """Append-only record of a successful conversion."""

    __tablename__ = "currency_conversions"
    __table_args__ = (
        Index("ix_currency_conversions_converted_at", "converted_at"),
        Index("ix_currency_conversions_from_code", "from_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_code: Mapped[str] = mapped_column(String(3), nullable=False)
    from_description: Mapped[str] = mapped_column(String(120), nullable=False)
    to_code: Mapped[str] = mapped_column(String(3), nullable=False)
    to_description: Mapped[str] = mapped_column(String(120), nullable=False)
    original_amount: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    converted_amount: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    converted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<CurrencyConversion {self.from_code}->{self.to_code} "
            f"{self.original_amount} at {self.converted_at.isoformat()}>"
        )
