import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum as SAEnum, ForeignKey, JSON, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.schema import UniqueConstraint

from app.database import Base, new_id, utcnow



class QuoteStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    GENERATED = "GENERATED"


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(String, primary_key=True, default=new_id)
    customer_id = Column(String, nullable=True, index=True)
    title = Column(String(255), nullable=False)
    state = Column(String(2), nullable=False)
    status = Column(
        SAEnum(QuoteStatus, native_enum=False, length=16),
        nullable=False,
        default=QuoteStatus.DRAFT,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    lines = relationship(
        "QuoteLine",
        back_populates="quote",
        order_by="QuoteLine.trade_id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("status IN ('DRAFT','GENERATED')", name="ck_quotes_status"),
    )


class QuoteLine(Base):
    __tablename__ = "quote_lines"

    id = Column(String, primary_key=True, default=new_id)
    quote_id = Column(
        String,
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    trade_id = Column(String, nullable=False)
    base_rate = Column(Numeric(12, 4), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    quote = relationship("Quote", back_populates="lines")

    __table_args__ = (
        UniqueConstraint("quote_id", "trade_id", name="uq_quote_lines_quote_trade"),
        CheckConstraint("base_rate >= 0", name="ck_quote_lines_base_rate_nonnegative"),
    )


class OrderEconomicsSnapshot(Base):
    __tablename__ = "order_economics_snapshots"

    id = Column(String, primary_key=True, default=new_id)
    quote_id = Column(
        String,
        ForeignKey("quotes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    input_hash = Column(String(64), nullable=False)
    payload = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("quote_id", "input_hash", name="uq_order_economics_snapshots_quote_hash"),
    )
