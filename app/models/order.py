import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum as SAEnum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from app.database import Base, new_id, utcnow



class OrderStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    NEEDS_TO_BE_FILLED = "NEEDS_TO_BE_FILLED"
    FILLED = "FILLED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=new_id)
    customer_id = Column(String, ForeignKey("customers.id"), nullable=False, index=True)
    status = Column(
        SAEnum(OrderStatus, native_enum=False, length=32),
        nullable=False,
        default=OrderStatus.DRAFT,
        index=True,
    )
    primary_customer_contact_id = Column(
        String,
        ForeignKey("customer_contacts.id", ondelete="SET NULL"),
        nullable=True,
    )
    sd_pay_delta_rate = Column(Numeric(12, 4), nullable=True)
    sd_bill_delta_rate = Column(Numeric(12, 4), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer")
    primary_customer_contact = relationship("CustomerContact")
    trade_requirements = relationship(
        "OrderTradeRequirement",
        back_populates="order",
        order_by="OrderTradeRequirement.trade_id",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('DRAFT','NEEDS_TO_BE_FILLED','FILLED','COMPLETED','CANCELLED')",
            name="ck_orders_status",
        ),
    )


class OrderTradeRequirement(Base):
    __tablename__ = "order_trade_requirements"

    id = Column(String, primary_key=True, default=new_id)
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    trade_id = Column(String, nullable=False)
    priority = Column(String, nullable=True)
    enforcement = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    base_pay_rate = Column(Numeric(12, 4), nullable=True)
    base_bill_rate = Column(Numeric(12, 4), nullable=True)

    order = relationship("Order", back_populates="trade_requirements")
