from sqlalchemy import Column, DateTime, ForeignKey, String

from app.database import Base, new_id, utcnow



class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String, primary_key=True, default=new_id)
    order_id = Column(String, ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
