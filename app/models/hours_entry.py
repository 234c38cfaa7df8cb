import enum

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Enum as SAEnum, ForeignKey, Numeric, String

from app.database import Base, new_id, utcnow



class HoursApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class HoursEntry(Base):
    __tablename__ = "hours_entries"

    id = Column(String, primary_key=True, default=new_id)
    order_id = Column(String, ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, index=True)
    approval_status = Column(
        SAEnum(HoursApprovalStatus, native_enum=False, length=16),
        nullable=False,
        default=HoursApprovalStatus.PENDING,
        index=True,
    )
    hours = Column(Numeric(10, 2), nullable=False)
    work_date = Column(Date, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("hours >= 0", name="ck_hours_entries_hours_nonnegative"),
        CheckConstraint(
            "approval_status IN ('PENDING','APPROVED','REJECTED')",
            name="ck_hours_entries_approval_status",
        ),
    )
