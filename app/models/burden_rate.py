import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum as SAEnum, JSON, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.schema import Index

from app.database import Base, new_id, utcnow



class BurdenLevel(str, enum.Enum):
    WORKER = "WORKER"
    SITE = "SITE"
    STATE = "STATE"
    GLOBAL = "GLOBAL"


class BurdenCategory(str, enum.Enum):
    WC = "WC"
    GL = "GL"
    FICA = "FICA"
    SUTA = "SUTA"
    FUTA = "FUTA"
    PEO = "PEO"
    OVERHEAD = "OVERHEAD"
    INT_W = "INT_W"
    INT_PD = "INT_PD"
    ADMIN = "ADMIN"
    BANK = "BANK"


class BurdenAuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class BurdenRate(Base):
    __tablename__ = "payroll_burden_rates"

    id = Column(String, primary_key=True, default=new_id)

    level = Column(SAEnum(BurdenLevel, native_enum=False, length=16), nullable=False)
    category = Column(SAEnum(BurdenCategory, native_enum=False, length=16), nullable=False)

    effective_date = Column(DateTime, nullable=False)
    rate_percent = Column(Numeric(10, 4), nullable=False)

    worker_id = Column(String, nullable=True)
    location_id = Column(String, nullable=True)
    state_code = Column(String(2), nullable=True)

    created_by_user_id = Column(String, nullable=False)
    updated_by_user_id = Column(String, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("rate_percent > 0", name="ck_payroll_burden_rates_rate_positive"),
        CheckConstraint(
            "level IN ('WORKER','SITE','STATE','GLOBAL')",
            name="ck_payroll_burden_rates_level",
        ),
        CheckConstraint(
            "category IN ('WC','GL','FICA','SUTA','FUTA','PEO','OVERHEAD',"
            "'INT_W','INT_PD','ADMIN','BANK')",
            name="ck_payroll_burden_rates_category",
        ),
        # exactly the scope key implied by level
        CheckConstraint(
            "(level = 'WORKER' AND worker_id IS NOT NULL AND location_id IS NULL AND state_code IS NULL)"
            " OR (level = 'SITE' AND location_id IS NOT NULL AND worker_id IS NULL AND state_code IS NULL)"
            " OR (level = 'STATE' AND state_code IS NOT NULL AND worker_id IS NULL AND location_id IS NULL)"
            " OR (level = 'GLOBAL' AND worker_id IS NULL AND location_id IS NULL AND state_code IS NULL)",
            name="ck_payroll_burden_rates_scope_keys",
        ),
        Index("ix_payroll_burden_rates_lookup", "category", "level", "effective_date"),
        Index("ix_payroll_burden_rates_worker", "worker_id"),
        Index("ix_payroll_burden_rates_location", "location_id"),
        Index("ix_payroll_burden_rates_state", "state_code"),
    )


class BurdenRateAudit(Base):
    __tablename__ = "payroll_burden_rate_audits"

    id = Column(String, primary_key=True, default=new_id)

    # no FK: audit history outlives the rate row
    burden_rate_id = Column(String, nullable=False, index=True)
    action = Column(SAEnum(BurdenAuditAction, native_enum=False, length=16), nullable=False)

    before = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    after = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)

    created_by_user_id = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    __table_args__ = (
        CheckConstraint(
            "action IN ('CREATE','UPDATE','DELETE')",
            name="ck_payroll_burden_rate_audits_action",
        ),
    )
