from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.database import SessionLocal, utcnow
from app.models.burden_rate import BurdenCategory, BurdenLevel, BurdenRate

logger = logging.getLogger(__name__)

ResolvedBurdenMap = Dict[str, Decimal]

BURDEN_CATEGORIES = list(BurdenCategory)

ZERO = Decimal("0")


def _latest_rate(
    db: Session,
    *,
    category: BurdenCategory,
    level: BurdenLevel,
    effective_at: datetime,
    worker_id: Optional[str] = None,
    location_id: Optional[str] = None,
    state_code: Optional[str] = None,
) -> Optional[Decimal]:
    q = db.query(BurdenRate.rate_percent).filter(
        BurdenRate.category == category,
        BurdenRate.level == level,
        BurdenRate.effective_date <= effective_at,
    )

    if level == BurdenLevel.WORKER:
        q = q.filter(BurdenRate.worker_id == str(worker_id))
    elif level == BurdenLevel.SITE:
        q = q.filter(BurdenRate.location_id == str(location_id))
    elif level == BurdenLevel.STATE:
        q = q.filter(BurdenRate.state_code == str(state_code).upper())

    row = q.order_by(BurdenRate.effective_date.desc(), BurdenRate.created_at.desc()).first()
    if row is None:
        return None
    return Decimal(row.rate_percent)


def normalize_effective_at(effective_at: Optional[datetime]) -> datetime:
    if effective_at is None:
        return utcnow()
    if effective_at.tzinfo is not None:
        return effective_at.astimezone(timezone.utc).replace(tzinfo=None)
    return effective_at


def resolve_category_rate(
    category: BurdenCategory,
    *,
    db: Session,
    worker_id: Optional[str] = None,
    location_id: Optional[str] = None,
    state_code: Optional[str] = None,
    effective_at: Optional[datetime] = None,
    default: Optional[Decimal] = ZERO,
) -> Optional[Decimal]:
    """
    Most specific rate for one category: WORKER, then SITE, then STATE, then GLOBAL.

    Levels are only consulted when their scope key is given (GLOBAL always is).
    Returns ``default`` when nothing is effective at ``effective_at``.
    """
    effective_at = normalize_effective_at(effective_at)

    levels = []
    if worker_id:
        levels.append((BurdenLevel.WORKER, {"worker_id": worker_id}))
    if location_id:
        levels.append((BurdenLevel.SITE, {"location_id": location_id}))
    if state_code:
        levels.append((BurdenLevel.STATE, {"state_code": state_code}))
    levels.append((BurdenLevel.GLOBAL, {}))

    for level, scope in levels:
        rate = _latest_rate(
            db,
            category=category,
            level=level,
            effective_at=effective_at,
            **scope,
        )
        if rate is not None:
            return rate

    return default


def resolve_burden_rates(
    *,
    worker_id: Optional[str] = None,
    location_id: Optional[str] = None,
    state_code: Optional[str] = None,
    effective_at: Optional[datetime] = None,
    db: Optional[Session] = None,
) -> ResolvedBurdenMap:
    """
    Resolve every burden category independently. Read-only.

    A category with no applicable rate contributes 0 and is logged as a warning.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    effective_at = normalize_effective_at(effective_at)

    try:
        resolved: ResolvedBurdenMap = {}
        for category in BURDEN_CATEGORIES:
            rate = resolve_category_rate(
                category,
                db=db,
                worker_id=worker_id,
                location_id=location_id,
                state_code=state_code,
                effective_at=effective_at,
                default=None,
            )

            if rate is None:
                logger.warning(
                    "burden_category_unresolved",
                    extra={
                        "category": category.value,
                        "worker_id": worker_id,
                        "location_id": location_id,
                        "state_code": state_code,
                        "effective_at": effective_at.isoformat(),
                    },
                )
                rate = ZERO

            resolved[category.value] = rate

        return resolved
    finally:
        if owns_db:
            db.close()
