from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.database import SessionLocal, utcnow
from app.models.burden_rate import (
    BurdenAuditAction,
    BurdenCategory,
    BurdenLevel,
    BurdenRate,
    BurdenRateAudit,
)
from app.models.user import User

logger = logging.getLogger(__name__)

SYSTEM_USER_EMAIL = "system@jarvis.local"

GLOBAL_SEED_RATES = [
    (BurdenCategory.FICA, Decimal("7.65")),
    (BurdenCategory.FUTA, Decimal("0.6")),
    (BurdenCategory.ADMIN, Decimal("2.5")),
    (BurdenCategory.GL, Decimal("1.5")),
    (BurdenCategory.BANK, Decimal("0.75")),
]

RATE_SCALE = Decimal("0.0001")

E = TypeVar("E")


# -----------------------------
# validation helpers
# -----------------------------

def _require_actor(actor_user_id: Optional[str]) -> str:
    if not actor_user_id:
        raise ValidationError("Missing user id")
    return str(actor_user_id)


def _parse_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError as exc:
        raise ValidationError(f"Invalid {field}: {value}") from exc


def parse_effective_date(value: Any, field: str = "effective_date") -> datetime:
    """Accept an ISO date/datetime string (or date/datetime); return naive UTC."""
    if value is None or value == "":
        raise ValidationError(f"{field} is required")

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValidationError(f"{field} must be a valid ISO date string") from exc
    else:
        raise ValidationError(f"{field} must be a valid ISO date string")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_rate_percent(value: Any, field: str = "rate_percent") -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a positive number")
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} must be a positive number") from exc
    if not rate.is_finite() or rate <= 0:
        raise ValidationError(f"{field} must be a positive number")
    return rate


def _assert_level_keys(
    level: BurdenLevel,
    worker_id: Optional[str],
    location_id: Optional[str],
    state_code: Optional[str],
) -> None:
    has_worker = bool(worker_id)
    has_loc = bool(location_id)
    has_state = bool(state_code)

    if level == BurdenLevel.WORKER:
        if not has_worker:
            raise ValidationError("worker_id is required for WORKER")
        if has_loc or has_state:
            raise ValidationError("Only worker_id allowed for WORKER")
        return

    if level == BurdenLevel.SITE:
        if not has_loc:
            raise ValidationError("location_id is required for SITE")
        if has_worker or has_state:
            raise ValidationError("Only location_id allowed for SITE")
        return

    if level == BurdenLevel.STATE:
        if not has_state:
            raise ValidationError("state_code is required for STATE")
        if has_worker or has_loc:
            raise ValidationError("Only state_code allowed for STATE")
        if len(str(state_code)) != 2 or not str(state_code).isalpha():
            raise ValidationError("state_code must be a two-letter code")
        return

    if has_worker or has_loc or has_state:
        raise ValidationError("No key fields allowed for GLOBAL")


def rate_snapshot(rate: BurdenRate) -> Dict[str, Any]:
    """
    JSON-safe copy of a rate row, stored in audit before/after columns.

    rate_percent is a decimal string at column scale (4 places), never a float.
    """
    return {
        "id": rate.id,
        "level": rate.level.value,
        "category": rate.category.value,
        "effective_date": rate.effective_date.isoformat(),
        "rate_percent": str(Decimal(rate.rate_percent).quantize(RATE_SCALE)),
        "worker_id": rate.worker_id,
        "location_id": rate.location_id,
        "state_code": rate.state_code,
        "created_by_user_id": rate.created_by_user_id,
        "updated_by_user_id": rate.updated_by_user_id,
        "created_at": None if rate.created_at is None else rate.created_at.isoformat(),
        "updated_at": None if rate.updated_at is None else rate.updated_at.isoformat(),
    }


def _write_audit(
    db: Session,
    *,
    rate_id: str,
    action: BurdenAuditAction,
    before: Optional[Dict[str, Any]],
    after: Optional[Dict[str, Any]],
    actor_user_id: str,
) -> BurdenRateAudit:
    audit = BurdenRateAudit(
        burden_rate_id=rate_id,
        action=action,
        before=before,
        after=after,
        created_by_user_id=actor_user_id,
    )
    db.add(audit)
    db.flush()
    return audit


def _get_rate(db: Session, rate_id: str) -> BurdenRate:
    rate = db.query(BurdenRate).filter(BurdenRate.id == str(rate_id)).with_for_update().first()
    if rate is None:
        raise NotFoundError("PayrollBurdenRate not found")
    return rate


# -----------------------------
# reads
# -----------------------------

def list_burden_rates(
    *,
    db: Session,
    level: Optional[str] = None,
    category: Optional[str] = None,
    worker_id: Optional[str] = None,
    location_id: Optional[str] = None,
    state_code: Optional[str] = None,
) -> List[BurdenRate]:
    q = db.query(BurdenRate)

    if level is not None:
        q = q.filter(BurdenRate.level == _parse_enum(BurdenLevel, level, "level"))
    if category is not None:
        q = q.filter(BurdenRate.category == _parse_enum(BurdenCategory, category, "category"))
    if worker_id is not None:
        q = q.filter(BurdenRate.worker_id == str(worker_id))
    if location_id is not None:
        q = q.filter(BurdenRate.location_id == str(location_id))
    if state_code is not None:
        q = q.filter(BurdenRate.state_code == str(state_code).upper())

    return q.order_by(BurdenRate.effective_date.desc(), BurdenRate.created_at.desc()).all()


def list_burden_rate_audits(rate_id: str, *, db: Session) -> List[BurdenRateAudit]:
    return (
        db.query(BurdenRateAudit)
        .filter(BurdenRateAudit.burden_rate_id == str(rate_id))
        .order_by(BurdenRateAudit.created_at.desc(), BurdenRateAudit.id.desc())
        .all()
    )


# -----------------------------
# audited mutations
# -----------------------------

def create_burden_rate(
    *,
    level: Any,
    category: Any,
    effective_date: Any,
    rate_percent: Any,
    actor_user_id: Optional[str],
    worker_id: Optional[str] = None,
    location_id: Optional[str] = None,
    state_code: Optional[str] = None,
    db: Optional[Session] = None,
) -> BurdenRate:
    """
    Insert a rate and its CREATE audit row in one transaction.

    If db is provided, this function will NOT commit/close. Caller owns the transaction.
    """
    actor = _require_actor(actor_user_id)
    parsed_level = _parse_enum(BurdenLevel, level, "level")
    parsed_category = _parse_enum(BurdenCategory, category, "category")
    parsed_effective = parse_effective_date(effective_date)
    parsed_rate = parse_rate_percent(rate_percent)
    _assert_level_keys(parsed_level, worker_id, location_id, state_code)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        rate = BurdenRate(
            level=parsed_level,
            category=parsed_category,
            effective_date=parsed_effective,
            rate_percent=parsed_rate,
            worker_id=worker_id or None,
            location_id=location_id or None,
            state_code=str(state_code).upper() if state_code else None,
            created_by_user_id=actor,
            updated_by_user_id=actor,
        )
        db.add(rate)
        db.flush()

        _write_audit(
            db,
            rate_id=rate.id,
            action=BurdenAuditAction.CREATE,
            before=None,
            after=rate_snapshot(rate),
            actor_user_id=actor,
        )

        if owns_db:
            db.commit()

        logger.info(
            "burden_rate_created",
            extra={
                "burden_rate_id": rate.id,
                "level": parsed_level.value,
                "category": parsed_category.value,
                "actor_user_id": actor,
            },
        )
        return rate
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def update_burden_rate(
    rate_id: str,
    *,
    actor_user_id: Optional[str],
    rate_percent: Any = None,
    effective_date: Any = None,
    db: Optional[Session] = None,
) -> BurdenRate:
    """Partial update of rate_percent and/or effective_date, audited with before/after."""
    actor = _require_actor(actor_user_id)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        rate = _get_rate(db, rate_id)

        changes: Dict[str, Any] = {}
        if rate_percent is not None:
            parsed_rate = parse_rate_percent(rate_percent)
            if parsed_rate != Decimal(rate.rate_percent):
                changes["rate_percent"] = parsed_rate
        if effective_date is not None:
            parsed_effective = parse_effective_date(effective_date)
            if parsed_effective != rate.effective_date:
                changes["effective_date"] = parsed_effective

        if not changes:
            raise ValidationError("No fields to update")

        before = rate_snapshot(rate)

        for key, value in changes.items():
            setattr(rate, key, value)
        rate.updated_by_user_id = actor
        rate.updated_at = utcnow()
        db.flush()

        _write_audit(
            db,
            rate_id=rate.id,
            action=BurdenAuditAction.UPDATE,
            before=before,
            after=rate_snapshot(rate),
            actor_user_id=actor,
        )

        if owns_db:
            db.commit()

        logger.info(
            "burden_rate_updated",
            extra={"burden_rate_id": rate.id, "fields": sorted(changes), "actor_user_id": actor},
        )
        return rate
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def delete_burden_rate(
    rate_id: str,
    *,
    actor_user_id: Optional[str],
    db: Optional[Session] = None,
) -> Dict[str, Any]:
    """Write the DELETE audit first, then remove the row; both commit together."""
    actor = _require_actor(actor_user_id)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        rate = _get_rate(db, rate_id)

        _write_audit(
            db,
            rate_id=rate.id,
            action=BurdenAuditAction.DELETE,
            before=rate_snapshot(rate),
            after=None,
            actor_user_id=actor,
        )

        db.delete(rate)
        db.flush()

        if owns_db:
            db.commit()

        logger.info("burden_rate_deleted", extra={"burden_rate_id": rate_id, "actor_user_id": actor})
        return {"ok": True, "id": str(rate_id)}
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


# -----------------------------
# SYSTEM user bootstrap + GLOBAL seed
# -----------------------------

def _find_system_user(db: Session) -> Optional[User]:
    return db.query(User).filter(User.email == SYSTEM_USER_EMAIL).first()


def _get_or_create_system_user(db: Session) -> tuple[User, bool]:
    """
    Concurrent bootstraps race on the unique email: the loser rolls back and
    reuses the winner's row.
    """
    user = _find_system_user(db)
    if user is not None:
        return user, False

    user = User(
        email=SYSTEM_USER_EMAIL,
        full_name="SYSTEM",
        hashed_password="",
        is_active=False,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        winner = _find_system_user(db)
        if winner is None:
            raise
        logger.info("system_user_race_resolved", extra={"system_user_id": winner.id})
        return winner, False
    return user, True


def seed_global_burden_rates(user_id: str, *, db: Session) -> Dict[str, List[str]]:
    inserted: List[str] = []
    skipped: List[str] = []
    effective_date = utcnow()

    for category, rate_percent in GLOBAL_SEED_RATES:
        existing = (
            db.query(BurdenRate)
            .filter(
                BurdenRate.category == category,
                BurdenRate.level == BurdenLevel.GLOBAL,
                BurdenRate.rate_percent == rate_percent,
            )
            .first()
        )
        if existing is not None:
            skipped.append(category.value)
            continue

        create_burden_rate(
            level=BurdenLevel.GLOBAL,
            category=category,
            effective_date=effective_date,
            rate_percent=rate_percent,
            actor_user_id=user_id,
            db=db,
        )
        inserted.append(category.value)

    return {"inserted": inserted, "skipped": skipped}


def bootstrap_system_user_and_seed_rates(db: Optional[Session] = None) -> Dict[str, Any]:
    """
    Create the non-loginable SYSTEM user (once) and seed GLOBAL burden rates.

    Safe to call repeatedly: the user is reused and existing category/rate
    pairs are reported as skipped.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        user, user_created = _get_or_create_system_user(db)
        result = seed_global_burden_rates(user.id, db=db)

        if owns_db:
            db.commit()

        logger.info(
            "burden_rates_bootstrapped",
            extra={
                "system_user_id": user.id,
                "user_created": user_created,
                "inserted": result["inserted"],
                "skipped": result["skipped"],
            },
        )
        return {
            "system_user_id": user.id,
            "user_created": user_created,
            "inserted": result["inserted"],
            "skipped": result["skipped"],
        }
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()
