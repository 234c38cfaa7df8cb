from __future__ import annotations

import hashlib
import json
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.database import SessionLocal, utcnow
from app.models.quote import OrderEconomicsSnapshot, Quote, QuoteLine, QuoteStatus
from app.services.burden_resolver import resolve_burden_rates

logger = logging.getLogger(__name__)

OT_FACTOR = Decimal("1.5")
DT_FACTOR = Decimal("2")
RATE_PRECISION = 4


def round_half_up(value: Decimal, places: int = RATE_PRECISION) -> Decimal:
    """Half-up rounding to a fixed number of decimals (never banker's rounding)."""
    quantum = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


def json_number(value: Decimal) -> Union[int, float]:
    """Decimal rendered the way a JSON number reads: integral values carry no fraction."""
    value = Decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def compute_input_hash(quote_id: str, state: str, lines: List[QuoteLine]) -> str:
    """
    SHA-256 over the canonical generation inputs.

    Key order is fixed (quoteId, state, lines) and lines must already be sorted
    by trade_id; both are part of the digest.
    """
    canonical = {
        "quoteId": quote_id,
        "state": state,
        "lines": [{"tradeId": line.trade_id, "baseRate": json_number(line.base_rate)} for line in lines],
    }
    encoded = json.dumps(canonical, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def _parse_base_rate(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError("base_rate must be a non-negative number")
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("base_rate must be a non-negative number") from exc
    if not rate.is_finite() or rate < 0:
        raise ValidationError("base_rate must be a non-negative number")
    return rate


def _normalize_state(state: Any) -> str:
    value = str(state or "").strip().upper()
    if len(value) != 2 or not value.isalpha():
        raise ValidationError("state must be a two-letter code")
    return value


def _get_quote(db: Session, quote_id: str) -> Quote:
    quote = db.query(Quote).filter(Quote.id == str(quote_id)).first()
    if quote is None:
        raise NotFoundError("Quote not found")
    return quote


def _sorted_lines(db: Session, quote_id: str) -> List[QuoteLine]:
    return (
        db.query(QuoteLine)
        .filter(QuoteLine.quote_id == str(quote_id))
        .order_by(QuoteLine.trade_id.asc())
        .all()
    )


def create_quote(
    *,
    title: str,
    state: str,
    customer_id: Optional[str] = None,
    db: Session,
) -> Quote:
    if not title or len(title) > 255:
        raise ValidationError("title must be between 1 and 255 characters")

    quote = Quote(
        customer_id=customer_id or None,
        title=title,
        state=_normalize_state(state),
        status=QuoteStatus.DRAFT,
    )
    db.add(quote)
    db.commit()
    db.refresh(quote)
    return quote


def add_quote_line(quote_id: str, *, trade_id: str, base_rate: Any, db: Session) -> QuoteLine:
    """Add a trade line, or update base_rate in place when the trade is already on the quote."""
    if not trade_id:
        raise ValidationError("trade_id is required")
    rate = _parse_base_rate(base_rate)

    try:
        _get_quote(db, quote_id)

        existing = (
            db.query(QuoteLine)
            .filter(QuoteLine.quote_id == str(quote_id), QuoteLine.trade_id == str(trade_id))
            .first()
        )
        if existing is not None:
            existing.base_rate = rate
            line = existing
        else:
            line = QuoteLine(quote_id=str(quote_id), trade_id=str(trade_id), base_rate=rate)
            db.add(line)

        db.commit()
        db.refresh(line)
        return line
    except Exception:
        db.rollback()
        raise


def snapshot_to_dict(snapshot: OrderEconomicsSnapshot) -> Dict[str, Any]:
    return {
        "id": snapshot.id,
        "quote_id": snapshot.quote_id,
        "input_hash": snapshot.input_hash,
        "payload": snapshot.payload,
        "created_at": snapshot.created_at.isoformat(),
    }


def get_quote(quote_id: str, *, db: Session) -> Dict[str, Any]:
    quote = _get_quote(db, quote_id)
    lines = _sorted_lines(db, quote_id)
    latest = (
        db.query(OrderEconomicsSnapshot)
        .filter(OrderEconomicsSnapshot.quote_id == str(quote_id))
        .order_by(OrderEconomicsSnapshot.created_at.desc(), OrderEconomicsSnapshot.id.desc())
        .first()
    )

    return {
        "id": quote.id,
        "customer_id": quote.customer_id,
        "title": quote.title,
        "state": quote.state,
        "status": quote.status.value,
        "created_at": quote.created_at.isoformat(),
        "updated_at": quote.updated_at.isoformat(),
        "lines": [
            {"id": line.id, "trade_id": line.trade_id, "base_rate": line.base_rate}
            for line in lines
        ],
        "latest_snapshot": None if latest is None else snapshot_to_dict(latest),
    }


def _find_snapshot(db: Session, quote_id: str, input_hash: str) -> Optional[OrderEconomicsSnapshot]:
    return (
        db.query(OrderEconomicsSnapshot)
        .filter(
            OrderEconomicsSnapshot.quote_id == str(quote_id),
            OrderEconomicsSnapshot.input_hash == input_hash,
        )
        .first()
    )


def build_snapshot_payload(quote: Quote, lines: List[QuoteLine], burden_rates: Dict[str, Decimal]) -> Dict[str, Any]:
    total_burden_percent = sum(burden_rates.values(), Decimal("0"))
    multiplier = Decimal("1") + total_burden_percent / Decimal("100")

    line_economics = []
    for line in lines:
        base = Decimal(line.base_rate)
        line_economics.append(
            {
                "trade_id": line.trade_id,
                "base_rate": json_number(base),
                "burdened_reg_rate": json_number(round_half_up(base * multiplier)),
                "burdened_ot_rate": json_number(round_half_up(base * OT_FACTOR * multiplier)),
                "burdened_dt_rate": json_number(round_half_up(base * DT_FACTOR * multiplier)),
            }
        )

    return {
        "quote_id": quote.id,
        "state": quote.state,
        "generated_at": utcnow().isoformat() + "Z",
        "burden_rates": {category: json_number(rate) for category, rate in burden_rates.items()},
        "lines": line_economics,
        "summary": {
            "total_lines": len(line_economics),
            "total_burden_percent": json_number(total_burden_percent),
        },
    }


def generate_quote_snapshot(quote_id: str, db: Optional[Session] = None) -> OrderEconomicsSnapshot:
    """
    Produce the immutable economics snapshot for a quote, or return the one
    already stored for identical inputs.

    The snapshot insert and the quote's GENERATED status commit together.
    UNIQUE(quote_id, input_hash) settles concurrent duplicate requests: the
    loser rolls back and returns the winner's row.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        quote = _get_quote(db, quote_id)
        lines = _sorted_lines(db, quote.id)
        if not lines:
            raise ValidationError("Quote must have at least one line to generate")

        input_hash = compute_input_hash(quote.id, quote.state, lines)

        existing = _find_snapshot(db, quote.id, input_hash)
        if existing is not None:
            logger.info(
                "quote_snapshot_reused",
                extra={"quote_id": quote.id, "input_hash": input_hash, "snapshot_id": existing.id},
            )
            return existing

        burden_rates = resolve_burden_rates(state_code=quote.state, db=db)
        payload = build_snapshot_payload(quote, lines, burden_rates)

        snapshot = OrderEconomicsSnapshot(
            quote_id=quote.id,
            input_hash=input_hash,
            payload=payload,
        )
        db.add(snapshot)
        quote.status = QuoteStatus.GENERATED

        try:
            db.flush()
            if owns_db:
                db.commit()
        except IntegrityError:
            db.rollback()
            winner = _find_snapshot(db, str(quote_id), input_hash)
            if winner is None:
                raise
            logger.info(
                "quote_snapshot_race_resolved",
                extra={"quote_id": str(quote_id), "input_hash": input_hash, "snapshot_id": winner.id},
            )
            return winner

        logger.info(
            "quote_snapshot_generated",
            extra={
                "quote_id": quote.id,
                "input_hash": input_hash,
                "snapshot_id": snapshot.id,
                "total_burden_percent": payload["summary"]["total_burden_percent"],
            },
        )
        return snapshot
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()
