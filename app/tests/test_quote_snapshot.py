import hashlib
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import NotFoundError, ValidationError
from app.database import SessionLocal
from app.models.quote import OrderEconomicsSnapshot, QuoteLine, QuoteStatus
from app.services import quote_service
from app.services.burden_admin import create_burden_rate


def _db():
    return SessionLocal()


def _seed_fifteen_percent_burden():
    for category, rate in (("FICA", "7.65"), ("WC", "7.35")):
        create_burden_rate(
            level="GLOBAL",
            category=category,
            effective_date="2025-01-01",
            rate_percent=rate,
            actor_user_id="admin-1",
        )


def _quote_with_lines(*lines, state="KY"):
    db = _db()
    try:
        quote = quote_service.create_quote(title="Plant shutdown", state=state, db=db)
        for trade_id, base_rate in lines:
            quote_service.add_quote_line(quote.id, trade_id=trade_id, base_rate=base_rate, db=db)
        return quote
    finally:
        db.close()


def _add_line(quote_id, trade_id, base_rate):
    db = _db()
    try:
        return quote_service.add_quote_line(quote_id, trade_id=trade_id, base_rate=base_rate, db=db)
    finally:
        db.close()


def _snapshot_count(quote_id) -> int:
    db = _db()
    try:
        return db.query(OrderEconomicsSnapshot).filter(OrderEconomicsSnapshot.quote_id == quote_id).count()
    finally:
        db.close()


def test_input_hash_uses_compact_canonical_json():
    lines = [QuoteLine(trade_id="millwright", base_rate=Decimal("85.0000"))]
    expected = hashlib.sha256(
        b'{"quoteId":"q-1","state":"KY","lines":[{"tradeId":"millwright","baseRate":85}]}'
    ).hexdigest()
    assert quote_service.compute_input_hash("q-1", "KY", lines) == expected

    fractional = [QuoteLine(trade_id="welder", base_rate=Decimal("42.5"))]
    expected = hashlib.sha256(
        b'{"quoteId":"q-1","state":"KY","lines":[{"tradeId":"welder","baseRate":42.5}]}'
    ).hexdigest()
    assert quote_service.compute_input_hash("q-1", "KY", fractional) == expected


def test_round_half_up_is_not_bankers_rounding():
    assert quote_service.round_half_up(Decimal("1.23445")) == Decimal("1.2345")
    assert quote_service.round_half_up(Decimal("2.00005")) == Decimal("2.0001")
    assert quote_service.round_half_up(Decimal("146.625")) == Decimal("146.6250")

    once = quote_service.round_half_up(Decimal("97.123456"))
    assert quote_service.round_half_up(once) == once


def test_generate_computes_burdened_rates():
    _seed_fifteen_percent_burden()
    quote = _quote_with_lines(("millwright", 85))

    snapshot = quote_service.generate_quote_snapshot(quote.id)
    payload = snapshot.payload

    assert payload["quote_id"] == quote.id
    assert payload["state"] == "KY"
    assert payload["generated_at"].endswith("Z")
    assert payload["summary"] == {"total_lines": 1, "total_burden_percent": 15}
    assert payload["burden_rates"]["FICA"] == 7.65
    assert payload["burden_rates"]["SUTA"] == 0
    assert payload["lines"] == [
        {
            "trade_id": "millwright",
            "base_rate": 85,
            "burdened_reg_rate": 97.75,
            "burdened_ot_rate": 146.625,
            "burdened_dt_rate": 195.5,
        }
    ]

    db = _db()
    try:
        detail = quote_service.get_quote(quote.id, db=db)
    finally:
        db.close()
    assert detail["status"] == QuoteStatus.GENERATED.value
    assert detail["latest_snapshot"]["id"] == snapshot.id


def test_generate_is_idempotent_for_identical_inputs():
    _seed_fifteen_percent_burden()
    quote = _quote_with_lines(("pipefitter", "62.10"), ("electrician", "70"))

    first = quote_service.generate_quote_snapshot(quote.id)

    # re-submitting the same lines in a different order does not change the inputs
    _add_line(quote.id, "electrician", "70")
    _add_line(quote.id, "pipefitter", "62.1")

    second = quote_service.generate_quote_snapshot(quote.id)

    assert second.id == first.id
    assert second.input_hash == first.input_hash
    assert [line["trade_id"] for line in second.payload["lines"]] == ["electrician", "pipefitter"]
    assert _snapshot_count(quote.id) == 1


def test_changed_base_rate_produces_new_snapshot():
    _seed_fifteen_percent_burden()
    quote = _quote_with_lines(("millwright", 85))

    first = quote_service.generate_quote_snapshot(quote.id)
    line = _add_line(quote.id, "millwright", 90)
    assert line.base_rate == Decimal("90")

    second = quote_service.generate_quote_snapshot(quote.id)

    assert second.id != first.id
    assert second.input_hash != first.input_hash
    assert second.payload["lines"][0]["burdened_reg_rate"] == 103.5
    assert _snapshot_count(quote.id) == 2

    # the earlier snapshot is left exactly as it was
    db = _db()
    try:
        stored = db.query(OrderEconomicsSnapshot).filter(OrderEconomicsSnapshot.id == first.id).one()
        assert stored.payload == first.payload
        assert len(quote_service.get_quote(quote.id, db=db)["lines"]) == 1
    finally:
        db.close()


def test_generate_without_lines_is_rejected():
    quote = _quote_with_lines()

    with pytest.raises(ValidationError, match="at least one line"):
        quote_service.generate_quote_snapshot(quote.id)

    assert _snapshot_count(quote.id) == 0
    db = _db()
    try:
        assert quote_service.get_quote(quote.id, db=db)["status"] == QuoteStatus.DRAFT.value
    finally:
        db.close()


def test_generate_unknown_quote_is_not_found():
    with pytest.raises(NotFoundError, match="Quote not found"):
        quote_service.generate_quote_snapshot("missing-quote")


def test_quote_input_validation():
    db = _db()
    try:
        with pytest.raises(ValidationError, match="two-letter"):
            quote_service.create_quote(title="Bad state", state="Kentucky", db=db)

        quote = quote_service.create_quote(title="Lowercase", state="ky", db=db)
        assert quote.state == "KY"

        with pytest.raises(ValidationError, match="base_rate"):
            quote_service.add_quote_line(quote.id, trade_id="welder", base_rate="-1", db=db)

        with pytest.raises(NotFoundError):
            quote_service.add_quote_line("missing-quote", trade_id="welder", base_rate=10, db=db)
    finally:
        db.close()


def test_snapshot_unique_per_quote_and_hash():
    quote = _quote_with_lines(("millwright", 85))

    db = _db()
    try:
        db.add(OrderEconomicsSnapshot(quote_id=quote.id, input_hash="a" * 64, payload={"n": 1}))
        db.commit()

        db.add(OrderEconomicsSnapshot(quote_id=quote.id, input_hash="a" * 64, payload={"n": 2}))
        with pytest.raises(IntegrityError):
            db.commit()
    finally:
        db.rollback()
        db.close()


def test_concurrent_duplicate_returns_existing_snapshot(monkeypatch):
    _seed_fifteen_percent_burden()
    quote = _quote_with_lines(("millwright", 85))

    db = _db()
    try:
        lines = db.query(QuoteLine).filter(QuoteLine.quote_id == quote.id).order_by(QuoteLine.trade_id).all()
        input_hash = quote_service.compute_input_hash(quote.id, "KY", lines)
        winner = OrderEconomicsSnapshot(quote_id=quote.id, input_hash=input_hash, payload={"winner": True})
        db.add(winner)
        db.commit()
        winner_id = winner.id
    finally:
        db.close()

    real_find = quote_service._find_snapshot
    calls = {"n": 0}

    def _find_after_race(session, quote_id, digest):
        # the first lookup runs before the competing insert is visible
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_find(session, quote_id, digest)

    monkeypatch.setattr(quote_service, "_find_snapshot", _find_after_race)

    result = quote_service.generate_quote_snapshot(quote.id)

    assert result.id == winner_id
    assert result.payload == {"winner": True}
    assert calls["n"] == 2
    assert _snapshot_count(quote.id) == 1
