from fastapi import APIRouter, Depends

from app.database import SessionLocal
from app.deps.auth import AuthContext, require_auth
from app.schemas.quote import (
    QuoteCreate,
    QuoteDetailResponse,
    QuoteHeaderResponse,
    QuoteLineResponse,
    QuoteLineUpsert,
    SnapshotResponse,
)
from app.services import quote_service

router = APIRouter(prefix="/quotes", tags=["Quotes"])


@router.post("", response_model=QuoteHeaderResponse)
def create_quote(
    payload: QuoteCreate,
    _auth: AuthContext = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return quote_service.create_quote(
            title=payload.title,
            state=payload.state,
            customer_id=payload.customer_id,
            db=db,
        )
    finally:
        db.close()


@router.post("/{quote_id}/lines", response_model=QuoteLineResponse)
def add_line(
    quote_id: str,
    payload: QuoteLineUpsert,
    _auth: AuthContext = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return quote_service.add_quote_line(
            quote_id,
            trade_id=payload.trade_id,
            base_rate=payload.base_rate,
            db=db,
        )
    finally:
        db.close()


@router.post("/{quote_id}/generate", response_model=SnapshotResponse)
def generate(
    quote_id: str,
    _auth: AuthContext = Depends(require_auth),
):
    return quote_service.generate_quote_snapshot(quote_id)


@router.get("/{quote_id}", response_model=QuoteDetailResponse)
def get_quote(
    quote_id: str,
    _auth: AuthContext = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return quote_service.get_quote(quote_id, db=db)
    finally:
        db.close()
