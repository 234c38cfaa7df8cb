import os
import secrets
import threading
import time
import uuid
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()

DATABASE_URL = ""
engine = None
_configured_database_url = None


def _get_database_url() -> str:
    return os.getenv("DATABASE_URL", "postgresql://localhost/labor_ops")


def utcnow() -> datetime:
    # naive UTC, matches the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


_id_lock = threading.Lock()
_last_id_ns = 0


def new_id() -> str:
    """
    UUID-shaped primary key: 64-bit nanosecond clock followed by 64 random bits.

    Ids from one process sort in creation order, so they break created_at ties
    deterministically.
    """
    global _last_id_ns

    with _id_lock:
        now_ns = max(time.time_ns(), _last_id_ns + 1)
        _last_id_ns = now_ns

    return str(uuid.UUID(int=(now_ns << 64) | secrets.randbits(64)))


def configure_database() -> None:
    global DATABASE_URL, engine, _configured_database_url

    database_url = _get_database_url()

    if engine is not None and _configured_database_url == database_url:
        return

    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, connect_args=connect_args)
    SessionLocal.configure(bind=engine)
    DATABASE_URL = database_url
    _configured_database_url = database_url


configure_database()


def get_db():
    configure_database()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
