from contextlib import asynccontextmanager
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.errors import DomainError
from app.core.logging import configure_logging, request_id_var
from app.models import burden_rate, customer, hours_entry, invoice, order, quote, user  # noqa: F401
from app.routers.auth import router as auth_router
from app.routers.burden_rates import router as burden_rates_router
from app.routers.customers import router as customers_router
from app.routers.orders import router as orders_router
from app.routers.quotes import router as quotes_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(
    title="Labor Operations Back Office",
    lifespan=lifespan,
)


@app.exception_handler(DomainError)
async def handle_domain_error(request: Request, exc: DomainError):
    if exc.status_code == 403:
        logger.warning(
            "Permission denied",
            extra={"path": request.url.path, "method": request.method, "detail": str(exc)},
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception(
            "Unhandled exception",
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-Id"] = request_id
    return response


app.include_router(auth_router)
app.include_router(burden_rates_router)
app.include_router(quotes_router)
app.include_router(orders_router)
app.include_router(customers_router)


@app.get("/")
def root():
    return {"status": "Labor Operations Back Office running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
