import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from .config import settings
from .database import init_db
from .errors import AppError, ErrorKind
from .middleware.audit import audit_middleware
from .redis_client import redis_client
from .routers import bookings, rooms, webhooks

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if not settings.record_store_base_id:
        logger.warning("RECORD_STORE_BASE_ID is not set, webhooks from any base are accepted")
    yield


app = FastAPI(title="Room Booking API", debug=settings.debug, lifespan=lifespan)

app.middleware("http")(audit_middleware)


def _error_body(message: str, kind: ErrorKind, details=None) -> dict:
    body = {"error": message, "type": kind.value}
    if settings.debug and details is not None:
        body["details"] = details
    return body


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.kind, exc.details),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "; ".join(str(e.get("msg", "")) for e in errors) or "Invalid input data"
    return JSONResponse(
        status_code=400,
        content=_error_body(message, ErrorKind.VALIDATION, [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors
        ]),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error", ErrorKind.INTERNAL, repr(exc)),
    )


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except RedisError:
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}


app.include_router(rooms.router)
app.include_router(bookings.router)
app.include_router(webhooks.router)
