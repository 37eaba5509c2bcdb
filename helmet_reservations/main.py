from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import init_db
from .routers import reservations, schedules
from .core.config import get_settings
from .core.errors import ReservationError
from .core.logging_config import setup_logging
from .core.redis import ping_redis
from .core.nats import nats_connect, nats_close

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    await init_db()
    # best-effort connect to infra; service still runs if these fail
    if settings.enable_nats:
        try:
            await nats_connect()
        except Exception:
            logger.warning("NATS unavailable at startup; events will be retried per publish", exc_info=True)
    if settings.rl_enabled and not await ping_redis():
        logger.warning("Redis unavailable at startup; scan rate limiting will fail open")
    yield
    await nats_close()

app = FastAPI(title="helmet-reservations-svc", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- errors are always {"error": message} ----

@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    missing = [str(e["loc"][-1]) for e in exc.errors() if e.get("type") == "missing"]
    if missing:
        msg = "Missing required fields: " + ", ".join(missing)
    else:
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        msg = f"Invalid request: {where} {first.get('msg', '')}".strip()
    return JSONResponse(status_code=400, content={"error": msg})

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Storage failure"})

app.include_router(reservations.router)
app.include_router(schedules.router)

@app.get("/health")
async def health():
    return {"status": "ok", "service": "helmet-reservations-svc"}

Instrumentator().instrument(app).expose(app)
