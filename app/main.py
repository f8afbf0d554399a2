# app/main.py
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.config import settings
from app.core.logging_config import setup_logging, logger
from app.core.rate_limit import exempt, limiter
from app.db import Base, engine
from app import models  # noqa: F401  (registers SQLAlchemy models)
from app.domain.errors import DomainError
from app.observability.metrics import latency_hist, router as metrics_router
from app.routers import quotations, rate_cards, shipper_quote_requests, shippers


# ----------------------------------------------------
# App init
# ----------------------------------------------------
app = FastAPI(title="Freight Quote Engine", version="0.1.0")

setup_logging()
logger.info("startup", service=settings.app_name, env=settings.app_env)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
@exempt
def health() -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()

    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    client_ip = request.client.host if request.client else "unknown"

    bound_logger = logger.bind(
        request_id=request_id,
        user_id=request.headers.get("X-User-Id", "anon"),
        ip=client_ip,
        endpoint=str(request.url.path),
        method=request.method,
    )

    bound_logger.info("request_started")
    response = await call_next(request)
    latency = time.time() - start

    route = request.scope.get("route")
    latency_hist.labels(route=getattr(route, "path", "unmatched")).observe(latency)

    response.headers["X-Request-ID"] = request_id
    bound_logger.bind(status_code=response.status_code, latency_ms=round(latency * 1000, 2)).info(
        "request_finished"
    )
    return response


# ----------------------------------------------------
# Middleware
# ----------------------------------------------------
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RateLimitExceeded)
def ratelimit_handler(request: Request, exc: RateLimitExceeded):
    return PlainTextResponse(str(exc), status_code=429)


@app.exception_handler(DomainError)
def domain_error_handler(request: Request, exc: DomainError):
    log = logger.bind(code=exc.code, path=str(request.url.path), status_code=exc.status_code)
    if exc.status_code >= 500:
        log.error("domain_error", message=exc.message, meta=exc.meta)
    else:
        log.info("domain_error", message=exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "code": exc.code, "meta": exc.meta},
    )


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(quotations.router)
app.include_router(rate_cards.router)
app.include_router(shipper_quote_requests.router)
app.include_router(shippers.router)
if settings.metrics_enabled:
    app.include_router(metrics_router)  # /metrics


# ----------------------------------------------------
# Startup
# ----------------------------------------------------
@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
