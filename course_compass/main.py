import time
import logging
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.concurrency import run_in_threadpool
from starlette.routing import Match

from .config import AuthConfig, settings
from .infrastructure import db
from .infrastructure.models import Base
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds,
    gatekeeper_decisions_total,
)
from .infrastructure.rate_limit import limiter
from .interfaces.http.gatekeeper import Redirect
from .interfaces.http.routers import auth as auth_router
from .interfaces.http.routers import pages as pages_router
from .interfaces.http.wiring import gate_request, install

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(title="Course Compass", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
install(app, AuthConfig.from_settings(settings), db.SessionLocal)


# Привратник: регистрируется первым, поэтому выполняется внутри метрик
@app.middleware("http")
async def enforce_auth(request: Request, call_next):
    config: AuthConfig = request.app.state.auth_config
    path = request.url.path
    decision = await run_in_threadpool(
        gate_request, request.app, path, request.cookies.get(config.cookie_name)
    )
    if not isinstance(decision, Redirect):
        gatekeeper_decisions_total.labels(outcome="allow").inc()
        return await call_next(request)

    outcome = "redirect_clear_cookie" if decision.clear_cookie else "redirect"
    gatekeeper_decisions_total.labels(outcome=outcome).inc()
    logger.info("gatekeeper_redirect", path=path, location=decision.location,
                clear_cookie=decision.clear_cookie)
    response = RedirectResponse(decision.location, status_code=307)
    if decision.clear_cookie:
        response.delete_cookie(
            config.cookie_name, path="/", secure=config.cookie_secure, httponly=True, samesite="lax"
        )
    return response


def endpoint_label(request: Request) -> str:
    # шаблон маршрута вместо сырого пути, иначе число серий не ограничено
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            return getattr(route, "path", "unmatched")
    return "unmatched"


@app.middleware("http")
async def add_charset_header(request: Request, call_next):
    start_time = time.time()
    method = request.method
    path = request.url.path

    response = await call_next(request)
    endpoint = endpoint_label(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    # Метрики
    duration = time.time() - start_time
    status_code = response.status_code
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

    # Логирование
    logger.info(
        "http_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )

    return response


@app.on_event("startup")
def on_startup():
    logger.info("Starting course compass", version="0.1.0")
    if app.state.auth_config.uses_default_salt:
        logger.warning("Default Hashids salt is in use; set HASHIDS_SALT for production")
    Base.metadata.create_all(bind=db.engine)
    logger.info("Database schema ensured")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(auth_router.router)
app.include_router(pages_router.router)
