from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from supabase import create_client
import os
from uuid import uuid4

from app.routes.http import http_client
from app.routes import stats
from app.routes.error_responses import invalid_argument_handler
from app.config.environment import validate_environment
from app.logging_utils import configure_logging, set_request_context, clear_request_context
from app.services.daily_record_store import DailyRecordStore
from app.services.daily_records import InvalidArgument
from app.services.metrics import metrics, record_dependency_call
from app.services.resilience import call_blocking_with_retries
from app.services.supabase_rest import SupabaseRestRepository
import logging
import time


def _parse_cors_origins(value: str | None) -> list[str]:
    if not value:
        return []
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def get_cors_settings() -> list[str]:
    configured_origins = _parse_cors_origins(os.getenv("CORS_ORIGINS"))

    if ENV in {"staging", "prod"}:
        if any(origin == "*" for origin in configured_origins):
            raise RuntimeError("❌ CORS_ORIGINS cannot contain '*' in staging/prod")
        return configured_origins

    dev_localhost_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
    ]
    return list(dict.fromkeys(configured_origins + dev_localhost_origins))

# --------------------------------------------------
# ENV + SUPABASE
# --------------------------------------------------
load_dotenv()
configure_logging()
logger = logging.getLogger(__name__)
ENV = validate_environment()


def _status_bucket(status_code: int) -> str:
    if status_code >= 500:
        return "5xx"
    if status_code >= 400:
        return "4xx"
    if status_code >= 300:
        return "3xx"
    return "2xx"


def _route_metric_key(path: str) -> str:
    normalized = path.strip("/") or "root"
    return "".join(char if char.isalnum() else "_" for char in normalized)[:80]

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

SUPABASE_CALL_TIMEOUT_SECONDS = float(os.getenv("SUPABASE_CALL_TIMEOUT_SECONDS", "4.0"))
SUPABASE_RETRY_ATTEMPTS = int(os.getenv("SUPABASE_RETRY_ATTEMPTS", "2"))

# Auth only; table reads go through the REST repository with the service role.
supabase_anon = create_client(SUPABASE_URL, SUPABASE_KEY)


# ============================== APP LIFESPAN =============================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app.startup_ready")
    try:
        yield
    finally:
        await http_client.aclose()
        logger.info("app.shutdown_http_client_closed")


# --------------------------------------------------
# APP INIT
# --------------------------------------------------
app = FastAPI(lifespan=lifespan)
app.state.record_store = DailyRecordStore(
    SupabaseRestRepository(base_url=SUPABASE_URL, service_role_key=SUPABASE_SERVICE_ROLE_KEY)
)
app.add_exception_handler(InvalidArgument, invalid_argument_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_settings(),
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
)


# ====================== AUTH MIDDLEWARE ====================

PUBLIC_PATHS = {
    "/health",
}


async def _resolve_user(token: str):
    user_res = await call_blocking_with_retries(
        lambda: record_dependency_call("supabase", lambda: supabase_anon.auth.get_user(token)),
        timeout_s=SUPABASE_CALL_TIMEOUT_SECONDS,
        attempts=SUPABASE_RETRY_ATTEMPTS,
    )
    user = getattr(user_res, "user", None)
    if not user:
        raise PermissionError("Invalid token")
    return user


def _unauthorized(request_id: str) -> JSONResponse:
    response = JSONResponse({"code": "AUTH_INVALID", "message": "Unauthorized"}, status_code=401)
    response.headers["X-Request-Id"] = request_id
    return response


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    request.state.request_id = request.headers.get("X-Request-Id") or str(uuid4())
    request.state.user_id = None
    start = time.perf_counter()

    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        try:
            user = await _resolve_user(token)
            request.state.user_id = user.id
            logger.info("auth.user_validated", extra={"user_id": user.id})
        except Exception as e:
            logger.warning("auth.token_validation_failed", extra={"error": str(e)})
            if request.url.path not in PUBLIC_PATHS:
                return _unauthorized(request.state.request_id)

    set_request_context(
        request_id=request.state.request_id,
        route=request.url.path,
        user_id=request.state.user_id,
    )
    response = None
    try:
        response = await call_next(request)
    finally:
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        status = getattr(response, "status_code", 500)
        metrics.inc("http.request_count")
        metrics.observe_ms("http.request_latency", latency_ms)
        metrics.inc(f"http.route.{_route_metric_key(request.url.path)}.{_status_bucket(status)}")
        if status >= 400:
            metrics.inc("http.error_count")
        set_request_context(status=status, latency_ms=latency_ms)
        logger.info(
            "request.completed",
            extra={
                "request_id": request.state.request_id,
                "route": request.url.path,
                "status": status,
                "latency_ms": latency_ms,
                "user_id": request.state.user_id,
            },
        )
        clear_request_context()

    response.headers["X-Request-Id"] = request.state.request_id
    return response


# --------------------------------------------------
# BASIC ROUTES
# --------------------------------------------------
@app.get("/health")
async def health():
    return {"status": "ok", "env": ENV}


@app.get("/metrics")
async def metrics_endpoint(request: Request):
    if not request.state.user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return PlainTextResponse(
        content=metrics.render_prometheus(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )

# --------------------------------------------------
# ROUTERS
# --------------------------------------------------
app.include_router(stats.router)
