from fastapi import FastAPI, HTTPException, status, Request
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import text
import logging
import time
import uuid

from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .api.errors import register_exception_handlers
from .api.router import api_router
from .config import settings
from .db import Base, engine
from . import db_models  # noqa: F401  (register tables on Base.metadata)
from .logging_utils import setup_logging
from .rate_limit import limiter, _rate_limit_exceeded_handler
from .realtime import presence
from .routers import ws as ws_router

logger = logging.getLogger("taskhub")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App startup/shutdown lifecycle."""
    # --- Startup ---
    setup_logging(settings.LOG_LEVEL)
    if settings.AUTO_CREATE_TABLES:
        # Dev convenience; production schema is managed by Alembic (upgrade head)
        Base.metadata.create_all(bind=engine)
    Path(settings.UPLOAD_DIR, "profiles").mkdir(parents=True, exist_ok=True)
    logger.info("startup database=%s environment=%s", engine.url.render_as_string(), settings.ENVIRONMENT)
    try:
        yield
    finally:
        # --- Shutdown ---
        presence.clear()
        logger.info("shutdown")


tags_metadata = [
    {"name": "auth", "description": "Registration, login, current user and profile."},
    {"name": "tasks", "description": "Tasks with assignee/supervisor roles and comments."},
    {"name": "daily-tasks", "description": "Daily tasks, due at the end of the day by default."},
    {"name": "messages", "description": "Direct messages between users."},
    {"name": "users", "description": "User directory, profiles and presence status."},
    {"name": "problems", "description": "Coding-practice problems."},
]

app = FastAPI(
    title="TaskHub API",
    version="1.0.0",
    description=(
        "JSON API exposed under /api plus a WebSocket channel at /ws. "
        "Obtain a Bearer token from /api/auth/login and send it in the Authorization header."
    ),
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)


@app.get("/health")
def health():
    """Simple healthcheck endpoint."""
    return {"status": "ok"}


# Uploaded profile pictures; directory is created on startup
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")

# Mount routers
app.include_router(api_router)
app.include_router(ws_router.router)

# Unified error handlers
register_exception_handlers(app)

# Rate limiting (global middleware + handler)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


# Request ID + access log middleware
@app.middleware("http")
async def request_id_and_logging(request: Request, call_next):
    start = time.perf_counter()
    incoming = request.headers.get(settings.REQUEST_ID_HEADER)
    req_id = incoming or uuid.uuid4().hex
    request.state.request_id = req_id
    response = await call_next(request)
    response.headers.setdefault(settings.REQUEST_ID_HEADER, req_id)
    duration_ms = int((time.perf_counter() - start) * 1000)
    logging.getLogger("taskhub.request").info(
        "method=%s path=%s status=%s duration_ms=%s request_id=%s",
        request.method,
        request.url.path,
        getattr(response, "status_code", "-"),
        duration_ms,
        req_id,
    )
    return response

# --- Security: CORS and security headers ---

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", settings.REQUEST_ID_HEADER],
)


@app.middleware("http")
async def security_headers(request, call_next):
    response = await call_next(request)
    # Basic hardening headers
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    if settings.SECURITY_CSP:
        path = request.url.path
        # Swagger/ReDoc pull scripts and styles from a CDN
        if not (path.startswith("/docs") or path.startswith("/redoc")):
            response.headers["Content-Security-Policy"] = settings.SECURITY_CSP
    if settings.SECURITY_ENABLE_HSTS:
        response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
    return response


# --- Observability: liveness, readiness, metrics ---

@app.get("/live")
def live():
    return {"status": "live", "online_users": len(presence)}


@app.get("/ready")
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="not ready") from exc


# Expose Prometheus metrics at /metrics
Instrumentator().instrument(app).expose(app, include_in_schema=False)
