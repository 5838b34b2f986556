"""
Application entry point for the TradeScout backend.
"""

from contextlib import asynccontextmanager

import mlflow
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from app.analysis_service.api.analysis_routes import router as analysis_router
from app.analysis_service.config import settings
from app.analysis_service.errors import InvalidInputError, SessionBusyError
from app.analysis_service.utils.logger import get_logger
from app.common.mlflow_control import mlflow_safe
from app.core.rate_limit import limiter, rate_limit_exceeded_handler

logger = get_logger(__name__)


# =========================================================
# Lifespan
# =========================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application", extra={"env": settings.ENV})

    if settings.MLFLOW_TRACKING_URI:
        mlflow_safe(mlflow.set_tracking_uri, settings.MLFLOW_TRACKING_URI)
    mlflow_safe(mlflow.set_experiment, "tradescout")

    app.state.gemini_configured = bool(settings.GEMINI_API_KEY)
    if not app.state.gemini_configured:
        logger.warning("Gemini API key not configured; analyses will fail")

    yield

    logger.info("Application shutdown")


# =========================================================
# App Init
# =========================================================
app = FastAPI(
    lifespan=lifespan,
    title="TradeScout",
    version="1.0.0",
)

# =========================================================
# CORS
# =========================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =========================================================
# Rate Limiting
# =========================================================
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


# =========================================================
# Error mapping
# =========================================================
@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    logger.info(
        "Invalid analysis input",
        extra={"path": request.url.path, "reason": str(exc)},
    )
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(SessionBusyError)
async def session_busy_handler(request: Request, exc: SessionBusyError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


# =========================================================
# Request Logging
# =========================================================
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(
        "Incoming request",
        extra={
            "method": request.method,
            "path": request.url.path,
        },
    )
    return await call_next(request)


# =========================================================
# Routers
# =========================================================
app.include_router(analysis_router)

logger.info(
    "API routers registered",
    extra={"routers": ["analysis"]},
)


# =========================================================
# Health
# =========================================================
@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "gemini_configured": getattr(app.state, "gemini_configured", False),
    }


# Initialize Sentry
if settings.ENV == "prod" and settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[
            FastApiIntegration(),
            StarletteIntegration(),
        ],
        traces_sample_rate=0.1,
        environment=settings.ENV,
    )
    logger.info("Sentry initialized for error tracking")
