"""perkyjobs Backend API - FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from perkyjobs.commerce.errors import (
    AuthorizationError,
    CommerceError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    PaymentError,
    SettlementRecordError,
    ValidationError,
)

from .config import get_settings
from .database import Store, close_x402_client
from .logging_config import get_logger, setup_logging
from .rate_limit import limiter
from .routes import jobs_router, pay_router, users_router

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info(
        f"Starting perkyjobs backend | debug={settings.debug} | network={settings.payment_network}"
    )
    yield
    close_x402_client()
    logger.info("Shutting down perkyjobs backend")


app = FastAPI(
    title="perkyjobs Backend API",
    description="Job marketplace with x402 payment settlement",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["PAYMENT-REQUIRED"],
)

# Most specific first; subclasses must precede their bases
_ERROR_STATUS = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (PaymentError, status.HTTP_402_PAYMENT_REQUIRED),
    (SettlementRecordError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def error_status(exc: CommerceError) -> int:
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(CommerceError)
async def commerce_error_handler(request: Request, exc: CommerceError):
    """Translate commerce errors into JSON error responses."""
    code = error_status(exc)
    content = {"detail": str(exc)}
    if isinstance(exc, PaymentError):
        content = {"detail": "Payment failed", "reason": exc.reason}
    elif isinstance(exc, SettlementRecordError):
        content["transaction"] = exc.transaction

    log = logger.error if code >= 500 else logger.info
    log(f"{request.method} {request.url.path} | {code} | {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=code, content=content)


# Include routers
app.include_router(jobs_router)
app.include_router(pay_router)
app.include_router(users_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "service": "perkyjobs-backend",
        "version": "0.1.0",
        "status": "ok",
    }


@app.get("/health")
def health(store: Store):
    """Detailed health check with an actual store query."""
    store_status = "disconnected"
    try:
        store.query("jobs", limit=1)
        store_status = "connected"
    except Exception as e:
        store_status = f"error: {str(e)[:50]}"

    return {
        "status": "healthy" if store_status == "connected" else "degraded",
        "database": store_status,
        "payment_network": get_settings().payment_network,
    }
