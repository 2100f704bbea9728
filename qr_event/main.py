import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables as early as possible
load_dotenv()

from .application.ports.otp_delivery import OTPDelivery
from .application.ports.rate_limiter import RateLimiter
from .application.services.otp_service import OTPService
from .config import Settings, get_settings
from .exceptions import http_exception_handler
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.delivery import build_delivery
from .infrastructure.otp.memory_store import InMemoryOTPStore
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware, RequestIdMiddleware, SecurityMiddleware
from .routers import otp_router

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )


def build_rate_limiter(settings: Settings) -> RateLimiter:
    if settings.REDIS_URL:
        from .infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter

        logger.info("Using Redis rate limiter for OTP requests")
        return RedisRateLimiter(settings.REDIS_URL)
    logger.info("Using memory-based rate limiting for OTP requests")
    return InMemoryRateLimiter()


def build_otp_service(
    settings: Settings,
    store: Optional[InMemoryOTPStore] = None,
    delivery: Optional[OTPDelivery] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> OTPService:
    store = store or InMemoryOTPStore(
        default_ttl_ms=settings.OTP_TTL_SECONDS * 1000,
        sweep_threshold=settings.OTP_SWEEP_THRESHOLD,
    )
    return OTPService(
        store=store,
        delivery=delivery or build_delivery(settings),
        rate_limiter=rate_limiter or build_rate_limiter(settings),
        audit=StdAuditLogger(),
        window_seconds=settings.OTP_REQUEST_WINDOW_SECONDS,
        max_per_phone=settings.OTP_REQUEST_MAX_PER_PHONE,
        max_per_ip=settings.OTP_REQUEST_MAX_PER_IP,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENV}) with {app.state.otp_service.delivery.channel} OTP delivery")
    if not settings.is_production:
        logger.warning("OTP debug endpoint is enabled")
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


def create_app(settings: Optional[Settings] = None, otp_service: Optional[OTPService] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
    )
    # One store per process, shared by every request handler
    app.state.settings = settings
    app.state.otp_service = otp_service or build_otp_service(settings)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.add_middleware(ErrorHandlingMiddleware, debug=settings.DEBUG)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.allowed_methods_list,
        allow_headers=settings.allowed_headers_list,
    )

    app.include_router(otp_router.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "qr_event.main:app",
        host=_settings.HOST,
        port=_settings.PORT,
        workers=1,  # codes live in process memory
        proxy_headers=True,
        forwarded_allow_ips=_settings.FORWARDED_ALLOW_IPS,
        log_level=_settings.LOG_LEVEL.lower()
    )
