import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import PasswordResetConfig
from src.adapter.services.logging_email_sender import LoggingEmailSender
from src.adapter.services.memory_rate_limit_store import MemoryRateLimitStore
from src.app.services.email_sender import IEmailSender
from src.app.services.rate_limiter import RateLimiter, RateLimitStore
from src.app.services.token_codec import TokenCodec
from .error import ClientError, ServerError
from .utils.client_info import parse_trusted_proxies

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    if exc.base_error.details:
        error_dict["details"] = exc.base_error.details
    logger.warning(f"Client error: {exc.base_error.code}")
    return JSONResponse(
        status_code=exc.status_code, content={"error": error_dict}, headers=exc.headers
    )


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def build_rate_limit_store(ApplicationConfig) -> RateLimitStore:
    if ApplicationConfig.CACHE_BACKEND == "redis":
        from src.adapter.services.redis_rate_limit_store import RedisRateLimitStore

        return RedisRateLimitStore.from_url(ApplicationConfig.REDIS_URL)
    return MemoryRateLimitStore()


def create_app(
    ApplicationConfig,
    rate_limit_store: Optional[RateLimitStore] = None,
    token_codec: Optional[TokenCodec] = None,
    email_sender: Optional[IEmailSender] = None,
    password_reset_config: Optional[PasswordResetConfig] = None,
    trusted_proxies: Optional[List[str]] = None,
) -> FastAPI:
    configure_logging(ApplicationConfig.LOG_LEVEL)

    reset_config = password_reset_config or ApplicationConfig.PASSWORD_RESET
    store = rate_limit_store or build_rate_limit_store(ApplicationConfig)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if ApplicationConfig.AUTO_CREATE_TABLES:
            from src.depends import init_db

            await init_db()
        if isinstance(store, MemoryRateLimitStore):
            store.start_sweeper(ApplicationConfig.RATE_LIMIT_SWEEP_SECONDS)
        yield
        if isinstance(store, MemoryRateLimitStore):
            await store.stop_sweeper()
        elif hasattr(store, "close"):
            await store.close()

    app = FastAPI(title="Password Reset API", version="0.1.0", lifespan=lifespan)

    app.state.password_reset_config = reset_config
    app.state.rate_limiter = RateLimiter(store, reset_config)
    app.state.token_codec = token_codec or TokenCodec()
    app.state.email_sender = email_sender or LoggingEmailSender(ApplicationConfig.EMAIL_FROM)
    app.state.trusted_proxies = parse_trusted_proxies(
        ApplicationConfig.TRUSTED_PROXIES if trusted_proxies is None else trusted_proxies
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import admin, health_check, password_reset

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(password_reset.router, tags=["Password Reset"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
