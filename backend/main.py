"""
main.py

Application entrypoint for the SOS Auto DZ API.
- Initializes structured logging
- Builds database, push registry, mailer, fan-out dispatcher and cache in the lifespan
- Sets up FastAPI application and middlewares
- Registers all API routers
- Integrates rate limiting via SlowAPI
- Adds common security headers
- Configures CORS
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from sosauto.admin.routes import router as admin_router
from sosauto.auth.routes import router as auth_router
from sosauto.booking.routes import router as booking_router
from sosauto.core.config import settings
from sosauto.core.email import build_mailer
from sosauto.core.exceptions import register_exception_handlers
from sosauto.core.limiter import limiter
from sosauto.core.logging import init_logging
from sosauto.database.init_db import init_db
from sosauto.database.session import build_engine, build_sessionmaker
from sosauto.notification.dispatcher import NotificationDispatcher
from sosauto.notification.manager import ConnectionManager
from sosauto.notification.routes import router as notification_router
from sosauto.notification.routes import ws_router as notification_ws_router
from sosauto.provider.routes import router as provider_router
from sosauto.review.routes import router as review_router

init_logging()
logger = logging.getLogger(__name__)


# -----------------------------
# Lifespan: Service Wiring
# -----------------------------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    engine = build_engine(settings.db_url, echo=settings.DEBUG)
    await init_db(engine)

    connection_manager = ConnectionManager()
    dispatcher = NotificationDispatcher(
        transport=connection_manager,
        mailer=build_mailer(),
        email_timeout=settings.EMAIL_SEND_TIMEOUT_SECONDS,
    )

    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)
    app.state.connection_manager = connection_manager
    app.state.dispatcher = dispatcher
    app.state.redis = Redis.from_url(settings.REDIS_URL, decode_responses=True) if settings.REDIS_URL else None
    logger.info(f"[STARTUP] {settings.APP_NAME} ready (cache={'on' if app.state.redis else 'off'})")

    try:
        yield
    finally:
        await dispatcher.drain()
        if app.state.redis is not None:
            await app.state.redis.aclose()
        await engine.dispose()
        logger.info("[SHUTDOWN] Resources released")


# -----------------------------
# FastAPI App Initialization
# -----------------------------
app = FastAPI(title=f"{settings.APP_NAME} API", lifespan=lifespan)

# -----------------------------
# Middleware Configuration
# -----------------------------
app.state.limiter = limiter


async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    return _rate_limit_exceeded_handler(request, exc)  # type: ignore[arg-type]


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
register_exception_handlers(app)


# -----------------------------
# Security Headers Middleware
# -----------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add common security headers to responses.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response


app.add_middleware(SecurityHeadersMiddleware)

# -----------------------------
# CORSMiddleware Configuration
# -----------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# API Router Registration
# -----------------------------
app.include_router(admin_router)
app.include_router(auth_router)
app.include_router(booking_router)
app.include_router(notification_router)
app.include_router(notification_ws_router)
app.include_router(provider_router)
app.include_router(review_router)


# -----------------------------
# Health Check
# -----------------------------
@app.get("/health", tags=["Health"])
async def health() -> dict[str, str]:
    return {"status": "OK", "message": f"{settings.APP_NAME} API is running"}
