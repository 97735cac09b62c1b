import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from leave_portal.core.config import Settings, settings as default_settings
from leave_portal.core.database import build_engine, build_session_factory, create_tables
from leave_portal.core.errors import LeavePortalError
from leave_portal.core.logging_config import configure_logging
from leave_portal.notifications.dispatcher import NotificationDispatcher, Notifier
from leave_portal.notifications.email import EmailService

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LeavePortalError)
    async def leave_portal_error_handler(request: Request, exc: LeavePortalError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning("Malformed request to %s: %s", request.url.path, exc.errors())
        return _error(status.HTTP_400_BAD_REQUEST, "malformed request data")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")


def create_app(
    app_settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """Build the application.

    ``session_factory`` and ``notifier`` may be injected (tests do); anything
    not injected is created in the lifespan from ``app_settings``.
    """
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(app_settings.LOG_LEVEL)
        engine = None
        dispatcher = None

        if app.state.session_factory is None:
            engine = build_engine(app_settings)
            if app_settings.AUTO_CREATE_TABLES:
                await create_tables(engine)
            app.state.session_factory = build_session_factory(engine)

        if app.state.notifier is None:
            if not app_settings.BASE_URL:
                logger.warning("BASE_URL is not set; notification emails will fail")
            dispatcher = NotificationDispatcher(
                EmailService(app_settings),
                app_settings.BASE_URL,
                maxsize=app_settings.NOTIFICATION_QUEUE_SIZE,
                shutdown_grace=app_settings.NOTIFICATION_SHUTDOWN_GRACE,
            )
            dispatcher.start()
            app.state.notifier = dispatcher

        logger.info("%s is live", app_settings.APP_NAME)
        yield

        if dispatcher is not None:
            await dispatcher.stop()
        if engine is not None:
            await engine.dispose()
        logger.info("%s stopped cleanly", app_settings.APP_NAME)

    app = FastAPI(
        title=app_settings.APP_NAME,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.session_factory = session_factory
    app.state.notifier = notifier

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app)

    # ── Routers ───────────────────────────────────────────────────────────────
    from leave_portal.api.auth import router as auth_router
    from leave_portal.api.leave import router as leave_router

    app.include_router(auth_router, prefix="/api")
    app.include_router(leave_router, prefix="/api")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": app_settings.APP_NAME}

    return app


app = create_app()
