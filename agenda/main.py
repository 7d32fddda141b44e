from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agenda.api.v1.api import api_router
from agenda.core.celery import NotificationPublisher
from agenda.core.config import settings
from agenda.core.database import Database
from agenda.core.exceptions import AgendaError
from agenda.core.logging import configure_logging
from agenda.core.redis import RedisClient

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()

    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    await database.connect()
    await database.create_all()

    app.state.database = database
    app.state.redis = RedisClient(
        settings.REDIS_URL, lock_seconds=settings.SLOT_LOCK_SECONDS
    )
    app.state.notifier = NotificationPublisher(enabled=settings.NOTIFICATIONS_ENABLED)
    logger.info(
        "Application started",
        environment=settings.ENVIRONMENT,
        timezone=settings.TIMEZONE,
    )

    yield

    await app.state.redis.close()
    await database.dispose()
    logger.info("Application stopped")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AgendaError)
    async def agenda_error_handler(request: Request, exc: AgendaError):
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                path=request.url.path,
                error=exc.message,
                **exc.context,
            )
            detail = "Internal server error"
        else:
            detail = exc.message
        return JSONResponse(status_code=exc.status_code, content={"detail": detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("Invalid request", path=request.url.path, errors=jsonable_errors(exc))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error", path=request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the raw input or exception objects."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
