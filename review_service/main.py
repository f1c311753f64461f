import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import router
from .core import config
from .core.errors import ReviewServiceError, StorageFailure
from .db import SqlRatingStore
from .db.mongodb import MongoRatingStore
from .services.rating_service import RatingService
from .utils.cors import CORSMiddleware

logger = logging.getLogger(__name__)


# the store is built by create_app; the lifespan prepares and releases it
@asynccontextmanager
async def lifespan(app: FastAPI):
    await app.state.store.init()
    yield
    await app.state.store.close()


def configure_logging(settings):
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_store(settings):
    if settings.STORAGE_BACKEND == "mongo":
        return MongoRatingStore.from_settings(settings)
    return SqlRatingStore.from_settings(settings)


async def service_error_handler(request: Request, exc: ReviewServiceError):
    if isinstance(exc, StorageFailure):
        logger.error("Storage failure on %s", request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=exc.http_status,
        content={"error": {"status": exc.status, "message": exc.public_message}},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# ฟังก์ชันสร้างแอป
def create_app(settings=None, store=None):
    if not settings:
        settings = config.get_settings()

    configure_logging(settings)
    if store is None:
        store = build_store(settings)

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.rating_service = RatingService(
        store,
        require_auth_for_global_stats=settings.REQUIRE_AUTH_FOR_GLOBAL_STATS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=settings.CORS_ALLOW_ORIGIN_REGEX,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_exception_handler(ReviewServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.include_router(router.get_router(), prefix="/api")

    return app
