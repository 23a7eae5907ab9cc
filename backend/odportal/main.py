from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from odportal.api.routes import (
    activity,
    auth,
    dashboards,
    documents,
    health,
    navigation,
    od_requests,
)
from odportal.core.config import get_settings
from odportal.core.exceptions import AppError
from odportal.core.middleware import AccessLogMiddleware, RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from odportal.db.bootstrap import ensure_runtime_schema_compatibility, ensure_storage_root

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_runtime_schema_compatibility()
    ensure_storage_root()
    logger.info("%s started with %s document storage", settings.project_name, settings.storage_backend)
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)
app.add_middleware(AccessLogMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
app.include_router(od_requests.router, prefix=settings.api_prefix, tags=["od-requests"])
app.include_router(documents.router, prefix=settings.api_prefix, tags=["documents"])
app.include_router(dashboards.router, prefix=settings.api_prefix, tags=["dashboards"])
app.include_router(navigation.router, prefix=f"{settings.api_prefix}/navigation", tags=["navigation"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
