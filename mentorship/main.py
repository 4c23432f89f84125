from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from mentorship.api.assignments import router as assignments_router
from mentorship.api.doubts import router as doubts_router
from mentorship.api.health import router as health_router
from mentorship.api.metrics_endpoint import router as metrics_router
from mentorship.core.config import SETTINGS
from mentorship.core.logging import setup_logging
from mentorship.db.engine import lifespan_db
from mentorship.db.redis import lifespan_redis
from mentorship.middleware.metrics import MetricsMiddleware
from mentorship.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="mentorship-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> handler.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)


def _describe(error: dict) -> str:
    # loc is ("body", "responseStatus") or just ("body",) for a missing body.
    where = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
    return f"{where}: {error['msg']}"


@app.exception_handler(RequestValidationError)
async def invalid_request_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    detail = "; ".join(_describe(e) for e in exc.errors())
    logger.warning(
        "Invalid request on %s %s: %s", request.method, request.url.path, detail
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Database error on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Server error"},
    )


app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(assignments_router)
app.include_router(doubts_router)

logger.info(
    "mentorship-service started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
