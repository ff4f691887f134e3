# backend/app/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .logging_config import configure_logging

from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware

from .routers.health import router as health_router
from .routers.meta import router as meta_router
from .routers.auth import router as auth_router

from .routers.properties import router as properties_router
from .routers.inspections import router as inspections_router
from .routers.appraisals import router as appraisals_router
from .routers.reviews import router as reviews_router
from .routers.deliveries import router as deliveries_router
from .routers.reports import router as reports_router

from .store import ConstraintError, SchemaUnavailableError, StoreUnavailableError

API_PREFIX = "/api"

log = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    val = getattr(settings, "cors_allow_origins", ["*"])
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def _register_store_errors(app: FastAPI) -> None:
    @app.exception_handler(SchemaUnavailableError)
    async def _schema_unavailable(request: Request, exc: SchemaUnavailableError):
        log.warning("schema unavailable", extra={"collection": exc.collection})
        return JSONResponse(status_code=503, content={"detail": exc.message})

    @app.exception_handler(ConstraintError)
    async def _constraint(request: Request, exc: ConstraintError):
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(StoreUnavailableError)
    async def _unavailable(request: Request, exc: StoreUnavailableError):
        log.error("store unavailable", extra={"collection": exc.collection})
        return JSONResponse(status_code=503, content={"detail": "temporarily unavailable, refresh to retry"})


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Appraisal Workflow", version=settings.version)

    # last added runs first: request id is set before the request is logged
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_store_errors(app)

    # Core
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(meta_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)

    # Workflow
    app.include_router(properties_router, prefix=API_PREFIX)
    app.include_router(inspections_router, prefix=API_PREFIX)
    app.include_router(appraisals_router, prefix=API_PREFIX)
    app.include_router(reviews_router, prefix=API_PREFIX)
    app.include_router(deliveries_router, prefix=API_PREFIX)

    # Reports
    app.include_router(reports_router, prefix=API_PREFIX)

    return app


app = create_app()
