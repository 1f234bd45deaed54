"""
FastAPI Application — Entry Point

Thin host around the MinerU archive ingestion pipeline: receives archive
bytes over HTTP and wires the production collaborators (httpx webhook
sender, SQLAlchemy record store) into it.

Middleware stack (innermost → outermost):
  1. Gzip — compress responses > 1 KB
  2. Request logging — request ID + latency per request

Error rendering:
  - IngestError         → status from INGEST_ERROR_STATUS, body ErrorResponse
  - validation failures → 422 ErrorResponse
  - anything else       → 500 ErrorResponse, stack trace logged only
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from mineru_ingest.api.v1.archives import router as archives_router
from mineru_ingest.api.v1.archives import current_request_id, status_for
from mineru_ingest.core.config import settings
from mineru_ingest.core.exceptions import IngestError
from mineru_ingest.db.session import check_db_health, dispose_engine
from mineru_ingest.schemas.archives import ErrorDetail, ErrorResponse, ExtractionErrors

logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


# ---------------------------------------------------------------------------
# Application lifespan — startup / shutdown hooks
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting MinerU ingest | env=%s table=%s segment_length=%d",
        settings.app_env, settings.documents_table, settings.segment_length,
    )
    if not settings.segment_webhook_url:
        logger.warning("SEGMENT_WEBHOOK_URL is not set; extract requests will fail")

    yield

    logger.info("Shutting down MinerU ingest")
    await dispose_engine()


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app() -> FastAPI:
    app = FastAPI(
        title="MinerU Archive Ingest",
        description=(
            "Extracts plain text from MinerU result archives, delivers it in "
            "ordered segments and stores it on the source document."
        ),
        version="1.0.0",
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(GZipMiddleware, minimum_size=1024)

    # ----------------------------------------------------------------
    # Request ID + structured logging middleware
    # ----------------------------------------------------------------

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "HTTP %s %s %d %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

    # ----------------------------------------------------------------
    # Exception handlers — uniform structured error responses
    # ----------------------------------------------------------------

    @app.exception_handler(IngestError)
    async def ingest_exception_handler(request: Request, exc: IngestError):
        status_code = status_for(exc)
        logger.warning(
            "Pipeline failed | path=%s status=%d code=%s message=%s",
            request.url.path, status_code, exc.error_code, exc.message,
        )
        body = ExtractionErrors.pipeline_failed(
            exc.error_code, exc.message, request_id=current_request_id(request),
        )
        return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Convert Pydantic/FastAPI validation errors to structured ErrorResponse."""
        details = [
            ErrorDetail(
                field=" → ".join(str(loc) for loc in err["loc"]),
                message=err["msg"],
                code="VALIDATION_ERROR",
            )
            for err in exc.errors()
        ]
        body = ErrorResponse(
            error_code="VALIDATION_ERROR",
            message="Request validation failed.",
            details=details,
            request_id=current_request_id(request),
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=body.model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch-all for unhandled exceptions — never expose stack traces."""
        request_id = current_request_id(request) or str(uuid.uuid4())
        logger.exception(
            "Unhandled exception | path=%s request_id=%s",
            request.url.path, request_id,
        )
        body = ErrorResponse(
            error_code="INTERNAL_ERROR",
            message="An unexpected error occurred.",
            request_id=request_id,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json"),
            headers={"X-Request-ID": request_id},
        )

    # ----------------------------------------------------------------
    # Routers
    # ----------------------------------------------------------------

    app.include_router(archives_router, prefix="/api/v1")

    # ----------------------------------------------------------------
    # Health & readiness endpoints
    # ----------------------------------------------------------------

    @app.get("/health", tags=["Operations"], summary="Liveness probe")
    async def health() -> dict:
        return {"status": "ok", "service": "mineru-ingest"}

    @app.get("/ready", tags=["Operations"], summary="Readiness probe")
    async def readiness() -> JSONResponse:
        db_status = await check_db_health()
        if db_status["status"] != "ok":
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready", "database": db_status},
            )
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "ready", "database": db_status},
        )

    return app


# ---------------------------------------------------------------------------
# Application instance (imported by uvicorn)
# ---------------------------------------------------------------------------

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mineru_ingest.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.app_env == "development",
        log_level="debug" if settings.debug else "info",
    )
