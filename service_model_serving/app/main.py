"""Model serving service main application."""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from libs.common.config import ModelServingConfig
from libs.common.logging import configure_logging
from libs.common.tracing import configure_tracing
from libs.object_store.base import ObjectStore
from libs.object_store.factory import create_object_store

from .adapters.registry import AdapterRegistry, default_registry
from .api.routes import router as api_router
from .errors import FeatureValidationError, ModelLoadFailure, ModelStorageUnavailable
from .runtime.metrics import MetricsCollector, get_metrics_collector
from .runtime.model_cache import ModelCache
from .runtime.prediction_service import PredictionService

logger = structlog.get_logger("model_serving")

SERVICE_NAME = "model-serving"
SERVICE_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    config: ModelServingConfig = app.state.config
    configure_logging(SERVICE_NAME, config.ml_log_level, config.ml_log_format)
    logger.info("Starting model serving service", storage_backend=config.ml_storage_backend)

    store = app.state.object_store or create_object_store(config)
    registry = app.state.adapter_registry or default_registry()
    metrics_collector = app.state.metrics_collector

    app.state.object_store = store
    app.state.model_cache = ModelCache(
        store,
        registry,
        load_timeout=config.ml_model_load_timeout_seconds,
        metrics=metrics_collector
    )
    app.state.prediction_service = PredictionService(app.state.model_cache, metrics_collector)

    logger.info(
        "Model serving service started successfully",
        adapters=[repr(adapter) for adapter in registry.adapters]
    )

    yield

    # Shutdown
    logger.info(
        "Model serving service shutdown complete",
        models_loaded=len(app.state.model_cache)
    )


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Map serving errors onto HTTP responses."""

    @app.exception_handler(ModelStorageUnavailable)
    async def storage_unavailable_handler(request: Request, exc: ModelStorageUnavailable):
        return _message(503, str(exc))

    @app.exception_handler(ModelLoadFailure)
    async def model_not_found_handler(request: Request, exc: ModelLoadFailure):
        return _message(404, str(exc))

    @app.exception_handler(FeatureValidationError)
    async def invalid_features_handler(request: Request, exc: FeatureValidationError):
        logger.warning("Invalid request", path=request.url.path, error=str(exc))
        return _message(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _message(400, "Malformed request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _message(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unexpected error", path=request.url.path, error=str(exc))
        return _message(500, "Unexpected error occurred")


def create_app(
    config: Optional[ModelServingConfig] = None,
    object_store: Optional[ObjectStore] = None,
    adapter_registry: Optional[AdapterRegistry] = None,
    metrics_collector: Optional[MetricsCollector] = None
) -> FastAPI:
    """Build the FastAPI application.

    Collaborators left as ``None`` are created from ``config`` at startup.
    """
    config = config or ModelServingConfig()

    app = FastAPI(
        title="Model Serving Service",
        description="Point predictions from stored models over REST",
        version=SERVICE_VERSION,
        lifespan=lifespan
    )
    app.state.config = config
    app.state.object_store = object_store
    app.state.adapter_registry = adapter_registry
    app.state.metrics_collector = metrics_collector or get_metrics_collector(SERVICE_NAME)

    if config.ml_tracing_enabled:
        if configure_tracing(SERVICE_NAME, config.ml_otel_exporter, app=app):
            logger.info("OpenTelemetry tracing enabled", exporter=config.ml_otel_exporter)
        else:
            logger.warning("Tracing initialization failed")

    app.include_router(api_router)
    register_exception_handlers(app)

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Collect metrics for HTTP requests."""
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        # Label by route template; raw paths carry model ids.
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        app.state.metrics_collector.record_http_request(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
            duration=duration
        )
        response.headers["X-Process-Time"] = str(duration)
        return response

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        store = app.state.object_store
        models_loaded = len(app.state.model_cache)
        # Backend health checks block on network I/O.
        healthy = store is not None and await run_in_threadpool(store.health_check)
        if healthy:
            return {"status": "healthy", "service": SERVICE_NAME, "models_loaded": models_loaded}
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": SERVICE_NAME, "models_loaded": models_loaded}
        )

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=app.state.metrics_collector.get_metrics(), media_type="text/plain")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "status": "running",
            "models_loaded": app.state.model_cache.loaded_model_ids(),
            "endpoints": {
                "health": "/health",
                "metrics": "/metrics",
                "predict": "/predict/{model_id}"
            }
        }

    return app


def main() -> None:
    """Run the service with uvicorn."""
    config = ModelServingConfig()
    uvicorn.run(
        create_app(config),
        host="0.0.0.0",
        port=config.ml_model_serving_port,
        log_level=config.ml_log_level.lower()
    )


if __name__ == "__main__":
    main()
