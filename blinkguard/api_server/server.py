"""
FastAPI server: safety analysis and registry endpoints.

POST /analyze scores a simulated transaction (registry first when a url is
given). Registry routes live in registry_api. The registry store is opened
in the lifespan and closed on shutdown; config via env (see config.env).
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from blinkguard import __version__
from blinkguard.analysis_engine.models import TransactionSimulation
from blinkguard.analysis_engine.service import SafetyAnalysisService
from blinkguard.analysis_engine.signals import HeuristicConfig
from blinkguard.api_server.dependencies import get_service
from blinkguard.api_server.registry_api import router as registry_router
from blinkguard.config.settings import Settings, get_settings
from blinkguard.core.exceptions import (
    AdminAuthError,
    AnalysisError,
    BlinkGuardError,
    InvalidInputError,
    RegistryStorageError,
)
from blinkguard.guard_logging import get_logger, short_url
from blinkguard.registry.store import RegistryStore, open_registry_store
from blinkguard.utils.blink import domain_for_url

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class AnalyzeRequest(BaseModel):
    """POST /analyze body."""

    transactionData: dict[str, Any] | None = Field(
        None, description="TransactionSimulation: success, logs, balanceChanges, error"
    )
    domain: str | None = Field(None, description="Hostname requesting the signature")
    url: str | None = Field(None, description="Blink or action URL; checked against the registry first")


class HealthResponse(BaseModel):
    status: str = Field(..., description="ok when the API is up")
    timestamp: int = Field(..., description="Server time, unix millis")


# -----------------------------------------------------------------------------
# Lifespan: registry store is opened per app, never at import
# -----------------------------------------------------------------------------


def build_heuristic_config(settings: Settings) -> HeuristicConfig:
    return HeuristicConfig().with_extras(
        trusted_programs=settings.extra_trusted_programs,
        trusted_domains=settings.extra_trusted_domains,
    )


def create_app(settings: Settings | None = None, store: RegistryStore | None = None) -> FastAPI:
    """
    Build the ASGI app.

    settings defaults to get_settings(). When store is given it is used
    as-is (and left open on shutdown); otherwise one is opened from settings.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = store is None
        registry_store = open_registry_store(settings) if owned else store.open()
        app.state.service = SafetyAnalysisService(registry_store, build_heuristic_config(settings))
        logger.info("api_started", backend=type(registry_store.backend).__name__, version=__version__)
        try:
            yield
        finally:
            if owned:
                registry_store.close()
            logger.info("api_stopped")

    app = FastAPI(
        title="BlinkGuard API",
        description="Transaction safety analysis and malicious-URL registry for Solana Blinks.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Admin-Token"],
    )

    app.include_router(registry_router)
    _register_routes(app)
    _register_exception_handlers(app)
    return app


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


def _register_routes(app: FastAPI) -> None:
    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        """Liveness probe: API is up."""
        return HealthResponse(status="ok", timestamp=int(time.time() * 1000))

    @app.post("/analyze")
    def analyze(
        body: AnalyzeRequest,
        service: SafetyAnalysisService = Depends(get_service),
    ) -> JSONResponse:
        """
        Return a SafetyAnalysis for the simulated transaction. 400 when
        transactionData is missing or malformed.
        """
        if body.transactionData is None:
            raise InvalidInputError("Transaction data required")
        simulation = TransactionSimulation.from_dict(body.transactionData)
        domain = body.domain or (domain_for_url(body.url) if body.url else None)
        try:
            analysis = service.analyze(url=body.url, simulation=simulation, domain=domain)
        except BlinkGuardError:
            raise
        except Exception as e:
            logger.exception("analyze_failed", url=short_url(body.url), error=str(e))
            raise HTTPException(status_code=500, detail="Internal server error") from e
        return JSONResponse(content=analysis.to_dict())


# -----------------------------------------------------------------------------
# Errors: consistent {"detail": ...} JSON
# -----------------------------------------------------------------------------


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    def validation_exception_handler(request: Any, exc: RequestValidationError) -> JSONResponse:
        logger.info("request_validation_failed", path=str(request.url.path), errors=len(exc.errors()))
        return JSONResponse(status_code=400, content={"detail": "Invalid request body or parameters"})

    @app.exception_handler(InvalidInputError)
    def invalid_input_handler(request: Any, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(AdminAuthError)
    def admin_auth_handler(request: Any, exc: AdminAuthError) -> JSONResponse:
        logger.warning("admin_auth_rejected", path=str(request.url.path), disabled=exc.disabled)
        return JSONResponse(status_code=403 if exc.disabled else 401, content={"detail": exc.message})

    @app.exception_handler(RegistryStorageError)
    def storage_error_handler(request: Any, exc: RegistryStorageError) -> JSONResponse:
        logger.error("registry_storage_failed", path=str(request.url.path), error=exc.message)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.exception_handler(AnalysisError)
    def analysis_error_handler(request: Any, exc: AnalysisError) -> JSONResponse:
        logger.error("analysis_error", path=str(request.url.path), error=exc.message)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app = create_app()
