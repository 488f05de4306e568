"""
FastAPI router: registry check, latest, report, and admin verify.

GET  /registry/check?url=   -> {isMalicious, reason?, entry?}
GET  /registry/latest       -> full registry (JSON array)
POST /registry/report       -> {success: true, entry}
POST /registry/verify       -> {success: true, updated}   (X-Admin-Token)
"""

from __future__ import annotations

import secrets
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from blinkguard.analysis_engine.service import SafetyAnalysisService
from blinkguard.api_server.dependencies import get_app_settings, get_service
from blinkguard.config.settings import Settings
from blinkguard.core.exceptions import AdminAuthError, BlinkGuardError, InvalidInputError
from blinkguard.guard_logging import get_logger, short_url

logger = get_logger(__name__)

router = APIRouter(prefix="/registry", tags=["registry"])


class ReportRequest(BaseModel):
    """POST /registry/report body. All fields required; kept optional here so a missing one is a 400."""

    url: str | None = Field(None, description="URL being reported")
    reason: str | None = Field(None, description="Why the URL is malicious")
    reportedBy: str | None = Field(None, description="Reporter identifier")


class VerifyRequest(BaseModel):
    """POST /registry/verify body."""

    url: str | None = Field(None, description="Exact URL of the registry entry")
    verified: bool = Field(True, description="New verified flag")


class VerifyResponse(BaseModel):
    success: bool = Field(..., description="Always true when the request was accepted")
    updated: bool = Field(..., description="False when no entry has this URL")


def _require_admin(settings: Settings, token: str | None) -> None:
    if not settings.admin_token:
        raise AdminAuthError("admin endpoints are disabled", disabled=True)
    if not token or not secrets.compare_digest(token, settings.admin_token):
        raise AdminAuthError("invalid admin token")


@router.get("/check")
def check_url(
    url: str | None = Query(None, description="URL to look up"),
    service: SafetyAnalysisService = Depends(get_service),
) -> JSONResponse:
    """Exact or hostname match against verified registry entries."""
    if not url:
        raise HTTPException(status_code=400, detail="URL parameter required")
    try:
        result = service.check_url(url)
    except BlinkGuardError:
        raise
    except Exception as e:
        logger.exception("registry_check_failed", url=short_url(url), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error") from e
    return JSONResponse(content=result.to_dict())


@router.get("/latest")
def latest_registry(service: SafetyAnalysisService = Depends(get_service)) -> list[dict[str, Any]]:
    """Full registry, in insertion order."""
    try:
        return [entry.to_dict() for entry in service.registry()]
    except BlinkGuardError:
        raise
    except Exception as e:
        logger.exception("registry_fetch_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/report")
def report_url(
    body: ReportRequest,
    service: SafetyAnalysisService = Depends(get_service),
) -> JSONResponse:
    """
    Add an unverified report. domain is derived from url, reportedAt is the
    server time. Re-reporting a URL replaces the previous report.
    """
    if not body.url or not body.reason or not body.reportedBy:
        raise InvalidInputError("Missing required fields")
    try:
        entry = service.report_url(body.url, body.reason, body.reportedBy)
    except BlinkGuardError:
        raise
    except Exception as e:
        logger.exception("registry_report_failed", url=short_url(body.url), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error") from e
    return JSONResponse(content={"success": True, "entry": entry.to_dict()})


@router.post("/verify", response_model=VerifyResponse)
def verify_url(
    body: VerifyRequest,
    x_admin_token: str | None = Header(None, alias="X-Admin-Token"),
    service: SafetyAnalysisService = Depends(get_service),
    settings: Settings = Depends(get_app_settings),
) -> VerifyResponse:
    """Admin: confirm (or retract) a report. Only verified entries affect verdicts."""
    _require_admin(settings, x_admin_token)
    if not body.url:
        raise InvalidInputError("url is required")
    updated = service.verify_url(body.url, body.verified)
    return VerifyResponse(success=True, updated=updated)
