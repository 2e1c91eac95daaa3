"""Canonical error envelope for broadcast engine responses.

Standardized structure:
{
  "error": {
    "code": "string",
    "message": "string",
    "http_status": 400,
    "resource_kind": "string | null",
    "details": {}
  }
}
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field

from broadcast_engines.connectors.obs.impl import ObsCallError


class ErrorDetail(BaseModel):
    """Canonical error detail structure."""
    code: str
    message: str
    http_status: int
    resource_kind: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    """Top-level error envelope returned by all endpoints."""
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    """Construct an ErrorEnvelope (without raising)."""
    return ErrorEnvelope(
        error=ErrorDetail(
            code=code,
            message=message,
            http_status=status_code,
            resource_kind=resource_kind,
            details=details or {},
        )
    )


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    """Construct and raise a standardized error response.

    Args:
        code: Machine-readable error code (e.g., "scene.validation_error")
        message: Human-readable error message
        status_code: HTTP status code (default 400)
        resource_kind: The resource type (scene, scene_generation, ...)
        details: Additional context dict
    """
    envelope = build_error_envelope(
        code=code,
        message=message,
        status_code=status_code,
        resource_kind=resource_kind,
        details=details,
    )
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())


def obs_call_error(exc: ObsCallError, resource_kind: str) -> HTTPException:
    """Remote request rejected by the production tool (502)."""
    return error_response(
        code="obs.call_failed",
        message=exc.message,
        status_code=502,
        resource_kind=resource_kind,
        details={"obs_code": exc.code},
    )


def state_unavailable_error(message: str, resource_kind: str = "scene") -> HTTPException:
    """Scene state cache missing or not yet synced (503)."""
    return error_response(
        code=f"{resource_kind}.state_unavailable",
        message=message,
        status_code=503,
        resource_kind=resource_kind,
    )
