from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from core.constraint import SERVICE_NAME, SERVICE_VERSION
from models.schemas import HealthStatus, ServiceInfo

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check", response_model=HealthStatus)
def health() -> HealthStatus:
    return HealthStatus(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
    )


@router.get("/", summary="Service description", response_model=ServiceInfo)
def index() -> ServiceInfo:
    return ServiceInfo(
        service="Markdown to PDF Converter",
        version=SERVICE_VERSION,
        endpoints={
            "POST /convert": "Convert markdown content to PDF",
            "POST /convert/file": "Convert markdown file to PDF",
            "GET /health": "Health check",
            "GET /": "API documentation",
        },
        documentation="See /docs for the OpenAPI description",
    )


__all__ = ["router"]
