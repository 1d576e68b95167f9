from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.constraint import SERVICE_VERSION
from core.md2pdf.config import AppConfig, load_config
from core.md2pdf.core import ConversionService
from core.md2pdf.errors import ConversionError, ErrorKind, ValidationError
from core.settings import Settings, get_settings
from models.schemas import ErrorResponse, FieldErrorDetail

from .routers import convert, health

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, *, service: ConversionService | None = None) -> FastAPI:
    settings = settings or get_settings()
    config = _prepare_config(settings, service.config if service is not None else None)
    if not config.runtime.enable_local_api:
        raise RuntimeError("Local API is disabled. Enable it via configuration or environment.")

    app = FastAPI(title="Markdown to PDF Converter", version=SERVICE_VERSION)
    app.state.settings = settings
    app.state.config = config
    app.state.service = service or ConversionService(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health.router)
    app.include_router(convert.router)
    _register_error_handlers(app)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        converter: ConversionService = app.state.service
        await converter.close()
        logger.info("PDF converter closed")

    return app


def _prepare_config(settings: Settings, config: AppConfig | None = None) -> AppConfig:
    config = config or load_config(settings.config_path)
    if settings.enable_local_api is not None:
        config.runtime.enable_local_api = settings.enable_local_api
    return config


def _error_response(
    status_code: int,
    message: str,
    error: str,
    details: list[FieldErrorDetail] | None = None,
) -> JSONResponse:
    body = ErrorResponse(statusCode=status_code, message=message, error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ConversionError)
    async def _conversion_error(request: Request, exc: ConversionError) -> JSONResponse:
        if isinstance(exc, ValidationError):
            details = [FieldErrorDetail(field=d.field, message=d.message) for d in exc.details]
            return _error_response(400, "Invalid request data", str(exc), details)
        settings: Settings = request.app.state.settings
        if exc.kind is ErrorKind.TIMEOUT:
            status_code, message = 504, "PDF conversion timed out"
        else:
            status_code, message = 500, "Internal server error during PDF conversion"
        error = str(exc) if settings.expose_errors else "PDF conversion failed"
        return _error_response(status_code, message, error)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            FieldErrorDetail(
                field=".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body",
                message=str(err.get("msg", "")),
            )
            for err in exc.errors()
        ]
        return _error_response(400, "Invalid request data", "Request body could not be parsed", details)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error_response(404, "Endpoint not found", f"Cannot {request.method} {request.url.path}")
        if isinstance(exc.detail, dict):
            message = str(exc.detail.get("message", "Request failed"))
            error = str(exc.detail.get("error", message))
        else:
            message = error = str(exc.detail)
        return _error_response(exc.status_code, message, error)


__all__ = ["create_app"]
