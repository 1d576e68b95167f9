from __future__ import annotations

import json
import logging
import time
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response
from starlette.datastructures import UploadFile

from api.dependencies import get_config, get_service
from core.md2pdf.config import AppConfig
from core.md2pdf.core import ConversionService
from core.md2pdf.utils import content_disposition, pdf_name_for

logger = logging.getLogger(__name__)

router = APIRouter(tags=["conversion"])

MARKDOWN_CONTENT_TYPES = {"text/markdown", "text/plain", "text/x-markdown"}
MARKDOWN_SUFFIXES = (".md", ".markdown")
BOOLEAN_FORM_FIELDS = {"landscape", "includePageNumbers"}


@router.post("/convert", summary="Convert markdown content to PDF", response_class=Response)
async def convert_markdown(
    request: Request,
    payload: dict[str, Any] = Body(...),
    service: ConversionService = Depends(get_service),
) -> Response:
    start = time.perf_counter()
    markdown = payload.get("markdownContent")
    logger.info(
        "Received PDF conversion request (%d chars, agent=%s)",
        len(markdown) if isinstance(markdown, str) else 0,
        request.headers.get("user-agent", "-"),
    )
    conversion = service.validate(markdown, payload.get("options"))
    result = await service.convert_request(conversion)
    logger.info(
        "PDF conversion %s served in %.0fms (%d bytes)",
        result.run_id,
        (time.perf_counter() - start) * 1000,
        result.size_bytes,
    )
    return _pdf_response(result.pdf, conversion.options.file_name)


@router.post("/convert/file", summary="Convert an uploaded markdown file to PDF", response_class=Response)
async def convert_markdown_file(
    request: Request,
    service: ConversionService = Depends(get_service),
    config: AppConfig = Depends(get_config),
) -> Response:
    form = await request.form()
    upload = form.get("markdown")
    if not isinstance(upload, UploadFile):
        raise HTTPException(
            status_code=400,
            detail={"message": "No markdown file uploaded", "error": "Please upload a markdown file"},
        )
    if not _is_markdown(upload):
        raise HTTPException(
            status_code=400,
            detail={"message": "Invalid file type", "error": "Only markdown files are allowed"},
        )
    content = await upload.read()
    _enforce_size_limit(content, config)
    logger.info("Received file conversion request (%s, %d bytes)", upload.filename, len(content))

    options = _form_options(form)
    options.setdefault("fileName", pdf_name_for(upload.filename or ""))
    conversion = service.validate(content.decode("utf-8", errors="replace"), options)
    result = await service.convert_request(conversion)
    return _pdf_response(result.pdf, conversion.options.file_name)


def _is_markdown(upload: UploadFile) -> bool:
    name = (upload.filename or "").lower()
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    return content_type in MARKDOWN_CONTENT_TYPES or name.endswith(MARKDOWN_SUFFIXES)


def _form_options(form: Any) -> dict[str, Any]:
    options: dict[str, Any] = {}
    raw = form.get("options")
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse options, using defaults: %s", exc)
        else:
            if isinstance(parsed, dict):
                options = parsed
            else:
                logger.warning("Ignoring non-object options field")
    for key, value in form.multi_items():
        if key in {"markdown", "options"} or not isinstance(value, str):
            continue
        options[key] = value == "true" if key in BOOLEAN_FORM_FIELDS else value
    return options


def _enforce_size_limit(payload: bytes, config: AppConfig) -> None:
    max_bytes = config.runtime.max_upload_mb * 1024 * 1024
    if len(payload) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail={"message": "File too large", "error": f"Maximum file size is {config.runtime.max_upload_mb}MB"},
        )


def _pdf_response(pdf: bytes, file_name: str) -> Response:
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(file_name)},
    )


__all__ = [
    "router",
]
