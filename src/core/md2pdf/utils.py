from __future__ import annotations

import hashlib
import os
import re
import tempfile
import time
from pathlib import Path


SAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")
MARKDOWN_SUFFIX_RE = re.compile(r"\.(md|markdown)$", re.IGNORECASE)


def slugify(value: str, max_length: int = 120) -> str:
    normalized = SAFE_FILENAME_RE.sub("-", value.strip())
    normalized = re.sub("-+", "-", normalized)
    normalized = normalized.replace("-.", ".")
    normalized = normalized.strip("-._")
    if not normalized:
        normalized = "file"
    if len(normalized) > max_length:
        normalized = normalized[:max_length]
    return normalized


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def pdf_name_for(source_name: str) -> str:
    """Map an uploaded markdown file name onto the PDF name offered for download."""

    base = Path(source_name or "document").name
    if MARKDOWN_SUFFIX_RE.search(base):
        return MARKDOWN_SUFFIX_RE.sub(".pdf", base)
    return f"{Path(base).stem or 'document'}.pdf"


def content_disposition(file_name: str) -> str:
    path = Path(file_name)
    extension = slugify(path.suffix.lstrip(".")) if path.suffix else "pdf"
    return f'attachment; filename="{slugify(path.stem)}.{extension}"'


def default_output_path(source: Path | None) -> Path:
    if source is None:
        return Path("output.pdf")
    return source.with_suffix(".pdf")


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    atomic_write_bytes(path, data.encode(encoding))
