from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from core.md2pdf.config import AppConfig, RuntimeConfig
from core.md2pdf.core import ConversionService
from core.md2pdf.engine import RenderEngineManager
from core.settings import Settings


def _client(service: ConversionService, **settings: object) -> TestClient:
    return TestClient(create_app(Settings(**settings), service=service))


@pytest.fixture
def client(service: ConversionService):
    with _client(service) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "markdown-to-pdf-service"
    assert body["version"] == "1.0.0"
    assert body["timestamp"]


def test_index_lists_endpoints(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "POST /convert" in response.json()["endpoints"]


def test_convert_returns_pdf(client: TestClient, fake_engine) -> None:
    response = client.post("/convert", json={"markdownContent": "# Hello API"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="document.pdf"'
    assert response.content.startswith(b"%PDF-")
    assert "<h1>Hello API</h1>" in fake_engine.last_page.content


def test_convert_applies_options(client: TestClient, fake_engine) -> None:
    payload = {
        "markdownContent": "# Quarterly",
        "options": {
            "fileName": "My Report.pdf",
            "format": "Legal",
            "landscape": True,
            "pages": ["1", "4-5"],
            "includePageNumbers": False,
        },
    }

    response = client.post("/convert", json=payload)

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="My-Report.pdf"'
    pdf_options = fake_engine.last_page.pdf_options
    assert pdf_options["format"] == "Legal"
    assert pdf_options["landscape"] is True
    assert pdf_options["page_ranges"] == "1,4,5"
    assert "display_header_footer" not in pdf_options


def test_convert_validation_error_lists_fields(client: TestClient, fake_engine) -> None:
    response = client.post("/convert", json={"markdownContent": "", "options": {"format": "B5"}})

    assert response.status_code == 400
    body = response.json()
    assert body["statusCode"] == 400
    assert body["message"] == "Invalid request data"
    assert body["error"].startswith("Validation failed")
    assert {detail["field"] for detail in body["details"]} == {"markdownContent", "options.format"}
    assert fake_engine.launches == 0


def test_convert_missing_markdown(client: TestClient) -> None:
    response = client.post("/convert", json={"options": {}})

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "markdownContent"


def test_convert_rejects_malformed_json(client: TestClient) -> None:
    response = client.post(
        "/convert",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request data"


def test_render_failure_hides_cause_outside_development(client: TestClient, fake_engine) -> None:
    fake_engine.render_error = "chromium exploded"

    response = client.post("/convert", json={"markdownContent": "# Broken"})

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Internal server error during PDF conversion"
    assert body["error"] == "PDF conversion failed"


def test_render_failure_exposes_cause_in_development(service: ConversionService, fake_engine) -> None:
    fake_engine.render_error = "chromium exploded"

    with _client(service, environment="development") as client:
        response = client.post("/convert", json={"markdownContent": "# Broken"})

    assert response.status_code == 500
    assert "chromium exploded" in response.json()["error"]


def test_timeout_maps_to_gateway_timeout(tmp_path, fake_engine) -> None:
    config = AppConfig(runtime=RuntimeConfig(log_dir=tmp_path / "logs", load_timeout_s=0.01))
    service = ConversionService(config, engine=RenderEngineManager(config.engine, launcher=fake_engine))
    fake_engine.load_delay = 1.0

    with _client(service) as client:
        response = client.post("/convert", json={"markdownContent": "# Slow"})

    assert response.status_code == 504
    assert response.json()["message"] == "PDF conversion timed out"


def test_unknown_route_is_json_404(client: TestClient) -> None:
    response = client.get("/missing")

    assert response.status_code == 404
    assert response.json() == {
        "statusCode": 404,
        "message": "Endpoint not found",
        "error": "Cannot GET /missing",
    }


def test_convert_file_with_form_overrides(client: TestClient, fake_engine) -> None:
    response = client.post(
        "/convert/file",
        files={"markdown": ("notes.md", b"# From file", "text/markdown")},
        data={"format": "Letter", "landscape": "true", "pages": "1-2", "includePageNumbers": "false"},
    )

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="notes.pdf"'
    page = fake_engine.last_page
    assert "<h1>From file</h1>" in page.content
    assert page.pdf_options["format"] == "Letter"
    assert page.pdf_options["landscape"] is True
    assert page.pdf_options["page_ranges"] == "1,2"
    assert "display_header_footer" not in page.pdf_options


def test_convert_file_with_options_json(client: TestClient, fake_engine) -> None:
    options = {"format": "A5", "margin": {"top": "5mm"}, "fileName": "custom.pdf"}

    response = client.post(
        "/convert/file",
        files={"markdown": ("notes.markdown", b"# Options", "application/octet-stream")},
        data={"options": json.dumps(options)},
    )

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="custom.pdf"'
    pdf_options = fake_engine.last_page.pdf_options
    assert pdf_options["format"] == "A5"
    assert pdf_options["margin"]["top"] == "5mm"


def test_convert_file_ignores_malformed_options(client: TestClient, fake_engine) -> None:
    response = client.post(
        "/convert/file",
        files={"markdown": ("notes.md", b"# Defaults", "text/markdown")},
        data={"options": "{broken"},
    )

    assert response.status_code == 200
    assert fake_engine.last_page.pdf_options["format"] == "A4"


def test_convert_file_requires_upload(client: TestClient) -> None:
    response = client.post("/convert/file", data={"format": "A4"})

    assert response.status_code == 400
    assert response.json()["message"] == "No markdown file uploaded"


def test_convert_file_rejects_other_types(client: TestClient, fake_engine) -> None:
    response = client.post(
        "/convert/file",
        files={"markdown": ("slides.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Only markdown files are allowed"
    assert fake_engine.launches == 0


def test_convert_file_rejects_oversized_upload(tmp_path, fake_engine) -> None:
    config = AppConfig(runtime=RuntimeConfig(log_dir=tmp_path / "logs", max_upload_mb=0))
    service = ConversionService(config, engine=RenderEngineManager(config.engine, launcher=fake_engine))

    with _client(service) as client:
        response = client.post(
            "/convert/file",
            files={"markdown": ("big.md", b"# too big", "text/markdown")},
        )

    assert response.status_code == 413
    assert response.json()["message"] == "File too large"


def test_shutdown_closes_engine(service: ConversionService, fake_engine) -> None:
    with _client(service) as client:
        assert client.post("/convert", json={"markdownContent": "# Bye"}).status_code == 200
        assert service.engine.is_running

    assert not service.engine.is_running
    assert fake_engine.browsers[0].closed


def test_disabled_api_refuses_to_start(service: ConversionService) -> None:
    with pytest.raises(RuntimeError):
        create_app(Settings(enable_local_api=False), service=service)
