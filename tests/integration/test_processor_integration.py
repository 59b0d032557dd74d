"""End-to-end tests for the extraction pipeline.

Runs the real validator, gateway, parser and mappers against the offline
example provider, or the Gemini adapter over a mocked HTTP transport.
"""

import json
from collections.abc import Callable

import httpx
import pytest

from app.config.settings import Settings
from app.extraction.business_validator import BusinessValidator
from app.extraction.profiles import DocumentType
from app.extraction.response_parser import ResponseParser
from app.gateway.gateway import DocumentGateway
from app.gateway.gemini_client_adapter import GeminiClientAdapter
from app.processor.processor import Processor, build_processor
from app.processor.steps import (
    BusinessValidationStep,
    ExtractDocumentStep,
    MapVatStep,
    NormalizeLineItemsStep,
    ValidateFileStep,
)
from app.resilience.circuit_breaker import CircuitBreaker, CircuitState
from app.validation.file_validator import FileValidator
from app.validation.models import UploadedFile

BASE_URL = "https://gemini.test"


def _gemini_processor(
    settings: Settings,
    handler: Callable[[httpx.Request], httpx.Response],
    breaker: CircuitBreaker,
) -> Processor:
    client = GeminiClientAdapter(
        api_key="test-key",
        base_url=BASE_URL,
        model=settings.gemini_model,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    gateway = DocumentGateway(
        client=client, breaker=breaker, poll_interval_seconds=0, poll_max_attempts=3
    )
    steps = [
        ValidateFileStep(FileValidator.from_settings(settings)),
        ExtractDocumentStep(
            gateway,
            ResponseParser(),
            max_retries=2,
            base_delay_seconds=0,
            sleep=lambda seconds: None,
        ),
        MapVatStep(),
        NormalizeLineItemsStep(),
        BusinessValidationStep(BusinessValidator()),
    ]
    return Processor(steps=steps, gateway=gateway, model=settings.gemini_model)


class FakeGemini:
    """Minimal stand-in for the Files API and generateContent endpoints."""

    def __init__(
        self, document: dict[str, object], generate_statuses: list[int] | None = None
    ) -> None:
        self.document = document
        self.generate_statuses = list(generate_statuses or [])
        self.requests: list[tuple[str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        path = request.url.path
        if path == "/upload/v1beta/files":
            return httpx.Response(200, headers={"x-goog-upload-url": f"{BASE_URL}/session/1"})
        if path == "/session/1":
            file_data = {
                "name": "files/abc",
                "uri": f"{BASE_URL}/v1beta/files/abc",
                "state": "PROCESSING",
            }
            return httpx.Response(200, json={"file": file_data})
        if path == "/v1beta/files/abc" and request.method == "GET":
            return httpx.Response(200, json={"name": "files/abc", "uri": "u", "state": "ACTIVE"})
        if path == "/v1beta/files/abc" and request.method == "DELETE":
            return httpx.Response(200, json={})
        if path.endswith(":generateContent"):
            if self.generate_statuses:
                status = self.generate_statuses.pop(0)
                return httpx.Response(status, json={"error": {"message": "unavailable"}})
            candidate = {
                "content": {"parts": [{"text": json.dumps(self.document)}]},
                "finishReason": "STOP",
            }
            return httpx.Response(200, json={"candidates": [candidate]})
        return httpx.Response(404)


@pytest.mark.integration
class TestExampleProviderPipeline:
    def test_extracts_example_document_from_pdf(
        self, example_settings: Settings, sample_pdf_bytes: bytes
    ) -> None:
        processor = build_processor(example_settings)
        file = UploadedFile(
            content=sample_pdf_bytes, mime_type="application/pdf", original_name="f.pdf"
        )

        result = processor.process(file, DocumentType.INVOICE)

        assert result.success is True
        payload = result.to_payload()
        data = payload["data"]
        assert data["totalAmount"] == 121.0
        assert data["subtotal"] == 100.0
        assert data["vat21Base"] == 100.0
        assert data["vat21Amount"] == 21.0
        assert data["vat10Base"] is None
        assert data["counterparty"] == {"name": "Example Supplies S.L.", "taxId": "B12345678"}
        assert data["lineItems"][0]["total"] == 121.0
        assert payload["warnings"] == []
        assert payload["metadata"]["pageCount"] == 1
        assert payload["metadata"]["mimeType"] == "application/pdf"

    def test_extracts_from_image(self, example_settings: Settings, jpeg_bytes: bytes) -> None:
        processor = build_processor(example_settings)
        result = processor.process(UploadedFile(content=jpeg_bytes, mime_type="image/jpeg"))

        assert result.success is True
        assert result.metadata.width == 1200

    def test_low_resolution_pdf_is_rejected(
        self, example_settings: Settings, small_page_pdf_bytes: bytes
    ) -> None:
        processor = build_processor(example_settings)
        file = UploadedFile(content=small_page_pdf_bytes, mime_type="application/pdf")

        result = processor.process(file)

        assert result.to_payload()["errorCode"] == "LOW_RESOLUTION"
        assert result.success is False

    def test_encrypted_pdf_is_rejected(
        self, example_settings: Settings, encrypted_pdf_bytes: bytes
    ) -> None:
        processor = build_processor(example_settings)
        file = UploadedFile(content=encrypted_pdf_bytes, mime_type="application/pdf")

        result = processor.process(file)

        assert result.error_code == "FILE_ENCRYPTED"


@pytest.mark.integration
class TestGeminiAdapterPipeline:
    def test_full_remote_file_lifecycle(self, example_settings: Settings, png_bytes: bytes) -> None:
        fake = FakeGemini(
            {
                "total_amount": 1000,
                "subtotal": 1000,
                "tax_breakdown": [{"tax_rate": 0, "tax_base": 1000}],
            }
        )
        processor = _gemini_processor(example_settings, fake, CircuitBreaker())

        file = UploadedFile(content=png_bytes, mime_type="image/png", original_name="r.png")

        result = processor.process(file)
        payload = result.to_payload()

        assert payload["success"] is True
        assert payload["data"]["vat0Base"] == 10.0
        assert payload["data"]["vat0Amount"] == 0.0
        methods = [method for method, _ in fake.requests]
        assert methods[:4] == ["POST", "POST", "GET", "POST"]

    def test_low_resolution_image_makes_no_http_calls(
        self, example_settings: Settings, small_png_bytes: bytes
    ) -> None:
        fake = FakeGemini({})
        processor = _gemini_processor(example_settings, fake, CircuitBreaker())

        result = processor.process(UploadedFile(content=small_png_bytes, mime_type="image/png"))

        assert result.error_code == "LOW_RESOLUTION"
        assert fake.requests == []

    def test_server_errors_are_retried(self, example_settings: Settings, png_bytes: bytes) -> None:
        fake = FakeGemini({"total_amount": 500}, generate_statuses=[503, 500])
        processor = _gemini_processor(example_settings, fake, CircuitBreaker())

        result = processor.process(UploadedFile(content=png_bytes, mime_type="image/png"))

        assert result.success is True
        assert sum(1 for _, path in fake.requests if path.endswith(":generateContent")) == 3

    def test_outage_opens_the_shared_circuit(
        self, example_settings: Settings, png_bytes: bytes
    ) -> None:
        breaker = CircuitBreaker(threshold=3, cooldown_seconds=60)
        fake = FakeGemini({"total_amount": 500}, generate_statuses=[503] * 10)
        processor = _gemini_processor(example_settings, fake, breaker)
        file = UploadedFile(content=png_bytes, mime_type="image/png")

        first = processor.process(file)
        second = processor.process(file)

        assert first.error_code == "SERVICE_ERROR"
        assert breaker.state is CircuitState.OPEN
        assert second.error_code == "CIRCUIT_OPEN"
