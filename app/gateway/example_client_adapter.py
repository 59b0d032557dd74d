"""Example document client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseDocumentClient and register the provider in DocumentClientFactory.
"""

import json
from typing import ClassVar

from app.gateway.client_base import BaseDocumentClient
from app.gateway.models import FileState, RawModelResponse, RemoteFileHandle


class ExampleClientAdapter(BaseDocumentClient):
    """Example adapter that "uploads" nothing and returns a fixed extraction.

    No network calls. Useful for local development, tests, and as a template
    for building real provider adapters.
    """

    DEFAULT_DOCUMENT: ClassVar[dict[str, object]] = {
        "document_type": "invoice",
        "document_number": "F-0001",
        "date": "2025-01-15",
        "currency": "EUR",
        "counterparty": {"name": "Example Supplies S.L.", "vat_number": "B12345678"},
        "total_amount": 12100,
        "subtotal": 10000,
        "tax_amount": 2100,
        "tax_breakdown": [{"tax_rate": 21, "tax_base": 10000, "tax_amount": 2100}],
        "line_items": [
            {
                "description": "Consulting",
                "quantity": 1,
                "subtotal": 10000,
                "tax_rate": 21,
                "total": 12100,
            }
        ],
    }

    def __init__(self, document: dict[str, object] | None = None) -> None:
        self._document = document if document is not None else self.DEFAULT_DOCUMENT
        self._uploads = 0

    def start_upload(
        self,
        *,
        size_bytes: int,
        mime_type: str,
        display_name: str,
        timeout: float,
    ) -> str:
        _ = size_bytes, display_name, timeout
        self._uploads += 1
        return f"example://upload/{self._uploads}?mime_type={mime_type}"

    def finish_upload(self, *, upload_url: str, content: bytes, timeout: float) -> RemoteFileHandle:
        _ = content, timeout
        number = upload_url.split("/")[-1].split("?")[0]
        mime_type = upload_url.split("mime_type=")[-1]
        return RemoteFileHandle(
            name=f"files/example-{number}",
            uri=f"example://files/example-{number}",
            mime_type=mime_type,
            state=FileState.ACTIVE,
        )

    def get_file(self, name: str, *, timeout: float) -> RemoteFileHandle:
        _ = timeout
        return RemoteFileHandle(
            name=name, uri=f"example://{name}", mime_type="", state=FileState.ACTIVE
        )

    def generate_content(
        self,
        *,
        file_uri: str,
        mime_type: str,
        prompt: str,
        json_schema: dict[str, object],
        timeout: float,
    ) -> RawModelResponse:
        _ = file_uri, mime_type, prompt, json_schema, timeout
        return {
            "candidates": [
                {
                    "content": {"parts": [{"text": json.dumps(self._document)}]},
                    "finishReason": "STOP",
                }
            ]
        }

    def delete_file(self, name: str, *, timeout: float) -> None:
        _ = name, timeout
