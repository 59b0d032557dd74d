from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from app.extraction.models import ExtractedDocument, LineItem, MappedVAT, VatPair
from app.extraction.tax_id import clean_tax_id


def _minor_to_major(value: int | None) -> float | None:
    return None if value is None else round(value / 100, 2)


@dataclass(frozen=True)
class ExpenseData:
    """Normalized expense record handed to persistence, amounts in major units."""

    document_type: str | None
    document_number: str | None
    date: str | None
    currency: str | None
    counterparty_name: str | None
    counterparty_tax_id: str | None
    total_amount: float | None
    subtotal: float | None
    tax_amount: float | None
    vat: MappedVAT
    line_items: list[LineItem] = field(default_factory=list)

    @classmethod
    def from_extraction(
        cls,
        document: ExtractedDocument,
        vat: MappedVAT,
        line_items: Sequence[LineItem],
    ) -> "ExpenseData":
        return cls(
            document_type=document.document_type,
            document_number=document.document_number,
            date=document.date,
            currency=document.currency.upper() if document.currency else None,
            counterparty_name=document.counterparty.name,
            counterparty_tax_id=clean_tax_id(document.counterparty.tax_id),
            total_amount=_minor_to_major(document.total_amount),
            subtotal=_minor_to_major(document.subtotal),
            tax_amount=_minor_to_major(document.tax_amount),
            vat=vat,
            line_items=list(line_items),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "documentType": self.document_type,
            "documentNumber": self.document_number,
            "date": self.date,
            "currency": self.currency,
            "counterparty": {"name": self.counterparty_name, "taxId": self.counterparty_tax_id},
            "totalAmount": self.total_amount,
            "subtotal": self.subtotal,
            "taxAmount": self.tax_amount,
        }
        for prefix, pair in (
            ("vat21", self.vat.vat21),
            ("vat10", self.vat.vat10),
            ("vat4", self.vat.vat4),
            ("vat0", self.vat.vat0),
        ):
            pair = pair or VatPair()
            payload[f"{prefix}Base"] = pair.base
            payload[f"{prefix}Amount"] = pair.amount
        payload["lineItems"] = [
            {
                "description": item.description,
                "quantity": item.quantity,
                "unitPrice": item.unit_price,
                "subtotal": item.subtotal,
                "vatRate": item.vat_rate,
                "vatAmount": item.vat_amount,
                "total": item.total,
            }
            for item in self.line_items
        ]
        return payload


@dataclass(frozen=True)
class ResultMetadata:
    model: str
    file_size_bytes: int
    mime_type: str
    width: int | None = None
    height: int | None = None
    page_count: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "fileSizeBytes": self.file_size_bytes,
            "mimeType": self.mime_type,
        }
        optional = {"width": self.width, "height": self.height, "pageCount": self.page_count}
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one extraction request, success or failure."""

    success: bool
    duration_ms: int
    metadata: ResultMetadata
    data: ExpenseData | None = None
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    error: str | None = None
    error_code: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Render the camelCase wire representation."""
        if not self.success:
            return {
                "success": False,
                "error": self.error,
                "errorCode": self.error_code,
                "durationMs": self.duration_ms,
                "metadata": self.metadata.to_payload(),
            }
        return {
            "success": True,
            "data": self.data.to_payload() if self.data is not None else None,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "durationMs": self.duration_ms,
            "metadata": self.metadata.to_payload(),
        }
