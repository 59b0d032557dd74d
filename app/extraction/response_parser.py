"""Turns a raw generateContent response into an ExtractedDocument."""

import json
import math
from typing import Any

from app.exceptions import ErrorCode, ResponseParseError
from app.extraction.json_repair import repair_json
from app.extraction.models import Counterparty, ExtractedDocument, RawLineItem, TaxBand
from app.gateway.models import RawModelResponse
from app.logging.logger import Log

_FILTERED_FINISH_REASONS = frozenset({"SAFETY", "RECITATION"})


class ResponseParser:
    """Classifies model responses and extracts the JSON document payload."""

    def parse(self, raw: RawModelResponse) -> ExtractedDocument:
        """Parse a raw model response.

        Raises:
            ResponseParseError: EMPTY_RESPONSE / CONTENT_FILTERED (terminal),
                RESPONSE_TRUNCATED / MALFORMED_JSON (retryable).
        """
        candidate = self._first_candidate(raw)
        self._check_finish_reason(candidate.get("finishReason"))
        text = self._text_payload(candidate)
        Log.debug(f"Model raw response:\n{text}")
        data = self._load_json(text)
        return build_document(data)

    @staticmethod
    def _first_candidate(raw: RawModelResponse) -> dict[str, Any]:
        candidates = raw.get("candidates") if isinstance(raw, dict) else None
        if not candidates or not isinstance(candidates[0], dict):
            raise ResponseParseError("No response from model", ErrorCode.EMPTY_RESPONSE)
        return candidates[0]

    @staticmethod
    def _check_finish_reason(finish_reason: object) -> None:
        if finish_reason in _FILTERED_FINISH_REASONS:
            raise ResponseParseError(
                f"Content filtered by the model ({finish_reason})",
                ErrorCode.CONTENT_FILTERED,
            )
        if finish_reason == "MAX_TOKENS":
            raise ResponseParseError(
                "Response truncated - try with smaller document",
                ErrorCode.RESPONSE_TRUNCATED,
                retryable=True,
            )

    @staticmethod
    def _text_payload(candidate: dict[str, Any]) -> str:
        content = candidate.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        texts = [
            part["text"]
            for part in parts or []
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        text = "".join(texts)
        if not text.strip():
            raise ResponseParseError("No content in response", ErrorCode.EMPTY_RESPONSE)
        return text

    @staticmethod
    def _load_json(text: str) -> dict[str, Any]:
        cleaned = _strip_code_fences(text)
        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            Log.warning(f"JSON parse error, attempting repair: {exc}")
            try:
                parsed = json.loads(repair_json(cleaned))
            except json.JSONDecodeError:
                raise ResponseParseError(
                    f"Failed to parse response as JSON: {exc}",
                    ErrorCode.MALFORMED_JSON,
                    retryable=True,
                ) from exc

        if not isinstance(parsed, dict):
            raise ResponseParseError(
                "JSON response must be an object", ErrorCode.MALFORMED_JSON, retryable=True
            )
        return parsed


def _strip_code_fences(raw: str) -> str:
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    return cleaned


def build_document(data: dict[str, Any]) -> ExtractedDocument:
    """Build an ExtractedDocument, turning wrong-typed fields into None."""
    return ExtractedDocument(
        document_type=_as_str(data.get("document_type")),
        document_number=_as_str(data.get("document_number")),
        date=_as_str(data.get("date")),
        currency=_as_str(data.get("currency")),
        counterparty=_build_counterparty(data.get("counterparty")),
        total_amount=_as_int(data.get("total_amount")),
        subtotal=_as_int(data.get("subtotal")),
        tax_amount=_as_int(data.get("tax_amount")),
        tax_bands=_build_tax_bands(data.get("tax_breakdown")),
        line_items=_build_line_items(data.get("line_items")),
    )


def _build_counterparty(raw: Any) -> Counterparty:
    if not isinstance(raw, dict):
        return Counterparty()
    tax_id = _as_str(raw.get("vat_number")) or _as_str(raw.get("tax_id"))
    return Counterparty(name=_as_str(raw.get("name")), tax_id=tax_id)


def _build_tax_bands(raw: Any) -> list[TaxBand]:
    if not isinstance(raw, list):
        return []
    bands: list[TaxBand] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        rate = _as_float(item.get("tax_rate"))
        if rate is None:
            continue
        bands.append(
            TaxBand(
                rate=rate,
                base_minor_units=_as_int(item.get("tax_base")),
                amount_minor_units=_as_int(item.get("tax_amount")),
            )
        )
    return bands


def _build_line_items(raw: Any) -> list[RawLineItem]:
    if not isinstance(raw, list):
        return []
    return [
        RawLineItem(
            description=_as_str(item.get("description")),
            quantity=_as_float(item.get("quantity")),
            subtotal_minor_units=_as_int(item.get("subtotal")),
            tax_rate=_as_float(item.get("tax_rate")),
            total_minor_units=_as_int(item.get("total")),
        )
        for item in raw
        if isinstance(item, dict)
    ]


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> int | None:
    number = _as_float(value)
    return None if number is None else int(round(number))
