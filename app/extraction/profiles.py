"""Per-document-type prompt and schema variants."""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any

from app.extraction.prompt_loader import load_json_schema, load_prompt_template


class DocumentType(str, Enum):
    AUTO = "auto"
    INVOICE = "invoice"
    RECEIPT = "receipt"


@dataclass(frozen=True)
class ExtractionProfile:
    """Prompt and response schema sent to the model for one document type."""

    document_type: DocumentType
    prompt: str
    json_schema: dict[str, Any]


# AUTO uses the generic prompt, which asks the model to classify first.
_RESOURCE_NAMES: dict[DocumentType, str] = {
    DocumentType.AUTO: "document",
    DocumentType.INVOICE: "invoice",
    DocumentType.RECEIPT: "receipt",
}


@lru_cache(maxsize=None)
def get_profile(document_type: DocumentType) -> ExtractionProfile:
    name = _RESOURCE_NAMES[document_type]
    prompt = load_prompt_template("base").rstrip() + "\n" + load_prompt_template(name)
    return ExtractionProfile(
        document_type=document_type,
        prompt=prompt,
        json_schema=load_json_schema(name),
    )
