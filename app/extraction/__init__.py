from app.extraction.business_validator import BusinessValidator, ValidationIssue, ValidationReport
from app.extraction.line_items import normalize_line_item
from app.extraction.profiles import DocumentType, ExtractionProfile, get_profile
from app.extraction.response_parser import ResponseParser
from app.extraction.vat_mapper import bucket_for_rate, map_vat_breakdown

__all__ = [
    "BusinessValidator",
    "DocumentType",
    "ExtractionProfile",
    "ResponseParser",
    "ValidationIssue",
    "ValidationReport",
    "bucket_for_rate",
    "get_profile",
    "map_vat_breakdown",
    "normalize_line_item",
]
