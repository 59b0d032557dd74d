"""Cross-checks on extracted figures; mismatches are reported, not rejected."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from app.exceptions import ErrorCode
from app.extraction.currencies import ISO_4217_CODES
from app.extraction.models import ExtractedDocument, LineItem, MappedVAT
from app.extraction.vat_mapper import VatBucket, bucket_for_rate

_CENT = 0.01


class WarningCode(str, Enum):
    VAT_TOTAL_MISMATCH = "VAT_TOTAL_MISMATCH"
    LINE_ITEMS_SUM_MISMATCH = "LINE_ITEMS_SUM_MISMATCH"
    INVALID_DATE = "INVALID_DATE"
    UNKNOWN_CURRENCY = "UNKNOWN_CURRENCY"
    UNMAPPED_TAX_RATE = "UNMAPPED_TAX_RATE"
    DUPLICATE_TAX_RATE = "DUPLICATE_TAX_RATE"
    NEGATIVE_TOTAL = "NEGATIVE_TOTAL"


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    warnings: list[ValidationIssue] = field(default_factory=list)
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_blocking(self) -> bool:
        return bool(self.errors)


def _exceeds(difference: float, tolerance: float) -> bool:
    return round(abs(difference), 2) > round(tolerance, 2)


class BusinessValidator:
    """Checks totals, VAT sums, line item sums, date and currency."""

    def validate(
        self,
        document: ExtractedDocument,
        vat: MappedVAT,
        line_items: Sequence[LineItem],
    ) -> ValidationReport:
        warnings: list[ValidationIssue] = []
        errors: list[ValidationIssue] = []

        if document.total_amount is None:
            errors.append(
                ValidationIssue(ErrorCode.MISSING_TOTAL_AMOUNT.value, "Missing total amount")
            )
        else:
            total = document.total_amount / 100
            if total < 0:
                warnings.append(
                    ValidationIssue(
                        WarningCode.NEGATIVE_TOTAL.value, f"Total amount is negative: {total:.2f}"
                    )
                )
            warnings.extend(self._check_vat_total(document, vat, total))
            warnings.extend(self._check_line_items(line_items, total))

        warnings.extend(self._check_date(document.date))
        warnings.extend(self._check_currency(document.currency))
        warnings.extend(self._check_tax_bands(document))
        return ValidationReport(warnings=warnings, errors=errors)

    @staticmethod
    def _check_vat_total(
        document: ExtractedDocument, vat: MappedVAT, total: float
    ) -> list[ValidationIssue]:
        amounts = [pair.amount for pair in vat.buckets() if pair.amount is not None]
        if document.subtotal is None or not amounts:
            return []
        subtotal = document.subtotal / 100
        calculated = subtotal + sum(amounts)
        if not _exceeds(calculated - total, _CENT):
            return []
        return [
            ValidationIssue(
                WarningCode.VAT_TOTAL_MISMATCH.value,
                f"Subtotal {subtotal:.2f} + VAT {sum(amounts):.2f} = {calculated:.2f}, "
                f"but total is {total:.2f}",
            )
        ]

    @staticmethod
    def _check_line_items(line_items: Sequence[LineItem], total: float) -> list[ValidationIssue]:
        if not line_items:
            return []
        items_total = sum(item.total for item in line_items)
        if not _exceeds(items_total - total, _CENT * len(line_items)):
            return []
        return [
            ValidationIssue(
                WarningCode.LINE_ITEMS_SUM_MISMATCH.value,
                f"Line items sum ({items_total:.2f}) doesn't match total ({total:.2f})",
            )
        ]

    @staticmethod
    def _check_date(value: str | None) -> list[ValidationIssue]:
        if value is None or _is_iso_date(value):
            return []
        return [ValidationIssue(WarningCode.INVALID_DATE.value, f"Invalid date format: {value}")]

    @staticmethod
    def _check_currency(value: str | None) -> list[ValidationIssue]:
        if value is None or value.upper() in ISO_4217_CODES:
            return []
        return [
            ValidationIssue(WarningCode.UNKNOWN_CURRENCY.value, f"Unknown currency code: {value}")
        ]

    @staticmethod
    def _check_tax_bands(document: ExtractedDocument) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        seen: set[VatBucket] = set()
        for band in document.tax_bands:
            bucket = bucket_for_rate(band.rate)
            if bucket is None:
                issues.append(
                    ValidationIssue(
                        WarningCode.UNMAPPED_TAX_RATE.value,
                        f"Tax rate {band.rate:g}% matches no supported VAT rate and was ignored",
                    )
                )
            elif bucket in seen:
                issues.append(
                    ValidationIssue(
                        WarningCode.DUPLICATE_TAX_RATE.value,
                        f"Several tax bands map to {bucket.value}; only the last one was kept",
                    )
                )
            else:
                seen.add(bucket)
        return issues


def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
        return True
    except ValueError:
        pass
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
        return True
    except ValueError:
        return False
