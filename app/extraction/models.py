from dataclasses import dataclass, field


@dataclass(frozen=True)
class TaxBand:
    """One row of a document's VAT table, amounts in minor units."""

    rate: float
    base_minor_units: int | None = None
    amount_minor_units: int | None = None


@dataclass(frozen=True)
class RawLineItem:
    """A line item as returned by the model, amounts in minor units."""

    description: str | None = None
    quantity: float | None = None
    subtotal_minor_units: int | None = None
    tax_rate: float | None = None
    total_minor_units: int | None = None


@dataclass(frozen=True)
class Counterparty:
    name: str | None = None
    tax_id: str | None = None


@dataclass(frozen=True)
class ExtractedDocument:
    """Structured data parsed from the model response (minor units)."""

    document_type: str | None = None
    document_number: str | None = None
    date: str | None = None
    currency: str | None = None
    counterparty: Counterparty = field(default_factory=Counterparty)
    total_amount: int | None = None
    subtotal: int | None = None
    tax_amount: int | None = None
    tax_bands: list[TaxBand] = field(default_factory=list)
    line_items: list[RawLineItem] = field(default_factory=list)


@dataclass(frozen=True)
class VatPair:
    base: float | None = None
    amount: float | None = None


@dataclass(frozen=True)
class MappedVAT:
    """VAT breakdown reconciled into the four canonical Spanish rates.

    A bucket is None when no band mapped to it, which is distinct from a
    bucket holding explicit zeros.
    """

    vat21: VatPair | None = None
    vat10: VatPair | None = None
    vat4: VatPair | None = None
    vat0: VatPair | None = None

    def buckets(self) -> list[VatPair]:
        return [pair for pair in (self.vat21, self.vat10, self.vat4, self.vat0) if pair is not None]


@dataclass(frozen=True)
class LineItem:
    """A normalized line item, monetary fields in major units."""

    description: str
    quantity: float
    unit_price: float
    subtotal: float
    vat_rate: float
    vat_amount: float
    total: float
