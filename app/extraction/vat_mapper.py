"""Reconciles an extracted VAT table into the four Spanish VAT buckets."""

from collections.abc import Sequence
from enum import Enum

from app.extraction.models import MappedVAT, TaxBand, VatPair
from app.logging.logger import Log


class VatBucket(str, Enum):
    VAT21 = "vat21"
    VAT10 = "vat10"
    VAT4 = "vat4"
    VAT0 = "vat0"


def bucket_for_rate(rate: float) -> VatBucket | None:
    """Match a rate against the inclusive canonical ranges; None when outside all."""
    if 20 <= rate <= 22:
        return VatBucket.VAT21
    if 9 <= rate <= 11:
        return VatBucket.VAT10
    if 4 <= rate <= 5:
        return VatBucket.VAT4
    if rate == 0:
        return VatBucket.VAT0
    return None


def _to_major(minor_units: int | None) -> float | None:
    if minor_units is None:
        return None
    return round(minor_units / 100, 2)


def map_vat_breakdown(bands: Sequence[TaxBand] | None) -> MappedVAT:
    """Map tax bands to buckets.

    Bands outside every range are dropped. When several bands land in the
    same bucket the last one wins. The 0% amount is always 0.
    """
    pairs: dict[VatBucket, VatPair] = {}
    for band in bands or ():
        bucket = bucket_for_rate(band.rate)
        if bucket is None:
            Log.warning(f"Dropping tax band with unsupported rate {band.rate}%")
            continue
        amount = 0.0 if bucket is VatBucket.VAT0 else _to_major(band.amount_minor_units)
        pairs[bucket] = VatPair(base=_to_major(band.base_minor_units), amount=amount)
    return MappedVAT(
        vat21=pairs.get(VatBucket.VAT21),
        vat10=pairs.get(VatBucket.VAT10),
        vat4=pairs.get(VatBucket.VAT4),
        vat0=pairs.get(VatBucket.VAT0),
    )
