from app.extraction.models import LineItem, RawLineItem


def normalize_line_item(raw: RawLineItem) -> LineItem:
    """Derive consistent major-unit amounts for one extracted line item.

    The VAT amount comes from total - subtotal when both are positive,
    otherwise from subtotal x rate. A missing subtotal is backed out of the
    total so that total == subtotal + vat_amount always holds to the cent.
    """
    vat_rate = raw.tax_rate or 0.0
    total = raw.total_minor_units / 100 if raw.total_minor_units else 0.0
    if raw.subtotal_minor_units is None and total > 0:
        subtotal = round(total / (1 + vat_rate / 100), 2)
    else:
        subtotal = (raw.subtotal_minor_units or 0) / 100

    if total > 0 and subtotal > 0:
        vat_amount = round(total - subtotal, 2)
    else:
        vat_amount = round(subtotal * vat_rate / 100, 2)
    if total <= 0:
        total = subtotal + vat_amount

    quantity = raw.quantity or 1.0
    return LineItem(
        description=raw.description or "",
        quantity=quantity,
        unit_price=round(subtotal / max(quantity, 1), 2),
        subtotal=round(subtotal, 2),
        vat_rate=vat_rate,
        vat_amount=vat_amount,
        total=round(total, 2),
    )
