import re

# CIF / NIE (letter first) or DNI (eight digits and a control letter).
_SPANISH_TAX_ID = re.compile(r"^(?:[A-Z]\d{7,8}[A-Z0-9]?|\d{8}[A-Z])")
_SEPARATORS = re.compile(r"[\s.\-/]")


def clean_tax_id(value: str | None) -> str | None:
    """Normalize a Spanish NIF/CIF as printed on a document.

    Separators and an ``ES`` intra-community prefix are removed and trailing
    noise after the identifier is dropped. Values that do not look like a
    Spanish identifier are returned stripped but otherwise unchanged.
    """
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None
    compact = _SEPARATORS.sub("", raw).upper()
    if compact.startswith("ES") and _SPANISH_TAX_ID.match(compact[2:]):
        compact = compact[2:]
    match = _SPANISH_TAX_ID.match(compact)
    return match.group(0) if match else raw
