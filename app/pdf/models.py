from dataclasses import dataclass


@dataclass(frozen=True)
class PdfInfo:
    """Structural facts about a PDF needed by the file validator.

    Dimensions are those of the first page, in PDF points.
    """

    page_count: int
    width: float
    height: float
