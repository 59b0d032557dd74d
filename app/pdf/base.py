from abc import ABC, abstractmethod

from app.pdf.models import PdfInfo


class BasePdfInspector(ABC):
    """Contract for all PDF structure inspection adapters."""

    @abstractmethod
    def inspect(self, pdf_bytes: bytes) -> PdfInfo:
        """Read page count and first-page size from PDF bytes.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            PdfInfo for the document.

        Raises:
            PdfEncryptedError: if the document is encrypted.
            PdfInspectionError: if the structure cannot be read or has no pages.
        """
