import pymupdf

from app.pdf.base import BasePdfInspector
from app.pdf.exceptions import PdfEncryptedError, PdfInspectionError
from app.pdf.models import PdfInfo


class PyMuPdfAdapter(BasePdfInspector):
    """Inspects PDF structure using PyMuPDF."""

    def inspect(self, pdf_bytes: bytes) -> PdfInfo:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                if doc.needs_pass or doc.is_encrypted or (doc.metadata or {}).get("encryption"):
                    raise PdfEncryptedError("PDF is encrypted")
                if doc.page_count == 0:
                    raise PdfInspectionError("PDF has no pages")
                rect = doc[0].rect
                return PdfInfo(page_count=doc.page_count, width=rect.width, height=rect.height)
        except PdfInspectionError:
            raise
        except Exception as exc:
            raise PdfInspectionError(f"pymupdf inspection failed: {exc}") from exc
