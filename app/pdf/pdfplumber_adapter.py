import io

import pdfplumber
from pdfminer.pdfdocument import PDFEncryptionError, PDFPasswordIncorrect

from app.pdf.base import BasePdfInspector
from app.pdf.exceptions import PdfEncryptedError, PdfInspectionError
from app.pdf.models import PdfInfo

_PASSWORD_ERRORS = (PDFPasswordIncorrect, PDFEncryptionError)


def _is_password_error(exc: BaseException | None) -> bool:
    # pdfplumber wraps pdfminer errors, so look through args and the cause chain.
    while exc is not None:
        if isinstance(exc, _PASSWORD_ERRORS):
            return True
        if any(isinstance(arg, _PASSWORD_ERRORS) for arg in exc.args):
            return True
        exc = exc.__cause__ or exc.__context__
    return False


class PdfPlumberAdapter(BasePdfInspector):
    """Inspects PDF structure using pdfplumber."""

    def inspect(self, pdf_bytes: bytes) -> PdfInfo:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                if pdf.doc.encryption is not None:
                    raise PdfEncryptedError("PDF is encrypted")
                if not pdf.pages:
                    raise PdfInspectionError("PDF has no pages")
                first = pdf.pages[0]
                return PdfInfo(
                    page_count=len(pdf.pages),
                    width=float(first.width),
                    height=float(first.height),
                )
        except PdfInspectionError:
            raise
        except Exception as exc:
            if _is_password_error(exc):
                raise PdfEncryptedError("PDF is password protected") from exc
            raise PdfInspectionError(f"pdfplumber inspection failed: {exc}") from exc
