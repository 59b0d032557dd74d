class PdfInspectionError(Exception):
    """Raised when a PDF's structure cannot be read."""


class PdfEncryptedError(PdfInspectionError):
    """Raised when a PDF is encrypted or password protected."""
