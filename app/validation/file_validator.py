"""Checks uploaded files before anything is sent to the document service."""

from typing import ClassVar

from app.config.settings import Settings
from app.exceptions import ErrorCode, FileValidationError
from app.pdf.base import BasePdfInspector
from app.pdf.exceptions import PdfEncryptedError, PdfInspectionError
from app.pdf.factory import PdfInspectorFactory
from app.validation.image_inspector import ImageOpenError, read_image_size
from app.validation.models import FileMetadata, UploadedFile, ValidatedFile

PDF_MIME_TYPE = "application/pdf"


class FileValidator:
    """Validates format, size and structure of an uploaded document."""

    ALLOWED_MIME_TYPES: ClassVar[tuple[str, ...]] = (
        "image/jpeg",
        "image/png",
        "image/webp",
        PDF_MIME_TYPE,
    )

    def __init__(
        self,
        *,
        pdf_inspector: BasePdfInspector,
        max_size_bytes: int = 20 * 1024 * 1024,
        max_pdf_pages: int = 50,
        min_image_width: int = 800,
        min_image_height: int = 600,
        min_pdf_width: int = 500,
        min_pdf_height: int = 500,
    ) -> None:
        self._pdf_inspector = pdf_inspector
        self._max_size_bytes = max_size_bytes
        self._max_pdf_pages = max_pdf_pages
        self._min_image_width = min_image_width
        self._min_image_height = min_image_height
        self._min_pdf_width = min_pdf_width
        self._min_pdf_height = min_pdf_height

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileValidator":
        return cls(
            pdf_inspector=PdfInspectorFactory.create(settings),
            max_size_bytes=settings.max_file_size_bytes,
            max_pdf_pages=settings.max_pdf_pages,
            min_image_width=settings.min_image_width,
            min_image_height=settings.min_image_height,
            min_pdf_width=settings.min_pdf_width,
            min_pdf_height=settings.min_pdf_height,
        )

    def validate(self, file: UploadedFile) -> ValidatedFile:
        """Run format, size and type-specific checks, in that order.

        Raises:
            FileValidationError: with the code of the first failed check.
        """
        self._validate_format(file.mime_type)
        self._validate_size(file.size_bytes)
        if file.mime_type == PDF_MIME_TYPE:
            metadata = self._validate_pdf(file.content)
        else:
            metadata = self._validate_image(file.content)
        return ValidatedFile(mime_type=file.mime_type, metadata=metadata)

    def _validate_format(self, mime_type: str) -> None:
        if mime_type not in self.ALLOWED_MIME_TYPES:
            allowed = ", ".join(self.ALLOWED_MIME_TYPES)
            raise FileValidationError(
                f"Only {allowed} formats are accepted. Got: {mime_type}",
                ErrorCode.INVALID_FORMAT,
            )

    def _validate_size(self, size_bytes: int) -> None:
        if size_bytes > self._max_size_bytes:
            size_mb = size_bytes / 1024 / 1024
            max_mb = self._max_size_bytes / 1024 / 1024
            raise FileValidationError(
                f"File size limit exceeded ({max_mb:.0f} MB). File size: {size_mb:.2f} MB",
                ErrorCode.FILE_TOO_LARGE,
            )

    def _validate_pdf(self, content: bytes) -> FileMetadata:
        try:
            info = self._pdf_inspector.inspect(content)
        except PdfEncryptedError as exc:
            raise FileValidationError(
                "The file is encrypted and cannot be processed. "
                "Please upload an unprotected version.",
                ErrorCode.FILE_ENCRYPTED,
            ) from exc
        except PdfInspectionError as exc:
            raise FileValidationError(
                "The PDF file could not be read. "
                "Please make sure it's a valid, non-corrupted document.",
                ErrorCode.MALFORMED_FILE,
            ) from exc

        if info.page_count > self._max_pdf_pages:
            raise FileValidationError(
                f"This document has {info.page_count} pages. "
                f"The maximum allowed is {self._max_pdf_pages}.",
                ErrorCode.TOO_MANY_PAGES,
            )
        width, height = round(info.width), round(info.height)
        if info.width < self._min_pdf_width or info.height < self._min_pdf_height:
            raise FileValidationError(
                f"The PDF resolution is too low: {width}x{height}. "
                f"The minimum required is {self._min_pdf_width}x{self._min_pdf_height}.",
                ErrorCode.LOW_RESOLUTION,
            )
        return FileMetadata(width=width, height=height, page_count=info.page_count, format="pdf")

    def _validate_image(self, content: bytes) -> FileMetadata:
        try:
            width, height, image_format = read_image_size(content)
        except ImageOpenError as exc:
            raise FileValidationError(
                "The image file couldn't be opened. Please check the format and try again.",
                ErrorCode.CANNOT_OPEN_FILE,
            ) from exc

        if width < self._min_image_width or height < self._min_image_height:
            raise FileValidationError(
                f"The image resolution is too low: {width}x{height}. "
                f"The minimum required is {self._min_image_width}x{self._min_image_height}.",
                ErrorCode.LOW_RESOLUTION,
            )
        return FileMetadata(width=width, height=height, format=image_format)
