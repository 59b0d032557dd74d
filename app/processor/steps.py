from collections.abc import Callable

from app.exceptions import ErrorCode, ExtractionError, GatewayError
from app.extraction.business_validator import BusinessValidator
from app.extraction.line_items import normalize_line_item
from app.extraction.models import ExtractedDocument
from app.extraction.profiles import ExtractionProfile, get_profile
from app.extraction.response_parser import ResponseParser
from app.extraction.vat_mapper import map_vat_breakdown
from app.gateway.gateway import DocumentGateway
from app.logging.logger import Log
from app.processor.pipeline import PipelineContext, PipelineStep
from app.resilience.retry import with_retry
from app.validation.file_validator import FileValidator


class ValidateFileStep(PipelineStep):
    def __init__(self, validator: FileValidator) -> None:
        self._validator = validator

    def run(self, context: PipelineContext) -> PipelineContext:
        context.validated = self._validator.validate(context.file)
        Log.info(
            f"Validated {context.file.original_name or 'document'} "
            f"({context.validated.mime_type}, {context.file.size_bytes} bytes)"
        )
        return context


class ExtractDocumentStep(PipelineStep):
    """Upload, wait for the remote file, generate and parse, retried as one unit.

    A truncated or malformed response triggers a fresh generation. An expired
    remote file is released and uploaded again on the next attempt.
    """

    def __init__(
        self,
        gateway: DocumentGateway,
        parser: ResponseParser,
        *,
        max_retries: int = 3,
        base_delay_seconds: float = 1.0,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._gateway = gateway
        self._parser = parser
        self._max_retries = max_retries
        self._base_delay_seconds = base_delay_seconds
        self._sleep = sleep

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.validated is None:
            raise ValueError("PipelineContext.validated must be set before extraction")
        mime_type = context.validated.mime_type
        profile = get_profile(context.document_type)
        context.document = with_retry(
            lambda: self._attempt(context, profile, mime_type),
            max_retries=self._max_retries,
            base_delay_seconds=self._base_delay_seconds,
            sleep=self._sleep or context.deadline.sleep,
        )
        Log.info(
            f"Extracted {context.document.document_type or 'unknown'} document with "
            f"{len(context.document.line_items)} line item(s)"
        )
        return context

    def _attempt(
        self, context: PipelineContext, profile: ExtractionProfile, mime_type: str
    ) -> ExtractedDocument:
        context.deadline.check()
        if context.remote_file is None:
            context.remote_file = self._gateway.upload(
                context.file.content,
                mime_type,
                context.file.original_name or f"{profile.document_type.value}-document",
                context.deadline,
            )
        try:
            context.remote_file = self._gateway.await_active(context.remote_file, context.deadline)
            raw = self._gateway.extract(context.remote_file, profile, context.deadline)
        except GatewayError as exc:
            if exc.code is ErrorCode.HANDLE_EXPIRED:
                Log.warning(f"Remote file {context.remote_file.name} expired, uploading again")
                self._gateway.release(context.remote_file)
                context.remote_file = None
            raise
        Log.debug(f"Raw model response: {raw}")
        return self._parser.parse(raw)


class MapVatStep(PipelineStep):
    def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None:
            raise ValueError("PipelineContext.document must be set before VAT mapping")
        context.vat = map_vat_breakdown(context.document.tax_bands)
        return context


class NormalizeLineItemsStep(PipelineStep):
    def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None:
            raise ValueError("PipelineContext.document must be set before line item normalization")
        context.line_items = [normalize_line_item(raw) for raw in context.document.line_items]
        return context


class BusinessValidationStep(PipelineStep):
    def __init__(self, validator: BusinessValidator) -> None:
        self._validator = validator

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None or context.vat is None:
            raise ValueError("PipelineContext.document and vat must be set before validation")
        report = self._validator.validate(context.document, context.vat, context.line_items)
        context.report = report
        for warning in report.warnings:
            Log.warning(f"Validation warning: {warning}")
        if report.is_blocking:
            first = report.errors[0]
            raise ExtractionError(first.message, ErrorCode(first.code))
        return context
