import time
from collections.abc import Sequence

from app.config.settings import Settings
from app.exceptions import ErrorCode, ExtractionError
from app.extraction.business_validator import BusinessValidator
from app.extraction.profiles import DocumentType
from app.extraction.response_parser import ResponseParser
from app.gateway.factory import DocumentClientFactory
from app.gateway.gateway import DocumentGateway
from app.logging.logger import Log
from app.processor.models import ExpenseData, ExtractionResult, ResultMetadata
from app.processor.pipeline import PipelineContext, PipelineStep
from app.processor.steps import (
    BusinessValidationStep,
    ExtractDocumentStep,
    MapVatStep,
    NormalizeLineItemsStep,
    ValidateFileStep,
)
from app.resilience.circuit_breaker import CircuitBreaker, build_circuit_breaker
from app.resilience.deadline import Deadline
from app.validation.file_validator import FileValidator
from app.validation.models import UploadedFile


class Processor:
    """Orchestrates the extraction pipeline for one uploaded document.

    Pipeline: validate -> upload/extract/parse -> map VAT -> normalize line
    items -> business validation. All per-request state lives in a fresh
    PipelineContext, so one instance may serve concurrent callers.
    """

    def __init__(
        self,
        *,
        steps: Sequence[PipelineStep],
        gateway: DocumentGateway,
        model: str,
        default_timeout_seconds: float | None = None,
    ) -> None:
        self._steps = list(steps)
        self._gateway = gateway
        self._model = model
        self._default_timeout_seconds = default_timeout_seconds

    def process(
        self,
        file: UploadedFile,
        document_type: DocumentType = DocumentType.AUTO,
        deadline: Deadline | None = None,
    ) -> ExtractionResult:
        """Run the pipeline; failures are returned as results, never raised."""
        started = time.monotonic()
        context = PipelineContext(
            file=file,
            deadline=deadline or Deadline(self._default_timeout_seconds),
            document_type=document_type,
        )
        Log.info(
            f"Processing {document_type.value} document {file.original_name or '<unnamed>'} "
            f"({file.mime_type}, {file.size_bytes} bytes)"
        )
        try:
            for step in self._steps:
                step.run(context)
        except ExtractionError as exc:
            return self._failure(context, started, str(exc), exc.code)
        except Exception as exc:
            Log.exception(f"Unexpected error while processing document: {exc}")
            return self._failure(context, started, "Internal error", ErrorCode.INTERNAL_ERROR)
        finally:
            if context.remote_file is not None:
                self._gateway.release(context.remote_file)
        return self._success(context, started)

    def close(self) -> None:
        self._gateway.close()

    def _success(self, context: PipelineContext, started: float) -> ExtractionResult:
        if context.document is None or context.vat is None:
            raise ValueError("PipelineContext is incomplete after the pipeline finished")
        report = context.report
        duration_ms = _elapsed_ms(started)
        Log.info(f"Extraction completed in {duration_ms}ms")
        return ExtractionResult(
            success=True,
            duration_ms=duration_ms,
            metadata=self._metadata(context),
            data=ExpenseData.from_extraction(context.document, context.vat, context.line_items),
            warnings=[str(issue) for issue in report.warnings] if report else [],
            errors=[str(issue) for issue in report.errors] if report else [],
        )

    def _failure(
        self,
        context: PipelineContext,
        started: float,
        message: str,
        code: ErrorCode,
    ) -> ExtractionResult:
        if code is ErrorCode.AUTH_ERROR:
            Log.error(f"Document service rejected our credentials: {message}")
        else:
            Log.error(f"Extraction failed ({code.value}): {message}")
        return ExtractionResult(
            success=False,
            duration_ms=_elapsed_ms(started),
            metadata=self._metadata(context),
            error=message,
            error_code=code.value,
        )

    def _metadata(self, context: PipelineContext) -> ResultMetadata:
        validated = context.validated
        return ResultMetadata(
            model=self._model,
            file_size_bytes=context.file.size_bytes,
            mime_type=validated.mime_type if validated else context.file.mime_type,
            width=validated.metadata.width if validated else None,
            height=validated.metadata.height if validated else None,
            page_count=validated.metadata.page_count if validated else None,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def build_processor(
    settings: Settings,
    breaker: CircuitBreaker | None = None,
) -> Processor:
    """Build a Processor with all required adapters.

    Pass a shared breaker when several processors talk to the same service.
    """
    validator = FileValidator.from_settings(settings)
    gateway = DocumentGateway.from_settings(
        settings,
        client=DocumentClientFactory.create(settings),
        breaker=breaker or build_circuit_breaker(settings),
    )
    steps: list[PipelineStep] = [
        ValidateFileStep(validator),
        ExtractDocumentStep(
            gateway,
            ResponseParser(),
            max_retries=settings.max_retries,
            base_delay_seconds=settings.retry_base_delay_ms / 1000,
        ),
        MapVatStep(),
        NormalizeLineItemsStep(),
        BusinessValidationStep(BusinessValidator()),
    ]
    return Processor(
        steps=steps,
        gateway=gateway,
        model=settings.gemini_model,
        default_timeout_seconds=settings.request_timeout_seconds,
    )
