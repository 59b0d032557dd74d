from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from app.extraction.business_validator import ValidationReport
from app.extraction.models import ExtractedDocument, LineItem, MappedVAT
from app.extraction.profiles import DocumentType
from app.gateway.models import RemoteFileHandle
from app.resilience.deadline import Deadline
from app.validation.models import UploadedFile, ValidatedFile


@dataclass(slots=True)
class PipelineContext:
    file: UploadedFile
    deadline: Deadline
    document_type: DocumentType = DocumentType.AUTO
    validated: ValidatedFile | None = None
    remote_file: RemoteFileHandle | None = None
    document: ExtractedDocument | None = None
    vat: MappedVAT | None = None
    line_items: list[LineItem] = field(default_factory=list)
    report: ValidationReport | None = None


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
