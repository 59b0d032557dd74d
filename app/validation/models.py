from dataclasses import dataclass


@dataclass(frozen=True)
class UploadedFile:
    """A user-submitted document, created per request."""

    content: bytes
    mime_type: str
    original_name: str = ""

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class FileMetadata:
    """Facts gathered while validating a file."""

    width: int | None = None
    height: int | None = None
    page_count: int | None = None
    format: str | None = None


@dataclass(frozen=True)
class ValidatedFile:
    mime_type: str
    metadata: FileMetadata
