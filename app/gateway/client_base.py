from abc import ABC, abstractmethod

from app.gateway.models import RawModelResponse, RemoteFileHandle


class BaseDocumentClient(ABC):
    """Contract for provider-specific document-understanding clients.

    Implementations raise GatewayError with the mapped ErrorCode on any
    non-success response or transport failure.
    """

    @abstractmethod
    def start_upload(
        self,
        *,
        size_bytes: int,
        mime_type: str,
        display_name: str,
        timeout: float,
    ) -> str:
        """Open a resumable upload session and return its upload URL."""

    @abstractmethod
    def finish_upload(self, *, upload_url: str, content: bytes, timeout: float) -> RemoteFileHandle:
        """Send the full payload to an upload session and finalize it."""

    @abstractmethod
    def get_file(self, name: str, *, timeout: float) -> RemoteFileHandle:
        """Fetch the current processing state of an uploaded file."""

    @abstractmethod
    def generate_content(
        self,
        *,
        file_uri: str,
        mime_type: str,
        prompt: str,
        json_schema: dict[str, object],
        timeout: float,
    ) -> RawModelResponse:
        """Run a schema-constrained generation over an uploaded file."""

    @abstractmethod
    def delete_file(self, name: str, *, timeout: float) -> None:
        """Delete an uploaded file."""

    def close(self) -> None:
        """Release transport resources; the default client holds none."""
