"""Remote file lifecycle and extraction requests against the document service."""

import threading
from collections.abc import Callable
from dataclasses import replace
from typing import TypeVar

from app.config.settings import Settings
from app.exceptions import ErrorCode, GatewayError
from app.extraction.profiles import ExtractionProfile
from app.gateway.client_base import BaseDocumentClient
from app.gateway.models import FileState, RawModelResponse, RemoteFileHandle
from app.logging.logger import Log
from app.resilience.circuit_breaker import CircuitBreaker
from app.resilience.deadline import Deadline

T = TypeVar("T")

_DELETE_TIMEOUT_SECONDS = 10.0


class DocumentGateway:
    """Uploads files, waits for them to become active and requests extractions.

    Every network call goes through the shared circuit breaker and has its
    timeout capped by the request deadline. The caller stops waiting as soon
    as the deadline passes or is cancelled, even mid-response.
    """

    def __init__(
        self,
        *,
        client: BaseDocumentClient,
        breaker: CircuitBreaker,
        timeout_seconds: float = 60.0,
        poll_interval_seconds: float = 2.0,
        poll_max_attempts: int = 10,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._client = client
        self._breaker = breaker
        self._timeout_seconds = timeout_seconds
        self._poll_interval_seconds = poll_interval_seconds
        self._poll_max_attempts = poll_max_attempts
        self._sleep = sleep
        self._releases: list[threading.Thread] = []
        self._releases_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        client: BaseDocumentClient,
        breaker: CircuitBreaker,
    ) -> "DocumentGateway":
        return cls(
            client=client,
            breaker=breaker,
            timeout_seconds=settings.gemini_timeout_seconds,
            poll_interval_seconds=settings.poll_interval_seconds,
            poll_max_attempts=settings.poll_max_attempts,
        )

    def upload(
        self,
        content: bytes,
        mime_type: str,
        display_name: str,
        deadline: Deadline,
    ) -> RemoteFileHandle:
        """Two-phase resumable upload: open a session, then send and finalize."""
        upload_url = self._call(
            deadline,
            lambda timeout: self._client.start_upload(
                size_bytes=len(content),
                mime_type=mime_type,
                display_name=display_name,
                timeout=timeout,
            ),
        )
        handle = self._call(
            deadline,
            lambda timeout: self._client.finish_upload(
                upload_url=upload_url, content=content, timeout=timeout
            ),
        )
        if not handle.mime_type:
            handle = replace(handle, mime_type=mime_type)
        Log.info(f"Uploaded {len(content)} bytes as {handle.name} ({handle.state.value})")
        return handle

    def await_active(self, handle: RemoteFileHandle, deadline: Deadline) -> RemoteFileHandle:
        """Poll the file status until the service has finished processing it."""
        if handle.state is FileState.ACTIVE:
            return handle
        sleep = self._sleep or deadline.sleep
        for attempt in range(1, self._poll_max_attempts + 1):
            current = self._call(
                deadline, lambda timeout: self._client.get_file(handle.name, timeout=timeout)
            )
            if current.state is FileState.ACTIVE:
                Log.info(f"File {handle.name} active after {attempt} status check(s)")
                return handle.with_state(FileState.ACTIVE)
            if current.state is FileState.FAILED:
                raise GatewayError(
                    f"File processing failed for {handle.name}",
                    ErrorCode.REMOTE_PROCESSING_FAILED,
                )
            Log.debug(f"File {handle.name} still processing (check {attempt})")
            if attempt < self._poll_max_attempts:
                deadline.check()
                sleep(self._poll_interval_seconds)
        raise GatewayError(
            f"File processing timeout for {handle.name}",
            ErrorCode.REMOTE_PROCESSING_TIMEOUT,
            retryable=True,
        )

    def extract(
        self,
        handle: RemoteFileHandle,
        profile: ExtractionProfile,
        deadline: Deadline,
    ) -> RawModelResponse:
        Log.debug(f"Extraction prompt ({profile.document_type.value}):\n{profile.prompt}")
        return self._call(
            deadline,
            lambda timeout: self._client.generate_content(
                file_uri=handle.uri,
                mime_type=handle.mime_type,
                prompt=profile.prompt,
                json_schema=profile.json_schema,
                timeout=timeout,
            ),
        )

    def release(self, handle: RemoteFileHandle) -> threading.Thread:
        """Delete the remote file in the background; failures are only logged."""
        thread = threading.Thread(
            target=self._delete_quietly,
            args=(handle,),
            name=f"release-{handle.name}",
            daemon=True,
        )
        with self._releases_lock:
            self._releases = [t for t in self._releases if t.is_alive()]
            self._releases.append(thread)
            thread.start()
        return thread

    def close(self) -> None:
        """Let pending deletions finish, then close the client."""
        with self._releases_lock:
            pending, self._releases = self._releases, []
        for thread in pending:
            thread.join(_DELETE_TIMEOUT_SECONDS)
        self._client.close()

    def _delete_quietly(self, handle: RemoteFileHandle) -> None:
        try:
            self._client.delete_file(handle.name, timeout=_DELETE_TIMEOUT_SECONDS)
            Log.debug(f"Deleted remote file {handle.name}")
        except Exception as exc:
            Log.warning(f"Failed to delete remote file {handle.name}: {exc}")

    def _call(self, deadline: Deadline, request: Callable[[float], T]) -> T:
        timeout = deadline.bound(self._timeout_seconds)
        return self._breaker.call(lambda: deadline.run(lambda: request(timeout)))
