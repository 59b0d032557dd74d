import threading
from unittest.mock import MagicMock

import pytest

from app.exceptions import CircuitOpenError, DeadlineExceededError, ErrorCode, GatewayError
from app.extraction.profiles import DocumentType, get_profile
from app.gateway.client_base import BaseDocumentClient
from app.gateway.gateway import DocumentGateway
from app.gateway.models import FileState, RemoteFileHandle
from app.resilience.circuit_breaker import CircuitBreaker
from app.resilience.deadline import Deadline

PROCESSING = RemoteFileHandle(name="files/abc", uri="uri-abc", mime_type="image/png")


def _client() -> MagicMock:
    client = MagicMock(spec=BaseDocumentClient)
    client.start_upload.return_value = "https://upload/session"
    client.finish_upload.return_value = PROCESSING
    return client


def _gateway(
    client: MagicMock,
    *,
    breaker: CircuitBreaker | None = None,
    poll_max_attempts: int = 10,
) -> tuple[DocumentGateway, MagicMock]:
    sleep = MagicMock()
    gateway = DocumentGateway(
        client=client,
        breaker=breaker or CircuitBreaker(),
        timeout_seconds=60.0,
        poll_interval_seconds=2.0,
        poll_max_attempts=poll_max_attempts,
        sleep=sleep,
    )
    return gateway, sleep


class TestUpload:
    def test_two_phase_upload(self) -> None:
        client = _client()
        gateway, _ = _gateway(client)

        handle = gateway.upload(b"bytes", "image/png", "receipt.png", Deadline())

        assert handle == PROCESSING
        client.start_upload.assert_called_once_with(
            size_bytes=5, mime_type="image/png", display_name="receipt.png", timeout=60.0
        )
        client.finish_upload.assert_called_once_with(
            upload_url="https://upload/session", content=b"bytes", timeout=60.0
        )

    def test_fills_missing_mime_type(self) -> None:
        client = _client()
        client.finish_upload.return_value = RemoteFileHandle(name="files/x", uri="u", mime_type="")
        gateway, _ = _gateway(client)

        handle = gateway.upload(b"%PDF", "application/pdf", "a.pdf", Deadline())
        assert handle.mime_type == "application/pdf"

    def test_timeout_is_capped_by_deadline(self) -> None:
        client = _client()
        gateway, _ = _gateway(client)

        gateway.upload(b"bytes", "image/png", "r.png", Deadline(5.0))

        timeout = client.start_upload.call_args.kwargs["timeout"]
        assert 0 < timeout <= 5.0

    def test_expired_deadline_makes_no_call(self) -> None:
        client = _client()
        gateway, _ = _gateway(client)
        deadline = Deadline()
        deadline.cancel()

        with pytest.raises(DeadlineExceededError):
            gateway.upload(b"bytes", "image/png", "r.png", deadline)
        client.start_upload.assert_not_called()

    def test_open_circuit_makes_no_call(self) -> None:
        client = _client()
        breaker = CircuitBreaker(threshold=1)
        with pytest.raises(GatewayError):
            breaker.call(
                MagicMock(side_effect=GatewayError("x", ErrorCode.SERVICE_ERROR, retryable=True))
            )
        gateway, _ = _gateway(client, breaker=breaker)

        with pytest.raises(CircuitOpenError):
            gateway.upload(b"bytes", "image/png", "r.png", Deadline())
        client.start_upload.assert_not_called()


class TestAwaitActive:
    def test_active_handle_is_returned_without_polling(self) -> None:
        client = _client()
        gateway, _ = _gateway(client)
        active = PROCESSING.with_state(FileState.ACTIVE)

        assert gateway.await_active(active, Deadline()) is active
        client.get_file.assert_not_called()

    def test_polls_until_active(self) -> None:
        client = _client()
        client.get_file.side_effect = [
            PROCESSING,
            PROCESSING,
            PROCESSING.with_state(FileState.ACTIVE),
        ]
        gateway, sleep = _gateway(client)

        handle = gateway.await_active(PROCESSING, Deadline())

        assert handle.state is FileState.ACTIVE
        assert handle.uri == "uri-abc"
        assert client.get_file.call_count == 3
        assert [call.args[0] for call in sleep.call_args_list] == [2.0, 2.0]

    def test_failed_state_is_terminal(self) -> None:
        client = _client()
        client.get_file.return_value = PROCESSING.with_state(FileState.FAILED)
        gateway, _ = _gateway(client)

        with pytest.raises(GatewayError) as exc_info:
            gateway.await_active(PROCESSING, Deadline())
        assert exc_info.value.code is ErrorCode.REMOTE_PROCESSING_FAILED
        assert exc_info.value.retryable is False

    def test_exhausted_polls_are_retryable_timeout(self) -> None:
        client = _client()
        client.get_file.return_value = PROCESSING
        gateway, sleep = _gateway(client, poll_max_attempts=3)

        with pytest.raises(GatewayError) as exc_info:
            gateway.await_active(PROCESSING, Deadline())
        assert exc_info.value.code is ErrorCode.REMOTE_PROCESSING_TIMEOUT
        assert exc_info.value.retryable is True
        assert client.get_file.call_count == 3
        assert sleep.call_count == 2


class TestExtractAndRelease:
    def test_extract_sends_profile(self) -> None:
        client = _client()
        client.generate_content.return_value = {"candidates": []}
        gateway, _ = _gateway(client)
        profile = get_profile(DocumentType.RECEIPT)

        raw = gateway.extract(PROCESSING, profile, Deadline())

        assert raw == {"candidates": []}
        kwargs = client.generate_content.call_args.kwargs
        assert kwargs["file_uri"] == "uri-abc"
        assert kwargs["mime_type"] == "image/png"
        assert kwargs["prompt"] == profile.prompt
        assert kwargs["json_schema"] == profile.json_schema

    def test_release_deletes_in_background(self) -> None:
        client = _client()
        gateway, _ = _gateway(client)

        thread = gateway.release(PROCESSING)
        thread.join(5)

        assert thread.daemon is True
        client.delete_file.assert_called_once_with("files/abc", timeout=10.0)

    def test_release_swallows_delete_failures(self) -> None:
        client = _client()
        client.delete_file.side_effect = GatewayError(
            "gone", ErrorCode.HANDLE_EXPIRED, retryable=True
        )
        gateway, _ = _gateway(client)

        thread = gateway.release(PROCESSING)
        thread.join(5)

        assert not thread.is_alive()
        client.delete_file.assert_called_once()

    def test_close_waits_for_pending_deletions(self) -> None:
        client = _client()
        delete_started = threading.Event()
        finish_delete = threading.Event()
        order: list[str] = []

        def slow_delete(name: str, *, timeout: float) -> None:
            delete_started.set()
            finish_delete.wait(5)
            order.append("delete")

        client.delete_file.side_effect = slow_delete
        client.close.side_effect = lambda: order.append("close")
        gateway, _ = _gateway(client)

        gateway.release(PROCESSING)
        assert delete_started.wait(5)
        threading.Timer(0.05, finish_delete.set).start()
        gateway.close()

        assert order == ["delete", "close"]


class TestDeadlineDuringCalls:
    def test_call_outliving_the_deadline_is_abandoned(self) -> None:
        client = _client()
        finish = threading.Event()
        def slow_generate(**kwargs: object) -> dict[str, object]:
            finish.wait(5)
            return {}

        client.generate_content.side_effect = slow_generate
        gateway, _ = _gateway(client)

        try:
            with pytest.raises(DeadlineExceededError):
                gateway.extract(PROCESSING, get_profile(DocumentType.RECEIPT), Deadline(0.1))
        finally:
            finish.set()
