from typing import Any

import httpx

from app.exceptions import ErrorCode, GatewayError
from app.gateway.client_base import BaseDocumentClient
from app.gateway.models import FileState, RawModelResponse, RemoteFileHandle

_STATUS_ERRORS: dict[int, tuple[ErrorCode, bool]] = {
    400: (ErrorCode.BAD_REQUEST, False),
    401: (ErrorCode.AUTH_ERROR, False),
    403: (ErrorCode.AUTH_ERROR, False),
    404: (ErrorCode.HANDLE_EXPIRED, True),
    429: (ErrorCode.RATE_LIMITED, True),
}


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
        if message:
            return str(message)
    return response.reason_phrase or f"HTTP {response.status_code}"


def _is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code == 429


def _raise_for_upload(response: httpx.Response, phase: str) -> None:
    if response.is_success:
        return
    raise GatewayError(
        f"{phase} failed: HTTP {response.status_code} {_error_detail(response)}",
        ErrorCode.UPLOAD_FAILED,
        retryable=_is_retryable_status(response.status_code),
    )


def _raise_for_status(response: httpx.Response, action: str) -> None:
    if response.is_success:
        return
    status = response.status_code
    if status in _STATUS_ERRORS:
        code, retryable = _STATUS_ERRORS[status]
    elif status >= 500:
        code, retryable = ErrorCode.SERVICE_ERROR, True
    else:
        code, retryable = ErrorCode.BAD_REQUEST, False
    raise GatewayError(
        f"{action} failed: HTTP {status} {_error_detail(response)}",
        code,
        retryable=retryable,
    )


def _json_body(response: httpx.Response, action: str) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        raise GatewayError(
            f"{action} returned a non-JSON body", ErrorCode.SERVICE_ERROR, retryable=True
        ) from exc
    if not isinstance(body, dict):
        raise GatewayError(
            f"{action} returned an unexpected body", ErrorCode.SERVICE_ERROR, retryable=True
        )
    return body


def _to_handle(data: dict[str, Any]) -> RemoteFileHandle:
    name = data.get("name")
    if not name:
        raise GatewayError("File resource has no name", ErrorCode.SERVICE_ERROR, retryable=True)
    return RemoteFileHandle(
        name=str(name),
        uri=str(data.get("uri") or ""),
        mime_type=str(data.get("mimeType") or ""),
        state=FileState.from_wire(data.get("state")),
    )


class GeminiClientAdapter(BaseDocumentClient):
    """Document client for the Gemini REST API (Files API + generateContent)."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str,
        temperature: float = 0.2,
        max_output_tokens: int = 4096,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.Client()

    def start_upload(
        self,
        *,
        size_bytes: int,
        mime_type: str,
        display_name: str,
        timeout: float,
    ) -> str:
        response = self._send(
            "POST",
            f"{self._base_url}/upload/v1beta/files",
            "Upload initiation",
            timeout=timeout,
            headers={
                "X-Goog-Upload-Protocol": "resumable",
                "X-Goog-Upload-Command": "start",
                "X-Goog-Upload-Header-Content-Length": str(size_bytes),
                "X-Goog-Upload-Header-Content-Type": mime_type,
            },
            json={"file": {"display_name": display_name}},
        )
        _raise_for_upload(response, "Upload initiation")
        upload_url = response.headers.get("x-goog-upload-url")
        if not upload_url:
            raise GatewayError("No upload URL received", ErrorCode.UPLOAD_FAILED, retryable=True)
        return upload_url

    def finish_upload(self, *, upload_url: str, content: bytes, timeout: float) -> RemoteFileHandle:
        response = self._send(
            "POST",
            upload_url,
            "File upload",
            timeout=timeout,
            headers={
                "X-Goog-Upload-Offset": "0",
                "X-Goog-Upload-Command": "upload, finalize",
            },
            content=content,
        )
        _raise_for_upload(response, "File upload")
        body = _json_body(response, "File upload")
        file_data = body.get("file")
        if not isinstance(file_data, dict):
            raise GatewayError(
                "Upload response has no file resource", ErrorCode.UPLOAD_FAILED, retryable=True
            )
        return _to_handle(file_data)

    def get_file(self, name: str, *, timeout: float) -> RemoteFileHandle:
        response = self._send(
            "GET", f"{self._base_url}/v1beta/{name}", "File status check", timeout=timeout
        )
        _raise_for_status(response, "File status check")
        return _to_handle(_json_body(response, "File status check"))

    def generate_content(
        self,
        *,
        file_uri: str,
        mime_type: str,
        prompt: str,
        json_schema: dict[str, object],
        timeout: float,
    ) -> RawModelResponse:
        payload = {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {"file_data": {"mime_type": mime_type, "file_uri": file_uri}},
                    ]
                }
            ],
            "generationConfig": {
                "response_mime_type": "application/json",
                "response_schema": json_schema,
                "temperature": self._temperature,
                "maxOutputTokens": self._max_output_tokens,
            },
        }
        response = self._send(
            "POST",
            f"{self._base_url}/v1beta/models/{self._model}:generateContent",
            "Content generation",
            timeout=timeout,
            json=payload,
        )
        _raise_for_status(response, "Content generation")
        return _json_body(response, "Content generation")

    def delete_file(self, name: str, *, timeout: float) -> None:
        response = self._send(
            "DELETE", f"{self._base_url}/v1beta/{name}", "File deletion", timeout=timeout
        )
        _raise_for_status(response, "File deletion")

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def _send(
        self,
        method: str,
        url: str,
        action: str,
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        request_headers = {"X-goog-api-key": self._api_key, **(headers or {})}
        try:
            return self._http.request(
                method, url, headers=request_headers, timeout=timeout, **kwargs
            )
        except httpx.TransportError as exc:
            raise GatewayError(
                f"{action} network error: {exc}", ErrorCode.NETWORK_ERROR, retryable=True
            ) from exc
