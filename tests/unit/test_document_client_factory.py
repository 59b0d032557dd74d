from unittest.mock import patch

import pytest

from app.gateway.example_client_adapter import ExampleClientAdapter
from app.gateway.factory import DocumentClientFactory
from app.gateway.gemini_client_adapter import GeminiClientAdapter


def _make_settings(provider: str, api_key: str = "key"):  # type: ignore[no-untyped-def]
    with patch("app.config.settings.Settings") as mock_cls:
        settings = mock_cls.return_value
        settings.document_provider = provider
        settings.gemini_api_key = api_key
        settings.gemini_api_url = "https://gemini.test"
        settings.gemini_model = "gemini-test"
        settings.gemini_temperature = 0.2
        settings.gemini_max_output_tokens = 4096
        return settings


class TestDocumentClientFactory:
    def test_creates_gemini_adapter(self) -> None:
        adapter = DocumentClientFactory.create(_make_settings("gemini"))
        assert isinstance(adapter, GeminiClientAdapter)

    def test_creates_example_adapter(self) -> None:
        adapter = DocumentClientFactory.create(_make_settings("Example"))
        assert isinstance(adapter, ExampleClientAdapter)

    def test_gemini_requires_api_key(self) -> None:
        with pytest.raises(ValueError, match="gemini_api_key"):
            DocumentClientFactory.create(_make_settings("gemini", api_key=""))

    def test_raises_for_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown document provider"):
            DocumentClientFactory.create(_make_settings("openai"))
