from app.config.settings import Settings
from app.gateway.client_base import BaseDocumentClient
from app.gateway.example_client_adapter import ExampleClientAdapter
from app.gateway.gemini_client_adapter import GeminiClientAdapter


class DocumentClientFactory:
    """Creates the configured document-understanding client."""

    PROVIDERS = ("gemini", "example")

    @classmethod
    def create(cls, settings: Settings) -> BaseDocumentClient:
        provider = settings.document_provider.lower()
        if provider == "example":
            return ExampleClientAdapter()
        if provider == "gemini":
            if not settings.gemini_api_key:
                raise ValueError("gemini_api_key is required for document_provider=gemini")
            return GeminiClientAdapter(
                api_key=settings.gemini_api_key,
                base_url=settings.gemini_api_url,
                model=settings.gemini_model,
                temperature=settings.gemini_temperature,
                max_output_tokens=settings.gemini_max_output_tokens,
            )
        raise ValueError(
            f"Unknown document provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
