import pytest

from app.config.settings import Settings


@pytest.fixture
def example_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings for the offline example provider with fast retries."""
    monkeypatch.setenv("DOCUMENT_PROVIDER", "example")
    monkeypatch.setenv("RETRY_BASE_DELAY_MS", "0")
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0")
    return Settings()
