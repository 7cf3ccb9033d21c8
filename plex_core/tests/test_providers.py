import pytest

from plex_core.providers import create_provider
from plex_core.providers.perplexity_client import PerplexityClient
from plex_core.providers.registry import get_provider_config


def test_create_provider_default(monkeypatch):
    class DummySettings:
        default_provider = "perplexity"
        perplexity_api_token = "pplx-test-token"
        http_timeout = 1.0

    monkeypatch.setattr("plex_core.providers.settings", DummySettings())
    provider = create_provider()
    assert isinstance(provider, PerplexityClient)


def test_create_provider_unknown():
    with pytest.raises(KeyError):
        create_provider("openai")


def test_provider_config_lookup_is_case_insensitive():
    cfg = get_provider_config("Perplexity")
    assert cfg.base_url == "https://api.perplexity.ai"
    assert "sonar" in cfg.models
