"""Tests for Settings helpers."""

import pytest
from pydantic import ValidationError

from search_cache.core.config import Settings
from search_cache.core.errors import ConfigurationMissingError
from search_cache.services.search_providers import (
    GoogleSearchProvider,
    SearchProvider,
    SerpApiSearchProvider,
    build_provider,
)


def test_is_configured_requires_every_credential():
    settings = Settings(_env_file=None, GOOGLE_API_KEY="abc", GOOGLE_CX="  ", SERPAPI_API_KEY="xyz")

    assert settings.is_configured("google") is False
    assert settings.is_configured("serpapi") is True
    assert settings.is_configured("bing") is False


def test_masked_keys_never_expose_full_value():
    settings = Settings(
        _env_file=None,
        GOOGLE_API_KEY="AIzaSyExampleKey123",
        GOOGLE_CX="cx",
        SERPAPI_API_KEY="short",
    )

    masked = settings.get_all_api_keys_masked()

    assert masked["google"] == {"configured": True, "masked_key": "AIz...123"}
    assert masked["serpapi"] == {"configured": True, "masked_key": "***"}


def test_settings_are_read_only(test_settings):
    with pytest.raises(ValidationError):
        test_settings.GOOGLE_API_KEY = "changed"


def test_build_provider_uses_default(test_settings):
    assert isinstance(build_provider(test_settings), GoogleSearchProvider)
    assert isinstance(build_provider(test_settings, "SerpApi"), SerpApiSearchProvider)


def test_build_provider_rejects_unknown_name(test_settings):
    with pytest.raises(ConfigurationMissingError):
        build_provider(test_settings, "altavista")


def test_base_provider_cannot_be_instantiated(test_settings):
    with pytest.raises(TypeError):
        SearchProvider(test_settings)


@pytest.mark.parametrize(
    "provider_cls, missing",
    [
        (GoogleSearchProvider, "GOOGLE_API_KEY and GOOGLE_CX"),
        (SerpApiSearchProvider, "SERPAPI_API_KEY"),
    ],
)
def test_ensure_configured_names_missing_credentials(provider_cls, missing):
    provider = provider_cls(Settings(_env_file=None, GOOGLE_API_KEY="", GOOGLE_CX="", SERPAPI_API_KEY=""))

    with pytest.raises(ConfigurationMissingError, match=missing):
        provider.ensure_configured()


def test_ensure_configured_passes_when_set(test_settings):
    GoogleSearchProvider(test_settings).ensure_configured()
    SerpApiSearchProvider(test_settings).ensure_configured()
