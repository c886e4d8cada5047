from pydantic_settings import BaseSettings

# Credentials each provider needs before it can be called
KEY_MAP = {
    "google": ("GOOGLE_API_KEY", "GOOGLE_CX"),
    "serpapi": ("SERPAPI_API_KEY",),
}


def _mask(value: str) -> str:
    if value and len(value) > 6:
        return value[:3] + "..." + value[-3:]
    elif value:
        return "***"
    return ""


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./search_cache.db"
    SEARCH_PROVIDER: str = "google"
    GOOGLE_API_KEY: str = ""
    GOOGLE_CX: str = ""
    SERPAPI_API_KEY: str = ""
    SEARCH_TIMEOUT_SECONDS: float = 30.0
    DEFAULT_MAX_RESULTS: int = 100
    CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    def get_api_key(self, provider: str) -> str:
        """Get the primary API key for a provider, or "" if unknown."""
        attrs = KEY_MAP.get(provider)
        if not attrs:
            return ""
        return getattr(self, attrs[0], "").strip()

    def is_configured(self, provider: str) -> bool:
        """True when every credential the provider needs is set."""
        attrs = KEY_MAP.get(provider)
        if not attrs:
            return False
        return all(getattr(self, attr, "").strip() for attr in attrs)

    def get_all_api_keys_masked(self) -> dict:
        """Return masked versions of all provider keys for the status endpoint."""
        result = {}
        for provider in KEY_MAP:
            result[provider] = {
                "configured": self.is_configured(provider),
                "masked_key": _mask(self.get_api_key(provider)),
            }
        return result


def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    return settings


settings = Settings()
