"""VeriCite configuration — loaded from environment variables."""

from pydantic_settings import BaseSettings

from vericite.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = {"env_prefix": "VERICITE_", "env_file": ".env"}

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_timeout: float = 120.0

    # Crossref
    crossref_base_url: str = "https://api.crossref.org"
    crossref_mailto: str = ""
    crossref_timeout: float = 15.0

    # Pipeline
    max_concurrent_items: int = 4
    request_timeout: float = 300.0
    enable_review: bool = True

    # Report
    report_entries_per_page: int = 8

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173"]

    def require_gemini_key(self) -> str:
        """Return the Gemini API key or fail loudly at start-up."""
        key = self.gemini_api_key.strip()
        if not key:
            raise ConfigurationError(
                "VERICITE_GEMINI_API_KEY is not set; the verification service cannot start"
            )
        return key


settings = Settings()
