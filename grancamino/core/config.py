from typing import Dict, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    TITLE: str = "O Gran Camiño 2025 Assistant"
    VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # "text" or "json"
    LOG_FILE: Optional[str] = None
    DEFAULT_LANGUAGE: str = "es"

    # LLM
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_MODEL: str = "claude-sonnet-4-5-20250929"
    LLM_MAX_TOKENS: int = 2048
    LLM_TIMEOUT_SECONDS: float = 60.0
    HISTORY_TURNS: int = 6

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_STORAGE_BUCKET: str = "race-files"
    INCIDENTS_LIMIT: int = 10
    DOCUMENT_URL_OVERRIDES: Dict[str, str] = {}

    # Google Drive
    GOOGLE_DRIVE_FOLDER_ID: str = ""
    GOOGLE_CREDS_FILE: str = "credentials.json"
    GOOGLE_CREDS_JSON: str = ""

    # Cache windows per key class
    LISTING_CACHE_TTL_SECONDS: float = 300.0
    CONTENT_CACHE_TTL_SECONDS: float = 1800.0
    CACHE_MAX_ENTRIES: int = 128

    # File decoding
    FILE_DECODE_TIMEOUT_SECONDS: float = 20.0
    CONTEXT_TIMEOUT_SECONDS: float = 45.0
    MAX_FILE_CHARS: int = 50000
    TRUNCATED_FILE_CHARS: int = 5000
    MAX_CONTEXT_CHARS: int = 150000
    TRACK_STRICT_POINTS: bool = False

    # HTTP
    ALLOWED_ORIGINS: str = "*"
    RATE_LIMIT_CHAT: str = "30/minute"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def drive_enabled(self) -> bool:
        return bool(self.GOOGLE_DRIVE_FOLDER_ID)

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)


settings = Settings()
