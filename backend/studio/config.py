"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Runtime
    environment: str = "development"

    # Storage backend selection
    use_s3_local: bool = False
    local_data_dir: Path = Path("data")
    draft_collection_key: str = "db.json"
    completed_collection_key: str = "blog.json"

    # Object store
    s3_access_key_id: str | None = None
    s3_secret_access_key: SecretStr | None = None
    s3_region: str | None = None
    s3_bucket_name: str | None = None

    # Read-side retry (milliseconds)
    read_retry_count: int = 3
    read_retry_base_ms: int = 500
    read_retry_max_ms: int = 2000

    # Post-create readability poll (milliseconds)
    create_confirm_attempts: int = 5
    create_confirm_base_ms: int = 200

    # Language model
    openai_api_key: SecretStr | None = None
    openai_model_name: str = "gpt-4"
    openai_system_instruction: str | None = None
    openai_blog_prompt: str | None = None
    openai_linkedin_prompt: str | None = None
    openai_twitter_prompt: str | None = None
    openai_podcast_prompt: str | None = None
    openai_twitter_with_thread_prompt: str | None = None

    # Generation limits
    blog_chunk_chars: int = 8000
    max_continuation_turns: int = 10

    @property
    def is_production(self) -> bool:
        """True when running with production semantics."""
        return self.environment.lower() == "production"

    @property
    def s3_configured(self) -> bool:
        """True when every object-store credential is present."""
        return bool(
            self.s3_access_key_id
            and self.s3_secret_access_key
            and self.s3_secret_access_key.get_secret_value()
            and self.s3_region
            and self.s3_bucket_name
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
