"""Unit tests for settings and policy derivation."""

import pytest
from pydantic import SecretStr

from backend.studio.config import Settings
from backend.studio.storage.retry import BackoffPolicy


def test_defaults() -> None:
    settings = Settings(_env_file=None, environment="development")

    assert settings.is_production is False
    assert settings.draft_collection_key == "db.json"
    assert settings.completed_collection_key == "blog.json"
    assert settings.openai_model_name == "gpt-4"
    assert settings.blog_chunk_chars == 8000
    assert settings.max_continuation_turns == 10


def test_environment_variables_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "Production")
    monkeypatch.setenv("S3_BUCKET_NAME", "bucket")
    monkeypatch.setenv("READ_RETRY_COUNT", "5")

    settings = Settings(_env_file=None)

    assert settings.is_production is True
    assert settings.s3_bucket_name == "bucket"
    assert settings.read_retry_count == 5


def test_s3_configured_requires_all_credentials() -> None:
    partial = Settings(_env_file=None, s3_bucket_name="b", s3_region="us-east-1")
    full = Settings(
        _env_file=None,
        s3_bucket_name="b",
        s3_region="us-east-1",
        s3_access_key_id="AKIA",
        s3_secret_access_key=SecretStr("secret"),
    )

    assert partial.s3_configured is False
    assert full.s3_configured is True


def test_backoff_policies_from_settings() -> None:
    settings = Settings(_env_file=None)

    reads = BackoffPolicy.for_reads(settings)
    confirm = BackoffPolicy.for_create_confirmation(settings)

    assert reads == BackoffPolicy(retry_count=3, base_delay_ms=500, max_delay_ms=2000)
    assert confirm.retry_count == 4
    assert [confirm.delay_ms(i) for i in range(4)] == [200, 400, 800, 1600]
