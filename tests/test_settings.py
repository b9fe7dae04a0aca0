"""Tests for environment-driven settings."""

import pytest

from config.settings import Settings

ENV_VARS = [
    "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD", "DB_POOL_MIN", "DB_POOL_MAX",
    "CAREGIVERS_CSV", "CARELOGS_CSV", "BATCH_SIZE", "RUN_ANALYTICS", "LOG_LEVEL", "LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DB_USER", "etl")
    monkeypatch.setenv("DB_PASSWORD", "secret")
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings()

    assert settings.DB_HOST == "localhost"
    assert settings.DB_PORT == 5432
    assert settings.DB_POOL_MAX == 20
    assert settings.BATCH_SIZE == 1000
    assert settings.RUN_ANALYTICS is False
    assert settings.CAREGIVERS_CSV.endswith("caregivers.csv")
    assert settings.CARELOGS_CSV.endswith("carelogs.csv")
    assert settings.LOG_LEVEL == "INFO"
    assert settings.LOG_FILE.endswith("etl.log")


def test_overrides(clean_env):
    clean_env.setenv("DB_PORT", "6543")
    clean_env.setenv("BATCH_SIZE", "250")
    clean_env.setenv("RUN_ANALYTICS", "true")
    clean_env.setenv("CARELOGS_CSV", "/srv/in/visits.csv")
    clean_env.setenv("LOG_LEVEL", "DEBUG")

    settings = Settings()

    assert settings.DB_PORT == 6543
    assert settings.BATCH_SIZE == 250
    assert settings.RUN_ANALYTICS is True
    assert settings.CARELOGS_CSV == "/srv/in/visits.csv"
    assert settings.LOG_LEVEL == "DEBUG"


def test_missing_credentials(clean_env):
    clean_env.delenv("DB_PASSWORD")

    with pytest.raises(ValueError, match="DB_PASSWORD"):
        Settings()


def test_batch_size_must_be_positive(clean_env):
    clean_env.setenv("BATCH_SIZE", "0")

    with pytest.raises(ValueError, match="BATCH_SIZE"):
        Settings()


def test_repr_hides_credentials(clean_env):
    text = repr(Settings())

    assert "secret" not in text
    assert "BATCH_SIZE=1000" in text
