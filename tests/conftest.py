"""
Root-level conftest for all tests.

Settings are read from the environment on first use, and several modules
call get_settings() at import time (the worker and its cron schedule), so the
connection variables are set before anything from newsreel is imported.
"""
import os

for _key, _value in {
    "POSTGRES_USER": "postgres",
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PASSWORD": "postgres",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "newsreel_test",
    "REDIS_HOST": "localhost",
    "REDIS_PORT": "6379",
    "TESTING": "true",
}.items():
    os.environ.setdefault(_key, _value)

import pytest

from newsreel.main.config import Settings, reset_settings, set_settings


def make_settings(**overrides) -> Settings:
    values = {
        "postgres_user": "test_user",
        "postgres_host": "test_host",
        "postgres_password": "test_password",
        "postgres_port": 5432,
        "postgres_db": "test_db",
        "redis_host": "test_redis",
        "redis_port": 6379,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings():
    """Install a fresh Settings instance for the test and restore lazy loading afterwards."""
    settings = make_settings()
    set_settings(settings)
    yield settings
    reset_settings()
