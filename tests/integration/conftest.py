"""Integration test fixtures using testcontainers for PostgreSQL."""

import os
from pathlib import Path
from typing import Generator

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import text
from testcontainers.postgres import PostgresContainer

from newsreel.database.database import sessionmanager
from newsreel.main.config import Settings
from tests.conftest import make_settings

# Ryuk can have connection issues in nested Docker setups
os.environ.setdefault("TESTCONTAINERS_RYUK_DISABLED", "true")

if not os.getenv("DOCKER_HOST") and os.path.exists("/var/run/docker.sock"):
    os.environ["DOCKER_HOST"] = "unix:///var/run/docker.sock"

ROOT_DIR = Path(__file__).parent.parent.parent


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Start a PostgreSQL container for the test session."""

    try:
        postgres = PostgresContainer(
            image="postgres:16-alpine",
            username="integration_test_user",
            password="integration_test_password",
            dbname="integration_test_db",
        )
        postgres.start()
    except Exception as exc:
        pytest.skip(f"Docker is not available for integration tests: {exc}")

    try:
        yield postgres
    finally:
        postgres.stop()


@pytest.fixture(scope="session")
def db_settings(postgres_container: PostgresContainer) -> Settings:
    """Settings pointing at the testcontainer."""

    return make_settings(
        postgres_user="integration_test_user",
        postgres_host=postgres_container.get_container_host_ip(),
        postgres_password="integration_test_password",
        postgres_port=int(postgres_container.get_exposed_port(5432)),
        postgres_db="integration_test_db",
    )


@pytest.fixture(scope="session")
def alembic_config(db_settings: Settings) -> Config:
    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(ROOT_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", db_settings.sync_database_url)
    return alembic_cfg


@pytest.fixture(scope="session")
def migrated_database(alembic_config: Config, db_settings: Settings) -> Settings:
    """Run every migration once, including cleanup_feed_articles()."""

    command.upgrade(alembic_config, "head")
    return db_settings


@pytest.fixture
async def database(migrated_database: Settings):
    """Fresh engine and empty tables for each test."""

    sessionmanager.init(migrated_database.database_url)

    async with sessionmanager.transaction() as session:
        result = await session.execute(
            text(
                """
                SELECT tablename FROM pg_tables
                WHERE schemaname = 'public' AND tablename != 'alembic_version'
                """
            )
        )
        for table in result.scalars().all():
            await session.execute(text(f'TRUNCATE TABLE "{table}" RESTART IDENTITY CASCADE'))

    yield sessionmanager

    await sessionmanager.close()
