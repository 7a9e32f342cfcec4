from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest

from sqlbind.adapters.psycopg import PsycopgConfig, PsycopgDriver

if TYPE_CHECKING:
    from collections.abc import Generator

    from pytest_databases.docker.postgres import PostgresService


@pytest.fixture
def psycopg_config(postgres_service: PostgresService) -> PsycopgConfig:
    """Create a psycopg configuration for the test container.

    Args:
        postgres_service: PostgreSQL service fixture.

    Returns:
        Configuration pointing at the container.
    """
    return PsycopgConfig.from_url(
        f"postgresql://{postgres_service.user}:{postgres_service.password}"
        f"@{postgres_service.host}:{postgres_service.port}/{postgres_service.database}"
    )


@pytest.fixture
def psycopg_driver(psycopg_config: PsycopgConfig) -> Generator[PsycopgDriver, None, None]:
    """Yield a driver whose search path is a fresh schema, dropped afterwards."""
    schema = f"test_{uuid.uuid4().hex[:12]}"
    with psycopg_config.provide_driver() as driver:
        driver.execute_script(f"CREATE SCHEMA {schema}; SET search_path TO {schema}")
        try:
            yield driver
        finally:
            driver.execute_script(f"DROP SCHEMA {schema} CASCADE")
