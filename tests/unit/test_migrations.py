"""Unit tests for applying migration directories."""

from pathlib import Path

import pytest

from sqlbind.exceptions import MigrationError, SQLParsingError
from sqlbind.migrations import get_migration_files, perform_migrations
from tests.unit.fakes import FakeDriver


@pytest.fixture
def migrations_dir(tmp_path: Path) -> Path:
    (tmp_path / "0002_parts.sql").write_text("CREATE TABLE parts(widget_id INT4 REFERENCES widgets(id));")
    (tmp_path / "0001_widgets.sql").write_text("CREATE TABLE widgets(id INT4 PRIMARY KEY, name TEXT);")
    (tmp_path / "README.md").write_text("not a migration")
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "0000_ignored.sql").write_text("SELECT 1;")
    return tmp_path


def test_get_migration_files(migrations_dir: Path) -> None:
    assert [path.name for path in get_migration_files(migrations_dir)] == ["0001_widgets.sql", "0002_parts.sql"]


def test_get_migration_files_of_missing_directory(tmp_path: Path) -> None:
    assert get_migration_files(tmp_path / "missing") == []


def test_perform_migrations(migrations_dir: Path, fake_driver: FakeDriver) -> None:
    applied = perform_migrations(fake_driver, migrations_dir)

    assert [path.name for path in applied] == ["0001_widgets.sql", "0002_parts.sql"]
    assert fake_driver.scripts == [
        "CREATE TABLE widgets(id INT4 PRIMARY KEY, name TEXT);",
        "CREATE TABLE parts(widget_id INT4 REFERENCES widgets(id));",
    ]


@pytest.mark.parametrize("directory", [None, "does-not-exist"])
def test_nothing_to_migrate(directory: "str | None", fake_driver: FakeDriver) -> None:
    assert perform_migrations(fake_driver, directory) == []
    assert fake_driver.scripts == []


def test_failing_migration_stops_the_run(migrations_dir: Path) -> None:
    driver = FakeDriver(script_errors={"CREATE TABLE widgets": SQLParsingError("already exists", "42P07")})

    with pytest.raises(MigrationError) as exc_info:
        perform_migrations(driver, migrations_dir)

    assert exc_info.value.path == str(migrations_dir / "0001_widgets.sql")
    assert "already exists" in exc_info.value.detail
    assert len(driver.scripts) == 1


def test_unreadable_migration(tmp_path: Path, fake_driver: FakeDriver) -> None:
    (tmp_path / "0001_bad.sql").write_bytes(b"\xff\xfe")

    with pytest.raises(MigrationError) as exc_info:
        perform_migrations(fake_driver, tmp_path)

    assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
    assert fake_driver.scripts == []
