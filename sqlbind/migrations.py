"""Apply a directory of plain SQL migrations to a validation database."""

import time
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from sqlbind.exceptions import DatabaseError, MigrationError
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.protocols import ScriptExecutor

__all__ = ("get_migration_files", "perform_migrations")

logger = get_logger("migrations")


def get_migration_files(directory: Union[str, Path]) -> "list[Path]":
    """Return the ``*.sql`` files of ``directory`` sorted by file name.

    A missing directory has no migrations.
    """
    path = Path(directory)
    if not path.is_dir():
        return []
    return sorted((file for file in path.glob("*.sql") if file.is_file()), key=lambda file: file.name)


def perform_migrations(driver: "ScriptExecutor", directory: "Optional[Union[str, Path]]") -> "list[Path]":
    """Execute every migration file of ``directory`` in file name order.

    Args:
        driver: Session that runs each file as one script.
        directory: Migrations directory; ``None`` or a missing directory is a no-op.

    Raises:
        MigrationError: If a file cannot be read or fails to execute.

    Returns:
        The applied files.
    """
    if directory is None:
        return []
    applied: list[Path] = []
    for file_path in get_migration_files(directory):
        start_time = time.perf_counter()
        try:
            script = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            msg = f"could not read migration {file_path.name}: {e}"
            raise MigrationError(msg, path=str(file_path)) from e
        try:
            driver.execute_script(script)
        except DatabaseError as e:
            msg = f"migration {file_path.name} failed: {e.diagnostic}"
            raise MigrationError(msg, path=str(file_path)) from e
        applied.append(file_path)
        logger.info(
            "Applied migration %s",
            file_path.name,
            extra={
                "extra_fields": {
                    "migration": file_path.name,
                    "duration_ms": (time.perf_counter() - start_time) * 1000,
                }
            },
        )
    return applied
