"""SQL document loader.

Locates ``.sql`` documents on disk and turns each of them into an
:class:`~sqlbind.core.group.OperationGroup`.
"""

import hashlib
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from sqlbind.core.group import OperationGroup, OperationGroupParser, ParseResult
from sqlbind.core.validator import LiveValidator, ValidationConfig
from sqlbind.exceptions import SQLFileNotFoundError, SQLFileParseError
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.protocols import ValidationDriver

__all__ = ("OperationLoader", "SQLDocument")

logger = get_logger("loader")

SQL_SUFFIX = ".sql"


@dataclass
class SQLDocument:
    """A loaded SQL document with metadata."""

    path: str
    """Path where the document was loaded from."""

    content: str
    """The raw SQL text."""

    namespace: Optional[str] = None
    """Dot separated subdirectory path when loaded from a directory."""

    checksum: str = field(init=False)
    """MD5 checksum of the content."""

    def __post_init__(self) -> None:
        self.checksum = hashlib.md5(self.content.encode(), usedforsecurity=False).hexdigest()


class OperationLoader:
    """Loads SQL documents and parses them into operation groups.

    Example:
        ```python
        loader = OperationLoader()
        documents = loader.load("queries/")
        with PsycopgConfig().provide_driver() as driver:
            groups = [loader.parse(document, driver) for document in documents]
        ```
    """

    def __init__(self, *, encoding: str = "utf-8", validation_config: Optional[ValidationConfig] = None) -> None:
        """Initialize the loader.

        Args:
            encoding: Text encoding for reading SQL files.
            validation_config: Settings for live validation during :meth:`parse`.
        """
        self.encoding = encoding
        self.validation_config = validation_config or ValidationConfig()

    def _read_file_content(self, path: Path) -> str:
        try:
            return path.read_text(encoding=self.encoding)
        except FileNotFoundError as e:
            raise SQLFileNotFoundError(path.name, str(path)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise SQLFileParseError(path.name, str(path), e) from e

    def _load_directory(self, dir_path: Path) -> "list[SQLDocument]":
        """Load all SQL files below a directory, namespaced by subdirectory."""
        documents: list[SQLDocument] = []
        for file_path in sorted(dir_path.rglob(f"*{SQL_SUFFIX}")):
            if not file_path.is_file():
                continue
            namespace_parts = file_path.relative_to(dir_path).parent.parts
            namespace = ".".join(namespace_parts) if namespace_parts else None
            documents.append(self._load_single_file(file_path, namespace))
        return documents

    def _load_single_file(self, file_path: Path, namespace: Optional[str]) -> SQLDocument:
        return SQLDocument(path=str(file_path), content=self._read_file_content(file_path), namespace=namespace)

    def load(self, *paths: Union[str, Path]) -> "list[SQLDocument]":
        """Load SQL files and directories.

        Directories are searched recursively in sorted order; subdirectories
        become namespaces.

        Args:
            *paths: One or more file paths or directory paths to load.

        Raises:
            SQLFileNotFoundError: If a path does not exist.
            SQLFileParseError: If a file cannot be read.

        Returns:
            The documents, in the order found.
        """
        start_time = time.perf_counter()
        documents: list[SQLDocument] = []
        for path in paths:
            path_obj = Path(path)
            if path_obj.is_dir():
                documents.extend(self._load_directory(path_obj))
            elif path_obj.is_file():
                documents.append(self._load_single_file(path_obj, None))
            else:
                raise SQLFileNotFoundError(path_obj.name, str(path_obj))

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Loaded %d SQL files in %.3fms",
            len(documents),
            duration_ms,
            extra={
                "extra_fields": {
                    "files_loaded": len(documents),
                    "duration_ms": duration_ms,
                }
            },
        )
        return documents

    def _parser(self, document: SQLDocument, driver: "ValidationDriver", validate: bool) -> OperationGroupParser:
        validator = LiveValidator(driver, config=self.validation_config) if validate else None
        return OperationGroupParser(driver, validator=validator, source=document.path, namespace=document.namespace)

    def parse(self, document: SQLDocument, driver: "ValidationDriver", validate: bool = True) -> OperationGroup:
        """Parse a document, stopping at the first failing operation.

        Args:
            document: Loaded document.
            driver: Database session used to prepare (and validate) statements.
            validate: Execute every statement with synthesized values.

        Raises:
            OperationGroupError: On the first document or operation error.

        Returns:
            The operations of the document.
        """
        return self._parser(document, driver, validate).parse(document.content)

    def parse_all(self, document: SQLDocument, driver: "ValidationDriver", validate: bool = True) -> ParseResult:
        """Parse a document, collecting every failing operation."""
        start_time = time.perf_counter()
        result = self._parser(document, driver, validate).parse_all(document.content)
        logger.info(
            "Parsed %s: %d operation(s), %d failure(s)",
            document.path,
            len(result.group),
            len(result.failures),
            extra={
                "extra_fields": {
                    "source": document.path,
                    "operations": len(result.group),
                    "failures": len(result.failures),
                    "duration_ms": (time.perf_counter() - start_time) * 1000,
                }
            },
        )
        return result
