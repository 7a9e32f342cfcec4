"""Command line interface: ``sqlbind check``, ``sqlbind generate`` and ``sqlbind start-database``."""

import os
import uuid
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import rich_click as click
from rich import get_console
from rich.markup import escape
from rich.table import Table

from sqlbind.adapters.psycopg import DATABASE_URL_ENV, PsycopgConfig
from sqlbind.core.bindings import BindingDescriptor, emit_all
from sqlbind.core.group import OperationGroup, ParseResult
from sqlbind.database import DisposableDatabase
from sqlbind.exceptions import OperationGroupError, SQLBindError
from sqlbind.loader import OperationLoader, SQLDocument
from sqlbind.migrations import perform_migrations
from sqlbind.render import RENDERERS
from sqlbind.utils.logging import LOG_FORMATS, configure_logging, set_correlation_id

if TYPE_CHECKING:
    from sqlbind.adapters.psycopg import PsycopgDriver

__all__ = ("main", "sqlbind_group")

console = get_console()

database_url_option = click.option(
    "--database-url",
    help=f"Postgres URL to validate against. Defaults to ${DATABASE_URL_ENV}, else a disposable container.",
    type=str,
    default=None,
)
migrations_option = click.option(
    "--migrations",
    help="Directory of *.sql files applied, in name order, before validation.",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
)
sources_argument = click.argument("sources", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))


@contextmanager
def provide_validation_driver(
    database_url: Optional[str], migrations: Optional[Path]
) -> "Generator[PsycopgDriver, None, None]":
    """Yield a migrated driver for ``database_url``, or for a disposable container when no URL is known."""
    url = database_url or os.environ.get(DATABASE_URL_ENV)
    if url:
        with PsycopgConfig.from_url(url).provide_driver() as driver:
            perform_migrations(driver, migrations)
            yield driver
        return
    name = f"sqlbind-{uuid.uuid4().hex[:12]}"
    console.print(f"[dim]Starting disposable database {name}[/]")
    with DisposableDatabase(name) as database, database.config.provide_driver() as driver:
        perform_migrations(driver, migrations)
        yield driver


def _parse_documents(
    documents: "Sequence[SQLDocument]", driver: "PsycopgDriver", *, validate: bool
) -> "tuple[list[ParseResult], list[tuple[SQLDocument, OperationGroupError]]]":
    loader = OperationLoader()
    results: list[ParseResult] = []
    document_failures: list[tuple[SQLDocument, OperationGroupError]] = []
    for document in documents:
        try:
            results.append(loader.parse_all(document, driver, validate=validate))
        except OperationGroupError as exc:
            document_failures.append((document, exc))
    return results, document_failures


def _print_result(result: ParseResult) -> None:
    group = result.group
    table = Table(title=group.source, title_justify="left", show_lines=False)
    table.add_column("Operation", style="cyan")
    table.add_column("Statements", justify="right")
    table.add_column("Parameters")
    table.add_column("Status")
    for operation in group:
        parameters = ", ".join(
            f"{type_name}?" if operation.is_optional(position) else str(type_name)
            for position, type_name in enumerate(operation.parameters)
        )
        violations = sum(1 for outcome in operation.outcomes if outcome.is_expected_violation)
        status = "[green]ok[/]" if not violations else f"[green]ok[/] [dim]({violations} expected violation(s))[/]"
        table.add_row(
            group.qualified_name(operation), str(len(operation.statements)), escape(parameters) or "-", status
        )
    for failure in result.failures:
        table.add_row(failure.operation or "-", "", "", "[red]failed[/]")
    console.print(table)


def _report_failures(
    results: "Sequence[ParseResult]", document_failures: "Sequence[tuple[SQLDocument, OperationGroupError]]"
) -> int:
    for document, exc in document_failures:
        console.print(f"[red]{escape(document.path)}: {escape(str(exc))}[/]", soft_wrap=True)
    for result in results:
        for failure in result.failures:
            console.print(f"[red]{escape(result.group.source or '-')}: {escape(str(failure))}[/]", soft_wrap=True)
    failed = len(document_failures) + sum(len(result.failures) for result in results)
    if failed:
        console.print(f"[red]{failed} failure(s)[/]")
    return failed


@click.group(name="sqlbind")
@click.option("--verbose", help="Enable debug logging.", type=bool, default=False, is_flag=True)
@click.option(
    "--log-format",
    help="Log output format.",
    type=click.Choice(LOG_FORMATS),
    default="rich",
    show_default=True,
)
@click.pass_context
def sqlbind_group(ctx: "click.Context", verbose: bool, log_format: str) -> None:
    """Validate hand-written SQL operations against Postgres and generate bindings."""
    configure_logging(level="DEBUG" if verbose else "WARNING", format_style=log_format)
    set_correlation_id(uuid.uuid4().hex)
    ctx.ensure_object(dict)


@sqlbind_group.command(name="check", help="Validate every operation of the given SQL files and directories.")
@sources_argument
@database_url_option
@migrations_option
@click.pass_context
def check(
    ctx: "click.Context", sources: "tuple[Path, ...]", database_url: Optional[str], migrations: Optional[Path]
) -> None:
    """Build and validate every operation, exit 1 unless all of them pass."""
    try:
        documents = OperationLoader().load(*sources)
        with provide_validation_driver(database_url, migrations) as driver:
            results, document_failures = _parse_documents(documents, driver, validate=True)
    except SQLBindError as exc:
        console.print(f"[red]{escape(str(exc))}[/]", soft_wrap=True)
        ctx.exit(1)
    for result in results:
        _print_result(result)
    if _report_failures(results, document_failures):
        ctx.exit(1)
    operations = sum(len(result.group) for result in results)
    console.print(f"[green]{operations} operation(s) validated[/]")


@sqlbind_group.command(name="generate", help="Emit binding descriptors for the given SQL files and directories.")
@sources_argument
@click.option(
    "--target",
    help="Output file. Defaults to standard output.",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
)
@click.option(
    "--format",
    "format_name",
    help="Output format.",
    type=click.Choice(sorted(RENDERERS)),
    default="json",
    show_default=True,
)
@database_url_option
@migrations_option
@click.option("--no-validate", help="Prepare statements without executing them.", is_flag=True, default=False)
@click.pass_context
def generate(
    ctx: "click.Context",
    sources: "tuple[Path, ...]",
    target: Optional[Path],
    format_name: str,
    database_url: Optional[str],
    migrations: Optional[Path],
    no_validate: bool,
) -> None:
    """Render descriptors of every operation, exit 1 without output if any operation fails."""
    try:
        documents = OperationLoader().load(*sources)
        with provide_validation_driver(database_url, migrations) as driver:
            results, document_failures = _parse_documents(documents, driver, validate=not no_validate)
    except SQLBindError as exc:
        console.print(f"[red]{escape(str(exc))}[/]", soft_wrap=True)
        ctx.exit(1)
    if _report_failures(results, document_failures):
        ctx.exit(1)

    groups: list[OperationGroup] = [result.group for result in results]
    descriptors: list[BindingDescriptor] = emit_all(groups)
    try:
        rendered = RENDERERS[format_name](descriptors)
    except SQLBindError as exc:
        console.print(f"[red]{escape(str(exc))}[/]", soft_wrap=True)
        ctx.exit(1)
    if target is None:
        click.echo(rendered, nl=False)
    else:
        target.write_text(rendered, encoding="utf-8")
        console.print(f"[green]Wrote {len(descriptors)} operation(s) to {escape(str(target))}[/]", soft_wrap=True)


@sqlbind_group.command(name="start-database", help="Start a disposable Postgres database until Enter is pressed.")
@migrations_option
@click.option("--name", help="Container name.", type=str, default="sqlbind-database", show_default=True)
@click.option("--port", help="Host port.", type=int, default=5432, show_default=True)
@click.pass_context
def start_database(ctx: "click.Context", migrations: Optional[Path], name: str, port: int) -> None:
    """Start a database, apply migrations and keep it running for manual use."""
    try:
        with DisposableDatabase(name, port=port) as database:
            with database.config.provide_driver() as driver:
                applied = perform_migrations(driver, migrations)
            console.print(
                f"[green]Database ready at {escape(database.url)}[/] ({len(applied)} migration(s) applied)",
                soft_wrap=True,
            )
            console.input("Press Enter to stop the database ")
    except SQLBindError as exc:
        console.print(f"[red]{escape(str(exc))}[/]", soft_wrap=True)
        ctx.exit(1)


def main() -> None:
    sqlbind_group()
