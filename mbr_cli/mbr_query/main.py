"""mbr-query CLI entrypoint."""

from __future__ import annotations

import click

from mbr_cli.api.client import MetabaseClient
from mbr_cli.shared.cli import CLIContext, common_cli_options, handle_cli_errors, pass_cli_context

from . import executor, render
from .types import QueryOutput

OUTPUT_FORMAT_CHOICES = render.OUTPUT_FORMAT_CHOICES

_format_option = click.option(
    "--format",
    "output_format",
    default="table",
    show_default=True,
    type=click.Choice(OUTPUT_FORMAT_CHOICES),
)


@click.group(help="Query a Metabase server from the command line.")
@common_cli_options
@handle_cli_errors
def cli(cli_ctx: CLIContext) -> None:
    """Primary Click group for mbr-query commands."""
    cli_ctx.logger.debug(f"mbr-query targeting {cli_ctx.config.server.url}.")


@cli.command("list")
@click.option("--search", "-s", type=str, help="Only questions matching this text.")
@click.option("--collection", "-c", type=str, help="Only questions in this collection (ID or 'root').")
@click.option("--limit", type=click.IntRange(min=1), default=executor.DEFAULT_LIST_LIMIT, show_default=True)
@_format_option
@pass_cli_context
@handle_cli_errors
def list_questions(
    cli_ctx: CLIContext,
    search: str | None,
    collection: str | None,
    limit: int,
    output_format: str,
) -> None:
    """List saved questions."""
    _log_subcommand_entry(cli_ctx, "list")
    with _open_client(cli_ctx) as client:
        output = executor.list_questions(client, search=search, collection=collection, limit=limit)
    if not output.rows:
        cli_ctx.logger.info("No questions found.")
        return
    _render(cli_ctx, output, output_format)


@cli.command("run")
@click.argument("question_id", type=int)
@click.option("--limit", type=click.IntRange(min=1), help="Maximum number of rows to print.")
@click.option("--offset", type=click.IntRange(min=0), default=0, show_default=True, help="Rows to skip.")
@click.option("--columns", type=str, help="Comma-separated column names to include.")
@click.option("--param", "params", multiple=True, metavar="KEY=VALUE", help="Question parameter (repeatable).")
@_format_option
@pass_cli_context
@handle_cli_errors
def run_question(
    cli_ctx: CLIContext,
    question_id: int,
    limit: int | None,
    offset: int,
    columns: str | None,
    params: tuple[str, ...],
    output_format: str,
) -> None:
    """Execute a saved question and print its result."""
    _log_subcommand_entry(cli_ctx, "run")
    selected = [name.strip() for name in columns.split(",") if name.strip()] if columns else None
    parameters = executor.parse_parameters(params, cli_ctx.logger)
    with _open_client(cli_ctx) as client:
        output = executor.run_question(
            client,
            question_id,
            offset=offset,
            limit=limit,
            columns=selected,
            parameters=parameters,
        )
    _render(cli_ctx, output, output_format)


@cli.command("collections")
@_format_option
@pass_cli_context
@handle_cli_errors
def list_collections(cli_ctx: CLIContext, output_format: str) -> None:
    """List collections."""
    _log_subcommand_entry(cli_ctx, "collections")
    with _open_client(cli_ctx) as client:
        output = executor.list_collections(client)
    _render(cli_ctx, output, output_format)


@cli.command("databases")
@_format_option
@pass_cli_context
@handle_cli_errors
def list_databases(cli_ctx: CLIContext, output_format: str) -> None:
    """List connected databases."""
    _log_subcommand_entry(cli_ctx, "databases")
    with _open_client(cli_ctx) as client:
        output = executor.list_databases(client)
    _render(cli_ctx, output, output_format)


@cli.command("schemas")
@click.argument("database_id", type=int)
@_format_option
@pass_cli_context
@handle_cli_errors
def list_schemas(cli_ctx: CLIContext, database_id: int, output_format: str) -> None:
    """List schemas in a database."""
    _log_subcommand_entry(cli_ctx, "schemas")
    with _open_client(cli_ctx) as client:
        output = executor.list_schemas(client, database_id)
    _render(cli_ctx, output, output_format)


@cli.command("tables")
@click.argument("database_id", type=int)
@click.argument("schema", type=str)
@_format_option
@pass_cli_context
@handle_cli_errors
def list_tables(cli_ctx: CLIContext, database_id: int, schema: str, output_format: str) -> None:
    """List tables in a database schema."""
    _log_subcommand_entry(cli_ctx, "tables")
    with _open_client(cli_ctx) as client:
        output = executor.list_tables(client, database_id, schema)
    _render(cli_ctx, output, output_format)


@cli.command("whoami")
@_format_option
@pass_cli_context
@handle_cli_errors
def whoami(cli_ctx: CLIContext, output_format: str) -> None:
    """Show the user the API key belongs to."""
    _log_subcommand_entry(cli_ctx, "whoami")
    with _open_client(cli_ctx) as client:
        output = executor.whoami(client)
    _render(cli_ctx, output, output_format)


def _log_subcommand_entry(cli_ctx: CLIContext, command: str) -> None:
    cli_ctx.logger.debug(f"mbr-query {command} invoked")


def _open_client(cli_ctx: CLIContext) -> MetabaseClient:
    if not cli_ctx.config.api_key():
        cli_ctx.logger.warning(
            f"No API key set (${cli_ctx.config.server.api_key_env}); requests will likely be rejected."
        )
    return MetabaseClient.from_config(cli_ctx.config)


def _render(cli_ctx: CLIContext, output: QueryOutput, output_format: str) -> None:
    render.render_output(output, output_format=output_format, logger=cli_ctx.logger)


def main() -> None:
    """Entry point for console_scripts."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
