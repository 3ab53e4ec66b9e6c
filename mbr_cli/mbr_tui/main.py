"""Command line entry point for the interactive browser."""

from __future__ import annotations

import click

from mbr_cli.api.client import MetabaseClient
from mbr_cli.shared import paths
from mbr_cli.shared.cli import CLIContext, common_cli_options, handle_cli_errors
from mbr_cli.shared.exceptions import ConfigurationError

from .app import run_app
from .service import ServiceClient


@click.command(name="mbr-tui", help="Browse Metabase questions, collections and databases in the terminal.")
@click.option("--tick-ms", type=click.IntRange(min=1), help="Input poll interval in milliseconds.")
@click.option("--page-size", type=click.IntRange(min=1), help="Result rows per page.")
@click.option("--no-color", is_flag=True, help="Disable colours.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=str),
    help=f"Write log output here during the session (e.g. {paths.default_log_path()}).",
)
@common_cli_options
@handle_cli_errors
def main(
    tick_ms: int | None,
    page_size: int | None,
    no_color: bool,
    log_file: str | None,
    cli_ctx: CLIContext,
) -> None:
    config = cli_ctx.config
    logger = cli_ctx.logger
    changes: dict[str, object] = {}
    if tick_ms is not None:
        changes["tick_ms"] = tick_ms
    if page_size is not None:
        changes["page_size"] = page_size
    if no_color:
        changes["color"] = False
    if changes:
        config = config.with_tui(**changes)

    api_key = config.api_key()
    if not api_key:
        raise ConfigurationError(
            f"No API key found; set ${config.server.api_key_env} or pass --api-key."
        )

    logger.debug(f"Tick {config.tui.tick_ms}ms, page size {config.tui.page_size}.")
    with MetabaseClient.from_config(config) as client:
        run_app(ServiceClient(client), config.tui, logger, log_file=log_file)
    logger.success("Goodbye!")


if __name__ == "__main__":  # pragma: no cover
    main()
