"""Main entry point for the Rama CLI."""

import asyncio
import json
from typing import Any

import typer

from rama_client import AckLevel, ClientConfig, RamaClient, RamaClientError, __version__
from rama_client.infrastructure.logging import LoggingConfig, LogLevel, setup_logging

app = typer.Typer(help="Query PStates and append to depots on a Rama cluster.")


class CLIState:
    """Options shared by every command."""

    def __init__(self) -> None:
        self.config = ClientConfig()


state = CLIState()


def create_client(config: ClientConfig) -> RamaClient:
    """Build the client used by the commands."""
    return RamaClient.from_config(config)


def _parse_json(value: str, what: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"{what} is not valid JSON: {e}") from e


async def _run(config: ClientConfig, operation: Any) -> Any:
    async with create_client(config) as client:
        return await operation(client)


def _execute(operation: Any) -> None:
    try:
        result = asyncio.run(_run(state.config, operation))
    except RamaClientError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(json.dumps(result))


@app.callback()  # type: ignore[misc]
def main(
    base_url: str = typer.Option(
        None, "--base-url", envvar="RAMA_CLIENT_BASE_URL", help="Cluster entry point URL."
    ),
    max_redirects: int = typer.Option(
        None, "--max-redirects", min=1, help="Maximum requests per operation."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every request."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Log as JSON lines."),
) -> None:
    """Configure the client shared by all commands."""
    config = ClientConfig()
    if base_url:
        config = config.model_copy(update={"base_url": base_url})
    if max_redirects is not None:
        routing = config.routing.model_copy(update={"max_redirects": max_redirects})
        config = config.model_copy(update={"routing": routing})
    state.config = config

    setup_logging(
        LoggingConfig(
            level=LogLevel.DEBUG if verbose else LogLevel(config.logging.level.upper()),
            json_format=json_logs or config.logging.json_format,
        )
    )


@app.command()  # type: ignore[misc]
def version() -> None:
    """Show the Rama CLI version."""
    typer.echo(f"Rama CLI version {__version__}")


@app.command()  # type: ignore[misc]
def append(
    module: str = typer.Argument(..., help="Module name."),
    depot: str = typer.Argument(..., help="Depot name, e.g. '*users'."),
    data: str = typer.Argument(..., help="Record to append, as JSON."),
    ack_level: AckLevel = typer.Option(None, "--ack-level", help="Acknowledgment level."),
) -> None:
    """Append a record to a depot."""
    record = _parse_json(data, "DATA")

    async def operation(client: RamaClient) -> Any:
        builder = client.depot_append(module, depot, record)
        if ack_level is not None:
            builder.ack_level(ack_level)
        return await builder.append()

    _execute(operation)


@app.command()  # type: ignore[misc]
def select(
    module: str = typer.Argument(..., help="Module name."),
    pstate: str = typer.Argument(..., help="PState name, e.g. '$$profiles'."),
    path: str = typer.Argument(..., help="Path as a JSON array of steps."),
    one: bool = typer.Option(False, "--one", help="Use selectOne and expect a single value."),
) -> None:
    """Query a PState with a path."""
    steps = _parse_json(path, "PATH")
    if not isinstance(steps, list):
        raise typer.BadParameter("PATH must be a JSON array of steps")

    async def operation(client: RamaClient) -> Any:
        query = client.pstate_query(module, pstate)
        for step in steps:
            query.nav(step)
        if one:
            return await query.select_one()
        return await query.select()

    _execute(operation)


if __name__ == "__main__":
    app()
