"""Command-line interface for the HostBill MCP server.

Commands:
    serve: Run the MCP server over stdio (default when no command is given).
    test: Check the HostBill connection and report the discovered API.
    tools: Probe HostBill and print the tool surface that would be served.

Configuration is read from the environment; see ``hostbill_mcp.config``.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any

import typer

from hostbill_mcp import __version__
from hostbill_mcp.app import build_session, build_source, run_server
from hostbill_mcp.config import REQUIRED_ENV_VARS, ServerConfig
from hostbill_mcp.errors import ConfigurationError, HostBillMCPError
from hostbill_mcp.observability import configure_logging

app = typer.Typer(
    name="hostbill-mcp",
    help="MCP server exposing the HostBill API as tools.",
    add_completion=False,
    invoke_without_command=True,
)


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show HostBill MCP server version and exit.",
    callback=_version_callback,
    is_eager=True,
)

LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    help="Minimum log level (DEBUG, INFO, WARNING, ERROR). Logs go to stderr.",
)


def _load_config() -> ServerConfig:
    """Read configuration or exit with a usage hint on stderr."""
    try:
        return ServerConfig.from_env()
    except ConfigurationError as e:
        typer.echo(f"Error: {e.message}", err=True)
        if e.missing:
            typer.echo("Set the following environment variables:", err=True)
            for name, description in REQUIRED_ENV_VARS.items():
                typer.echo(f"  {name}: {description}", err=True)
        raise typer.Exit(1) from e


def _resolve_log_level(ctx: typer.Context, log_level: str | None) -> str | None:
    """Prefer the subcommand option over the one given before the command."""
    return log_level or (ctx.obj or {}).get("log_level")


def _serve(log_level: str | None) -> None:
    configure_logging(log_level=log_level, force=log_level is not None)
    config = _load_config()
    with contextlib.suppress(BrokenPipeError, KeyboardInterrupt):
        asyncio.run(run_server(config))


@app.callback()
def cli(
    ctx: typer.Context,
    version: bool = VERSION_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """HostBill MCP server CLI entrypoint."""
    ctx.ensure_object(dict)["log_level"] = log_level
    if ctx.invoked_subcommand is None:
        _serve(log_level)


@app.command("serve")
def serve(ctx: typer.Context, log_level: str | None = LOG_LEVEL_OPTION) -> None:
    """Run the MCP server over stdio until stdin closes."""
    _serve(_resolve_log_level(ctx, log_level))


async def _check_connection(config: ServerConfig) -> dict[str, Any]:
    async with build_source(config) as client:
        if not await client.test_connection():
            return {"connected": False}
        report: dict[str, Any] = {"connected": True}
        try:
            report["methods"] = len(await client.list_methods())
        except HostBillMCPError as e:
            report["methods_error"] = e.message
        info = await client.server_info()
        report["version"] = info.get("version") or info.get("hbversion")
        return report


@app.command("test")
def test(ctx: typer.Context, log_level: str | None = LOG_LEVEL_OPTION) -> None:
    """Test the HostBill connection and exit (status 1 on failure)."""
    configure_logging(log_level=_resolve_log_level(ctx, log_level) or "WARNING", force=True)
    config = _load_config()
    typer.echo("Testing HostBill connection...")
    report = asyncio.run(_check_connection(config))
    if not report["connected"]:
        typer.echo("Connection failed", err=True)
        raise typer.Exit(1)

    typer.echo("Connection successful")
    if "methods" in report:
        typer.echo(f"Available API methods: {report['methods']}")
    else:
        typer.echo(f"Could not list API methods: {report['methods_error']}")
    if report.get("version"):
        typer.echo(f"HostBill version: {report['version']}")


async def _probe_tools(config: ServerConfig) -> dict[str, Any]:
    session = build_session(config)
    try:
        mode = await session.start()
        return {
            "mode": mode.value,
            "methods": len(session.methods),
            "tools": session.registry.describe(),
        }
    finally:
        await session.close()


@app.command("tools")
def tools(ctx: typer.Context, log_level: str | None = LOG_LEVEL_OPTION) -> None:
    """Probe HostBill and print the tool surface as JSON."""
    configure_logging(log_level=_resolve_log_level(ctx, log_level) or "WARNING", force=True)
    config = _load_config()
    typer.echo(json.dumps(asyncio.run(_probe_tools(config)), indent=2))


def main() -> None:
    """Run the HostBill MCP server CLI."""
    app()


if __name__ == "__main__":
    main()
