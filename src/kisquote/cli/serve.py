"""kis serve: start the MCP quotation server."""

import sys

import click

from kisquote.cli.main import cli
from kisquote.config import config_path, load_config
from kisquote.errors import ConfigError
from kisquote.log import configure_logging


@cli.command()
@click.option("--transport", default="stdio", type=click.Choice(["stdio", "sse"]))
@click.option("--port", default=8080, type=int, help="Port for SSE transport")
def serve(transport: str, port: int) -> None:
    """Start the kisquote MCP server."""
    try:
        config = load_config()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    configure_logging(config.log_level, config.log_json)

    # stdout belongs to the stdio transport
    out = sys.stderr
    click.echo(file=out)
    click.echo("kisquote MCP server", file=out)
    click.echo("===================", file=out)

    if not config.appkey or not config.appsecret:
        click.echo(f"No app credentials. Run `kis init` or edit {config_path()}", file=out)
        sys.exit(1)
    if not config.access_token:
        click.echo("⚠ No access token; tools will fail until KIS_ACCESS_TOKEN is set.", file=out)

    click.echo(f"Environment: {config.environment.value}", file=out)
    click.echo(f"MCP server ready on {transport}", file=out)

    from kisquote.server import mcp as mcp_server

    if transport == "sse":
        mcp_server.settings.port = port
        mcp_server.run(transport="sse")
    else:
        mcp_server.run(transport="stdio")
