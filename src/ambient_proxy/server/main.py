"""Ambient Proxy Manager - Main entry point."""

from __future__ import annotations

import asyncio
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console

from ambient_proxy.core.config import ServerConfig, load_config_from_file
from ambient_proxy.observability.logging import LOG_FORMATS, configure_logging
from ambient_proxy.server.proxy import ProxyServer

console = Console()

BANNER = """
  ▄▀█ █▀▄▀█ █▄▄ █ █▀▀ █▄░█ ▀█▀   █▀█ █▀█ █▀█ ▀▄▀ █▄█
  █▀█ █░▀░█ █▄█ █ ██▄ █░▀█ ░█░   █▀▀ █▀▄ █▄█ █░█ ░█░
                      PROXY MANAGER
"""


@click.command()
@click.option("--listen", "-l", help="HTTP bind address (default: 0.0.0.0:8080)")
@click.option(
    "--geoip-path",
    help="MaxMind country database (default: country.mmdb)",
)
@click.option("--us-proxy", help="Proxy address for the US region")
@click.option("--eu-proxy", help="Proxy address for the EU region")
@click.option(
    "--trust-country-header/--no-trust-country-header",
    default=None,
    help="Route on X-AppEngine-Country instead of GeoIP when present",
)
@click.option(
    "--log-format",
    type=click.Choice(LOG_FORMATS, case_sensitive=False),
    help="Log sink (default: stackdriver)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Minimum log level (default: info)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    envvar="AMBIENT_PROXY_CONFIG",
    help="YAML or TOML configuration file",
)
def main(
    listen: str | None,
    geoip_path: str | None,
    us_proxy: str | None,
    eu_proxy: str | None,
    trust_country_header: bool | None,
    log_format: str | None,
    log_level: str | None,
    config_path: str | None,
):
    """Run the Ambient proxy manager."""
    config = build_config(
        config_path,
        listen=listen,
        geoip_path=geoip_path,
        us_proxy=us_proxy,
        eu_proxy=eu_proxy,
        trust_country_header=trust_country_header,
        log_format=log_format,
        log_level=log_level,
    )

    configure_logging(config.log_format, config.log_level)

    console.print(BANNER, style="cyan")
    console.print(f"Listening on {config.listen}...", style="yellow")
    console.print(f"GeoIP database: {config.geoip_path}", style="dim")
    console.print(f"US proxy: {config.us_proxy}", style="dim")
    console.print(f"EU proxy: {config.eu_proxy}", style="dim")
    if config.trust_country_header:
        console.print("Country header: trusted (X-AppEngine-Country)", style="green")

    asyncio.run(run_server(config))


def build_config(config_path: str | None = None, **overrides: Any) -> ServerConfig:
    """Merge file values and CLI overrides into a ServerConfig.

    CLI flags win over the file. The file wins over the environment, which
    ServerConfig reads itself.
    """
    values: dict[str, Any] = {}
    if config_path:
        try:
            values.update(load_config_from_file(config_path))
        except (FileNotFoundError, ValueError) as e:
            raise click.ClickException(str(e)) from e

    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return ServerConfig(**values)
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e


async def run_server(config: ServerConfig):
    """Run the proxy manager until cancelled."""
    server = ProxyServer(config)

    try:
        await server.start()
        console.print("Server started, press Ctrl+C to stop", style="green")

        await asyncio.Event().wait()
    except KeyboardInterrupt:
        console.print("\nShutting down...", style="yellow")
    finally:
        await server.stop()


if __name__ == "__main__":
    main()
