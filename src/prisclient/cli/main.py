"""
Priscilla client CLI: `pris-client` command.

Commands:
  pris-client listen            Print envelopes from the hub until disengaged
  pris-client send ROOM TEXT    Send one message envelope
  pris-client config show       Show the merged configuration
  pris-client config set K V    Store a value in ~/.pris/config.json
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install prisclient[cli]")

from prisclient import __version__
from prisclient.client import PrisClient
from prisclient.config import ClientConfig, load_config, make_config
from prisclient.errors import PrisError

console = Console()


def _settings(ctx: click.Context) -> ClientConfig:
    opts = ctx.find_root().obj
    return make_config({**load_config(opts["config_path"]), **opts["overrides"]})


def _get_client(ctx: click.Context) -> PrisClient:
    try:
        cfg = _settings(ctx)
    except PrisError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    if not cfg.source_id:
        console.print("[red]No source id configured. Pass --source-id or run `pris-client config set source_id ...`.[/red]")
        raise SystemExit(1)
    return PrisClient.from_config(cfg, logger=logging.getLogger("prisclient"))


def _run(coro):
    try:
        return asyncio.run(coro)
    except PrisError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


@click.group()
@click.version_option(__version__)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Config file (default ~/.pris/config.json)")
@click.option("--host", envvar="PRIS_HOST", default=None, help="Hub host")
@click.option("--port", envvar="PRIS_PORT", type=int, default=None, help="Hub port")
@click.option("--type", "client_type", type=click.Choice(["adapter", "responder"]), default=None)
@click.option("--source-id", envvar="PRIS_SOURCE_ID", default=None, help="Identity to engage with")
@click.option("--secret", envvar="PRIS_SECRET", default=None, help="Shared secret for the engage credential")
@click.option("--auto-retry", is_flag=True, help="Reconnect after the configured retry delay instead of exiting on failure")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], host: Optional[str], port: Optional[int],
         client_type: Optional[str], source_id: Optional[str], secret: Optional[str],
         auto_retry: bool, verbose: bool):
    """Priscilla hub client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    overrides: dict[str, Any] = {
        "host": host,
        "port": port,
        "client_type": client_type,
        "source_id": source_id,
        "secret": secret,
        "auto_retry": True if auto_retry else None,
    }
    ctx.obj = {
        "config_path": config_path,
        "overrides": {k: v for k, v in overrides.items() if v is not None},
    }


# Register subcommands from separate modules
from prisclient.cli.session import listen_cmd, send_cmd
from prisclient.cli.settings import config

main.add_command(listen_cmd)
main.add_command(send_cmd)
main.add_command(config)


if __name__ == "__main__":
    main()
