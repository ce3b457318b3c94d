"""CLI: pris-client config show|set"""

import click
from rich.console import Console

from prisclient.config import ClientConfig, load_config, make_config, save_config
from prisclient.errors import PrisError

console = Console()


@click.group()
def config():
    """Configuration commands."""


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context):
    """Show the merged configuration (secret masked)."""
    from prisclient.cli.main import _settings
    try:
        cfg = _settings(ctx)
    except PrisError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    console.print_json(data=cfg.masked())


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str):
    """Store KEY=VALUE in the config file."""
    if key not in ClientConfig.model_fields:
        console.print(f"[red]Unknown setting: {key}[/red]")
        raise SystemExit(1)
    path = ctx.find_root().obj["config_path"]
    cfg = load_config(path)
    try:
        validated = make_config({**cfg, key: value})
    except PrisError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    cfg[key] = validated.model_dump(mode="json")[key]
    save_config(cfg, path)
    console.print(f"[green]{key} saved.[/green]")
