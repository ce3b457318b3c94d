"""CLI: pris-client listen, pris-client send"""

import asyncio
import json
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from prisclient.models.envelope import Query, QueryType
from prisclient.transport.envelope import build_message, is_disengage_notice

console = Console()


def _get_client(ctx: click.Context):
    from prisclient.cli.main import _get_client
    return _get_client(ctx)


def _run(coro):
    from prisclient.cli.main import _run
    return _run(coro)


def _print_query(query: Query, json_output: bool) -> None:
    if json_output:
        click.echo(json.dumps(query.to_wire()))
    elif query.type == QueryType.MESSAGE and query.message is not None:
        msg = query.message
        sender = msg.display_name or msg.from_ or query.source
        console.print(f"[cyan]#{escape(msg.room)}[/cyan] [green]{escape(sender)}:[/green] {escape(msg.message)}")
    else:
        console.print_json(data=query.to_wire())


@click.command("listen")
@click.option("--json-output", "--json", is_flag=True, help="Print raw envelopes as JSON lines")
@click.pass_context
def listen_cmd(ctx: click.Context, json_output: bool):
    """Print envelopes from the hub until the session ends."""

    async def _listen():
        client = _get_client(ctx)
        outbound: asyncio.Queue[Optional[Query]] = asyncio.Queue()
        inbound: asyncio.Queue[Query] = asyncio.Queue()
        runner = asyncio.create_task(client.run(outbound, inbound))
        while True:
            getter = asyncio.ensure_future(inbound.get())
            done, _ = await asyncio.wait({getter, runner}, return_when=asyncio.FIRST_COMPLETED)
            if getter not in done:
                getter.cancel()
                runner.result()
                return
            query = getter.result()
            _print_query(query, json_output)
            if is_disengage_notice(query):
                break
        outbound.put_nowait(None)
        await runner

    _run(_listen())


@click.command("send")
@click.argument("room")
@click.argument("text")
@click.option("--to", default="", help="Routing hint for the hub")
@click.pass_context
def send_cmd(ctx: click.Context, room: str, text: str, to: str):
    """Send one message envelope to ROOM."""

    async def _send():
        client = _get_client(ctx)
        outbound: asyncio.Queue[Optional[Query]] = asyncio.Queue()
        outbound.put_nowait(build_message(room, text, to=to))
        outbound.put_nowait(None)
        await client.run(outbound, asyncio.Queue())
        console.print(f"[dim]Sent to #{escape(room)} as {escape(client.source_id)}[/dim]")

    _run(_send())
