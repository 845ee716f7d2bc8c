"""CLI entry point for the indexer SDK."""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys

import click
from starknet_py.net.full_node_client import FullNodeClient

from indexer_sdk.chain.calls import call_contract, felt_from_hex
from indexer_sdk.config import load_configuration, load_options
from indexer_sdk.errors import IndexerSDKError
from indexer_sdk.middleware import log_events
from indexer_sdk.models.events import RawEvent
from indexer_sdk.sdk import IndexerSDK


def _mask(secret: str) -> str:
    return "***configured***" if secret else "(not set)"


def _event_line(subject: str, sequence: int, event: RawEvent) -> str:
    return json.dumps({
        "subject": subject,
        "sequence": sequence,
        "recorded_at": event.recorded_at.isoformat(),
        "event_id": event.event_id,
        "from_address": event.from_address,
        "keys": list(event.keys),
        "data": list(event.data),
    })


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to options TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """indexer-sdk - register apps with the event indexer and consume their events."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show resolved SDK options."""
    opts = load_options(ctx.obj["config_path"])
    click.echo(f"Queue URL:  {opts.url or '(not set)'}")
    click.echo(f"Token:      {_mask(opts.token)}")
    click.echo(f"API:        {opts.api or '(not set)'}")
    click.echo(f"API key:    {_mask(opts.api_key)}")
    click.echo(f"Timeout:    {opts.http_timeout}s")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--only", "pattern", default=None, help="Keep only contracts whose name matches this regex")
@click.pass_context
def register(ctx: click.Context, config_file: str, pattern: str | None) -> None:
    """Register the app described by CONFIG_FILE (.json or .toml) with the indexer."""
    opts = load_options(ctx.obj["config_path"])
    if not opts.api:
        click.echo("Error: No indexer API configured.", err=True)
        click.echo("Set INDEXER_API env var or [indexer] api in config.", err=True)
        sys.exit(1)

    try:
        config = load_configuration(config_file)
    except ValueError as exc:
        click.echo(f"Error: invalid configuration {config_file}: {exc}", err=True)
        sys.exit(1)
    if pattern is not None:
        config = config.filter_by_name(pattern)

    async def _register():
        sdk = IndexerSDK(options=opts)
        return await sdk.configure(config)

    try:
        resp = asyncio.run(_register())
    except IndexerSDKError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"App:        {resp.app_name}")
    click.echo(f"Hash:       {resp.hash}")
    click.echo(f"Contracts:  {len(config.contracts)}")


@cli.command()
@click.argument("name")
@click.argument("subject")
@click.pass_context
def listen(ctx: click.Context, name: str, subject: str) -> None:
    """Print events delivered to durable consumer NAME filtered on SUBJECT."""
    opts = load_options(ctx.obj["config_path"])

    def _print_event(subj: str, sequence: int, event: RawEvent) -> None:
        click.echo(_event_line(subj, sequence, event))

    async def _listen():
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                pass

        sdk = IndexerSDK(options=opts)
        middlewares = [log_events] if ctx.obj["verbose"] else []
        cancel = await sdk.register_handler(name, subject, _print_event, middlewares)
        click.echo(f"Listening on {subject} as {name} (Ctrl+C to stop)", err=True)
        try:
            await stop.wait()
        finally:
            await cancel()

    try:
        asyncio.run(_listen())
    except IndexerSDKError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("address")
@click.argument("function_name")
@click.argument("calldata", nargs=-1)
@click.option("--rpc-url", required=True, envvar="STARKNET_RPC_URL", help="Starknet JSON-RPC endpoint")
def call(address: str, function_name: str, calldata: tuple[str, ...], rpc_url: str) -> None:
    """Run a read-only FUNCTION_NAME call on the contract at ADDRESS."""
    try:
        args = [felt_from_hex(c) if c.lower().startswith("0x") else int(c) for c in calldata]
        felt_from_hex(address)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    async def _call():
        client = FullNodeClient(node_url=rpc_url)
        return await call_contract(client, address, function_name, args)

    try:
        result = asyncio.run(_call())
    except Exception as exc:
        click.echo(f"Error: call failed: {exc}", err=True)
        sys.exit(1)

    for felt in result:
        click.echo(hex(felt))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
