from __future__ import annotations

"""rotaclient Command Line Interface."""

from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import anyio
import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from rotaclient.config import RotationConfig, load_config_from_yaml
from rotaclient.core.manager import RotatingClient
from rotaclient.transport.httpx_client import HttpxClient
from rotaclient.utils import logging as rlog
from rotaclient.utils.events import (
    InstanceClosed,
    InstanceCreated,
    InstanceRetired,
    listening,
)

app = typer.Typer(
    name="rotaclient",
    help="CLI for rotaclient: send requests through a rotating HTTP client.",
    add_completion=False,
)

console = Console()


def _resolve_config(config_file: Optional[Path], **overrides) -> RotationConfig:
    try:
        base = load_config_from_yaml(config_file) if config_file else RotationConfig()
        return base.merged(**overrides)
    except (ValidationError, ValueError, OSError) as e:
        console.print(f"[bold red]Invalid configuration: {e}[/]")
        raise typer.Exit(code=1)


@app.command()
def config(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML rotation config."),
):
    """Print the resolved rotation configuration."""
    cfg = _resolve_config(config_file)
    table = Table(title="Rotation Config")
    table.add_column("Option", style="cyan", no_wrap=True)
    table.add_column("Value", style="magenta")
    for key, value in cfg.model_dump().items():
        if isinstance(value, timedelta):
            value = f"{value.total_seconds():g}s"
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="URL to request."),
    count: int = typer.Option(5, "--count", "-n", min=1, help="Number of requests."),
    method: str = typer.Option("GET", "--method", "-X"),
    request_limit: Optional[int] = typer.Option(None, "--request-limit", help="Requests per client before rotation."),
    time_limit: Optional[float] = typer.Option(None, "--time-limit", help="Client lifetime in seconds."),
    invalidate_on_error: Optional[bool] = typer.Option(None, "--invalidate-on-error/--keep-on-error"),
    force_close_on_error: Optional[bool] = typer.Option(None, "--force-close-on-error/--graceful-close-on-error"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML rotation config."),
    timeout: float = typer.Option(30.0, help="Per-request timeout in seconds."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Send COUNT requests to URL through one rotating client."""
    cfg = _resolve_config(
        config_file,
        request_limit=request_limit,
        time_limit=time_limit,
        invalidate_on_error=invalidate_on_error,
        force_close_on_error=force_close_on_error,
    )
    rlog.get("debug" if verbose else "warning")

    created: List[int] = []
    retired: List[str] = []
    closed: List[int] = []

    def _on_created(evt: InstanceCreated):
        created.append(evt.instance_id)

    def _on_retired(evt: InstanceRetired):
        retired.append(f"#{evt.instance_id} ({evt.reason})")

    def _on_closed(evt: InstanceClosed):
        closed.append(evt.instance_id)

    table = Table(title=f"{method.upper()} {url}")
    table.add_column("#", justify="right")
    table.add_column("Client", style="cyan", justify="right")
    table.add_column("Result")

    async def _main() -> int:
        failures = 0
        factory = HttpxClient.factory(timeout=timeout)
        async with RotatingClient(factory, config=cfg) as rc:
            for n in range(1, count + 1):
                async def _op(client):
                    instance_id = rc.active.id if rc.active else None
                    resp = await client.send(httpx.Request(method.upper(), url))
                    return instance_id, resp

                try:
                    instance_id, resp = await rc.with_client(_op)
                except httpx.HTTPError as e:
                    failures += 1
                    table.add_row(str(n), "-", f"[red]{type(e).__name__}: {e}[/]")
                    continue
                style = "green" if resp.is_success else "yellow"
                table.add_row(str(n), f"#{instance_id}", f"[{style}]{resp.status_code} {resp.reason_phrase}[/]")
        return failures

    with listening({
        InstanceCreated: _on_created,
        InstanceRetired: _on_retired,
        InstanceClosed: _on_closed,
    }):
        failures = anyio.run(_main)

    console.print(table)
    console.print(f"[bold]Clients created:[/] {len(created)} • [bold]closed:[/] {len(closed)}")
    if retired:
        console.print(f"[dim]Retired: {', '.join(retired)}[/]")
    if failures:
        console.print(f"[bold red]{failures} of {count} requests failed.[/]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
