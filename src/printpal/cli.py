"""Command-line interface for the PrintPal API."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from .client import PrintPalClient
from .errors import InsufficientCreditsError, PrintPalError, RateLimitError
from .logging import configure_logging
from .models import CREDIT_COSTS, ESTIMATED_TIMES, Format, GenerationStatus, Quality
from .paths import infer_format

T = TypeVar("T")

console = Console()
app = typer.Typer(help="Generate 3D models with the PrintPal API.", no_args_is_help=True)


@app.callback()
def main(
    ctx: typer.Context,
    api_key: Optional[str] = typer.Option(
        None, "--api-key", envvar="PRINTPAL_API_KEY", help="PrintPal API key."
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the API base URL."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=1.0, help="Per-request timeout in seconds."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level for stderr logs."),
) -> None:
    obj = ctx.ensure_object(dict)
    obj.update({"api_key": api_key, "base_url": base_url, "timeout": timeout})
    configure_logging(log_level)


def _run(ctx: typer.Context, action: Callable[[PrintPalClient], Awaitable[T]]) -> T:
    """Build a client from the global options and run ``action`` to completion."""

    obj = ctx.ensure_object(dict)
    try:
        client = PrintPalClient(
            obj.get("api_key"),
            base_url=obj.get("base_url"),
            timeout=obj.get("timeout"),
            transport=obj.get("transport"),
        )
        return asyncio.run(action(client))
    except InsufficientCreditsError as exc:
        console.print(
            f"[red]{exc.message}[/] (required: {exc.credits_required}, "
            f"available: {exc.credits_available})"
        )
        raise typer.Exit(1) from exc
    except RateLimitError as exc:
        hint = f" Retry in {exc.retry_after:g}s." if exc.retry_after is not None else ""
        console.print(f"[red]{exc.message}.[/]{hint}")
        raise typer.Exit(1) from exc
    except PrintPalError as exc:
        console.print(f"[red]{exc.message}")
        raise typer.Exit(1) from exc


def _progress_printer() -> Callable[[GenerationStatus], None]:
    start = time.monotonic()

    def _print(status: GenerationStatus) -> None:
        elapsed = int(time.monotonic() - start)
        console.print(f"  [dim][{elapsed}s][/dim] {status.status.value}")

    return _print


@app.command()
def credits(ctx: typer.Context) -> None:
    """Show the current credit balance."""

    info = _run(ctx, lambda client: client.get_credits())
    who = f" ({info.username})" if info.username else ""
    console.print(f"[bold]Balance:[/] {info.credits} credits{who}")


@app.command()
def pricing(ctx: typer.Context) -> None:
    """List the cost of each quality tier."""

    info = _run(ctx, lambda client: client.get_pricing())
    table = Table(title="PrintPal Pricing", show_edge=False, header_style="bold cyan")
    table.add_column("Tier")
    table.add_column("Credits", justify="right")
    table.add_column("Resolution")
    table.add_column("Est. time", justify="right")
    table.add_column("Description")
    for name, tier in info.tiers.items():
        eta = f"{tier.estimated_time_seconds:g}s" if tier.estimated_time_seconds is not None else "-"
        table.add_row(name, str(tier.cost), tier.resolution, eta, tier.description)
    console.print(table)
    if info.supported_formats:
        console.print(f"[bold]Formats:[/] {', '.join(info.supported_formats)}")
    limits = info.rate_limits
    if limits.requests_per_minute is not None:
        console.print(
            f"[bold]Rate limits:[/] {limits.requests_per_minute} requests/min, "
            f"{limits.concurrent_generations} concurrent generations"
        )


@app.command()
def usage(ctx: typer.Context) -> None:
    """Show usage statistics for the API key."""

    stats = _run(ctx, lambda client: client.get_usage())
    console.print(
        f"[bold]{stats.api_key.name or 'API key'}:[/] {stats.api_key.total_requests} requests, "
        f"{stats.api_key.credits_used} credits used, {stats.credits_remaining} remaining"
    )
    if not stats.recent_requests:
        return
    table = Table(title="Recent requests", show_edge=False, header_style="bold cyan")
    table.add_column("Time")
    table.add_column("Request")
    table.add_column("Status", justify="right")
    table.add_column("Credits", justify="right")
    table.add_column("Generation")
    for item in stats.recent_requests:
        table.add_row(
            item.timestamp or "-",
            f"{item.method} {item.endpoint}",
            str(item.status_code),
            str(item.credits_used),
            item.generation_uid or "-",
        )
    console.print(table)


@app.command()
def health(ctx: typer.Context) -> None:
    """Check whether the API is up."""

    status = _run(ctx, lambda client: client.health_check())
    colour = "green" if status.is_healthy else "yellow"
    version = f" (v{status.version})" if status.version else ""
    console.print(f"[{colour}]{status.status}[/]{version}")
    if not status.is_healthy:
        raise typer.Exit(1)


def _submit_summary(result: Any) -> None:
    console.print(f"[bold]Generation:[/] {result.generation_uid}")
    console.print(
        f"  quality={result.quality.value} format={result.format.value} "
        f"credits used={result.credits_used} remaining={result.credits_remaining} "
        f"eta={result.estimated_time_seconds:g}s"
    )


@app.command()
def generate(
    ctx: typer.Context,
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Input image."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to save the model."),
    quality: Quality = typer.Option(Quality.DEFAULT, "--quality", "-q", case_sensitive=False),
    format: Optional[Format] = typer.Option(
        None, "--format", "-f", case_sensitive=False, help="Defaults to the output extension or STL."
    ),
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Wait for the model and download it."),
    poll_interval: Optional[float] = typer.Option(None, "--interval", min=0.0),
) -> None:
    """Generate a 3D model from an image."""

    console.print(
        f"Submitting {image.name} ({quality.value}, ~{CREDIT_COSTS[quality]} credits, "
        f"~{ESTIMATED_TIMES[quality]}s)"
    )

    async def _action(client: PrintPalClient) -> Optional[Path]:
        fmt = format if format is not None else infer_format(output)
        result = await client.generate_from_image(image, quality=quality, format=fmt)
        _submit_summary(result)
        if not wait:
            return None
        return await client.wait_and_download(
            result.generation_uid,
            output,
            poll_interval=poll_interval,
            on_progress=_progress_printer(),
            quality=quality,
        )

    saved = _run(ctx, _action)
    if saved is not None:
        console.print(f"[green]Saved to {saved}")


@app.command()
def prompt(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Description of the model."),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
    quality: Quality = typer.Option(Quality.DEFAULT, "--quality", "-q", case_sensitive=False),
    format: Format = typer.Option(Format.STL, "--format", "-f", case_sensitive=False),
    wait: bool = typer.Option(True, "--wait/--no-wait"),
    poll_interval: Optional[float] = typer.Option(None, "--interval", min=0.0),
) -> None:
    """Generate a 3D model from a text prompt."""

    async def _action(client: PrintPalClient) -> Optional[Path]:
        result = await client.generate_from_prompt(text, quality=quality, format=format)
        _submit_summary(result)
        if not wait:
            return None
        return await client.wait_and_download(
            result.generation_uid,
            output,
            poll_interval=poll_interval,
            on_progress=_progress_printer(),
            quality=quality,
        )

    saved = _run(ctx, _action)
    if saved is not None:
        console.print(f"[green]Saved to {saved}")


@app.command()
def status(ctx: typer.Context, generation_uid: str = typer.Argument(...)) -> None:
    """Show the status of a generation."""

    snapshot = _run(ctx, lambda client: client.get_status(generation_uid))
    console.print(f"[bold]{snapshot.generation_uid}:[/] {snapshot.status.value}")
    for label, value in (
        ("quality", snapshot.quality),
        ("format", snapshot.format),
        ("created", snapshot.created_at),
        ("completed", snapshot.completed_at),
    ):
        if value:
            console.print(f"  {label}: {value}")


@app.command()
def download(
    ctx: typer.Context,
    generation_uid: str = typer.Argument(...),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    """Download a completed model."""

    saved = _run(ctx, lambda client: client.download(generation_uid, output))
    console.print(f"[green]Saved to {saved}")


@app.command()
def wait(
    ctx: typer.Context,
    generation_uid: str = typer.Argument(...),
    timeout: Optional[float] = typer.Option(None, "--wait-timeout", min=0.0, help="Seconds to wait."),
    poll_interval: Optional[float] = typer.Option(None, "--interval", min=0.0),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Download when done."),
) -> None:
    """Wait for a generation to finish, optionally downloading it."""

    async def _action(client: PrintPalClient) -> Optional[Path]:
        await client.wait_for_completion(
            generation_uid,
            poll_interval=poll_interval,
            timeout=timeout,
            on_progress=_progress_printer(),
        )
        if output is None:
            return None
        return await client.download(generation_uid, output)

    saved = _run(ctx, _action)
    console.print("[green]Generation completed")
    if saved is not None:
        console.print(f"[green]Saved to {saved}")


if __name__ == "__main__":
    app()
