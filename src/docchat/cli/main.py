"""CLI for docchat: serve / tokens / cache-stats / invalidate commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from docchat.core.config import APIConfig, TokenizerConfig
from docchat.tokens.tokenizer import TokenCounter

app = typer.Typer(name="docchat", help="Context budgeting and retrieval cache tools")
console = Console()

DEFAULT_URL = "http://localhost:8080"


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default from DOCCHAT_API_HOST)"),
    port: Optional[int] = typer.Option(None, help="Port (default from DOCCHAT_API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    api = APIConfig()
    uvicorn.run("docchat.api.app:app", host=host or api.host, port=port or api.port, reload=reload)


@app.command()
def tokens(
    text_file: Path = typer.Argument(..., help="UTF-8 text file to measure"),
    method: Optional[str] = typer.Option(None, help="approximate or tiktoken"),
    model: Optional[str] = typer.Option(None, help="Model whose encoding to use"),
) -> None:
    """Count tokens in a file and show the quick estimates next to it."""
    overrides: dict = {}
    if method:
        overrides["method"] = method
    if model:
        overrides["model"] = model
    text = text_file.read_text(encoding="utf-8")

    with TokenCounter.from_config(TokenizerConfig(**overrides)) as counter:
        count = counter.count(text)

    table = Table(title=str(text_file))
    table.add_column("Measure")
    table.add_column("Value", justify="right")
    table.add_row("Characters", str(len(text)))
    table.add_row(f"Tokens ({counter.method})", str(count))
    table.add_row("Estimate from chars", str(TokenCounter.estimate_from_chars(len(text))))
    table.add_row("Estimate from words", str(TokenCounter.estimate_from_words(len(text.split()))))
    console.print(table)


@app.command("cache-stats")
def cache_stats(
    url: str = typer.Option(DEFAULT_URL, "--url", envvar="API_URL", help="Base URL of the API"),
    fmt: str = typer.Option("table", "--format", help="table, json or text"),
) -> None:
    """Fetch the cache performance report from a running server."""
    params = {"format": "text" if fmt == "text" else "json"}
    resp = httpx.get(f"{url.rstrip('/')}/api/cache/stats", params=params, timeout=10.0)
    resp.raise_for_status()

    if fmt == "text":
        console.print(resp.text)
        return
    report = resp.json()
    if fmt == "json":
        console.print_json(json.dumps(report))
        return

    table = Table(title="Cache Performance")
    table.add_column("Kind")
    table.add_column("Size", justify="right")
    table.add_column("Hits", justify="right")
    table.add_column("Misses", justify="right")
    table.add_column("Hit Rate", justify="right")
    for kind, perf in report["performance"].items():
        table.add_row(kind, str(perf["size"]), str(perf["hits"]), str(perf["misses"]), perf["hitRate"])
    console.print(table)
    shared = report["infrastructure"]["sharedCache"]
    console.print(f"Shared cache: {'[green]connected' if shared else '[yellow]unavailable'}")


@app.command()
def invalidate(
    kind: str = typer.Argument(..., help="user or document"),
    target_id: str = typer.Argument(..., help="User or document id"),
    url: str = typer.Option(DEFAULT_URL, "--url", envvar="API_URL", help="Base URL of the API"),
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="DOCCHAT_API_KEY"),
) -> None:
    """Trigger a cache invalidation on a running server."""
    headers = {"X-API-Key": api_key} if api_key else {}
    resp = httpx.post(
        f"{url.rstrip('/')}/api/cache/invalidate",
        json={"type": kind, "id": target_id},
        headers=headers,
        timeout=10.0,
    )
    if resp.status_code != 200:
        body = resp.json()
        console.print(f"[red]{body.get('type', 'error')}: {body.get('message', resp.text)}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Invalidated {resp.json()['invalidated']} entries[/green]")


if __name__ == "__main__":
    app()
