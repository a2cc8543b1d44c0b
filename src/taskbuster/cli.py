import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from taskbuster.config import settings
from taskbuster.documents.loader import LocalUpload
from taskbuster.intent.catalog import DEFAULT_CATALOG
from taskbuster.intent.remote import RemoteIntentClassifier
from taskbuster.intent.resolver import IntentResolver
from taskbuster.intent.rules import keyword_scores
from taskbuster.intent.types import Known
from taskbuster.pipeline import build_pipeline
from taskbuster.services.inference import InferenceClient

app = typer.Typer(help="Route free-text tasks to TaskBuster actions.")
console = Console()

_offline_option = typer.Option(
    False, "--offline", help="Skip the remote classifier and use keywords only."
)
_threshold_option = typer.Option(
    None, "--threshold", help="Override the classifier confidence threshold."
)
_file_option = typer.Option(
    None, "--file", exists=True, dir_okay=False, help="Plain-text document to attach."
)


async def _classify(task: str, offline: bool, threshold: Optional[float]):
    inference = None if offline else InferenceClient(settings)
    resolver = IntentResolver(
        RemoteIntentClassifier(inference) if inference else None,
        threshold=threshold,
    )
    try:
        return await resolver.resolve(task)
    finally:
        if inference is not None:
            await inference.aclose()


@app.command()
def classify(
    task: str,
    offline: bool = _offline_option,
    threshold: Optional[float] = _threshold_option,
):
    """Resolve the intent of TASK without running it."""
    if not offline and not settings.HF_API_TOKEN:
        console.print("[yellow]HF_API_TOKEN not set; using keywords only.[/yellow]")
        offline = True
    resolved = asyncio.run(_classify(task, offline, threshold))

    table = Table(title="Keyword matches")
    table.add_column("Intent", style="cyan")
    table.add_column("Matches", justify="right")
    for intent, count in keyword_scores(task, DEFAULT_CATALOG).items():
        table.add_row(intent, str(count))
    console.print(table)

    if isinstance(resolved, Known):
        console.print(
            f"[bold green]{resolved.name}[/bold green] "
            f"(source={resolved.source}, score={resolved.score:.3f})"
        )
    else:
        console.print(
            f"[bold red]Intent not recognized[/bold red] ({resolved.reason}). "
            f"Supported: {', '.join(DEFAULT_CATALOG.names)}"
        )
        raise typer.Exit(1)


async def _run(task: str, file: Optional[Path]):
    pipeline = build_pipeline(settings)
    upload = LocalUpload(file) if file else None
    try:
        return await pipeline.run(task, upload)
    finally:
        if upload is not None:
            await upload.close()
        await pipeline.aclose()


@app.command()
def run(task: str, file: Optional[Path] = _file_option):
    """Run TASK through the full pipeline and print the response envelope."""
    try:
        envelope = asyncio.run(_run(task, file))
    except RuntimeError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(2)
    console.print_json(json.dumps(envelope.to_dict()))
    if not envelope.ok:
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option(settings.HOST, "--host"),
    port: int = typer.Option(settings.PORT, "--port"),
):
    """Serve the HTTP API."""
    import uvicorn

    uvicorn.run("taskbuster.api.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
