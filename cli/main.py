"""
Discern - Main CLI Application

Command-line interface for scoring lyrics and text, inspecting the rule
table and looking up verses.
"""
import asyncio
import json
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import get_config
from core.errors import DiscernConfigError, DiscernError
from discernment.engine import MODE_LYRICS, MODE_TEXT, AnalysisResult, DiscernmentEngine
from discernment.rules import load_rule_table
from integrations.scripture import ScriptureResolver
from observability import get_logger
from observability.logging import LoggingConfig, setup_logging

app = typer.Typer(
    name="discern",
    help="Discern - Christian discernment scores for lyrics and media",
    add_completion=False,
)

console = Console()
logger = get_logger("discern.cli")


class OutputFormat(str, Enum):
    """Output format options."""
    JSON = "json"
    TABLE = "table"


class AnalysisMode(str, Enum):
    LYRICS = MODE_LYRICS
    TEXT = MODE_TEXT


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Configure console logging for all commands."""
    setup_logging(LoggingConfig(
        service_name="discern-cli",
        level="DEBUG" if verbose else "WARNING",
        json_format=False,
    ))


def _build_engine() -> DiscernmentEngine:
    try:
        return DiscernmentEngine.from_config(get_config())
    except DiscernConfigError as e:
        logger.error("Engine startup failed", error=e.message, source=e.source)
        console.print(f"[red]Error: {e.message}[/red]")
        for suggestion in e.suggestions:
            console.print(f"  - {suggestion}")
        raise typer.Exit(1)


def _score_color(total: int) -> str:
    return "green" if total >= 80 else "yellow" if total >= 36 else "red"


@app.command()
def analyze(
    text: Optional[str] = typer.Argument(None, help="Text to analyze (or use --file / stdin)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read text from a file"),
    mode: AnalysisMode = typer.Option(AnalysisMode.LYRICS, "--mode", "-m", help="Extractor to use"),
    verses: bool = typer.Option(False, "--verses", help="Fetch verse text for the hits"),
    translation: Optional[str] = typer.Option(None, "--translation", "-t", help="Bible translation code"),
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--output", "-o", help="Output format"),
):
    """Score lyrics or free text."""
    if file:
        if not file.exists():
            console.print(f"[red]Error: Input file not found: {file}[/red]")
            raise typer.Exit(1)
        text = file.read_text(encoding="utf-8")
    elif text is None and not sys.stdin.isatty():
        text = sys.stdin.read()

    if not text or not text.strip():
        console.print("[red]Error: no text given[/red]")
        raise typer.Exit(1)

    engine = _build_engine()
    result = asyncio.run(_analyze(engine, text, mode.value, verses, translation))

    if output == OutputFormat.JSON:
        console.print_json(json.dumps(result.to_dict()))
    else:
        _display_analysis(result)


async def _analyze(
    engine: DiscernmentEngine,
    text: str,
    mode: str,
    with_verses: bool,
    translation: Optional[str],
) -> AnalysisResult:
    try:
        if with_verses:
            return await engine.analyze_text(text, mode=mode, translation=translation)
        signals, score = engine.evaluate(text, mode)
        return AnalysisResult(signals=signals, score=score)
    finally:
        await engine.aclose()


def _display_analysis(result: AnalysisResult):
    """Display an analysis as rich tables."""
    total = result.score.total
    color = _score_color(total)
    console.print(Panel.fit(
        f"[bold {color}]Discernment score: {total}/100[/bold {color}]",
        border_style=color,
    ))

    if not result.score.hits:
        console.print("[dim]No rules fired.[/dim]")
    else:
        table = Table(title="Rule Hits")
        table.add_column("Rule", style="cyan")
        table.add_column("Weight", justify="right")
        table.add_column("Reason")
        table.add_column("Scripture", style="magenta")
        for hit in result.score.hits:
            weight_color = "red" if hit.weight < 0 else "green"
            table.add_row(
                hit.rule_id,
                f"[{weight_color}]{hit.weight:+d}[/{weight_color}]",
                hit.reason,
                ", ".join(hit.refs),
            )
        console.print(table)

    if result.verses:
        verse_table = Table(title="Scripture")
        verse_table.add_column("Reference", style="magenta")
        verse_table.add_column("Text")
        for ref, verse in result.verses.items():
            verse_table.add_row(f"{ref} ({verse.translation})", verse.text)
        console.print(verse_table)


@app.command()
def rules(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Rule file (defaults to configured path)"),
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--output", "-o", help="Output format"),
):
    """Validate and list the rule table."""
    rules_path = path or get_config().rules.path
    try:
        table = load_rule_table(rules_path)
    except DiscernConfigError as e:
        console.print(f"[red]Invalid rule table: {e.message}[/red]")
        raise typer.Exit(1)

    if output == OutputFormat.JSON:
        console.print_json(json.dumps(table.to_list()))
        return

    view = Table(title=f"Rules ({rules_path})")
    view.add_column("ID", style="cyan")
    view.add_column("Category")
    view.add_column("Weight", justify="right")
    view.add_column("Anchors", style="magenta")
    for rule in table:
        weight_color = "red" if rule.is_penalty else "green"
        view.add_row(
            rule.id,
            rule.category.value,
            f"[{weight_color}]{rule.weight:+d}[/{weight_color}]",
            ", ".join(rule.anchors),
        )
    console.print(view)


@app.command()
def verse(
    reference: str = typer.Argument(..., help="Scripture reference (e.g. 'John 3:16')"),
    translation: Optional[str] = typer.Option(None, "--translation", "-t", help="Bible translation code"),
):
    """Look up a single verse."""
    result = asyncio.run(_lookup(reference, translation))
    if not result.resolved:
        console.print(f"[yellow]{result.text}[/yellow]")
        raise typer.Exit(1)
    console.print(Panel(result.text, title=f"{result.reference} ({result.translation})"))


async def _lookup(reference: str, translation: Optional[str]):
    resolver = ScriptureResolver.from_config(get_config().scripture)
    try:
        return await resolver.get_verse(reference, translation)
    finally:
        await resolver.aclose()


@app.command()
def status():
    """Show configuration and component status."""
    config = get_config()
    console.print(Panel.fit(
        "[bold blue]Discern - Christian discernment engine[/bold blue]",
        border_style="blue",
    ))

    table = Table(title="Component Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    try:
        rule_table = load_rule_table(config.rules.path)
        table.add_row("Rule table", "✓ Ready", f"{len(rule_table)} rules from {config.rules.path}")
    except DiscernError as e:
        table.add_row("Rule table", "[red]✗ Invalid[/red]", e.message)

    table.add_row(
        "Scripture",
        "✓ Ready",
        f"{config.scripture.base_url} ({config.scripture.translation})",
    )
    table.add_row(
        "Lyrics",
        "✓ Ready",
        config.lyrics.provider if config.lyrics.api_key or config.lyrics.provider != "musixmatch"
        else "lyricsovh (musixmatch key missing)",
    )
    table.add_row(
        "Media analysis",
        "✓ Ready" if config.llm.enabled else "○ Not Configured",
        config.llm.openai_model if config.llm.enabled else "Set OPENAI_API_KEY",
    )
    console.print(table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Server host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Server port"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the Discern API server."""
    import uvicorn

    api_config = get_config().api
    host = host or api_config.host
    port = port or api_config.port
    console.print(f"[bold]Starting server at {host}:{port}[/bold]")
    uvicorn.run(
        "api.main:app",
        host=host,
        port=port,
        reload=reload or api_config.reload,
    )


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
