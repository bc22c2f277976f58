"""
markdown-ai CLI Application.

Main entry point for the markdown-ai command-line interface: reformat and
rewrite markdown files through the generation service, and inspect how a
document would be chunked and profiled.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.text import Text

from .. import __version__
from ..core.content_processor import CancellationToken, RewriteContext
from ..core.document_processor import ComplexityAnalyzer, DocumentAnalyzer
from ..exceptions import ConfigurationError, InitializationError, MarkdownAIError
from ..utils.config import ConfigManager
from ..utils.logging_config import LogFormat, LogLevel, LoggingManager
from ..utils.processor_factory import ProcessorFactory

# Status output goes to stderr so stdout carries only document text
console = Console(stderr=True)

app = typer.Typer(
    name="markdown-ai",
    help="AI-assisted markdown reformatting and rewriting",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

_config_manager: Optional[ConfigManager] = None
_global_config: dict = {}


def setup_logging(
    verbose: bool = False,
    log_json: bool = False,
    config_manager: Optional[ConfigManager] = None
) -> logging.Logger:
    """
    Set up logging for a CLI run.

    Rich console output by default, JSON lines with --log-json. A log file
    configured under logging.file is attached in either case.

    Args:
        verbose: Enable DEBUG logging
        log_json: Emit JSON lines instead of rich console output
        config_manager: Source of the 'logging' section

    Returns:
        The package logger
    """
    section = config_manager.get("logging", {}) if config_manager else {}
    section = section or {}

    rich_handler = None
    if not log_json:
        rich_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )

    overrides = {}
    if verbose:
        overrides["log_level"] = LogLevel.DEBUG
    if log_json:
        overrides["log_format"] = LogFormat.JSON

    LoggingManager.from_config(section, console_handler=rich_handler, **overrides)
    return logging.getLogger("markdown_ai_backend")


def get_config_manager(config_path: Optional[str] = None) -> ConfigManager:
    """
    Get or create the global configuration manager.

    Raises:
        typer.Exit: If configuration loading fails
    """
    global _config_manager

    if _config_manager is None or config_path:
        try:
            manager = ConfigManager(config_file=config_path, load_env=True)
            manager.load_config()
        except ConfigurationError as e:
            console.print(f"[red]Configuration Error:[/red] {e}")
            raise typer.Exit(1)
        _config_manager = manager

    return _config_manager


def get_global_config() -> dict:
    return _global_config


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file (default: markdown_ai.config.json if present)",
        metavar="PATH",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging (DEBUG level)",
    ),
    log_json: bool = typer.Option(
        False,
        "--log-json",
        help="Emit logs as JSON lines",
    ),
) -> None:
    """
    markdown-ai - clean up and rewrite markdown with a generation service.

    Common workflows:
    • Reformat a file: markdown-ai reformat notes.md -o notes.clean.md
    • Rewrite a file: markdown-ai rewrite intro.md -i "make this more formal"
    • Preview chunking: markdown-ai chunk long.md --max-chars 4000
    """
    global _global_config, _config_manager

    _config_manager = None
    config_manager = get_config_manager(config_path)
    logger = setup_logging(verbose, log_json, config_manager)

    _global_config = {
        "config_path": config_path,
        "verbose": verbose,
        "log_json": log_json,
        "logger": logger,
    }
    ctx.obj = _global_config.copy()


def _read_document(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        console.print(f"[red]File Not Found:[/red] {path}")
        raise typer.Exit(1)
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Cannot read {path}:[/red] {e}")
        raise typer.Exit(1)


def _write_document(content: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(content)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content if content.endswith("\n") else content + "\n", encoding="utf-8")
    console.print(f"[green]✓[/green] Wrote {output}")


def _progress() -> Progress:
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total} chunks"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def _run(operation: str, run_fn):
    """
    Open a session, run operation with a progress bar and handle the response.

    run_fn receives (processor, on_progress, cancel_token) and returns a response.

    Raises:
        typer.Exit: With code 1 when the session cannot be created or the request fails
    """
    factory = ProcessorFactory(get_config_manager())
    try:
        session = factory.create_session()
        processor = factory.create_processor(session)
    except (InitializationError, ConfigurationError) as e:
        console.print(f"[red]Initialization Error:[/red] {e}")
        raise typer.Exit(1)

    token = CancellationToken()
    try:
        with _progress() as progress:
            task = progress.add_task(operation, total=None)

            def on_progress(done: int, total: int) -> None:
                progress.update(task, completed=done, total=total)

            try:
                response = run_fn(processor, on_progress, token)
            except KeyboardInterrupt:
                token.cancel()
                console.print("\n[yellow]Operation cancelled by user[/yellow]")
                raise typer.Exit(130)
    finally:
        session.close()

    if not response.success:
        console.print(
            f"[red]{operation} failed[/red] after {response.chunks_processed}/"
            f"{response.total_chunks} chunks: {response.error}"
        )
        raise typer.Exit(1)

    logging.getLogger(__name__).info(
        f"{operation} finished: {response.chunks_processed}/{response.total_chunks} chunks"
    )
    return response


@app.command()
def reformat(
    file: Path = typer.Argument(..., help="Markdown file to reformat"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the result here instead of stdout"
    ),
) -> None:
    """Fix markdown formatting without changing the content."""
    content = _read_document(file)
    response = _run(
        "Reformatting",
        lambda processor, on_progress, token: processor.reformat(
            content, on_progress=on_progress, cancel_token=token
        ),
    )
    _write_document(response.content, output)


@app.command()
def rewrite(
    file: Path = typer.Argument(..., help="Markdown file holding the region to rewrite"),
    instruction: str = typer.Option(..., "--instruction", "-i", help="What to change"),
    before_file: Optional[Path] = typer.Option(
        None, "--before-file", help="Document text preceding the region"
    ),
    after_file: Optional[Path] = typer.Option(
        None, "--after-file", help="Document text following the region"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the result here instead of stdout"
    ),
) -> None:
    """Rewrite a markdown region according to an instruction."""
    if not instruction.strip():
        console.print("[red]Error:[/red] --instruction must not be empty")
        raise typer.Exit(1)

    content = _read_document(file)
    context = RewriteContext(
        before=_read_document(before_file) if before_file else "",
        after=_read_document(after_file) if after_file else "",
    )
    response = _run(
        "Rewriting",
        lambda processor, on_progress, token: processor.rewrite(
            content, instruction, context, on_progress=on_progress, cancel_token=token
        ),
    )
    _write_document(response.content, output)


@app.command()
def chunk(
    file: Path = typer.Argument(..., help="Markdown file to split"),
    max_chars: Optional[int] = typer.Option(
        None, "--max-chars", min=1, help="Chunk budget in characters (default from config)"
    ),
    overlap: Optional[int] = typer.Option(
        None, "--overlap", min=0, help="Overlap budget in characters (default from config)"
    ),
) -> None:
    """Show how a document would be split into chunks."""
    content = _read_document(file)
    factory = ProcessorFactory(get_config_manager())

    try:
        chunker = factory.create_chunker()
        chunks = chunker.chunk(content, max_chars, overlap)
    except (ConfigurationError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not chunks:
        console.print("[yellow]Document is empty, no chunks[/yellow]")
        return

    table = Table(title=f"Chunks of {file.name}")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Lines", style="magenta")
    table.add_column("Chars", justify="right", style="green")
    table.add_column("Type", style="blue")
    table.add_column("Overlap", justify="right", style="dim")
    table.add_column("Preview")

    for item in chunks:
        table.add_row(
            str(item.ordinal + 1),
            f"{item.start_line}-{item.end_line}",
            str(item.get_length()),
            item.dominant_type.value,
            str(len(item.overlap_prefix)),
            item.get_preview(60),
        )

    console.print(table)


@app.command()
def analyze(
    file: Path = typer.Argument(..., help="Markdown file to profile"),
) -> None:
    """Show the document profile and content complexity."""
    content = _read_document(file)

    complexity_analyzer = ComplexityAnalyzer()
    analysis = DocumentAnalyzer(complexity_analyzer).analyze(content)
    complexity = complexity_analyzer.analyze_content_complexity(content)
    metrics = analysis.style_metrics

    profile = Text()
    profile.append(f"Dominant type: {analysis.dominant_type}\n", style="bold")
    profile.append(f"Length: {analysis.document_length} chars, ")
    profile.append(f"~{complexity_analyzer.estimate_tokens(content)} tokens\n")
    profile.append(f"Headings: {len(analysis.heading_hierarchy)}\n")
    for heading in analysis.heading_hierarchy[:10]:
        profile.append(f"  {'  ' * (heading.level - 1)}{heading.text}\n", style="dim")
    profile.append(f"Avg sentence length: {metrics.avg_sentence_length:.1f} words\n")
    profile.append(f"Formality: {metrics.formality_score:.0f}/100\n")
    profile.append(f"Technical density: {metrics.technical_density:.2f}\n")
    profile.append(f"Readability: {metrics.readability_level}")
    console.print(Panel(profile, title="Document Analysis", border_style="blue"))

    table = Table(title="Content Complexity")
    table.add_column("Dimension", style="cyan")
    table.add_column("Ratio", justify="right", style="green")
    for name, value in complexity.to_dict().items():
        table.add_row(name.replace("_ratio", "").replace("_", " "), f"{value:.3f}")
    table.add_row("score", f"{complexity.complexity_score():.3f}", style="bold")
    table.add_row("dominant", complexity.dominant_dimension() or "none", style="bold")
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"markdown-ai [blue]v{__version__}[/blue]")


def handle_cli_error(error: Exception) -> None:
    """Print a user-facing message for an error that escaped a command."""
    logger = logging.getLogger(__name__)

    if isinstance(error, ConfigurationError):
        console.print(f"[red]Configuration Error:[/red] {error}")
    elif isinstance(error, MarkdownAIError):
        console.print(f"[red]Error:[/red] {error.message}")
    elif isinstance(error, PermissionError):
        console.print(f"[red]Permission Denied:[/red] {error}")
    else:
        console.print(f"[red]Error:[/red] {error}")
    logger.debug("Error details", exc_info=error)


def cli_main() -> None:
    """
    Console script entry point with error handling.
    """
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        raise typer.Exit(130)
    except Exception as e:
        handle_cli_error(e)
        raise typer.Exit(1)


if __name__ == "__main__":
    cli_main()
