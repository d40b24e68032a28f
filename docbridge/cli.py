"""
docbridge CLI using Typer.

Command-line interface for one-off extractions and the Tika socket server.
"""

import json
import logging
import sys
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import DocbridgeSettings
from .document import Document
from .engine import OutputKind
from .engine.tika_app import TikaAppEngine
from .engine.tika_server import TikaServerEngine
from .fetch import UriFetcher

app = typer.Typer(
    name="docbridge",
    help="docbridge: extract text and metadata from documents with Apache Tika",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

SOURCE_HELP = "File path, http(s) URI, or '-' to read the document from stdin"


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"docbridge version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """docbridge: document text and metadata extraction"""
    pass


def load_config(config_file: Optional[Path]) -> DocbridgeSettings:
    """Load settings from an explicit file or the default locations."""
    if config_file:
        return DocbridgeSettings.load_from_yaml(config_file)
    return DocbridgeSettings.load()


def setup_logging(config: DocbridgeSettings) -> None:
    """Configure root logging from settings."""
    handlers = [RichHandler(console=err_console, show_path=False)]
    if config.log_file:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        handlers.append(file_handler)

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(message)s",
        handlers=handlers,
        force=True,
    )


def open_document(source: str, config: DocbridgeSettings) -> Document:
    """Build a Document wired to an engine and fetcher from settings."""
    engine = TikaAppEngine(config.engine)
    engine.verify()
    fetcher = UriFetcher(config.fetch)
    if source == "-":
        return Document(sys.stdin.buffer, engine=engine, fetcher=fetcher)
    return Document(source, engine=engine, fetcher=fetcher)


def fail(e: Exception) -> None:
    """Report an error and exit with status 1."""
    err_console.print(f"[bold red]Error:[/] {e}")
    sys.exit(1)


@app.command()
def text(
    source: str = typer.Argument(..., help=SOURCE_HELP),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Print the plain text of a document.
    """
    try:
        config = load_config(config_file)
        setup_logging(config)
        document = open_document(source, config)
        typer.echo(document.text)
    except Exception as e:
        fail(e)


@app.command()
def html(
    source: str = typer.Argument(..., help=SOURCE_HELP),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Print the XHTML rendering of a document.
    """
    try:
        config = load_config(config_file)
        setup_logging(config)
        document = open_document(source, config)
        typer.echo(document.html)
    except Exception as e:
        fail(e)


@app.command()
def metadata(
    source: str = typer.Argument(..., help=SOURCE_HELP),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print metadata as a JSON object",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Print the metadata of a document.
    """
    try:
        config = load_config(config_file)
        setup_logging(config)
        document = open_document(source, config)
        values = document.metadata

        if as_json:
            typer.echo(json.dumps(values, indent=2, sort_keys=True, ensure_ascii=False))
            return

        table = Table(title="Document Metadata", show_header=True, header_style="bold cyan")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for key in sorted(values):
            table.add_row(key, values[key])

        console.print()
        console.print(table)
        console.print()
    except Exception as e:
        fail(e)


@app.command()
def check(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Verify that the java runtime and the Tika jar are available.
    """
    try:
        config = load_config(config_file)
        setup_logging(config)

        console.print(f"[bold cyan]Java:[/] {config.engine.java_path}")
        console.print(f"[bold cyan]Tika jar:[/] {config.engine.jar_path}")

        TikaAppEngine(config.engine).verify()
        console.print("[bold green]✓ Extraction engine available[/]")
    except Exception as e:
        fail(e)


@app.command()
def serve(
    kind: OutputKind = typer.Option(
        OutputKind.TEXT,
        "--kind",
        "-k",
        help="Output kind the server produces",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        help="TCP port (default: from config)",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path",
    ),
):
    """
    Run the Tika socket server in the foreground until interrupted.
    """
    try:
        config = load_config(config_file)
        setup_logging(config)

        if port:
            config.server.port = port

        server = TikaServerEngine(kind, config.engine, config.server)
        with server:
            console.print(
                f"[bold green]✓ Tika server listening on {config.server.host}:{config.server.port}[/] "
                f"[dim]({kind.value}, Ctrl+C to stop)[/]"
            )
            while server.running:
                time.sleep(1)
        console.print("[yellow]Tika server exited[/]")
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/]")
    except Exception as e:
        fail(e)


@app.command()
def init_config(
    output: Path = typer.Option(
        Path.cwd() / "docbridge.yaml",
        "--output",
        "-o",
        help="Output config file path",
    ),
    user: bool = typer.Option(
        False,
        "--user",
        help="Create user config at ~/.config/docbridge/config.yaml",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing config file without asking",
    ),
):
    """
    Initialize a configuration file with defaults.
    """
    try:
        config = DocbridgeSettings()

        if user:
            output = Path.home() / ".config/docbridge/config.yaml"

        if output.exists() and not force:
            overwrite = typer.confirm(f"Config file exists at {output}. Overwrite?")
            if not overwrite:
                console.print("[yellow]Cancelled[/]")
                raise typer.Exit()

        config.save_to_yaml(output)
        console.print(f"[bold green]✓ Config file created:[/] {output}")
        console.print("\n[cyan]Next steps:[/]")
        console.print("1. Set engine.jar_path to your tika-app jar")
        console.print("2. Run: docbridge check")

    except typer.Exit:
        raise
    except Exception as e:
        fail(e)


if __name__ == "__main__":
    app()
