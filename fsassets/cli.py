"""
Filesystem Assets CLI Tool

Command-line interface for managing blobs in a local storage root.

Usage:
    fsassets ls [FOLDER_URL]     - List a folder
    fsassets put FILE URL        - Upload a file
    fsassets get URL             - Download a blob
    fsassets rm URL...           - Remove folders and blobs
    fsassets mv SRC DEST         - Move a folder or blob
    fsassets cp SRC DEST         - Copy a folder or blob
    fsassets mkdir NAME          - Create a folder
    fsassets url URL             - Print the absolute URL
    fsassets serve               - Start the HTTP server
"""
import functools
import logging
import os
import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from fsassets import __version__
from fsassets.config import Settings
from fsassets.storage import BlobFolder, BlobInfo, BlobStorageError, FileSystemBlobProvider

console = Console()

COPY_CHUNK_SIZE = 64 * 1024


def handle_storage_errors(command):
    """Print storage and I/O failures in red and exit with status 1."""

    @functools.wraps(command)
    def wrapper(*args, **kwargs):
        try:
            return command(*args, **kwargs)
        except (BlobStorageError, OSError) as e:
            console.print(f"[red]✗ Error: {escape(str(e))}[/red]")
            sys.exit(1)

    return wrapper


def get_provider(ctx: click.Context) -> FileSystemBlobProvider:
    """Build the provider once per invocation from the group options."""
    obj = ctx.ensure_object(dict)
    if "provider" not in obj:
        try:
            obj["provider"] = FileSystemBlobProvider.from_settings(obj["settings"])
        except ValidationError as e:
            console.print(f"[red]✗ Invalid storage configuration[/red]\n{escape(str(e))}")
            sys.exit(1)
    return obj["provider"]


def format_size(size: int) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size} B"


@click.group()
@click.version_option(version=__version__, prog_name="Filesystem Assets")
@click.option("--root", "root_path", default=None, help="Storage root directory")
@click.option("--public-url", default=None, help="Public base URL for blobs")
@click.pass_context
def main(ctx: click.Context, root_path: str | None, public_url: str | None):
    """
    Filesystem Assets - blob storage over a local directory.

    Defaults come from ASSETS_* environment variables and .env.
    """
    settings = Settings()
    overrides = {}
    if root_path is not None:
        overrides["ASSETS_FILESYSTEM_ROOT_PATH"] = root_path
    if public_url is not None:
        overrides["ASSETS_FILESYSTEM_PUBLIC_URL"] = public_url
    if overrides:
        settings = settings.model_copy(update=overrides)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)["settings"] = settings


@main.command()
@click.argument("folder_url", required=False)
@click.option("--keyword", "-k", default=None, help="Search descendants by name fragment")
@click.pass_context
@handle_storage_errors
def ls(ctx: click.Context, folder_url: str | None, keyword: str | None):
    """
    List folders and blobs.

    Example:
        fsassets ls catalog --keyword printer
    """
    result = get_provider(ctx).search(folder_url, keyword)

    if not result.results:
        console.print("[yellow]No entries found.[/yellow]")
        return

    table = Table(title=f"Assets ({result.total_count} total)", show_header=True, header_style="bold cyan")
    table.add_column("Type")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("Modified", style="dim")

    for entry in result.results:
        modified = entry.modified_date.strftime("%Y-%m-%d %H:%M") if entry.modified_date else ""
        if isinstance(entry, BlobInfo):
            table.add_row("blob", entry.name, format_size(entry.size), modified)
        else:
            table.add_row("folder", entry.name, "", modified)

    console.print(table)


@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("url")
@click.pass_context
@handle_storage_errors
def put(ctx: click.Context, source: str, url: str):
    """
    Upload a local file to a blob URL.

    Example:
        fsassets put ./manual.pdf catalog/manual.pdf
    """
    provider = get_provider(ctx)
    with open(source, "rb") as src, provider.open_write(url) as dst:
        while chunk := src.read(COPY_CHUNK_SIZE):
            dst.write(chunk)

    info = provider.get_info(url)
    console.print(f"[green]✓[/green] Uploaded {format_size(info.size)}")
    click.echo(info.url)


@main.command()
@click.argument("url")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Destination file")
@click.pass_context
@handle_storage_errors
def get(ctx: click.Context, url: str, output: str | None):
    """
    Download a blob to a local file.

    Example:
        fsassets get catalog/manual.pdf -o ./manual.pdf
    """
    provider = get_provider(ctx)
    source = provider.open_read(url)
    if output is None:
        output = os.path.basename(provider.urls.resolve_path(url))

    with source, open(output, "wb") as dst:
        while chunk := source.read(COPY_CHUNK_SIZE):
            dst.write(chunk)

    console.print(f"[green]✓[/green] Saved to [cyan]{output}[/cyan]")


@main.command()
@click.argument("urls", nargs=-1, required=True)
@click.pass_context
@handle_storage_errors
def rm(ctx: click.Context, urls: tuple[str, ...]):
    """
    Remove folders and blobs.

    Example:
        fsassets rm catalog/old.pdf catalog/archive
    """
    get_provider(ctx).remove(list(urls))
    console.print(f"[green]✓[/green] Removed {len(urls)} item(s)")


@main.command()
@click.argument("src_url")
@click.argument("dest_url")
@click.pass_context
@handle_storage_errors
def mv(ctx: click.Context, src_url: str, dest_url: str):
    """
    Move a folder or blob. Existing destinations are left alone.

    Example:
        fsassets mv catalog/draft.pdf catalog/final.pdf
    """
    if get_provider(ctx).move(src_url, dest_url):
        console.print(f"[green]✓[/green] Moved to [cyan]{dest_url}[/cyan]")
    else:
        console.print("[yellow]⚠ Nothing moved: source missing or destination exists[/yellow]")


@main.command()
@click.argument("src_url")
@click.argument("dest_url")
@click.pass_context
@handle_storage_errors
def cp(ctx: click.Context, src_url: str, dest_url: str):
    """
    Copy a folder tree or a single blob.

    Example:
        fsassets cp catalog catalog-backup
    """
    get_provider(ctx).copy(src_url, dest_url)
    console.print(f"[green]✓[/green] Copied to [cyan]{dest_url}[/cyan]")


@main.command()
@click.argument("name")
@click.option("--parent", "parent_url", default=None, help="Parent folder URL")
@click.pass_context
@handle_storage_errors
def mkdir(ctx: click.Context, name: str, parent_url: str | None):
    """
    Create a folder.

    Example:
        fsassets mkdir 151349 --parent catalog
    """
    get_provider(ctx).create_folder(BlobFolder(name=name, parent_url=parent_url))
    console.print(f"[green]✓[/green] Folder [cyan]{name}[/cyan] ready")


@main.command()
@click.argument("url")
@click.pass_context
@handle_storage_errors
def url(ctx: click.Context, url: str):
    """
    Print the escaped absolute form of a URL.

    Example:
        fsassets url "catalog/epson printer.txt"
    """
    click.echo(get_provider(ctx).normalize_to_absolute(url))


@main.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", default=8000, help="Port to run server on")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int):
    """
    Start the asset HTTP server.

    Example:
        fsassets --root ./assets serve --port 8000
    """
    import uvicorn

    from fsassets.main import create_app

    settings: Settings = ctx.obj["settings"]
    console.print(Panel(
        f"[bold green]Starting Filesystem Assets Server[/bold green]\n\n"
        f"Root: [cyan]{settings.ASSETS_FILESYSTEM_ROOT_PATH}[/cyan]\n"
        f"API: [cyan]http://{host}:{port}/api/v1/assets[/cyan]\n\n"
        f"[dim]Press Ctrl+C to stop[/dim]",
        border_style="green"
    ))

    try:
        uvicorn.run(create_app(settings), host=host, port=port)
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Server stopped.[/yellow]")


if __name__ == "__main__":
    main()
