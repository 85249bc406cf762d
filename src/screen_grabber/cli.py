"""CLI interface for screen grabber."""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import settings
from .eligibility import can_extract, supports
from .encoding.ffmpeg import FFmpegEncoder
from .encoding.probe import FFprobeMetadataSource
from .exceptions import EncodingError, ProbeError
from .interfaces import MediaEncoder, MetadataSource
from .models import ExtractionStrategy, Video, ticks_to_timedelta
from .provider import VideoImageProvider, plan_extraction
from .storage.media import get_storage_stats

app = typer.Typer(help="Screen Grabber - thumbnails from embedded cover art or video frames")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def get_metadata_source() -> MetadataSource:
    return FFprobeMetadataSource()


def get_encoder() -> MediaEncoder:
    return FFmpegEncoder()


def probe(path: Path) -> Video:
    """Probe a file, exiting with an error message on failure."""
    try:
        return asyncio.run(get_metadata_source().get_video(str(path)))
    except ProbeError as e:
        console.print(f"[red]Error probing {path}: {e.reason}[/red]")
        raise typer.Exit(1)


def format_runtime(ticks: int | None) -> str:
    if not ticks:
        return "unknown"
    total = int(ticks_to_timedelta(ticks).total_seconds())
    return f"{total // 3600}:{total % 3600 // 60:02d}:{total % 60:02d}"


@app.command()
def inspect(
    path: Path = typer.Argument(..., help="Video file or disc folder"),
):
    """Show streams and the extraction plan for a video."""
    video = probe(path)

    console.print(f"\n[bold]{path.name}[/bold]")
    console.print(f"Type: {video.video_type.value}")
    console.print(f"Container: {video.container or 'unknown'}")
    console.print(f"Runtime: {format_runtime(video.runtime_ticks)}")
    if video.video_3d_format:
        console.print(f"3D: {video.video_3d_format.value}")

    table = Table(title="Streams")
    table.add_column("Index", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Codec", style="blue")
    table.add_column("Size", style="green")
    table.add_column("Comment", style="yellow")

    for s in video.media_streams:
        size = f"{s.width}x{s.height}" if s.width and s.height else ""
        table.add_row(str(s.index), s.type.value, s.codec or "", size, s.comment or "")

    console.print(table)

    if not supports(video) or not can_extract(video):
        console.print("\n[yellow]Not eligible for image extraction.[/yellow]")
        return

    plan = plan_extraction(video)
    if plan.strategy is ExtractionStrategy.EMBEDDED:
        console.print(f"\n[green]Plan: embedded image stream {plan.stream.index}[/green]")
    else:
        console.print(
            f"\n[green]Plan: video frame at {plan.offset.total_seconds():.3f}s[/green]"
        )


@app.command()
def grab(
    path: Path = typer.Argument(..., help="Video file or disc folder"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Move the image here"),
):
    """Extract a thumbnail image from a video."""
    video = probe(path)
    provider = VideoImageProvider(get_encoder())

    if not provider.supports(video):
        console.print(f"[yellow]No image: {path} is not a supported local video.[/yellow]")
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Extracting image...", total=None)
        try:
            result = asyncio.run(provider.get_image(video))
        except EncodingError as e:
            console.print(f"[red]Extraction failed: {e}[/red]")
            raise typer.Exit(1)

    if not result.has_image:
        console.print(f"[yellow]No image could be extracted from {path}.[/yellow]")
        return

    image_path = result.path
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        try:
            shutil.move(result.path, output)
        except OSError as e:
            console.print(f"[red]Could not write {output}: {e}[/red]")
            raise typer.Exit(1)
        image_path = str(output)

    console.print(f"[green]Image:[/green] {image_path}")


@app.command()
def storage():
    """Show extracted image storage statistics."""
    stats = get_storage_stats()

    console.print(f"\n[bold]Storage Usage[/bold]")
    console.print(f"Directory: {stats['output_dir']}")
    console.print(f"Images: {stats['image_count']}")
    console.print(f"Total: {stats['total_size_mb']} MB")


@app.command()
def config():
    """Show current configuration."""
    console.print(f"\n[bold]Current Configuration[/bold]")
    console.print(f"FFmpeg: {settings.ffmpeg_path}")
    console.print(f"FFprobe: {settings.ffprobe_path}")
    console.print(f"Output Directory: {settings.output_directory}")
    console.print(f"JPEG Quality: {settings.jpeg_quality}")
    console.print(f"Extraction Timeout: {settings.extraction_timeout}s")
    console.print(f"Probe Timeout: {settings.probe_timeout}s")


if __name__ == "__main__":
    app()
