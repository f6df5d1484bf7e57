"""
pngtosvg CLI - convert PNG images to SVG with potrace.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .bulk import BulkConversionOptions, BulkConverter, ConversionStats, find_png_files
from .converter import PngToSvgConverter
from .exceptions import PngToSvgError
from .options import ConversionOptions, Preset, TurnPolicy, get_preset_options, list_presets
from .tracing import DEFAULT_POSTERIZE_STEPS

app = typer.Typer(
    name="pngtosvg",
    help="Convert PNG images to SVG using potrace.",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)

console = Console()
error_console = Console(stderr=True, style="bold red")


def version_callback(value: bool):
    if value:
        from pngtosvg import __version__
        console.print(f"[bold cyan]pngtosvg[/] version [bold green]{__version__}[/]")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def require_file(path: Path) -> Path:
    if not path.is_file():
        error_console.print(f"❌ Input file not found: [yellow]{path}[/]")
        raise typer.Exit(1)
    return path


def require_directory(path: Path) -> Path:
    if not path.is_dir():
        error_console.print(f"❌ Input directory not found: [yellow]{path}[/]")
        raise typer.Exit(1)
    return path


def preset_options(preset: Optional[Preset]) -> ConversionOptions:
    if preset is None:
        return ConversionOptions()
    console.print(f"🎯 Using preset: [cyan]{preset.value}[/]")
    return get_preset_options(preset.value)


def options_table(options: ConversionOptions) -> Table:
    table = Table(box=box.ROUNDED, show_header=False, border_style="dim")
    table.add_column("Option", style="cyan")
    table.add_column("Value")
    for name, value in options.merged_with_defaults().to_dict().items():
        table.add_row(name, str(value))
    return table


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", "-V", help="Show version and exit.",
                     callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log progress details"),
    ] = False,
):
    """
    🎨 [bold cyan]pngtosvg[/] - PNG to SVG conversion.

    [bold]Examples:[/]

      $ pngtosvg convert logo.png logo.svg --preset logo

      $ pngtosvg posterize photo.png photo.svg --steps 5

      $ pngtosvg bulk ./pngs ./svgs --recursive --parallel
    """
    configure_logging(verbose)


@app.command("convert", rich_help_panel="Commands")
def convert(
    input_file: Annotated[Path, typer.Argument(help="Input PNG file path", show_default=False)],
    output_file: Annotated[Path, typer.Argument(help="Output SVG file path", show_default=False)],
    threshold: Annotated[
        Optional[int],
        typer.Option("--threshold", "-t", min=0, max=255, help="Black/white threshold (0-255) [dim][default: 128][/]"),
    ] = None,
    turd_size: Annotated[
        Optional[int],
        typer.Option("--turd-size", "-s", min=0, help="Suppress speckles of up to this size [dim][default: 2][/]"),
    ] = None,
    alpha_max: Annotated[
        Optional[float],
        typer.Option("--alpha-max", "-a", help="Corner threshold parameter [dim][default: 1][/]"),
    ] = None,
    opt_curve: Annotated[
        Optional[bool],
        typer.Option("--opt-curve/--no-opt-curve", help="Curve optimization [dim][default: on][/]", show_default=False),
    ] = None,
    opt_tolerance: Annotated[
        Optional[float],
        typer.Option("--opt-tolerance", "-o", help="Curve optimization tolerance [dim][default: 0.2][/]"),
    ] = None,
    turn_policy: Annotated[
        Optional[TurnPolicy],
        typer.Option("--turn-policy", "-p", help="Turn policy [dim][default: minority][/]"),
    ] = None,
    black_on_white: Annotated[
        Optional[bool],
        typer.Option("--black-on-white/--no-black-on-white", help="Trace dark shapes; negate to invert colors",
                     show_default=False),
    ] = None,
    preset: Annotated[
        Optional[Preset],
        typer.Option("--preset", help="Use preset for specific image type"),
    ] = None,
):
    """Convert a PNG file to SVG."""
    require_file(input_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    options = preset_options(preset).override(
        threshold=threshold,
        turd_size=turd_size,
        alpha_max=alpha_max,
        opt_curve=opt_curve,
        opt_tolerance=opt_tolerance,
        turn_policy=turn_policy,
        black_on_white=black_on_white,
    )
    console.print(options_table(options))

    try:
        with console.status("[cyan]Tracing..."):
            PngToSvgConverter().convert_file(input_file, output_file, options)
    except Exception as e:
        error_console.print(f"❌ Conversion failed: {e}")
        raise typer.Exit(1)

    console.print(f"✅ [bold green]Success![/] Output saved to [cyan]{output_file}[/]")


@app.command("posterize", rich_help_panel="Commands")
def posterize(
    input_file: Annotated[Path, typer.Argument(help="Input PNG file path", show_default=False)],
    output_file: Annotated[Path, typer.Argument(help="Output SVG file path", show_default=False)],
    steps: Annotated[
        int,
        typer.Option("--steps", "-s", min=1, help="Number of color steps"),
    ] = DEFAULT_POSTERIZE_STEPS,
    threshold: Annotated[
        Optional[int],
        typer.Option("--threshold", "-t", min=0, max=255, help="Black/white threshold (0-255)"),
    ] = None,
    preset: Annotated[
        Optional[Preset],
        typer.Option("--preset", help="Use preset for specific image type"),
    ] = None,
):
    """Create a posterized SVG with multiple color levels."""
    require_file(input_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    options = preset_options(preset).override(threshold=threshold)
    try:
        with console.status(f"[cyan]Posterizing with {steps} steps..."):
            PngToSvgConverter().convert_to_posterized(input_file, output_file, steps, options)
    except Exception as e:
        error_console.print(f"❌ Posterization failed: {e}")
        raise typer.Exit(1)

    console.print(f"✅ [bold green]Posterized SVG created:[/] [cyan]{output_file}[/]")


@app.command("batch", rich_help_panel="Commands")
def batch(
    input_dir: Annotated[Path, typer.Argument(help="Input directory containing PNG files", show_default=False)],
    output_dir: Annotated[Path, typer.Argument(help="Output directory for SVG files", show_default=False)],
    preset: Annotated[
        Optional[Preset],
        typer.Option("--preset", help="Use preset for specific image type"),
    ] = None,
):
    """Convert every PNG in a directory to SVG."""
    require_directory(input_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    options = preset_options(preset)
    files = find_png_files(input_dir)
    console.print(f"📁 Found {len(files)} PNG files")

    converter = PngToSvgConverter()
    failed = 0
    for path in files:
        try:
            converter.convert_file(path, output_dir / f"{path.stem}.svg", options)
            console.print(f"  ✅ {path.name}")
        except Exception as e:
            failed += 1
            error_console.print(f"  ❌ Failed to convert {path.name}: {e}")

    console.print(f"🎉 Batch conversion completed! [dim]({len(files) - failed} converted, {failed} failed)[/]")


def show_bulk_summary(stats: ConversionStats) -> None:
    table = Table(title="🎉 Bulk Conversion Complete!", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("📊 Total files", str(stats.total))
    table.add_row("✅ Successful", f"[green]{stats.successful}[/]")
    table.add_row("❌ Failed", f"[red]{stats.failed}[/]" if stats.failed else "0")
    table.add_row("⏭️  Skipped", str(stats.skipped))
    if stats.filtered_out:
        table.add_row("📏 Filtered by size", str(stats.filtered_out))
    table.add_row("⏱️  Duration", f"{stats.duration:.2f}s")
    if stats.average_per_file is not None:
        table.add_row("📈 Average", f"{stats.average_per_file:.2f}s per file")
    console.print(table)


@app.command("bulk", rich_help_panel="Commands")
def bulk(
    input_dir: Annotated[Path, typer.Argument(help="Input directory containing PNG files", show_default=False)],
    output_dir: Annotated[Path, typer.Argument(help="Output directory for the mirrored SVG tree", show_default=False)],
    preset: Annotated[
        Optional[Preset],
        typer.Option("--preset", help="Use preset for specific image type", rich_help_panel="Conversion Options"),
    ] = None,
    threshold: Annotated[
        Optional[int],
        typer.Option("--threshold", "-t", min=0, max=255, help="Black/white threshold (0-255)",
                     rich_help_panel="Conversion Options"),
    ] = None,
    turd_size: Annotated[
        Optional[int],
        typer.Option("--turd-size", "-s", min=0, help="Suppress speckles of up to this size",
                     rich_help_panel="Conversion Options"),
    ] = None,
    opt_curve: Annotated[
        Optional[bool],
        typer.Option("--opt-curve/--no-opt-curve", help="Curve optimization", show_default=False,
                     rich_help_panel="Conversion Options"),
    ] = None,
    turn_policy: Annotated[
        Optional[TurnPolicy],
        typer.Option("--turn-policy", "-p", help="Turn policy", rich_help_panel="Conversion Options"),
    ] = None,
    parallel: Annotated[
        bool,
        typer.Option("--parallel", help="Enable parallel processing", rich_help_panel="Run Options"),
    ] = False,
    max_workers: Annotated[
        Optional[int],
        typer.Option("--max-workers", min=1, help="Max parallel workers [dim][default: 4][/]",
                     rich_help_panel="Run Options"),
    ] = None,
    recursive: Annotated[
        bool,
        typer.Option("--recursive", "-r", help="Process subdirectories", rich_help_panel="Run Options"),
    ] = False,
    overwrite: Annotated[
        bool,
        typer.Option("--overwrite", help="Overwrite existing files", rich_help_panel="Run Options"),
    ] = False,
    min_size: Annotated[
        Optional[float],
        typer.Option("--min-size", min=0, help="Skip files smaller than X KB", rich_help_panel="Run Options"),
    ] = None,
    max_size: Annotated[
        Optional[float],
        typer.Option("--max-size", min=0, help="Skip files larger than X KB", rich_help_panel="Run Options"),
    ] = None,
):
    """Convert a directory tree of PNGs into a mirrored SVG tree."""
    require_directory(input_dir)

    options = BulkConversionOptions.build(
        preset=preset.value if preset else None,
        threshold=threshold,
        turd_size=turd_size,
        opt_curve=opt_curve,
        turn_policy=turn_policy,
        parallel=parallel,
        max_workers=max_workers,
        recursive=recursive,
        overwrite=overwrite,
        min_size_kb=min_size,
        max_size_kb=max_size,
    )
    console.print(f"📂 Input: [cyan]{input_dir}[/]")
    console.print(f"📂 Output: [cyan]{output_dir}[/]")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed} files"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Converting...", total=None)

        def advance(result):
            progress.advance(task)

        try:
            stats = BulkConverter(on_result=advance).convert_directory(input_dir, output_dir, options)
        except PngToSvgError as e:
            error_console.print(f"❌ Bulk conversion failed: {e}")
            raise typer.Exit(1)

    show_bulk_summary(stats)


@app.command("presets", rich_help_panel="Utilities")
def presets():
    """Show the preset option bundles."""
    table = Table(title="Presets", box=box.ROUNDED)
    table.add_column("Preset", style="bold cyan")
    columns = ["threshold", "turdSize", "optCurve", "optTolerance", "turnPolicy"]
    for column in columns:
        table.add_column(column)
    for name, values in list_presets().items():
        table.add_row(name, *(str(values.get(column, "-")) for column in columns))
    console.print(table)


@app.command("serve", rich_help_panel="Utilities")
def serve(
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address")] = None,
    port: Annotated[Optional[int], typer.Option("--port", help="Port to listen on")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Restart on code changes")] = False,
):
    """Run the REST API server."""
    import uvicorn

    from .api import create_app
    from .config import load_settings

    settings = load_settings()
    host = host or settings.HOST
    port = port or settings.PORT
    console.print(f"🚀 PNG to SVG API server running on [cyan]http://{host}:{port}[/]")
    console.print(f"📊 Health check: [cyan]http://{host}:{port}/health[/]")
    log_level = settings.LOG_LEVEL.lower()
    if reload:
        # the reloader needs an import string, settings are re-read from the environment
        uvicorn.run("pngtosvg.api:create_app", factory=True, reload=True,
                    host=host, port=port, log_level=log_level)
    else:
        uvicorn.run(create_app(settings), host=host, port=port, log_level=log_level)


def run():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
