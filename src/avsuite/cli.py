"""Command-line interface for avsuite."""

import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .config import AvSuiteConfig, create_sample_config, load_config
from .core.runner import ProcessRunner
from .core.sequencer import BatchProgress, BatchSequencer, BatchSummary, QueueItem
from .error_handling import (
    AvSuiteError,
    BuildError,
    ConfigurationError,
    DependencyError,
    check_dependencies,
)
from .media import MediaDescriptor, MediaKind
from .operations.builder import ArgumentBuilder
from .operations.catalog import OperationCategory, OperationKind, find_operation
from .operations.parameters import OperationParameters
from .services.ffmpeg import FFmpegService, locate_ffprobe, resolve_ffmpeg
from .services.ffprobe import probe_duration

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(
    *,
    verbose: bool = False,
    config: AvSuiteConfig | None = None,
) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    # Clean up existing handlers first to prevent resource leaks
    cleanup_logging()

    show_path = level == logging.DEBUG
    handlers: list[logging.Handler] = [
        RichHandler(console=console, rich_tracebacks=True, show_path=show_path),
    ]

    if config and config.log_dir:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_dir / "avsuite.log")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            ),
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )


def cleanup_logging() -> None:
    """Clean up logging handlers to prevent ResourceWarnings."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            root_logger.removeHandler(handler)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """avsuite - Batch ffmpeg operations for video and audio files."""
    try:
        ctx.ensure_object(dict)
        loaded_config = load_config(config)
        ctx.obj["config"] = loaded_config
        ctx.obj["verbose"] = verbose

        setup_logging(verbose=verbose, config=loaded_config)
    except (OSError, ValueError) as e:
        config_error = ConfigurationError(
            f"Failed to load configuration: {e}",
            config_path=config,
            solution="Run 'avsuite config validate' to check your configuration file",
        )
        console.print(f"[red]Configuration Error:[/red] {config_error}")
        sys.exit(1)


@cli.command()
@click.option(
    "--kind",
    "media_kind",
    type=click.Choice([k.value for k in MediaKind]),
    help="Only show operations for this kind of file",
)
def operations(media_kind: str | None) -> None:
    """List available operations."""
    kinds = [MediaKind(media_kind)] if media_kind else list(MediaKind)

    table = Table()
    table.add_column("Operation")
    table.add_column("Category")
    table.add_column("Description")
    table.add_column("Applies To")
    table.add_column("Needs")

    for category in OperationCategory:
        seen: list[OperationKind] = []
        for kind in kinds:
            seen.extend(op for op in category.operations(kind) if op not in seen)
        for op in seen:
            table.add_row(
                op.value.replace("_", "-"),
                category.value,
                op.description,
                ", ".join(k.value for k in MediaKind if k in op.media_kinds),
                "second file" if op.requires_secondary_input else "",
            )

    console.print(table)


def parse_parameter_options(pairs: tuple[str, ...]) -> dict[str, str]:
    """Turn ``key=value`` options into a dict; dashes in keys become underscores."""
    values: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected key=value, got '{pair}'", param_hint="-p")
        values[key.strip().replace("-", "_")] = value.strip()
    return values


@cli.command()
@click.argument("operation")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--param", "-p", "param_pairs", multiple=True, help="Operation parameter as key=value")
@click.option("--secondary", type=click.Path(exists=True, path_type=Path), help="Audio file for replace/add audio")
@click.option("--subtitle", type=click.Path(exists=True, path_type=Path), help="Subtitle file to burn in")
@click.option("--pip", "pip_video", type=click.Path(exists=True, path_type=Path), help="Overlay video for picture in picture")
@click.option("--merge", "merge_inputs", multiple=True, type=click.Path(exists=True, path_type=Path), help="Clip to append (repeatable)")
@click.option("--output-dir", "-o", type=click.Path(file_okay=False, path_type=Path), help="Write outputs here")
@click.option("--dry-run", is_flag=True, help="Print ffmpeg commands without running them")
@click.pass_context
def run(
    ctx: click.Context,
    operation: str,
    files: tuple[Path, ...],
    param_pairs: tuple[str, ...],
    secondary: Path | None,
    subtitle: Path | None,
    pip_video: Path | None,
    merge_inputs: tuple[Path, ...],
    output_dir: Path | None,
    dry_run: bool,
) -> None:
    """Apply OPERATION to each FILE in turn."""
    config: AvSuiteConfig = ctx.obj["config"]

    try:
        kind = find_operation(operation)
    except KeyError:
        raise click.BadParameter(
            f"Unknown operation '{operation}'. Run 'avsuite operations' to list them.",
            param_hint="OPERATION",
        ) from None

    raw: dict[str, object] = {**parse_parameter_options(param_pairs)}
    if secondary:
        raw["secondary_input"] = secondary
    if subtitle:
        raw["subtitle_file"] = subtitle
    if pip_video:
        raw["pip_video"] = pip_video
    if merge_inputs:
        raw["merge_inputs"] = merge_inputs

    try:
        params = OperationParameters(**raw)
        descriptors = [MediaDescriptor.from_path(path) for path in files]
        ffmpeg = resolve_ffmpeg(config)
    except ValidationError as e:
        ConfigurationError("Invalid operation parameters", details=str(e)).display_to_user()
        sys.exit(1)
    except AvSuiteError as e:
        e.display_to_user()
        sys.exit(1)

    if output_dir is not None:
        config = config.model_copy(update={"output_dir": output_dir.expanduser().resolve()})

    try:
        config.ensure_directories()
    except OSError as e:
        ConfigurationError(
            f"Could not create output directories: {e}",
            solution="Check output_dir and temp_dir in your configuration",
        ).display_to_user()
        sys.exit(1)

    summary = asyncio.run(_run_batch(config, ffmpeg, kind, descriptors, params, dry_run=dry_run))
    if summary is None:
        return

    console.print(format_summary_table(summary))
    if summary.failed or summary.cancelled:
        console.print(
            f"\n[red]{summary.failed} failed, {summary.not_started} not started[/red]",
        )
        sys.exit(1)
    console.print(f"\n[green]✨ {summary.succeeded} item(s) completed[/green]")


async def _probe_all(
    config: AvSuiteConfig,
    ffmpeg: Path,
    descriptors: list[MediaDescriptor],
) -> list[MediaDescriptor]:
    ffprobe = locate_ffprobe(ffmpeg)
    durations = await asyncio.gather(
        *(probe_duration(ffprobe, d.path, config.ffprobe_timeout) for d in descriptors),
    )
    return [d.with_duration(duration) for d, duration in zip(descriptors, durations, strict=True)]


async def _run_batch(
    config: AvSuiteConfig,
    ffmpeg: Path,
    kind: OperationKind,
    descriptors: list[MediaDescriptor],
    params: OperationParameters,
    *,
    dry_run: bool = False,
) -> BatchSummary | None:
    """Probe, queue and run. Returns None for a dry run."""
    descriptors = await _probe_all(config, ffmpeg, descriptors)
    builder = ArgumentBuilder(config)
    items = [QueueItem(d, kind, params) for d in descriptors]

    if dry_run:
        for item in items:
            try:
                invocation = builder.build(item.kind, item.descriptor, item.params)
            except BuildError as e:
                console.print(f"[red]✗[/red] {item.descriptor.path.name}: {e.message}")
                continue
            console.print(invocation.command_as_string(ffmpeg), soft_wrap=True)
        return None

    sequencer = BatchSequencer(builder, ProcessRunner(ffmpeg))
    loop = asyncio.get_running_loop()
    # add_signal_handler is unavailable on some platforms
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, sequencer.cancel)

    try:
        with Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task_id = progress.add_task(kind.title, total=1.0)

            def on_progress(event: BatchProgress) -> None:
                description = kind.title
                if event.current_item is not None:
                    description = (
                        f"{kind.title} [{event.current_index + 1}/{event.total}] "
                        f"{event.current_item.descriptor.path.name}"
                    )
                progress.update(task_id, completed=event.overall, description=description)

            sequencer.subscribe(on_progress)
            summary = await sequencer.run(items)
            progress.update(task_id, completed=sequencer.overall_progress)
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)

    return summary


def format_summary_table(summary: BatchSummary) -> Table:
    """Format batch outcomes into a table."""
    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Input")
    table.add_column("Status")
    table.add_column("Output / Error")

    for outcome in summary.outcomes:
        if outcome.succeeded:
            status = "[green]done[/green]"
            detail = str(outcome.output_path)
        else:
            status = "[red]failed[/red]"
            detail = outcome.error.message if outcome.error else "Unknown error"
        table.add_row(
            str(outcome.index + 1),
            outcome.item.descriptor.path.name,
            status,
            detail,
        )

    return table


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check that ffmpeg and ffprobe are available."""
    config: AvSuiteConfig = ctx.obj["config"]

    console.print("[bold]Dependency Check[/bold]")

    errors = check_dependencies(config)
    for error in errors:
        console.print(f"[red]✗[/red] {error.message}")
        if error.solution:
            console.print(f"  [dim]{error.solution}[/dim]")

    service = FFmpegService(config)
    try:
        console.print(f"[green]✓[/green] ffmpeg: {service.binary}")
    except DependencyError:
        sys.exit(1)

    version = service.get_version()
    if version:
        console.print(f"  [dim]{version}[/dim]")
    else:
        console.print("[yellow]⚠[/yellow] Could not read the ffmpeg version")

    if errors:
        sys.exit(1)
    console.print(f"[green]✓[/green] ffprobe: {service.ffprobe_binary}")


@cli.group("config")
@click.pass_context
def config_cmd(ctx: click.Context) -> None:
    """Configuration management commands."""


@config_cmd.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: AvSuiteConfig = ctx.obj["config"]

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("ffmpeg Binary", str(config.ffmpeg_binary or "Auto-detect"))
    table.add_row("Search Paths", ", ".join(str(p) for p in config.ffmpeg_search_paths))
    table.add_row("Output Directory", str(config.output_dir or "Next to input"))
    table.add_row("Denoise Model", str(config.denoise_model_path))
    table.add_row("Temp Directory", str(config.temp_dir or "System default"))
    table.add_row("Log Directory", str(config.log_dir))
    table.add_row("ffprobe Timeout", f"{config.ffprobe_timeout}s")

    console.print(table)


@config_cmd.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate current configuration."""
    config: AvSuiteConfig = ctx.obj["config"]

    console.print("[bold]Configuration Validation[/bold]")

    errors = []

    for name, path in [
        ("Output", config.output_dir),
        ("Temp", config.temp_dir),
        ("Log", config.log_dir),
    ]:
        if path is None:
            continue
        try:
            path.mkdir(parents=True, exist_ok=True)
            console.print(f"[green]✓[/green] {name} directory: {path}")
        except OSError as e:
            console.print(f"[red]✗[/red] {name} directory: {e}")
            errors.append(f"{name} directory: {e}")

    for dependency in check_dependencies(config):
        console.print(f"[red]✗[/red] {dependency.message}")
        errors.append(dependency.message)
    if not errors:
        console.print("[green]✓[/green] ffmpeg found")

    # Only enhance-audio needs the model, so a missing one is a warning
    if config.denoise_model_path.exists():
        console.print(f"[green]✓[/green] Denoise model: {config.denoise_model_path}")
    else:
        console.print(
            f"[yellow]⚠[/yellow] Denoise model not found: {config.denoise_model_path}",
        )

    if errors:
        console.print(f"\n[red]Found {len(errors)} configuration errors[/red]")
        sys.exit(1)
    else:
        console.print("\n[green]Configuration is valid[/green]")


@config_cmd.command("init")
@click.option(
    "--path",
    "-p",
    type=click.Path(path_type=Path),
    default=Path.home() / ".config" / "avsuite" / "config.toml",
    help="Path for the configuration file",
)
def config_init(path: Path) -> None:
    """Create a sample configuration file."""
    try:
        create_sample_config(path)
        console.print(f"[green]Created sample configuration at {path}[/green]")
        console.print("Edit it to point avsuite at your ffmpeg and output folders.")
    except OSError as e:
        console.print(f"[red]Error creating configuration: {e}[/red]")
        sys.exit(1)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
