"""
Command-line interface for docfx-metadata.

Main Commands:
    files: List the content files of a DocFX project
    topics: Populate the topic metadata cache and print its topics
    watch: Keep the topic metadata cache up to date and print each change

Example Usage:
    $ docfx-metadata files docs/docfx.json --ext .md
    $ docfx-metadata topics docs/docfx.json --prefix System. --format json
    $ docfx-metadata watch docs/docfx.json --state-dir .docfx-state --show-errors

For more information, run: docfx-metadata --help
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from ..core.config import MetadataConfig
from ..core.managers.topic_changes import observe_topic_changes
from ..core.metadata_cache import MetadataCache
from ..core.progress import CallbackProgressSink
from ..core.project import DocFXProject
from ..core.types import TopicChange, TopicMetadata
from ..utils.error_handling import DocFXMetadataError, create_error_report
from ..utils.logging_config import LogFormat, LogLevel, configure_logging

DEFAULT_STATE_DIR = ".docfx-metadata"


def _logging_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option("--log-file", help="Write log output to this file")(func)
    func = click.option(
        "--log-format",
        type=click.Choice([f.value for f in LogFormat]),
        default=LogFormat.SIMPLE.value,
        help="Log output format",
    )(func)
    func = click.option("--debug", is_flag=True, default=False, help="Enable debug logging")(func)
    return func


def _configure_logging(debug: bool, log_file: str | None, log_format: str) -> None:
    try:
        configure_logging(
            level=LogLevel.DEBUG if debug else LogLevel.WARNING,
            format_type=LogFormat(log_format),
            log_file=Path(log_file) if log_file else None,
            enable_file=bool(log_file),
            enable_console=True,
        )
    except (ValueError, OSError) as e:
        click.echo(f"Error configuring logging: {e}", err=True)
        sys.exit(1)


def _default_state_dir(project_file: str) -> Path:
    return Path(project_file).absolute().parent / DEFAULT_STATE_DIR


def _fail(error: DocFXMetadataError) -> None:
    click.echo(f"Error: {error.message}", err=True)
    for suggestion in error.suggestions:
        click.echo(f"  - {suggestion}", err=True)
    sys.exit(1)


def render_topics_table(topics: list[TopicMetadata], console: Console | None = None) -> None:
    """Render topics as a rich table, sorted by UID."""
    if console is None:
        console = Console()

    table = Table(title=f"{len(topics)} topics")
    table.add_column("UID", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Kind")
    table.add_column("Title")
    table.add_column("Source file", style="dim")

    for topic in sorted(topics, key=lambda t: t.uid):
        table.add_row(
            topic.uid,
            topic.type,
            topic.detailed_type.name.title() if topic.detailed_type else "",
            topic.title or "",
            topic.source_file,
        )

    console.print(table)


def format_change(change: TopicChange) -> str:
    line = f"{change.change_type.value:<8} {change.content_file}"
    if change.topics:
        line += " (" + ", ".join(topic.uid for topic in change.topics) + ")"
    return line


@click.group()
def cli() -> None:
    """docfx-metadata - Topic metadata for DocFX projects"""
    pass


@cli.command("files")
@click.argument("project_file", type=click.Path(dir_okay=False))
@click.option(
    "--ext", "extensions", multiple=True, help="Only list files with this extension (repeatable)"
)
@_logging_options
def files_cmd(
    project_file: str,
    extensions: tuple[str, ...],
    debug: bool,
    log_format: str,
    log_file: str | None,
) -> None:
    """List the content files of a DocFX project."""
    _configure_logging(debug, log_file, log_format)

    async def run() -> list[Path]:
        project = await DocFXProject.load(project_file)
        return await project.get_content_files(*extensions)

    try:
        content_files = asyncio.run(run())
    except DocFXMetadataError as e:
        _fail(e)
        return

    for content_file in content_files:
        click.echo(str(content_file))


@cli.command("topics")
@click.argument("project_file", type=click.Path(dir_okay=False))
@click.option("--state-dir", help="Directory for the persisted topic cache")
@click.option("--prefix", help="Only show topics whose UID starts with this prefix")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option("--rescan", is_flag=True, default=False, help="Ignore any persisted topic cache")
@_logging_options
def topics_cmd(
    project_file: str,
    state_dir: str | None,
    prefix: str | None,
    fmt: str,
    rescan: bool,
    debug: bool,
    log_format: str,
    log_file: str | None,
) -> None:
    """Populate the topic metadata cache and print its topics."""
    _configure_logging(debug, log_file, log_format)
    state_directory = Path(state_dir) if state_dir else _default_state_dir(project_file)
    err_console = Console(stderr=True)

    async def run() -> list[TopicMetadata] | None:
        async with MetadataCache(state_directory) as cache:
            await cache.open_project(project_file)
            if rescan:
                await cache.flush(clear_persisted=True)

            with err_console.status("Loading topics...") as status:
                progress = CallbackProgressSink(
                    on_report=status.update,
                    on_error=lambda e: err_console.print(f"[red]Scan failed:[/red] {e}"),
                )
                if not await cache.ensure_populated(progress):
                    return None

            return cache.get_topics(prefix)

    try:
        topics = asyncio.run(run())
    except DocFXMetadataError as e:
        _fail(e)
        return

    if topics is None:
        click.echo("Error: failed to populate the topic metadata cache", err=True)
        sys.exit(1)

    if fmt == "json":
        data = [topic.to_dict() for topic in sorted(topics, key=lambda t: t.uid)]
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        render_topics_table(topics)


@cli.command("watch")
@click.argument("project_file", type=click.Path(dir_okay=False))
@click.option("--state-dir", help="Directory for the persisted topic cache")
@click.option(
    "--debounce", type=float, default=0.1, show_default=True, help="Seconds to coalesce events"
)
@click.option("--show-errors", is_flag=True, default=False, help="Show an error report on exit")
@_logging_options
def watch_cmd(
    project_file: str,
    state_dir: str | None,
    debounce: float,
    show_errors: bool,
    debug: bool,
    log_format: str,
    log_file: str | None,
) -> None:
    """Keep the topic metadata cache up to date and print each topic change."""
    _configure_logging(debug, log_file, log_format)
    state_directory = Path(state_dir) if state_dir else _default_state_dir(project_file)
    console = Console()
    config = MetadataConfig(debounce_delay=debounce)
    reports: list[str] = []

    async def run() -> bool:
        async with MetadataCache(state_directory, config) as cache:
            await cache.open_project(project_file)
            if not await cache.ensure_populated():
                return False

            project_dir = cache.project.project_dir if cache.project else Path(".")
            console.print(
                f"Watching [cyan]{project_dir}[/cyan] ({cache.topic_count} topics). "
                "Press Ctrl+C to stop."
            )

            async with observe_topic_changes(project_dir, config) as feed:
                try:
                    async for change in feed.subscribe():
                        cache.post_change(change)
                        console.print(format_change(change), highlight=False)
                finally:
                    await cache.wait_for_changes()
                    if show_errors:
                        reports.append(create_error_report(feed.error_collector))

        return True

    try:
        ok = asyncio.run(run())
    except KeyboardInterrupt:
        ok = True
    except DocFXMetadataError as e:
        _fail(e)
        return

    for report in reports:
        click.echo("\n" + "=" * 50, err=True)
        click.echo(report, err=True)

    if not ok:
        click.echo("Error: failed to populate the topic metadata cache", err=True)
        sys.exit(1)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
