"""CLI entrypoint for cdn-sync."""

import logging
from pathlib import Path

import rich_click as click

from cdn_sync import __version__
from cdn_sync.controllers import (
    CdnCliController,
    QueueAddCommand,
    QueueListCommand,
    UpdateCommand,
)
from cdn_sync.errors import (
    ConfigurationError,
    LockContention,
    LockLost,
    UnknownTaskOperation,
)

click.rich_click.USE_MARKDOWN = True
CONTROLLER = CdnCliController()


@click.group()
@click.version_option(version=__version__, prog_name="cdn-sync")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
    help="Progress log level (written to stderr).",
)
def cdn_sync(log_level: str) -> None:
    """Synchronize queued image renditions with the CDN bucket."""

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cdn_sync.command("update")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--source-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Local root for image files. Defaults to CDN_SYNC_SOURCE_DIR.",
)
@click.option(
    "--strict-operations/--permissive-operations",
    default=None,
    help=(
        "Abort on tasks with an unknown operation (strict) or log and discard them "
        "(permissive). Defaults to CDN_SYNC_STRICT_OPERATIONS."
    ),
)
def update(
    db_path: Path | None,
    source_dir: Path | None,
    strict_operations: bool | None,
) -> None:
    """Run one pass over the CDN queue: copy and delete renditions, then drop done tasks."""

    try:
        lines = CONTROLLER.update(
            UpdateCommand(
                db_path=db_path,
                source_dir=source_dir,
                strict_operations=strict_operations,
            ),
        )
    except (ConfigurationError, LockContention, LockLost, UnknownTaskOperation) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@cdn_sync.group()
def queue() -> None:
    """Queue inspection commands."""


@queue.command("list")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=1000),
    default=50,
    show_default=True,
    help="Max tasks to print.",
)
def queue_list(db_path: Path | None, limit: int) -> None:
    """List pending CDN tasks."""

    try:
        lines = CONTROLLER.list_queue(QueueListCommand(db_path=db_path, limit=limit))
    except ConfigurationError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@queue.command("add")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--operation",
    type=click.Choice(["copy", "delete"], case_sensitive=False),
    required=True,
    help="Task operation.",
)
@click.option("--dimension-id", type=int, required=True, help="Image dimension id.")
@click.option("--image-id", type=int, default=None, help="Image id (omit for orphaned deletes).")
@click.option("--image-path", default=None, help="Full remote object key (needed for delete).")
def queue_add(
    db_path: Path | None,
    operation: str,
    dimension_id: int,
    image_id: int | None,
    image_path: str | None,
) -> None:
    """Manually enqueue a CDN task."""

    try:
        lines = CONTROLLER.add_task(
            QueueAddCommand(
                db_path=db_path,
                operation=operation.lower(),
                dimension_id=dimension_id,
                image_id=image_id,
                image_path=image_path,
            ),
        )
    except ConfigurationError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    cdn_sync()
