"""Main CLI entry point for the studyshare command.

This module provides the Typer application. Each command builds a Session
from the configuration and credentials, runs its coroutine with
asyncio.run() and maps errors to exit codes.
"""

import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, TypeVar

import typer

from src.features.session import Session
from src.platform_client.api_wrapper import APIWrapper
from src.platform_client.auth import Authenticator
from src.platform_client.errors import (
    APIUnreachableError,
    InvalidCredentialsError,
    StudyShareError,
)
from src.upload.models import LocalFile
from src.upload.transport import StorageTransport

from .config import ConfigLoader
from .models import ClientConfig, ExitCode
from .output import OutputHandler

app = typer.Typer(
    name="studyshare",
    help="""Command-line client for the study-material sharing platform.

EXAMPLES:
  studyshare upload notes.pdf slides.pptx      # Upload files to storage
  studyshare notifications --page 2            # List notifications
  studyshare mark-read 42                      # Mark a notification as read
  studyshare review-queue                      # Pending materials (admins)
  studyshare review 17 --reject -c "Blurry"    # Reject a material

Credentials come from STUDYSHARE_API_URL and STUDYSHARE_API_TOKEN (or .env).""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


class _Options:
    """Global options shared by every command."""

    def __init__(self, verbosity: int, no_color: bool, config_path: str, logdir: Optional[str]):
        self.verbosity = verbosity
        self.no_color = no_color
        self.config_path = config_path
        self.logdir = logdir


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"studyshare_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _build_session(config: ClientConfig, output: OutputHandler) -> Session:
    api = APIWrapper(Authenticator(), timeout=config.request_timeout)
    transport = StorageTransport(timeout=config.transfer_timeout, chunk_size=config.chunk_size)
    return Session(
        api,
        notifier=output,
        page_size=config.page_size,
        admin=config.admin,
        transport=transport,
    )


def _run(
    ctx: typer.Context,
    body: Callable[[Session, OutputHandler], Awaitable[T]],
) -> T:
    """Load config, build a session, run ``body`` and translate errors to exit codes."""
    options: _Options = ctx.obj
    _configure_logging(options.verbosity, options.logdir)
    output = OutputHandler(verbosity=options.verbosity, no_color=options.no_color)

    async def _main() -> T:
        session = _build_session(ConfigLoader.load(options.config_path), output)
        try:
            return await body(session, output)
        finally:
            await session.background.drain()
            session.api.close()

    try:
        return asyncio.run(_main())
    except InvalidCredentialsError as e:
        logger.error(f"Authentication failed: {e}")
        output.error(f"Authentication failed: {e}")
        raise typer.Exit(ExitCode.AUTH_ERROR)
    except APIUnreachableError as e:
        logger.error(f"Network error: {e}")
        output.error(f"Network error: {e}")
        raise typer.Exit(ExitCode.NETWORK_ERROR)
    except StudyShareError as e:
        logger.error(str(e))
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
    config: str = typer.Option(ConfigLoader.default_path(), "--config", help="Path to config.yaml"),
    logdir: Optional[str] = typer.Option(None, "--logdir", help="Directory for log files"),
) -> None:
    """Study-material platform client."""
    ctx.obj = _Options(verbose, no_color, config, logdir)


@app.command()
def upload(
    ctx: typer.Context,
    files: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Files to upload"),
) -> None:
    """Upload files one after another and print their storage keys."""

    async def _upload(session: Session, output: OutputHandler) -> int:
        local_files = [LocalFile.from_path(path) for path in files]
        with output.progress_bar() as progress:
            tasks = [progress.add_task(f.name, total=100) for f in local_files]
            outcomes = await session.uploads.upload_files(
                local_files,
                on_progress=lambda index, percent: progress.update(tasks[index], completed=percent),
            )
        output.print_upload_summary(outcomes)
        return sum(1 for outcome in outcomes if not outcome.ok)

    failed = _run(ctx, _upload)
    raise typer.Exit(ExitCode.GENERAL_ERROR if failed else ExitCode.SUCCESS)


@app.command()
def notifications(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", min=1, help="Page number"),
    size: Optional[int] = typer.Option(None, "--size", min=1, help="Page size"),
) -> None:
    """List a page of notifications."""

    async def _list(session: Session, output: OutputHandler) -> None:
        inbox = session.notifications
        with output.spinner("Fetching notifications..."):
            await inbox.fetch(page=page, size=size)
            await inbox.fetch_unread_count()
        output.print_page("Notifications", inbox.store, ["id", "type", "title", "status", "created_at"])
        output.print(f"Unread: {inbox.unread_count}")

    _run(ctx, _list)


@app.command("mark-read")
def mark_read(
    ctx: typer.Context,
    notification_id: int = typer.Argument(..., help="Notification ID"),
) -> None:
    """Mark one notification as read."""

    async def _mark(session: Session, output: OutputHandler) -> None:
        await session.notifications.mark_as_read(notification_id)
        output.success(f"Notification {notification_id} marked as read")

    _run(ctx, _mark)


@app.command("review-queue")
def review_queue(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", min=1, help="Page number"),
    size: Optional[int] = typer.Option(None, "--size", min=1, help="Page size"),
) -> None:
    """List materials waiting for review."""

    async def _list(session: Session, output: OutputHandler) -> None:
        queue = session.review_queue
        with output.spinner("Fetching review queue..."):
            await queue.fetch(page=page, size=size)
        output.print_page("Pending materials", queue.store, ["id", "title", "category", "uploader_name", "created_at"])

    _run(ctx, _list)


@app.command()
def review(
    ctx: typer.Context,
    material_id: int = typer.Argument(..., help="Material ID"),
    approve: bool = typer.Option(..., "--approve/--reject", help="Approve or reject the material"),
    comment: Optional[str] = typer.Option(None, "--comment", "-c", help="Rejection reason"),
) -> None:
    """Approve or reject a pending material."""

    async def _review(session: Session, output: OutputHandler) -> None:
        await session.review_queue.review(material_id, approve, comment)

    _run(ctx, _review)


if __name__ == "__main__":
    app()
