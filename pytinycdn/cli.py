"""CLI interface for the TinyCDN client."""

import logging
from typing import Any, Optional

import click
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TimeElapsedColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from .api import TinyCdnClient
from .config import config
from .exceptions import CdnConfigError, CdnError
from .output import OutputFormatter
from .utils import FILE_TYPES, format_size, mask_token, parse_timestamp

logger = logging.getLogger(__name__)


def _get_client(ctx: Any) -> TinyCdnClient:
    """Create a client from the global options, exiting on missing config."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        return TinyCdnClient(
            api_token=ctx.obj.get("api_token"),
            api_url=ctx.obj.get("api_url"),
            verify_ssl=False if ctx.obj.get("insecure") else None,
        )
    except CdnConfigError as e:
        out.error(str(e))
        out.info("Run 'tinycdn init' or pass --api-token.")
        raise click.exceptions.Exit(1) from e


def _format_created(value: Optional[str]) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or ""
    return parsed.strftime("%Y-%m-%d %H:%M")


def _file_row(record: Any) -> dict[str, Any]:
    data = record.to_display_dict()
    data["size_display"] = format_size(data["size"])
    data["created_display"] = _format_created(data.get("created_at"))
    return data


@click.group()
@click.option(
    "--api-token", "-t", envvar="TINYCDN_API_TOKEN", help="TinyCDN API token"
)
@click.option("--api-url", envvar="TINYCDN_API_URL", help="TinyCDN API endpoint")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--insecure",
    is_flag=True,
    help="Disable TLS certificate verification",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pytinycdn")
@click.pass_context
def main(
    ctx: Any,
    api_token: Optional[str],
    api_url: Optional[str],
    quiet: bool,
    json: bool,
    insecure: bool,
    verbose: bool,
) -> None:
    """PyTinyCDN - Upload and manage files on TinyCDN."""
    ctx.ensure_object(dict)
    ctx.obj["api_token"] = api_token
    ctx.obj["api_url"] = api_url
    ctx.obj["insecure"] = insecure
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pytinycdn").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--api-token",
    "-t",
    prompt="Enter your TinyCDN API token",
    hide_input=True,
    help="TinyCDN API token",
)
@click.pass_context
def init(ctx: Any, api_token: str) -> None:
    """Store the API token in ~/.config/pytinycdn/config."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        config.save_api_token(api_token)
    except OSError as e:
        out.error(f"Initialization failed: {e}")
        ctx.exit(1)

    out.print_summary(
        "Initialization Complete",
        [
            ("Token", mask_token(api_token)),
            ("Config file", str(config.get_config_path())),
        ],
    )


@main.command()
@click.argument("source")
@click.option("--filename", "-n", help="Name to store the file under")
@click.option(
    "--type",
    "file_type",
    type=click.Choice(list(FILE_TYPES)),
    default="file",
    help="Declared file type (default: file)",
)
@click.option("--private", is_flag=True, help="Upload as a non-public file")
@click.option("--rule-key", help="Processing rule key")
@click.option("--folder", "-f", type=int, default=None, help="Parent folder ID")
@click.option("--no-progress", is_flag=True, help="Disable progress bar")
@click.pass_context
def upload(
    ctx: Any,
    source: str,
    filename: Optional[str],
    file_type: str,
    private: bool,
    rule_key: Optional[str],
    folder: Optional[int],
    no_progress: bool,
) -> None:
    """Upload a file to TinyCDN.

    SOURCE: Local file path or http(s) URL
    """
    out: OutputFormatter = ctx.obj["out"]
    client = _get_client(ctx)
    logger.debug("Uploading %s via %s transport", source, client.transport.name)

    if not no_progress and not out.quiet and not out.json_output:
        progress_display: Optional[Progress] = Progress(
            "[progress.description]{task.description}",
            BarColumn(),
            "[progress.percentage]{task.percentage:>3.0f}%",
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            refresh_per_second=10,
        )
    else:
        progress_display = None

    try:
        with client:
            if progress_display:
                progress_display.start()
                task_id = progress_display.add_task(
                    f"[cyan]{filename or source}", total=None
                )

                def progress_callback(bytes_sent: int, total_bytes: int) -> None:
                    progress_display.update(
                        task_id, completed=bytes_sent, total=total_bytes
                    )

            else:
                progress_callback = None  # type: ignore[assignment]
                out.progress_message(f"Uploading {source}")

            try:
                record = client.upload(
                    source,
                    filename=filename,
                    file_type=file_type,
                    is_public=not private,
                    rule_key=rule_key,
                    folder_id=folder,
                    progress_callback=progress_callback,
                )
            finally:
                if progress_display:
                    progress_display.stop()

    except KeyboardInterrupt:
        out.warning("\nUpload cancelled by user")
        ctx.exit(130)
    except CdnError as e:
        out.error(f"Upload failed: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json(record.to_display_dict())
    else:
        out.print_summary(
            "Upload Complete",
            [
                ("File ID", str(record.cdn_file_id)),
                ("Filename", record.filename),
                ("Size", out.format_size(record.size)),
                ("MD5", record.md5),
                ("Access token", record.access_token or ""),
            ],
        )


@main.command()
@click.argument("file_id", type=int)
@click.pass_context
def info(ctx: Any, file_id: int) -> None:
    """Show details of a file."""
    out: OutputFormatter = ctx.obj["out"]
    client = _get_client(ctx)

    try:
        with client:
            record = client.get_file_info(file_id)
    except CdnError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)

    if record is None:
        out.error(f"File {file_id} not found")
        ctx.exit(1)

    data = record.to_display_dict()
    if out.json_output:
        out.output_json(data)
        return

    out.output_table(
        [{"field": key, "value": value} for key, value in data.items()],
        ["field", "value"],
        {"field": "Field", "value": "Value"},
    )


@main.command()
@click.option("--folder", "-f", type=int, default=None, help="Filter by folder ID")
@click.option("--offset", type=int, default=0, help="Offset into the list")
@click.option("--limit", "-l", type=int, default=100, help="Maximum entries")
@click.pass_context
def ls(ctx: Any, folder: Optional[int], offset: int, limit: int) -> None:
    """List files."""
    out: OutputFormatter = ctx.obj["out"]
    client = _get_client(ctx)
    args = {"folder_id": folder} if folder is not None else {}

    try:
        with client:
            records = client.get_list(args, offset=offset, limit=limit)
    except CdnError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)

    if not records and not out.json_output:
        out.info("No files found")
        return

    out.output_table(
        [_file_row(record) for record in records],
        [
            "cdn_file_id",
            "filename",
            "size_display",
            "type",
            "is_uploaded",
            "created_display",
        ],
        {
            "cdn_file_id": "ID",
            "filename": "Filename",
            "size_display": "Size",
            "type": "Type",
            "is_uploaded": "Uploaded",
            "created_display": "Created",
        },
    )


@main.command()
@click.argument("file_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def rm(ctx: Any, file_id: int, yes: bool) -> None:
    """Delete a file."""
    out: OutputFormatter = ctx.obj["out"]

    if not yes and not click.confirm(f"Delete file {file_id}?", default=False):
        out.warning("Deletion cancelled.")
        return

    client = _get_client(ctx)
    try:
        with client:
            deleted = client.delete(file_id)
    except CdnError as e:
        out.error(f"Delete failed: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json({"file_id": file_id, "deleted": deleted})
    elif deleted:
        out.success(f"✓ Deleted file {file_id}")
    else:
        out.warning(f"File {file_id} was not deleted")


# =========================
# Alias commands
# =========================


@main.group()
def alias() -> None:
    """Manage file aliases."""


@alias.command("add")
@click.argument("file_id", type=int)
@click.argument("url")
@click.pass_context
def alias_add(ctx: Any, file_id: int, url: str) -> None:
    """Add an alias URL to a file."""
    out: OutputFormatter = ctx.obj["out"]
    client = _get_client(ctx)

    try:
        with client:
            record = client.add_alias(file_id, url)
    except CdnError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json(record.to_display_dict())
    else:
        out.success(f"✓ Alias {record.id} created: {record.url}")


@alias.command("ls")
@click.option("--file", "file_id", type=int, default=None, help="Filter by file ID")
@click.option("--offset", type=int, default=0, help="Offset into the list")
@click.option("--limit", "-l", type=int, default=100, help="Maximum entries")
@click.pass_context
def alias_ls(ctx: Any, file_id: Optional[int], offset: int, limit: int) -> None:
    """List aliases."""
    out: OutputFormatter = ctx.obj["out"]
    client = _get_client(ctx)
    args = {"file_id": file_id} if file_id is not None else {}

    try:
        with client:
            aliases = client.get_aliases_list(args, offset=offset, limit=limit)
    except CdnError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)

    out.output_table(
        [a.to_display_dict() for a in aliases],
        ["id", "file_id", "url", "views"],
        {"id": "ID", "file_id": "File ID", "url": "URL", "views": "Views"},
    )


@alias.command("rm")
@click.argument("alias_id", type=int)
@click.pass_context
def alias_rm(ctx: Any, alias_id: int) -> None:
    """Delete an alias."""
    out: OutputFormatter = ctx.obj["out"]
    client = _get_client(ctx)

    try:
        with client:
            deleted = client.delete_alias(alias_id)
    except CdnError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json({"alias_id": alias_id, "deleted": deleted})
    else:
        out.success(f"✓ Deleted alias {alias_id}")


# =========================
# Folder commands
# =========================


@main.group()
def folder() -> None:
    """Manage folders."""


@folder.command("add")
@click.argument("title")
@click.option("--parent", "-p", type=int, default=0, help="Parent folder ID")
@click.pass_context
def folder_add(ctx: Any, title: str, parent: int) -> None:
    """Create a folder."""
    out: OutputFormatter = ctx.obj["out"]
    client = _get_client(ctx)

    try:
        with client:
            record = client.add_folder(title, idp=parent)
    except CdnError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json(record.to_display_dict())
    else:
        out.success(f"✓ Folder {record.id} created: {record.title}")


@folder.command("ls")
@click.option("--parent", "-p", type=int, default=None, help="Parent folder ID")
@click.option("--offset", type=int, default=0, help="Offset into the list")
@click.option("--limit", "-l", type=int, default=100, help="Maximum entries")
@click.pass_context
def folder_ls(ctx: Any, parent: Optional[int], offset: int, limit: int) -> None:
    """List folders."""
    out: OutputFormatter = ctx.obj["out"]
    client = _get_client(ctx)
    args = {"idp": parent} if parent is not None else {}

    try:
        with client:
            folders = client.get_folders_list(args, offset=offset, limit=limit)
    except CdnError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)

    out.output_table(
        [f.to_display_dict() for f in folders],
        ["id", "title", "idp", "count_files", "count_folders"],
        {
            "id": "ID",
            "title": "Title",
            "idp": "Parent",
            "count_files": "Files",
            "count_folders": "Folders",
        },
    )


@folder.command("rm")
@click.argument("folder_id", type=int)
@click.pass_context
def folder_rm(ctx: Any, folder_id: int) -> None:
    """Delete a folder."""
    out: OutputFormatter = ctx.obj["out"]
    client = _get_client(ctx)

    try:
        with client:
            client.delete_folder(folder_id)
    except CdnError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json({"folder_id": folder_id, "deleted": True})
    else:
        out.success(f"✓ Deleted folder {folder_id}")


if __name__ == "__main__":
    main()
