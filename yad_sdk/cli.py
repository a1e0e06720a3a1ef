"""
Command-line interface for the Yandex.Disk SDK.

This module provides the ``yad`` command, a thin shell over YadClient for
inspecting and managing a Disk account from the terminal.
"""

import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Optional, Dict, Any

import click
import requests
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .client import YadClient
from .config import ClientConfig, DEFAULT_BASE_URL
from .exceptions import YadError, ConfigurationError
from .models import Link, Resource
from .operations import wait_for_operation
from .utils import calculate_md5, format_file_size


# Initialize Rich console
console = Console()

DEFAULT_CONFIG_FILE = Path.home() / ".yad" / "config.json"


class CLIContext:
    """CLI context object to share state between commands."""

    def __init__(
        self,
        config_file: Path = DEFAULT_CONFIG_FILE,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        wait: bool = True,
        timeout: float = 60.0,
    ):
        self.client: Optional[YadClient] = None
        self.config: Dict[str, Any] = {}
        self.config_file = Path(config_file)
        self.token = token
        self.base_url = base_url
        self.wait = wait
        self.timeout = timeout

    def load_config(self):
        """Load configuration from file."""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    self.config = json.load(f)
            except (json.JSONDecodeError, IOError):
                self.config = {}

    def save_config(self):
        """Save configuration to file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            json.dump(self.config, f, indent=2)
        self.config_file.chmod(0o600)

    def get_client(self) -> YadClient:
        """Get authenticated client."""
        if self.client is None:
            token = self.token or self.config.get('token')
            base_url = self.base_url or self.config.get('base_url', DEFAULT_BASE_URL)

            if not token:
                raise ConfigurationError(
                    "OAuth token not configured. Use 'yad config' or set YAD_TOKEN environment variable."
                )

            self.client = YadClient(config=ClientConfig(token=token, base_url=base_url))

        return self.client


def _fail(action: str, e: Exception):
    console.print(f"❌ {action} failed: {escape(str(e))}")
    sys.exit(1)


def _report_link(ctx: CLIContext, link: Optional[Link], action: str):
    """Print the outcome of a call that may have started an operation."""
    client = ctx.get_client()
    if link is None:
        console.print(f"✅ {action} completed")
    elif not link.is_operation:
        console.print(f"✅ {action} completed: {link.href}")
    elif not ctx.wait:
        console.print(f"⏳ {action} started, operation ID: {link.operation_id}")
    else:
        with console.status(f"Waiting for operation {link.operation_id}..."):
            wait_for_operation(client, link, timeout=ctx.timeout)
        console.print(f"✅ {action} completed")


def _resource_row(resource: Resource):
    return (
        resource.type.value,
        resource.name,
        format_file_size(resource.size) if resource.is_file else "",
        resource.modified.strftime('%Y-%m-%d %H:%M') if resource.modified else "",
    )


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--token', envvar='YAD_TOKEN', help='OAuth token')
@click.option('--base-url', envvar='YAD_BASE_URL', help='REST API root URL')
@click.option('--config-file', envvar='YAD_CONFIG', type=click.Path(dir_okay=False),
              default=str(DEFAULT_CONFIG_FILE), help='Path of the configuration file')
@click.option('--wait/--no-wait', default=True, help='Wait for asynchronous operations to finish')
@click.option('--timeout', default=60.0, help='Seconds to wait for an operation')
@click.pass_context
def cli(ctx, debug, token, base_url, config_file, wait, timeout):
    """yad - manage a Yandex.Disk account from the command line."""
    if debug:
        logging.basicConfig(level=logging.DEBUG)
        console.print("[dim]Debug mode enabled[/dim]")

    ctx.obj = CLIContext(
        config_file=Path(config_file),
        token=token,
        base_url=base_url,
        wait=wait,
        timeout=timeout,
    )
    ctx.obj.load_config()


@cli.command()
@click.option('--token', prompt=True, hide_input=True, help='OAuth token')
@click.option('--base-url', default=DEFAULT_BASE_URL, help='REST API root URL')
@click.pass_obj
def config(ctx, token, base_url):
    """Store the OAuth token and API root."""
    ctx.config.update({
        'token': token,
        'base_url': base_url,
    })
    ctx.save_config()

    console.print("✅ Configuration saved successfully!")


@cli.command()
@click.pass_obj
def stats(ctx):
    """Display Disk usage statistics."""
    try:
        s = ctx.get_client().stats()
    except (YadError, requests.RequestException) as e:
        _fail("Stats", e)

    table = Table(title="Disk Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Total", format_file_size(s.total_space))
    table.add_row("Used", format_file_size(s.used_space))
    table.add_row("Free", format_file_size(s.free_space))
    table.add_row("Trash", format_file_size(s.trash_size))
    for name, folder in sorted(s.system_folders.items()):
        table.add_row(f"Folder: {name}", folder)

    console.print(table)


@cli.command(name='ls')
@click.argument('path', default='/')
@click.option('--all', 'list_all', is_flag=True, help='Fetch every page')
@click.option('--offset', '-o', default=0, help='Number of entries to skip')
@click.option('--limit', '-l', default=20, help='Maximum number of entries')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
@click.pass_obj
def ls(ctx, path, list_all, offset, limit, output_json):
    """List directory contents."""
    try:
        client = ctx.get_client()
        if list_all:
            listing = client.list_all(path)
        else:
            listing = client.list(path, offset=offset, limit=limit)
    except (YadError, requests.RequestException) as e:
        _fail("Listing", e)

    if output_json:
        click.echo(json.dumps([r.to_dict() for r in listing.items], indent=2))
        return

    if not listing.items:
        console.print("Directory is empty.")
        return

    table = Table(title=path)
    table.add_column("Type", style="blue")
    table.add_column("Name", style="green")
    table.add_column("Size", style="yellow")
    table.add_column("Modified", style="magenta")
    for resource in listing.items:
        table.add_row(*_resource_row(resource))

    console.print(table)


@cli.command()
@click.argument('path')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
@click.pass_obj
def info(ctx, path, output_json):
    """Show metadata of a file or directory."""
    try:
        resource = ctx.get_client().info(path)
    except (YadError, requests.RequestException) as e:
        _fail("Info", e)

    if output_json:
        click.echo(json.dumps(resource.to_dict(), indent=2))
        return

    table = Table(title=resource.name or path)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    for key, value in resource.to_dict().items():
        table.add_row(key, str(value))

    console.print(table)


@cli.command()
@click.argument('path')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output file path')
@click.option('--verify', is_flag=True, help='Compare the MD5 checksum after download')
@click.pass_obj
def download(ctx, path, output, verify):
    """Download a file.

    The content lands in a temporary file next to the output path, which
    replaces the output only once the download (and verification) succeeds.
    """
    local_path = Path(output or Path(path).name)
    part_path: Optional[Path] = None

    try:
        client = ctx.get_client()
        with tempfile.NamedTemporaryFile(
            dir=local_path.parent, prefix=f".{local_path.name}.", suffix=".part", delete=False
        ) as f:
            part_path = Path(f.name)
            with console.status(f"Downloading {path}..."):
                written = client.download(path, f)

        if verify:
            expected = client.info(path).md5
            with open(part_path, "rb") as f:
                actual = calculate_md5(f)
            if expected and expected != actual:
                console.print(f"❌ Checksum mismatch: expected {expected}, got {actual}")
                sys.exit(1)

        os.replace(part_path, local_path)
        part_path = None
    except (YadError, requests.RequestException, OSError) as e:
        _fail("Download", e)
    finally:
        if part_path is not None and part_path.exists():
            part_path.unlink()

    console.print(f"✅ Downloaded: {local_path} ({format_file_size(written)})")


@cli.command()
@click.argument('local_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('path')
@click.option('--no-overwrite', is_flag=True, help='Fail if the remote file exists')
@click.pass_obj
def upload(ctx, local_file, path, no_overwrite):
    """Upload a local file to PATH."""
    try:
        client = ctx.get_client()
        with console.status(f"Uploading {local_file}..."):
            with open(local_file, "rb") as f:
                client.upload(path, f, overwrite=not no_overwrite)
    except (YadError, requests.RequestException, OSError) as e:
        _fail("Upload", e)

    console.print(f"✅ Uploaded: {path}")


@cli.command(name='upload-url')
@click.argument('url')
@click.argument('path')
@click.pass_obj
def upload_url(ctx, url, path):
    """Let the server fetch URL into PATH."""
    try:
        link = ctx.get_client().upload_url(path, url)
        _report_link(ctx, link, "Upload")
    except (YadError, requests.RequestException) as e:
        _fail("Upload", e)


@cli.command()
@click.argument('source')
@click.argument('destination')
@click.option('--no-overwrite', is_flag=True, help='Fail if the destination exists')
@click.pass_obj
def cp(ctx, source, destination, no_overwrite):
    """Copy SOURCE to DESTINATION."""
    try:
        link = ctx.get_client().copy(destination, source, overwrite=not no_overwrite)
        _report_link(ctx, link, "Copy")
    except (YadError, requests.RequestException) as e:
        _fail("Copy", e)


@cli.command()
@click.argument('source')
@click.argument('destination')
@click.option('--no-overwrite', is_flag=True, help='Fail if the destination exists')
@click.pass_obj
def mv(ctx, source, destination, no_overwrite):
    """Move SOURCE to DESTINATION."""
    try:
        link = ctx.get_client().move(destination, source, overwrite=not no_overwrite)
        _report_link(ctx, link, "Move")
    except (YadError, requests.RequestException) as e:
        _fail("Move", e)


@cli.command()
@click.argument('path')
@click.option('--permanently', is_flag=True, help='Skip the trash')
@click.pass_obj
def rm(ctx, path, permanently):
    """Delete a file or directory."""
    try:
        link = ctx.get_client().delete(path, permanently=permanently)
        _report_link(ctx, link, "Delete")
    except (YadError, requests.RequestException) as e:
        _fail("Delete", e)


@cli.command()
@click.argument('path')
@click.pass_obj
def mkdir(ctx, path):
    """Create a directory."""
    try:
        link = ctx.get_client().mkdir(path)
        _report_link(ctx, link, "Mkdir")
    except (YadError, requests.RequestException) as e:
        _fail("Mkdir", e)


@cli.group()
def trash():
    """Manage the trash."""


@trash.command(name='rm')
@click.argument('path')
@click.pass_obj
def trash_rm(ctx, path):
    """Remove one resource from the trash."""
    try:
        link = ctx.get_client().trash_delete(path)
        _report_link(ctx, link, "Trash delete")
    except (YadError, requests.RequestException) as e:
        _fail("Trash delete", e)


@trash.command(name='clear')
@click.confirmation_option(prompt='Are you sure you want to empty the trash?')
@click.pass_obj
def trash_clear(ctx):
    """Empty the trash."""
    try:
        link = ctx.get_client().trash_clear()
        _report_link(ctx, link, "Trash clear")
    except (YadError, requests.RequestException) as e:
        _fail("Trash clear", e)


@trash.command(name='restore')
@click.argument('path')
@click.option('--name', help='New name for the restored resource')
@click.pass_obj
def trash_restore(ctx, path, name):
    """Restore a resource from the trash."""
    try:
        link = ctx.get_client().trash_restore(path, name=name)
        _report_link(ctx, link, "Restore")
    except (YadError, requests.RequestException) as e:
        _fail("Restore", e)


@cli.command(name='op-status')
@click.argument('href')
@click.pass_obj
def op_status(ctx, href):
    """Show the status of the operation at HREF."""
    try:
        status = ctx.get_client().operation_status(Link(href=href))
    except (YadError, requests.RequestException) as e:
        _fail("Status check", e)

    console.print(status.value)


if __name__ == '__main__':
    cli()
