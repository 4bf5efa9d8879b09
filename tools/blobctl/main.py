"""
Blob storage command-line tool.

Runs the common Blob Storage actions against the account configured in
AZURE_STORAGE_CONNECTION_STRING (or AZURE_STORAGE_ACCOUNT_URL).

Usage:
    blobctl create-container learntocreatecontainer
    blobctl upload learntocreatecontainer Folder1/FirstUpload.txt ./file.txt
    blobctl container-sas learntocreatecontainer --listing
    blobctl copy http://127.0.0.1:10000/devstoreaccount1/src/a.txt \\
        http://127.0.0.1:10000/devstoreaccount1/dest/a.txt --poll-interval 10
"""

import sys
from datetime import timedelta
from pathlib import Path

import click

from src.config import configure_logging, get_settings
from src.models import AccessPolicy, PublicAccessLevel, canonical_permissions, utc_now
from src.storage import BlobStorageClient, BlobStorageError, CopyTimeout, get_blob_client, parse_blob_url

DEFAULT_POLICIES = (
    ("Read_Write_Policy", "rw"),
    ("Full_Access_Policy", "racwdl"),
)


def _client() -> BlobStorageClient:
    try:
        return get_blob_client()
    except (ValueError, BlobStorageError) as e:
        click.echo(f"Error: Failed to initialize client: {e}", err=True)
        sys.exit(2)


def _container(name: str | None) -> str:
    """Fall back to the configured default container."""
    return name or get_settings().azure_storage_container


def _parse_policy(value: str, hours: int) -> AccessPolicy:
    """Parse "ID:PERMISSIONS" into a policy valid from now for ``hours``."""
    if ":" not in value:
        raise click.BadParameter(f"expected ID:PERMISSIONS, got {value!r}")
    policy_id, permission = value.split(":", 1)
    now = utc_now()
    return AccessPolicy(
        id=policy_id,
        permission=permission,
        start=now,
        expiry=now + timedelta(hours=hours),
    )


def _check_permissions(ctx: click.Context, param: click.Parameter, value: str) -> str:
    """Reject letters outside racwdl before any token is built."""
    try:
        return canonical_permissions(value)
    except ValueError as e:
        raise click.BadParameter(f"{value!r}: use letters from racwdl") from e


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def main(log_level: str | None):
    """Common Azure Blob Storage actions."""
    settings = get_settings()
    configure_logging(log_level or settings.log_level, settings.log_format)


@main.command("create-container")
@click.argument("container", required=False)
def create_container(container: str | None):
    """Create a container if it does not exist."""
    container = _container(container)
    created = _client().create_container_if_absent(container)
    click.echo(f"Container {container} {'created' if created else 'already exists'}")


@main.command("delete-container")
@click.argument("container", required=False)
def delete_container(container: str | None):
    """Delete a container if it exists."""
    container = _container(container)
    deleted = _client().delete_container_if_present(container)
    click.echo(f"Container {container} {'deleted' if deleted else 'not found'}")


@main.command("add-policies")
@click.argument("container", required=False)
@click.option(
    "--policy",
    "policies",
    multiple=True,
    help="ID:PERMISSIONS, e.g. Read_Write_Policy:rw (repeatable)",
)
@click.option("--hours", default=24, show_default=True, help="Policy lifetime")
def add_policies(container: str | None, policies: tuple[str, ...], hours: int):
    """Replace the container's stored access policies."""
    container = _container(container)
    specs = policies or tuple(f"{policy_id}:{perms}" for policy_id, perms in DEFAULT_POLICIES)
    parsed = [_parse_policy(spec, hours) for spec in specs]
    _client().set_policies(container, parsed)
    for policy in parsed:
        click.echo(f"  {policy.id}: {policy.permission} until {policy.expiry:%Y-%m-%d %H:%M}Z")


@main.command("remove-policy")
@click.argument("container")
@click.argument("policy_id")
def remove_policy(container: str, policy_id: str):
    """Remove a stored access policy if present."""
    removed = _client().remove_policy_if_present(container, policy_id)
    click.echo(f"Policy {policy_id} {'removed' if removed else 'not found'}")


@main.command("set-public-access")
@click.argument("container", required=False)
@click.option(
    "--level",
    type=click.Choice([level.value for level in PublicAccessLevel]),
    default=PublicAccessLevel.CONTAINER.value,
    show_default=True,
)
def set_public_access(container: str | None, level: str):
    """Grant anonymous read access to a container."""
    container = _container(container)
    _client().set_public_access_level(container, level)
    click.echo(f"Public access for {container}: {level}")


@main.command("remove-public-access")
@click.argument("container", required=False)
def remove_public_access(container: str | None):
    """Make a container private."""
    container = _container(container)
    _client().remove_public_access(container)
    click.echo(f"Public access for {container}: none")


@main.command()
@click.argument("container")
@click.argument("blob_name")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--overwrite/--no-overwrite", default=True, show_default=True)
def upload(container: str, blob_name: str, source: Path, overwrite: bool):
    """Upload SOURCE as BLOB_NAME ("folder/name" places it in a folder)."""
    url = _client().upload_blob(container, blob_name, source, overwrite=overwrite)
    click.echo(url)


@main.command()
@click.argument("container")
@click.argument("blob_name")
@click.argument("destination", type=click.Path(dir_okay=False, path_type=Path))
def download(container: str, blob_name: str, destination: Path):
    """Download a blob to DESTINATION."""
    written = _client().download_blob(container, blob_name, destination)
    click.echo(f"Wrote {written} bytes to {destination}")


@main.command("delete-blob")
@click.argument("container")
@click.argument("blob_name")
def delete_blob(container: str, blob_name: str):
    """Delete a blob if it exists. Empty folders vanish with their last blob."""
    deleted = _client().delete_blob_if_present(container, blob_name)
    click.echo(f"Blob {blob_name} {'deleted' if deleted else 'not found'}")


@main.command()
@click.argument("container")
@click.argument("blob_name")
def properties(container: str, blob_name: str):
    """Show size, content type and timestamps of a blob."""
    props = _client().get_properties(container, blob_name)
    click.echo(f"File size {props.size_mib:.2f} MB")
    click.echo(f"Content type {props.content_type}")
    click.echo(f"Created On {props.created_at}")
    click.echo(f"Updated On {props.last_modified_at}")


@main.command("blob-sas")
@click.argument("container")
@click.argument("blob_name")
@click.option(
    "--permissions",
    default="rw",
    show_default=True,
    callback=_check_permissions,
    help="Letters from racwdl",
)
@click.option("--policy", "policy_id", default=None, help="Stored access policy id")
def blob_sas(container: str, blob_name: str, permissions: str, policy_id: str | None):
    """Print a blob URL with an ad-hoc or policy-based SAS token."""
    click.echo(
        _client().get_blob_sas_url(
            container, blob_name, permissions=permissions, policy_id=policy_id
        )
    )


@main.command("container-sas")
@click.argument("container", required=False)
@click.option(
    "--permissions",
    default="rwl",
    show_default=True,
    callback=_check_permissions,
    help="Letters from racwdl",
)
@click.option("--policy", "policy_id", default=None, help="Stored access policy id")
@click.option("--listing/--no-listing", default=True, show_default=True,
              help="Append restype=container&comp=list for browser listing")
def container_sas(container: str | None, permissions: str, policy_id: str | None, listing: bool):
    """Print a container URL with an ad-hoc or policy-based SAS token."""
    container = _container(container)
    click.echo(
        _client().get_container_sas_url(
            container, listing=listing, permissions=permissions, policy_id=policy_id
        )
    )


@main.command("parse-url")
@click.argument("url")
def parse_url(url: str):
    """Show account, container and blob names of a blob URL."""
    try:
        parts = parse_blob_url(url)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    click.echo(f"Account Name {parts.account_name}")
    click.echo(f"Container Name {parts.container_name}")
    click.echo(f"Blob Name {parts.blob_name}")


@main.command()
@click.argument("source_url")
@click.argument("destination_url")
@click.option("--poll-interval", type=float, default=None, help="Seconds between status checks")
@click.option("--timeout", type=float, default=None, help="Seconds to wait overall")
def copy(source_url: str, destination_url: str, poll_interval: float | None, timeout: float | None):
    """Copy a blob (across containers or accounts) and wait for completion."""
    try:
        result = _client().copy_blob(
            source_url, destination_url, poll_interval=poll_interval, timeout=timeout
        )
    except CopyTimeout as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if result.succeeded:
        click.echo("Copy completed")
    else:
        click.echo(f"Copy {result.status.value}: {result.error_detail}", err=True)
        sys.exit(1)


@main.command("list")
@click.argument("container", required=False)
@click.option("--prefix", default=None, help="Only names starting with this prefix")
def list_blobs(container: str | None, prefix: str | None):
    """List every blob name in a container."""
    container = _container(container)
    for name in _client().list_blobs(container, prefix=prefix):
        click.echo(name)


if __name__ == "__main__":
    main()
