"""
Blob URL and blob name utilities.

Blob names may contain "/" to emulate folders. Folders are only a naming
convention: they are never created or deleted on their own, and one
disappears once the last blob under it is removed.
"""

import ipaddress
from urllib.parse import unquote, urlsplit, urlunsplit

from src.models import BlobUrlParts
from src.storage.exceptions import InvalidBlobUrl

# Ports used by the local storage emulator; URLs on these ports are path-style.
EMULATOR_PORTS = {10000, 10001, 10002}

LISTING_PARAMETERS = "restype=container&comp=list"


def _is_path_style(host: str, port: int | None) -> bool:
    if host == "localhost" or (port is not None and port in EMULATOR_PORTS):
        return True
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def parse_blob_url(url: str) -> BlobUrlParts:
    """
    Extract account, container and blob names from a blob URL.

    Handles both host-style URLs (https://acct.blob.core.windows.net/c/b) and
    path-style URLs used by the emulator (http://127.0.0.1:10000/acct/c/b).
    Any query string (e.g. a SAS token) is ignored. The blob name is
    URL-decoded, so "First%20Upload.txt" becomes "First Upload.txt".

    Raises:
        InvalidBlobUrl: if the URL does not name both a container and a blob
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise InvalidBlobUrl(url, "not an absolute URL")

    host = parts.hostname
    segments = parts.path.lstrip("/").split("/")

    if _is_path_style(host, parts.port):
        if len(segments) < 3:
            raise InvalidBlobUrl(url, "expected /<account>/<container>/<blob>")
        account_name, container_name = segments[0], segments[1]
        raw_blob_name = "/".join(segments[2:])
    else:
        if len(segments) < 2:
            raise InvalidBlobUrl(url, "expected /<container>/<blob>")
        account_name = host.split(".", 1)[0]
        container_name = segments[0]
        raw_blob_name = "/".join(segments[1:])

    if not container_name or not raw_blob_name:
        raise InvalidBlobUrl(url, "container or blob name is empty")

    return BlobUrlParts(
        account_name=account_name,
        container_name=container_name,
        blob_name=unquote(raw_blob_name),
    )


def strip_query(url: str) -> str:
    """Drop the query string (e.g. a SAS token) from a URL."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def has_sas_token(url: str) -> bool:
    """Check whether a URL carries a signature in its query string."""
    query = urlsplit(url).query
    return any(param.startswith("sig=") for param in query.split("&"))


def append_sas(url: str, sas_token: str) -> str:
    """Append a SAS token to a resource URL."""
    return f"{url}?{sas_token.lstrip('?')}"


def with_listing_parameters(sas_token: str) -> str:
    """
    Add the query parameters for listing a container over plain HTTP GET.

    The parameters go after the signature and are not part of what was signed,
    so the token stays valid.
    """
    return f"{sas_token.lstrip('?')}&{LISTING_PARAMETERS}"


def folder_of(blob_name: str) -> str:
    """Get the virtual folder of a blob name ("" for top-level blobs)."""
    return blob_name.rsplit("/", 1)[0] if "/" in blob_name else ""


def join_blob_path(*parts: str) -> str:
    """
    Join folder and file names into a blob name.

    Example:
        join_blob_path("Folder1", "FirstUpload.txt") -> "Folder1/FirstUpload.txt"
    """
    return "/".join(part.strip("/") for part in parts if part and part.strip("/"))
