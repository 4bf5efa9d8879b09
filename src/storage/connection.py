"""
Connection string parsing.

A connection string is a semicolon-separated list of ``key=value`` pairs, e.g.
``AccountName=acct;AccountKey=...;DefaultEndpointsProtocol=https``. Values may
contain ``=`` (account keys are base64), so each segment is split on the first
``=`` only. Keys are case-sensitive and the last occurrence of a key wins.
"""

from typing import Any

from azure.core.credentials import AzureNamedKeyCredential, AzureSasCredential
from pydantic import Field, SecretStr

from src.models.base import FrozenStorageModel
from src.storage.exceptions import MalformedConnectionDescriptor

ACCOUNT_NAME = "AccountName"
ACCOUNT_KEY = "AccountKey"
PROTOCOL = "DefaultEndpointsProtocol"
BLOB_ENDPOINT = "BlobEndpoint"
ENDPOINT_SUFFIX = "EndpointSuffix"
SHARED_ACCESS_SIGNATURE = "SharedAccessSignature"
USE_DEVELOPMENT_STORAGE = "UseDevelopmentStorage"

DEFAULT_ENDPOINT_SUFFIX = "core.windows.net"

# Well-known account of the local storage emulator (Azurite)
EMULATOR_ACCOUNT_NAME = "devstoreaccount1"
EMULATOR_ACCOUNT_KEY = (
    "Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw=="
)
EMULATOR_BLOB_ENDPOINT = "http://127.0.0.1:10000/devstoreaccount1"


class ConnectionContext(FrozenStorageModel):
    """Endpoint and credentials for one storage account."""

    account_name: str | None = None
    account_key: SecretStr | None = None
    protocol: str = "https"
    blob_endpoint: str | None = None
    endpoint_suffix: str = DEFAULT_ENDPOINT_SUFFIX
    shared_access_signature: SecretStr | None = None
    settings: dict[str, str] = Field(default_factory=dict, repr=False)

    @property
    def blob_service_url(self) -> str:
        """Blob service endpoint, explicit or derived from account name and suffix."""
        if self.blob_endpoint:
            return self.blob_endpoint.rstrip("/")
        if not self.account_name:
            raise MalformedConnectionDescriptor(
                f"needs {BLOB_ENDPOINT} or {ACCOUNT_NAME} to locate the blob service"
            )
        return f"{self.protocol}://{self.account_name}.blob.{self.endpoint_suffix}"

    def signing_credentials(self) -> tuple[str, str]:
        """
        Get (account_name, account_key) for signing SAS tokens.

        Raises:
            MalformedConnectionDescriptor: if either value is missing
        """
        if not self.account_name:
            raise MalformedConnectionDescriptor(f"{ACCOUNT_NAME} is required for signing")
        if not self.account_key:
            raise MalformedConnectionDescriptor(f"{ACCOUNT_KEY} is required for signing")
        return self.account_name, self.account_key.get_secret_value()

    def credential(self) -> Any:
        """Credential object to hand to BlobServiceClient (None for anonymous access)."""
        if self.account_name and self.account_key:
            return AzureNamedKeyCredential(self.account_name, self.account_key.get_secret_value())
        if self.shared_access_signature:
            return AzureSasCredential(self.shared_access_signature.get_secret_value())
        return None


def split_connection_string(raw: str) -> dict[str, str]:
    """
    Split a connection string into its key/value pairs.

    Empty segments are skipped. Later duplicates replace earlier ones.

    Raises:
        MalformedConnectionDescriptor: if a segment has no "=" or an empty key
    """
    pairs: dict[str, str] = {}
    for segment in raw.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        if "=" not in segment:
            raise MalformedConnectionDescriptor(f"segment {segment.split()[0][:20]!r} has no '='")
        key, value = segment.split("=", 1)
        key = key.strip()
        if not key:
            raise MalformedConnectionDescriptor("segment with empty key")
        pairs[key] = value.strip()
    return pairs


def parse_connection_string(raw: str) -> ConnectionContext:
    """
    Parse a connection string into a ConnectionContext.

    Account name and key are optional here; they are only demanded when a
    signing operation asks for them.
    """
    if not raw or not raw.strip():
        raise MalformedConnectionDescriptor("empty connection string")

    pairs = split_connection_string(raw)

    if pairs.get(USE_DEVELOPMENT_STORAGE, "").lower() == "true":
        pairs = {
            ACCOUNT_NAME: EMULATOR_ACCOUNT_NAME,
            ACCOUNT_KEY: EMULATOR_ACCOUNT_KEY,
            PROTOCOL: "http",
            BLOB_ENDPOINT: EMULATOR_BLOB_ENDPOINT,
            **pairs,
        }

    account_key = pairs.get(ACCOUNT_KEY)
    sas = pairs.get(SHARED_ACCESS_SIGNATURE)

    return ConnectionContext(
        account_name=pairs.get(ACCOUNT_NAME) or None,
        account_key=SecretStr(account_key) if account_key else None,
        protocol=pairs.get(PROTOCOL) or "https",
        blob_endpoint=pairs.get(BLOB_ENDPOINT) or None,
        endpoint_suffix=pairs.get(ENDPOINT_SUFFIX) or DEFAULT_ENDPOINT_SUFFIX,
        shared_access_signature=SecretStr(sas.lstrip("?")) if sas else None,
        settings=pairs,
    )
