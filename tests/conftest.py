"""
Shared fixtures and in-memory fakes for the SDK clients.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.core.paging import ItemPaged

EMULATOR_CONNECTION_STRING = (
    "AccountName=devstoreaccount1;"
    "AccountKey=Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw==;"
    "DefaultEndpointsProtocol=http;"
    "BlobEndpoint=http://127.0.0.1:10000/devstoreaccount1;"
    "QueueEndpoint=http://127.0.0.1:10001/devstoreaccount1;"
    "TableEndpoint=http://127.0.0.1:10002/devstoreaccount1;"
)


class FakeContainerClient:
    """Container client keeping its ACL and blob names in memory."""

    def __init__(self, name: str, blob_names: list[str] | None = None, page_size: int = 2):
        self.name = name
        self.url = f"http://127.0.0.1:10000/devstoreaccount1/{name}"
        self.exists = False
        self.public_access = None
        self.signed_identifiers = {}
        self.acl_writes = 0
        self.blob_names = blob_names or []
        self.page_size = page_size
        self.pages_fetched = 0

    def create_container(self):
        if self.exists:
            raise ResourceExistsError("The specified container already exists.")
        self.exists = True

    def delete_container(self):
        if not self.exists:
            raise ResourceNotFoundError("The specified container does not exist.")
        self.exists = False

    def get_container_access_policy(self):
        return {
            "public_access": self.public_access,
            "signed_identifiers": [
                SimpleNamespace(id=key, access_policy=value)
                for key, value in self.signed_identifiers.items()
            ],
        }

    def set_container_access_policy(self, signed_identifiers, public_access=None):
        self.signed_identifiers = dict(signed_identifiers)
        self.public_access = public_access
        self.acl_writes += 1

    def list_blobs(self, name_starts_with=None):
        names = [n for n in self.blob_names if not name_starts_with or n.startswith(name_starts_with)]

        def get_next(continuation_token=None):
            start = int(continuation_token or 0)
            self.pages_fetched += 1
            return start

        def extract_data(start):
            page = [SimpleNamespace(name=n) for n in names[start:start + self.page_size]]
            next_start = start + self.page_size
            return (str(next_start) if next_start < len(names) else None), page

        return ItemPaged(get_next, extract_data)


class FakeServiceClient:
    """BlobServiceClient stand-in handing out fake container and mock blob clients."""

    def __init__(self, account_name: str = "devstoreaccount1"):
        self.account_name = account_name
        self.containers: dict[str, FakeContainerClient] = {}
        self.blobs: dict[tuple[str, str], MagicMock] = {}

    def get_container_client(self, name: str) -> FakeContainerClient:
        if name not in self.containers:
            self.containers[name] = FakeContainerClient(name)
        return self.containers[name]

    def get_blob_client(self, container: str, blob: str) -> MagicMock:
        key = (container, blob)
        if key not in self.blobs:
            client = MagicMock(name=f"blob:{container}/{blob}")
            client.url = f"http://127.0.0.1:10000/devstoreaccount1/{container}/{blob}"
            self.blobs[key] = client
        return self.blobs[key]


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []
        self.on_sleep = None

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        if self.on_sleep:
            self.on_sleep(len(self.sleeps))


@pytest.fixture
def service_client() -> FakeServiceClient:
    return FakeServiceClient()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
