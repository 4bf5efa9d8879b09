"""
Tests for blob URL and blob name utilities.
"""

import pytest

from src.storage.exceptions import InvalidBlobUrl
from src.storage.paths import (
    append_sas,
    folder_of,
    has_sas_token,
    join_blob_path,
    parse_blob_url,
    strip_query,
)


class TestParseBlobUrl:
    """Tests for extracting names from blob URLs."""

    def test_emulator_url(self):
        """Test a path-style emulator URL with an encoded space."""
        parts = parse_blob_url(
            "http://127.0.0.1:10000/devstoreaccount1/learntocreatecontainer/First%20Upload.txt"
        )
        assert parts.account_name == "devstoreaccount1"
        assert parts.container_name == "learntocreatecontainer"
        assert parts.blob_name == "First Upload.txt"

    def test_account_url(self):
        """Test a host-style account URL."""
        parts = parse_blob_url("https://myaccount.blob.core.windows.net/container/a.txt")
        assert parts.account_name == "myaccount"
        assert parts.container_name == "container"
        assert parts.blob_name == "a.txt"

    def test_blob_in_folder(self):
        """Test that folder separators stay in the blob name."""
        parts = parse_blob_url("https://myaccount.blob.core.windows.net/container/folder1/sub/b.txt")
        assert parts.blob_name == "folder1/sub/b.txt"

    def test_query_string_ignored(self):
        """Test that a SAS token does not leak into the blob name."""
        parts = parse_blob_url("https://acct.blob.core.windows.net/c/b.txt?sv=2021&sig=abc")
        assert parts.blob_name == "b.txt"

    def test_localhost_is_path_style(self):
        """Test localhost URLs carry the account in the path."""
        parts = parse_blob_url("http://localhost/devstoreaccount1/c/b.txt")
        assert parts.account_name == "devstoreaccount1"

    @pytest.mark.parametrize(
        "url",
        [
            "https://acct.blob.core.windows.net/container",
            "https://acct.blob.core.windows.net/container/",
            "http://127.0.0.1:10000/devstoreaccount1/container",
            "not a url",
        ],
    )
    def test_invalid_urls(self, url):
        """Test URLs that do not name a blob."""
        with pytest.raises(InvalidBlobUrl):
            parse_blob_url(url)


class TestSasHelpers:
    """Tests for query string helpers."""

    def test_strip_query(self):
        assert strip_query("https://a.blob.core.windows.net/c/b?sig=x") == "https://a.blob.core.windows.net/c/b"

    def test_has_sas_token(self):
        assert has_sas_token("https://a.blob.core.windows.net/c/b?sv=1&sig=x")
        assert not has_sas_token("https://a.blob.core.windows.net/c/b")

    def test_append_sas(self):
        assert append_sas("https://a/c/b", "?sv=1&sig=x") == "https://a/c/b?sv=1&sig=x"


class TestBlobNames:
    """Tests for virtual folder helpers."""

    def test_folder_of(self):
        assert folder_of("Folder1/FirstUpload.txt") == "Folder1"
        assert folder_of("a/b/c.txt") == "a/b"
        assert folder_of("FirstUpload.txt") == ""

    def test_join_blob_path(self):
        assert join_blob_path("Folder1", "FirstUpload.txt") == "Folder1/FirstUpload.txt"
        assert join_blob_path("Folder1/", "", "/x.txt") == "Folder1/x.txt"
