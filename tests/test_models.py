"""
Tests for storage models.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from src.models import (
    AccessPolicy,
    CopyOperation,
    CopyStatus,
    PublicAccessLevel,
    SasDescriptor,
    SasPermission,
    SasResource,
    canonical_permissions,
)


class TestPermissions:
    """Tests for permission ordering."""

    def test_canonical_order(self):
        """Test that permissions render in racwdl order."""
        assert canonical_permissions({"w", "r"}) == "rw"
        assert canonical_permissions("ldwcar") == "racwdl"
        assert canonical_permissions([SasPermission.LIST, SasPermission.READ]) == "rl"

    def test_unknown_permission(self):
        """Test that letters outside racwdl are rejected."""
        with pytest.raises(ValueError):
            canonical_permissions({"x"})

    def test_policy_keeps_permission_as_given(self):
        """Test that a non-canonical string is left for the service to reject."""
        policy = AccessPolicy(id="p", permission="wr")
        assert policy.to_sdk().permission == "wr"


class TestAccessPolicy:
    """Tests for AccessPolicy conversion."""

    def test_from_signed_identifier_with_strings(self):
        """Test parsing ISO timestamps returned by the service."""
        identifier = SimpleNamespace(
            id="Read_Write_Policy",
            access_policy=SimpleNamespace(
                permission="rw",
                start="2024-01-01T00:00:00Z",
                expiry="2024-01-02T00:00:00Z",
            ),
        )
        policy = AccessPolicy.from_signed_identifier(identifier)

        assert policy.id == "Read_Write_Policy"
        assert policy.start == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_from_identifier_without_policy(self):
        """Test an identifier with no access policy body."""
        policy = AccessPolicy.from_signed_identifier(SimpleNamespace(id="bare", access_policy=None))
        assert policy.permission == ""
        assert policy.start is None

    def test_id_is_required(self):
        """Test that a policy cannot be built without an id."""
        with pytest.raises(ValidationError):
            AccessPolicy(permission="r")


class TestPublicAccessLevel:
    """Tests for public access mapping."""

    def test_none_is_private(self):
        assert PublicAccessLevel.NONE.to_sdk() is None
        assert PublicAccessLevel.BLOB.to_sdk() == "blob"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, PublicAccessLevel.NONE), ("off", PublicAccessLevel.NONE), ("container", PublicAccessLevel.CONTAINER)],
    )
    def test_from_sdk(self, value, expected):
        assert PublicAccessLevel.from_sdk(value) is expected


class TestSasDescriptor:
    """Tests for SAS descriptors."""

    def test_blob_requires_name(self):
        """Test that a blob SAS needs a blob name."""
        with pytest.raises(ValidationError):
            SasDescriptor(resource=SasResource.BLOB, container_name="c", permissions={"r"})

    def test_resource_must_be_known(self):
        """Test that only blob and container resources are accepted."""
        with pytest.raises(ValidationError):
            SasDescriptor(resource="queue", container_name="c")

    def test_conflict_flag(self):
        """Test detection of window plus policy id."""
        now = datetime.now(timezone.utc)
        descriptor = SasDescriptor(
            resource=SasResource.CONTAINER, container_name="c", policy_id="p", expiry=now
        )
        assert descriptor.has_conflict
        assert not descriptor.model_copy(update={"expiry": None}).has_conflict


class TestCopyOperation:
    """Tests for the copy state machine."""

    def make_operation(self) -> CopyOperation:
        return CopyOperation(source_url="http://src/c/b", container_name="d", blob_name="b")

    def test_lifecycle(self):
        """Test NOT_STARTED -> PENDING -> SUCCEEDED."""
        operation = self.make_operation()
        assert operation.status is CopyStatus.NOT_STARTED

        operation.start("id-1", CopyStatus.PENDING)
        operation.record_poll(CopyStatus.PENDING)
        operation.record_poll(CopyStatus.SUCCEEDED)

        assert operation.is_terminal
        assert operation.polls == 2
        assert operation.to_result().succeeded

    def test_terminal_is_final(self):
        """Test that a finished operation does not transition again."""
        operation = self.make_operation()
        operation.start("id-1", CopyStatus.FAILED)

        with pytest.raises(ValueError):
            operation.record_poll(CopyStatus.SUCCEEDED)
        with pytest.raises(ValueError):
            operation.cancel()

    def test_start_only_once(self):
        """Test that a started operation cannot be started again."""
        operation = self.make_operation()
        operation.start("id-1", CopyStatus.PENDING)
        with pytest.raises(ValueError):
            operation.start("id-2", CopyStatus.PENDING)

    def test_status_mapping(self):
        """Test service status strings."""
        assert CopyStatus.from_sdk("pending") is CopyStatus.PENDING
        assert CopyStatus.from_sdk("success") is CopyStatus.SUCCEEDED
        assert CopyStatus.from_sdk(None) is CopyStatus.NOT_STARTED
