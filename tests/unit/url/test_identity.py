"""Tests for ResourceIdentity."""

from datetime import datetime, timezone

import pytest

from blobsas.exceptions import InvalidResourceIdentity
from blobsas.url.identity import ResourceIdentity, ResourceScope

HOST = "acct.blob.core.windows.net"


class TestResourceIdentity:
    """Test construction and invariants."""

    def test_account_from_first_label(self):
        identity = ResourceIdentity(HOST, "c")

        assert identity.account_name == "acct"

    def test_account_ignores_port(self):
        assert ResourceIdentity("acct:10000").account_name == "acct"

    def test_blob_scope(self):
        identity = ResourceIdentity(HOST, "c", "b")

        assert identity.scope == ResourceScope.BLOB
        assert identity.resource_type == "b"

    def test_container_scope(self):
        identity = ResourceIdentity(HOST, "c")

        assert identity.scope == ResourceScope.CONTAINER
        assert identity.resource_type == "c"

    def test_empty_container_is_service_level(self):
        identity = ResourceIdentity(HOST, "")

        assert identity.container_name is None

    def test_missing_host(self):
        with pytest.raises(InvalidResourceIdentity):
            ResourceIdentity("")

    def test_blob_without_container(self):
        """A blob requires a container."""
        with pytest.raises(InvalidResourceIdentity) as exc_info:
            ResourceIdentity(HOST, blob_name="b")

        assert exc_info.value.error_code == "InvalidResourceName"

    def test_snapshot_without_blob(self):
        with pytest.raises(InvalidResourceIdentity):
            ResourceIdentity(HOST, "c", snapshot="2020-01-01T00:00:00.0000000Z")

    def test_immutable(self):
        identity = ResourceIdentity(HOST, "c")

        with pytest.raises(AttributeError):
            identity.container_name = "other"

    def test_snapshot_time(self):
        identity = ResourceIdentity(HOST, "c", "b", snapshot="2011-03-09T01:42:34.9360000Z")

        assert identity.snapshot_time == datetime(2011, 3, 9, 1, 42, 34, 936000, tzinfo=timezone.utc)

    @pytest.mark.parametrize("snapshot", ["yesterday", "2011-03-09", "2011-03-09T01:42:34.9360000"])
    def test_invalid_snapshot_time(self, snapshot):
        """Snapshots are checked when the identity is built."""
        with pytest.raises(InvalidResourceIdentity):
            ResourceIdentity(HOST, "c", "b", snapshot=snapshot)

    @pytest.mark.parametrize("container", ["a/b", "a\\b", "/"])
    def test_container_separators_rejected(self, container):
        """A container name with a separator would alias another resource."""
        with pytest.raises(InvalidResourceIdentity):
            ResourceIdentity(HOST, container, "x")

    def test_account_lowercased(self):
        assert ResourceIdentity("ACCT.blob.core.windows.net", "c").account_name == "acct"


class TestDerivation:
    """Test derived identities."""

    def test_with_blob(self):
        container = ResourceIdentity(HOST, "c")
        blob = container.with_blob("dir/b.txt")

        assert blob == ResourceIdentity(HOST, "c", "dir/b.txt")
        assert container.blob_name is None

    def test_with_blob_on_service_level_fails(self):
        with pytest.raises(InvalidResourceIdentity):
            ResourceIdentity(HOST).with_blob("b")

    def test_with_snapshot_and_back(self):
        blob = ResourceIdentity(HOST, "c", "b")
        snap = blob.with_snapshot("2020-01-01T00:00:00.0000000Z")

        assert snap.snapshot == "2020-01-01T00:00:00.0000000Z"
        assert snap.with_snapshot(None) == blob

    def test_with_container_keeps_scheme(self):
        identity = ResourceIdentity("127.0.0.1:10000", "a", scheme="http")

        assert identity.with_container("b") == ResourceIdentity("127.0.0.1:10000", "b", scheme="http")

    def test_container_identity(self):
        blob = ResourceIdentity(HOST, "c", "b", snapshot="2020-01-01T00:00:00Z")

        assert blob.container_identity() == ResourceIdentity(HOST, "c")
