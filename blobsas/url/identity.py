"""Resource addressing for blob service URLs.

A ``ResourceIdentity`` names an account (through its host), an optional
container, an optional blob inside it and an optional snapshot of that
blob. It is the single address value shared by URL parsing, URL building
and SAS signing; blob kinds (block, page, append) do not change it.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from blobsas.exceptions import InvalidResourceIdentity
from blobsas.utils import parse_iso8601


class ResourceScope(str, Enum):
    """Scope a SAS grants access to, by its ``sr`` letter."""

    CONTAINER = "c"
    BLOB = "b"


@dataclass(frozen=True)
class ResourceIdentity:
    """Immutable account/container/blob/snapshot address."""

    host: str
    container_name: Optional[str] = None
    blob_name: Optional[str] = None
    snapshot: Optional[str] = None  # service timestamp text, e.g. 2011-03-09T01:42:34.9360000Z
    scheme: str = "https"

    def __post_init__(self):
        """Normalize empty names and enforce the addressing invariants."""
        if not self.host:
            raise InvalidResourceIdentity("Host is required")

        # "" means the same as absent: service-level, no blob, no snapshot
        for name in ("container_name", "blob_name", "snapshot"):
            if getattr(self, name) == "":
                object.__setattr__(self, name, None)

        if self.blob_name is not None and self.container_name is None:
            raise InvalidResourceIdentity(
                f"Blob {self.blob_name!r} requires a container name"
            )
        if self.container_name is not None and ("/" in self.container_name or "\\" in self.container_name):
            raise InvalidResourceIdentity(
                f"Container name {self.container_name!r} must not contain '/' or '\\'"
            )
        if self.snapshot is not None:
            if self.blob_name is None:
                raise InvalidResourceIdentity("A snapshot requires a blob name")
            try:
                parse_iso8601(self.snapshot)
            except ValueError as exc:
                raise InvalidResourceIdentity(f"Invalid snapshot time: {self.snapshot}") from exc

    @property
    def account_name(self) -> str:
        """Account name, the first DNS label of the host, lowercased."""
        return self.host.split(":", 1)[0].split(".", 1)[0].lower()

    @property
    def scope(self) -> ResourceScope:
        """BLOB when a blob is addressed, CONTAINER otherwise."""
        if self.blob_name is not None:
            return ResourceScope.BLOB
        return ResourceScope.CONTAINER

    @property
    def resource_type(self) -> str:
        """The ``sr`` letter for this identity."""
        return self.scope.value

    @property
    def snapshot_time(self) -> Optional[datetime]:
        """Snapshot timestamp as an aware UTC datetime, or None."""
        if self.snapshot is None:
            return None
        return parse_iso8601(self.snapshot)

    def with_container(self, container_name: str) -> "ResourceIdentity":
        """Address ``container_name`` in the same account."""
        return ResourceIdentity(host=self.host, container_name=container_name, scheme=self.scheme)

    def with_blob(self, blob_name: str) -> "ResourceIdentity":
        """Address ``blob_name`` in this identity's container."""
        return ResourceIdentity(
            host=self.host,
            container_name=self.container_name,
            blob_name=blob_name,
            scheme=self.scheme,
        )

    def with_snapshot(self, snapshot: Optional[str]) -> "ResourceIdentity":
        """Address a snapshot of this blob, or the base blob when ``snapshot`` is None."""
        return replace(self, snapshot=snapshot)

    def container_identity(self) -> "ResourceIdentity":
        """Address the container that holds this blob."""
        return ResourceIdentity(host=self.host, container_name=self.container_name, scheme=self.scheme)
