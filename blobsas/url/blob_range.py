"""Byte ranges for ranged blob reads and page-range listings."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BlobRange:
    """
    Inclusive byte range starting at ``offset``.

    ``count`` of None means "to the end of the blob".
    """

    offset: int = 0
    count: Optional[int] = None

    def __post_init__(self):
        if self.offset < 0:
            raise ValueError("BlobRange offset must be >= 0")
        if self.count is not None and self.count <= 0:
            raise ValueError("BlobRange count must be > 0")

    @classmethod
    def full(cls) -> "BlobRange":
        """The whole blob."""
        return cls()

    def to_header(self) -> str:
        """Value for the ``x-ms-range`` header, e.g. ``bytes=0-511``."""
        if self.count is None:
            return f"bytes={self.offset}-"
        return f"bytes={self.offset}-{self.offset + self.count - 1}"

    def __str__(self) -> str:
        return self.to_header()


def range_header(blob_range: Optional[BlobRange]) -> str:
    """Header value for ``blob_range``; None means the full blob."""
    return (blob_range or BlobRange.full()).to_header()
