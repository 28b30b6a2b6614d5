"""URL module for blobsas.

Resource addressing, percent-encoding and strict parsing/building of blob
service URLs.
"""

from blobsas.url.codec import (
    url_decode,
    url_encode,
    encode_path,
)
from blobsas.url.identity import (
    ResourceIdentity,
    ResourceScope,
)
from blobsas.url.blob_range import (
    BlobRange,
    range_header,
)
from blobsas.url.parser import (
    BlobURLParser,
    BlobURLParts,
)

__all__ = [
    "url_decode",
    "url_encode",
    "encode_path",
    "ResourceIdentity",
    "ResourceScope",
    "BlobRange",
    "range_header",
    "BlobURLParser",
    "BlobURLParts",
]
