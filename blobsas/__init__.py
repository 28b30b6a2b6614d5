"""
blobsas: Shared Access Signatures for blob storage

Issues container- and blob-scoped SAS tokens and parses/builds the resource
URLs they are attached to.
"""

__version__ = "0.1.0"

from .exceptions import (
    BlobSASError,
    MalformedResourceIdentifier,
    InvalidResourceIdentity,
    InvalidSigningRequest,
    InvalidPermissionChar,
    InvalidIpRange,
    InvalidKey,
    EncodingFailure,
)
from .url import (
    ResourceIdentity,
    ResourceScope,
    BlobRange,
    BlobURLParser,
    BlobURLParts,
    url_decode,
    url_encode,
)
from .sas import (
    SASPermission,
    PermissionSet,
    IPRange,
    SASProtocol,
    ResponseHeaderOverrides,
    SASQueryParameters,
    SASSigner,
)

__all__ = [
    "__version__",
    "BlobSASError",
    "MalformedResourceIdentifier",
    "InvalidResourceIdentity",
    "InvalidSigningRequest",
    "InvalidPermissionChar",
    "InvalidIpRange",
    "InvalidKey",
    "EncodingFailure",
    "ResourceIdentity",
    "ResourceScope",
    "BlobRange",
    "BlobURLParser",
    "BlobURLParts",
    "url_decode",
    "url_encode",
    "SASPermission",
    "PermissionSet",
    "IPRange",
    "SASProtocol",
    "ResponseHeaderOverrides",
    "SASQueryParameters",
    "SASSigner",
]
