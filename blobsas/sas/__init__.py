"""SAS module for blobsas.

Permission, IP-range and protocol encoding, signed query parameters, and
service SAS signing for containers and blobs.
"""

from blobsas.sas.permissions import (
    SASPermission,
    PermissionSet,
)
from blobsas.sas.ip_range import IPRange
from blobsas.sas.protocol import SASProtocol
from blobsas.sas.query_parameters import (
    QueryStringConstants,
    ResponseHeaderOverrides,
    SASQueryParameters,
)
from blobsas.sas.signer import (
    SASSigner,
    DEFAULT_SAS_VERSION,
    canonical_resource_name,
    compute_signature,
    decode_account_key,
)

__all__ = [
    "SASPermission",
    "PermissionSet",
    "IPRange",
    "SASProtocol",
    "QueryStringConstants",
    "ResponseHeaderOverrides",
    "SASQueryParameters",
    "SASSigner",
    "DEFAULT_SAS_VERSION",
    "canonical_resource_name",
    "compute_signature",
    "decode_account_key",
]
