"""Service SAS issuance for containers and blobs.

Builds the string-to-sign for a container- or blob-scoped SAS, signs it
with the account key using HMAC-SHA256 and returns the signed query
parameters.

Reference: https://learn.microsoft.com/rest/api/storageservices/create-service-sas
"""

import base64
import binascii
import hashlib
import hmac
import logging
from datetime import datetime
from typing import Optional, Union

from blobsas.core.logging_config import log_with_context
from blobsas.exceptions import InvalidKey, InvalidSigningRequest
from blobsas.sas.ip_range import IPRange
from blobsas.sas.permissions import PermissionSet
from blobsas.sas.protocol import SASProtocol
from blobsas.sas.query_parameters import ResponseHeaderOverrides, SASQueryParameters
from blobsas.url.identity import ResourceIdentity
from blobsas.utils import to_utc, to_utc_string

logger = logging.getLogger(__name__)

DEFAULT_SAS_VERSION = "2016-05-31"


def decode_account_key(account_key: Union[str, bytes]) -> bytes:
    """
    Turn an account key into HMAC key material.

    Args:
        account_key: Base64-encoded key text, or the raw key bytes

    Returns:
        Raw key bytes

    Raises:
        InvalidKey: If the key is empty or not valid base64
    """
    if isinstance(account_key, bytes):
        key_bytes = account_key
    else:
        try:
            key_bytes = base64.b64decode(account_key, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidKey("Account key is not valid base64") from exc

    if not key_bytes:
        raise InvalidKey("Account key is empty")
    return key_bytes


def compute_signature(string_to_sign: str, key_bytes: bytes) -> str:
    """
    Compute the base64 HMAC-SHA256 signature of ``string_to_sign``.

    Args:
        string_to_sign: Canonical string to sign
        key_bytes: Decoded account key

    Returns:
        Base64-encoded signature
    """
    digest = hmac.new(key_bytes, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def canonical_resource_name(identity: ResourceIdentity) -> str:
    """
    Canonical name of the signed resource.

    Container: ``/blob/account/container``
    Blob:      ``/blob/account/container/blob``
    """
    name = f"/blob/{identity.account_name}/{identity.container_name or ''}"
    if identity.blob_name:
        name += "/" + identity.blob_name.replace("\\", "/")
    return name


class SASSigner:
    """
    Issues service SAS tokens for containers and blobs.

    The signer only holds the service version it signs for; keys are passed
    per call and never kept.

    Example:
        signer = SASSigner()
        sas = signer.sign(
            ResourceIdentity("acct.blob.core.windows.net", "mycontainer", "myblob"),
            permissions=PermissionSet.of(SASPermission.READ),
            expiry=datetime(2020, 1, 1, tzinfo=timezone.utc),
            account_key=key,
        )
        url = BlobURLParser().build(identity, sas)
    """

    def __init__(self, version: str = DEFAULT_SAS_VERSION):
        """
        Initialize SAS signer.

        Args:
            version: Storage service version written to ``sv`` and signed
        """
        self.version = version

    def string_to_sign(
        self,
        identity: ResourceIdentity,
        *,
        permissions: Optional[PermissionSet] = None,
        start: Optional[datetime] = None,
        expiry: Optional[datetime] = None,
        ip_range: Optional[IPRange] = None,
        protocol: Optional[SASProtocol] = None,
        identifier: Optional[str] = None,
        headers: Optional[ResponseHeaderOverrides] = None,
    ) -> str:
        """
        Build the string to sign for a service SAS (version 2015-04-05 and later).

        Format:
        signedpermissions\\n
        signedstart\\n
        signedexpiry\\n
        canonicalizedresource\\n
        signedidentifier\\n
        signedIP\\n
        signedProtocol\\n
        signedversion\\n
        rscc\\n
        rscd\\n
        rsce\\n
        rscl\\n
        rsct

        Returns:
            String to sign
        """
        headers = headers or ResponseHeaderOverrides()
        parts = [
            permissions.to_canonical_string() if permissions else "",
            to_utc_string(start),
            to_utc_string(expiry),
            canonical_resource_name(identity),
            identifier or "",
            str(ip_range) if ip_range else "",
            protocol.value if protocol else "",
            self.version,
            headers.cache_control or "",
            headers.content_disposition or "",
            headers.content_encoding or "",
            headers.content_language or "",
            headers.content_type or "",
        ]
        return "\n".join(parts)

    def sign(
        self,
        identity: ResourceIdentity,
        *,
        account_key: Union[str, bytes],
        permissions: Optional[PermissionSet] = None,
        expiry: Optional[datetime] = None,
        start: Optional[datetime] = None,
        ip_range: Optional[IPRange] = None,
        protocol: Optional[SASProtocol] = None,
        identifier: Optional[str] = None,
        headers: Optional[ResponseHeaderOverrides] = None,
    ) -> SASQueryParameters:
        """
        Sign a service SAS for ``identity``.

        Args:
            identity: Container or blob to grant access to
            account_key: Account key, base64 text or raw bytes
            permissions: Permissions granted
            expiry: Time at which the SAS stops being valid (required)
            start: Time at which the SAS becomes valid
            ip_range: Client addresses allowed to use the SAS
            protocol: Protocols allowed to use the SAS
            identifier: Stored access policy identifier
            headers: Response header overrides

        Returns:
            Signed SASQueryParameters

        Raises:
            InvalidSigningRequest: If the request cannot produce a valid SAS
            InvalidKey: If the account key cannot be decoded
        """
        if expiry is None:
            raise InvalidSigningRequest("Expiry time is required")
        # the signed string carries whole seconds only
        expiry = to_utc(expiry).replace(microsecond=0)

        if start is not None:
            start = to_utc(start).replace(microsecond=0)
            if start >= expiry:
                raise InvalidSigningRequest(
                    f"Start time {to_utc_string(start)} must be before expiry {to_utc_string(expiry)}"
                )

        if not permissions and not identifier:
            raise InvalidSigningRequest(
                "A SAS needs permissions, a stored access policy identifier, or both"
            )

        if permissions and not permissions.is_valid_for(identity.scope):
            raise InvalidSigningRequest(
                f"Permissions {permissions} are not valid for {identity.scope.name.lower()} scope"
            )

        if ip_range is not None and ip_range.is_empty:
            ip_range = None
        headers = headers or ResponseHeaderOverrides()

        key_bytes = decode_account_key(account_key)

        string_to_sign = self.string_to_sign(
            identity,
            permissions=permissions,
            start=start,
            expiry=expiry,
            ip_range=ip_range,
            protocol=protocol,
            identifier=identifier,
            headers=headers,
        )
        signature = compute_signature(string_to_sign, key_bytes)

        log_with_context(
            logger,
            logging.DEBUG,
            "Signed service SAS",
            resource=canonical_resource_name(identity),
            resource_type=identity.resource_type,
            permissions=str(permissions or ""),
            version=self.version,
        )

        return SASQueryParameters(
            version=self.version,
            signature=signature,
            resource=identity.resource_type,
            permissions=permissions.to_canonical_string() if permissions else None,
            start=start,
            expiry=expiry,
            ip_range=ip_range,
            protocol=protocol,
            identifier=identifier or None,
            headers=headers,
        )
