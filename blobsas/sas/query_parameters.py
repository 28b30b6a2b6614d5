"""Signed SAS query parameters and their query-string form."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple

from blobsas.exceptions import BlobSASError, MalformedResourceIdentifier
from blobsas.sas.ip_range import IPRange
from blobsas.sas.permissions import PermissionSet
from blobsas.sas.protocol import SASProtocol
from blobsas.url.codec import url_decode, url_encode
from blobsas.url.identity import ResourceScope
from blobsas.utils import parse_iso8601, to_utc_string


class QueryStringConstants:
    """Query-string keys of a service SAS."""

    SIGNED_VERSION = "sv"
    SIGNED_PROTOCOL = "spr"
    SIGNED_START = "st"
    SIGNED_EXPIRY = "se"
    SIGNED_IP = "sip"
    SIGNED_IDENTIFIER = "si"
    SIGNED_RESOURCE = "sr"
    SIGNED_PERMISSION = "sp"
    SIGNED_CACHE_CONTROL = "rscc"
    SIGNED_CONTENT_DISPOSITION = "rscd"
    SIGNED_CONTENT_ENCODING = "rsce"
    SIGNED_CONTENT_LANGUAGE = "rscl"
    SIGNED_CONTENT_TYPE = "rsct"
    SIGNED_SIGNATURE = "sig"


SAS_QUERY_KEYS = frozenset(
    value for name, value in vars(QueryStringConstants).items() if name.isupper()
)


@dataclass(frozen=True)
class ResponseHeaderOverrides:
    """Response headers the service returns in place of the blob's own."""

    cache_control: Optional[str] = None
    content_disposition: Optional[str] = None
    content_encoding: Optional[str] = None
    content_language: Optional[str] = None
    content_type: Optional[str] = None


@dataclass(frozen=True)
class SASQueryParameters:
    """
    An issued service SAS.

    ``signature`` is the base64 HMAC-SHA256 of the string-to-sign built from
    every other field; it is percent-encoded only when written to a query
    string. Instances are immutable, so no field can change after signing.

    A SAS read back from a URL also keeps ``signed_text``, the decoded text of
    every field exactly as received. ``to_pairs`` writes that text back
    unchanged (``sp=wr`` stays ``wr``, ``se=...T00:00Z`` keeps minute
    precision) because the signature covers the text, not the parsed values.
    Equality compares the parsed fields only.
    """

    version: str
    signature: str
    resource: Optional[str] = None
    permissions: Optional[str] = None
    start: Optional[datetime] = None
    expiry: Optional[datetime] = None
    ip_range: Optional[IPRange] = None
    protocol: Optional[SASProtocol] = None
    identifier: Optional[str] = None
    headers: ResponseHeaderOverrides = field(default_factory=ResponseHeaderOverrides)
    signed_text: Tuple[Tuple[str, str], ...] = field(default=(), compare=False, repr=False)

    def to_pairs(self) -> List[Tuple[str, str]]:
        """Decoded ``(key, value)`` pairs in query-string order, empty fields omitted."""
        q = QueryStringConstants
        received = dict(self.signed_text)
        candidates = [
            (q.SIGNED_VERSION, self.version),
            (q.SIGNED_PROTOCOL, self.protocol.value if self.protocol else None),
            (q.SIGNED_START, to_utc_string(self.start)),
            (q.SIGNED_EXPIRY, to_utc_string(self.expiry)),
            (q.SIGNED_IP, str(self.ip_range) if self.ip_range else None),
            (q.SIGNED_IDENTIFIER, self.identifier),
            (q.SIGNED_RESOURCE, self.resource),
            (q.SIGNED_PERMISSION, self.permissions),
            (q.SIGNED_CACHE_CONTROL, self.headers.cache_control),
            (q.SIGNED_CONTENT_DISPOSITION, self.headers.content_disposition),
            (q.SIGNED_CONTENT_ENCODING, self.headers.content_encoding),
            (q.SIGNED_CONTENT_LANGUAGE, self.headers.content_language),
            (q.SIGNED_CONTENT_TYPE, self.headers.content_type),
            (q.SIGNED_SIGNATURE, self.signature),
        ]
        return [(key, received.get(key, value)) for key, value in candidates if key in received or value]

    def encode(self) -> str:
        """Serialize to a query string (without the leading ``?``)."""
        return "&".join(f"{key}={url_encode(value)}" for key, value in self.to_pairs())

    def __str__(self) -> str:
        return self.encode()

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "SASQueryParameters":
        """
        Build from already-decoded SAS query parameters.

        Args:
            params: Mapping holding at least ``sv`` and ``sig``; keys that are
                    not SAS keys are ignored

        Raises:
            MalformedResourceIdentifier: If a required key is missing or a
                                         value cannot be read
        """
        q = QueryStringConstants
        for key in (q.SIGNED_VERSION, q.SIGNED_SIGNATURE):
            if not params.get(key):
                raise MalformedResourceIdentifier(f"Missing required SAS parameter: {key}")

        try:
            resource = params.get(q.SIGNED_RESOURCE) or None
            permissions = params.get(q.SIGNED_PERMISSION) or None
            if permissions is not None:
                # validated only; the signed letter order is kept
                scope = ResourceScope.BLOB if resource == ResourceScope.BLOB.value else ResourceScope.CONTAINER
                PermissionSet.parse(permissions, scope)

            start = params.get(q.SIGNED_START)
            expiry = params.get(q.SIGNED_EXPIRY)
            ip_text = params.get(q.SIGNED_IP)
            protocol = params.get(q.SIGNED_PROTOCOL)

            return cls(
                version=params[q.SIGNED_VERSION],
                signature=params[q.SIGNED_SIGNATURE],
                resource=resource,
                permissions=permissions,
                start=parse_iso8601(start) if start else None,
                expiry=parse_iso8601(expiry) if expiry else None,
                ip_range=IPRange.parse(ip_text) if ip_text else None,
                protocol=SASProtocol(protocol) if protocol else None,
                identifier=params.get(q.SIGNED_IDENTIFIER) or None,
                headers=ResponseHeaderOverrides(
                    cache_control=params.get(q.SIGNED_CACHE_CONTROL) or None,
                    content_disposition=params.get(q.SIGNED_CONTENT_DISPOSITION) or None,
                    content_encoding=params.get(q.SIGNED_CONTENT_ENCODING) or None,
                    content_language=params.get(q.SIGNED_CONTENT_LANGUAGE) or None,
                    content_type=params.get(q.SIGNED_CONTENT_TYPE) or None,
                ),
                signed_text=tuple(sorted((key, params[key]) for key in SAS_QUERY_KEYS if params.get(key))),
            )
        except (ValueError, BlobSASError) as exc:
            raise MalformedResourceIdentifier(f"Invalid SAS query parameter: {exc}") from exc

    @classmethod
    def from_query_string(cls, query: str) -> "SASQueryParameters":
        """Parse an encoded query string, e.g. ``sv=...&sig=...``."""
        params: Dict[str, str] = {}
        for key, value in split_query(query):
            if key in params:
                raise MalformedResourceIdentifier(f"Duplicate query parameter: {key}")
            params[key] = value
        return cls.from_query(params)


def split_query(query: str) -> List[Tuple[str, str]]:
    """
    Split an encoded query string into decoded ``(key, value)`` pairs.

    Order is preserved and repeated keys are kept; ``+`` stays literal.

    Raises:
        MalformedResourceIdentifier: If a key or value has a malformed escape
    """
    pairs = []
    for part in query.split("&"):
        if not part:
            continue
        key, _, value = part.partition("=")
        try:
            pairs.append((url_decode(key), url_decode(value)))
        except BlobSASError as exc:
            raise MalformedResourceIdentifier(f"Malformed query parameter: {part!r}") from exc
    return pairs
