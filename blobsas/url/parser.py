"""Strict parsing and reconstruction of blob service resource URLs.

A URL such as::

    https://myaccount.blob.core.windows.net/mycontainer/dir/myblob?snapshot=...&sv=...&sig=...

is split into a ``ResourceIdentity`` (host, container, blob, snapshot), the
SAS query parameters it already carries, and any other query parameters.
``BlobURLParser.build`` reverses the split.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from blobsas.exceptions import EncodingFailure, MalformedResourceIdentifier
from blobsas.sas.query_parameters import SAS_QUERY_KEYS, SASQueryParameters, QueryStringConstants, split_query
from blobsas.url.codec import encode_path, url_decode, url_encode
from blobsas.url.identity import ResourceIdentity
from blobsas.utils import parse_iso8601

logger = logging.getLogger(__name__)

SNAPSHOT_PARAMETER = "snapshot"


@dataclass(frozen=True)
class BlobURLParts:
    """Result of parsing a blob service URL."""

    identity: ResourceIdentity
    sas: Optional[SASQueryParameters] = None
    unparsed_parameters: Tuple[Tuple[str, str], ...] = ()


class BlobURLParser:
    """Parses blob service URLs into their parts and builds URLs from parts.

    Example:
        parser = BlobURLParser()
        parts = parser.parse_parts("https://acct.blob.core.windows.net/c/a/b.txt?snapshot=2020-01-01T00:00:00.0000000Z")
        # parts.identity.container_name == "c"
        # parts.identity.blob_name == "a/b.txt"
        # parts.identity.snapshot == "2020-01-01T00:00:00.0000000Z"
        url = parser.build(parts.identity, parts.sas, parts.unparsed_parameters)
    """

    def parse(self, url: str) -> ResourceIdentity:
        """Parse ``url`` and return only its resource identity."""
        return self.parse_parts(url).identity

    def parse_parts(self, url: str) -> BlobURLParts:
        """
        Parse a blob service URL.

        Args:
            url: Absolute URL, e.g. "https://acct.blob.core.windows.net/container/blob"

        Returns:
            BlobURLParts with identity, existing SAS and other query parameters

        Raises:
            MalformedResourceIdentifier: If the URL, its path or its query is
                                         unparsable or ambiguous
            InvalidResourceIdentity: If the addressing is inconsistent, e.g. a
                                     snapshot on a container URL
        """
        if not url:
            raise MalformedResourceIdentifier("URL is empty")

        try:
            split = urlsplit(url)
            hostname = split.hostname
        except ValueError as exc:
            raise MalformedResourceIdentifier(f"Unparsable URL: {url}") from exc

        if not split.scheme or not hostname:
            raise MalformedResourceIdentifier(f"URL must be absolute with a host: {url}")
        if "@" in split.netloc:
            raise MalformedResourceIdentifier("URL must not carry user information")
        if split.fragment:
            raise MalformedResourceIdentifier("URL must not carry a fragment")

        container_name, blob_name = self._parse_path(split.path)

        snapshot: Optional[str] = None
        sas_params: Dict[str, str] = {}
        unparsed = []
        for key, value in split_query(split.query):
            if key == SNAPSHOT_PARAMETER:
                if snapshot is not None:
                    raise MalformedResourceIdentifier("Duplicate query parameter: snapshot")
                if not value:
                    raise MalformedResourceIdentifier("Empty snapshot parameter")
                try:
                    parse_iso8601(value)
                except ValueError as exc:
                    raise MalformedResourceIdentifier(f"Invalid snapshot time: {value}") from exc
                snapshot = value
            elif key in SAS_QUERY_KEYS:
                if key in sas_params:
                    raise MalformedResourceIdentifier(f"Duplicate query parameter: {key}")
                sas_params[key] = value
            else:
                unparsed.append((key, value))

        sas = None
        if sas_params:
            if QueryStringConstants.SIGNED_SIGNATURE not in sas_params:
                raise MalformedResourceIdentifier(
                    f"SAS parameters without a signature: {', '.join(sorted(sas_params))}"
                )
            sas = SASQueryParameters.from_query(sas_params)

        identity = ResourceIdentity(
            host=split.netloc,
            container_name=container_name,
            blob_name=blob_name,
            snapshot=snapshot,
            scheme=split.scheme.lower(),
        )
        logger.debug(
            f"Parsed URL: account={identity.account_name}, container={container_name}, "
            f"blob={blob_name}, snapshot={snapshot}, sas={'yes' if sas else 'no'}"
        )
        return BlobURLParts(identity=identity, sas=sas, unparsed_parameters=tuple(unparsed))

    @staticmethod
    def _parse_path(path: str) -> Tuple[Optional[str], Optional[str]]:
        """Split a URL path into decoded container and blob names."""
        if path in ("", "/"):
            return None, None

        container_raw, sep, blob_raw = path[1:].partition("/")
        try:
            container_name = url_decode(container_raw)
            blob_name = url_decode(blob_raw) if sep and blob_raw else None
        except EncodingFailure as exc:
            raise MalformedResourceIdentifier(f"Path cannot be decoded: {path}") from exc

        if not container_name:
            raise MalformedResourceIdentifier(f"Empty container name in path: {path}")
        return container_name, blob_name

    def build(
        self,
        identity: ResourceIdentity,
        sas: Optional[SASQueryParameters] = None,
        unparsed_parameters: Sequence[Tuple[str, str]] = (),
    ) -> str:
        """
        Build a URL from its parts.

        The path always starts with ``/``; names are percent-encoded and ``/``
        inside blob names is kept. Query order is: other parameters, snapshot,
        SAS parameters.

        Args:
            identity: Resource to address
            sas: Signed SAS parameters to append
            unparsed_parameters: Other decoded ``(key, value)`` query parameters

        Returns:
            URL string
        """
        path = "/"
        if identity.container_name is not None:
            path += url_encode(identity.container_name)
            if identity.blob_name is not None:
                path += "/" + encode_path(identity.blob_name)

        query = [f"{url_encode(key)}={url_encode(value)}" for key, value in unparsed_parameters]
        if identity.snapshot is not None:
            query.append(f"{SNAPSHOT_PARAMETER}={url_encode(identity.snapshot)}")
        if sas is not None:
            query.append(sas.encode())

        url = f"{identity.scheme}://{identity.host}{path}"
        if query:
            url += "?" + "&".join(query)
        return url
