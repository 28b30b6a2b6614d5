"""Percent-encoding rules used by blob service URLs and SAS query strings.

The service never treats a raw ``+`` in a query value as an encoded space:
base64 signatures routinely contain ``+``, and a space always travels as
``%20``. Decoding therefore works run by run between ``+`` characters and
puts each ``+`` back literally.
"""

import re
from urllib.parse import quote, unquote_to_bytes

from blobsas.exceptions import EncodingFailure

# Characters that are never escaped (RFC 3986 unreserved set)
UNRESERVED = "-_.~"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _decode_run(run: str) -> str:
    """Decode one ``+``-free run of a percent-encoded string."""
    if _BAD_ESCAPE.search(run):
        raise EncodingFailure(f"Malformed percent-escape in: {run!r}")
    try:
        return unquote_to_bytes(run).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EncodingFailure(f"Percent-escapes do not decode as UTF-8: {run!r}") from exc


def url_decode(value: str) -> str:
    """
    Decode a percent-encoded string, preserving literal ``+`` characters.

    Args:
        value: Encoded string, e.g. ``"a+b%20c"``

    Returns:
        Decoded string, e.g. ``"a+b c"``

    Raises:
        EncodingFailure: If an escape is malformed or the bytes are not UTF-8
    """
    if not value:
        return ""

    if "+" not in value:
        return _decode_run(value)

    return "+".join(_decode_run(run) if run else "" for run in value.split("+"))


def url_encode(value: str) -> str:
    """
    Percent-encode a string with the service's UTF-8 profile.

    Only unreserved characters are left as-is; space becomes ``%20``.
    """
    return quote(value, safe=UNRESERVED, encoding="utf-8")


def encode_path(name: str) -> str:
    """Encode a container or blob name for a URL path, keeping ``/`` separators."""
    return "/".join(url_encode(segment) for segment in name.split("/"))
