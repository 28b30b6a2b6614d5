"""Protocol restriction for the ``spr`` SAS parameter."""

from enum import Enum


class SASProtocol(str, Enum):
    """Protocols a SAS may be used over. HTTP-only is not a permitted value."""

    HTTPS_ONLY = "https"
    HTTPS_HTTP = "https,http"

    def __str__(self) -> str:
        return self.value
