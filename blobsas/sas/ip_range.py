"""Inclusive IPv4 address range for the ``sip`` SAS parameter."""

import ipaddress
from dataclasses import dataclass
from typing import Optional

from blobsas.exceptions import InvalidIpRange


def _parse_address(value: str) -> ipaddress.IPv4Address:
    try:
        return ipaddress.IPv4Address(value)
    except ValueError as exc:
        raise InvalidIpRange(f"Invalid IPv4 address: {value!r}") from exc


@dataclass(frozen=True)
class IPRange:
    """
    Optional inclusive IPv4 range.

    Both ends absent means no restriction. ``end`` omitted means a single
    address.

    Example:
        >>> str(IPRange("10.0.0.1", "10.0.0.255"))
        '10.0.0.1-10.0.0.255'
        >>> str(IPRange("10.0.0.1", "10.0.0.1"))
        '10.0.0.1'
    """

    start: Optional[str] = None
    end: Optional[str] = None

    def __post_init__(self):
        """Validate addresses and ordering."""
        if self.start is None:
            if self.end is not None:
                raise InvalidIpRange("An IP range end requires a start")
            return

        start = _parse_address(self.start)
        if self.end is not None and start > _parse_address(self.end):
            raise InvalidIpRange(f"IP range start {self.start} is after end {self.end}")

    @classmethod
    def parse(cls, text: str) -> "IPRange":
        """Parse ``""``, ``"addr"`` or ``"start-end"``."""
        if not text:
            return cls()
        start, sep, end = text.partition("-")
        return cls(start, end if sep else None)

    @property
    def is_empty(self) -> bool:
        return self.start is None

    def __str__(self) -> str:
        if self.start is None:
            return ""
        if self.end is None or self.end == self.start:
            return self.start
        return f"{self.start}-{self.end}"
