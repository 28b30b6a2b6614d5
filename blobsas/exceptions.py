"""
Exceptions for blobsas.

Every error raised by the URL and SAS modules is a deterministic input
validation failure. None of them is transient, so none should be retried.
"""


class BlobSASError(Exception):
    """Base exception for blobsas errors."""

    def __init__(self, message: str, error_code: str = "InvalidInput"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class MalformedResourceIdentifier(BlobSASError):
    """Raised when a resource URL or path cannot be parsed."""

    def __init__(self, message: str = "The resource URL is malformed"):
        super().__init__(message, "InvalidUri")


class InvalidResourceIdentity(BlobSASError):
    """Raised when account/container/blob/snapshot addressing is inconsistent."""

    def __init__(self, message: str = "The resource identity is invalid"):
        super().__init__(message, "InvalidResourceName")


class InvalidSigningRequest(BlobSASError):
    """Raised when the parameters of a signing request cannot produce a SAS."""

    def __init__(self, message: str = "The signing request is invalid"):
        super().__init__(message, "InvalidQueryParameterValue")


class InvalidPermissionChar(BlobSASError):
    """Raised for an unknown permission letter or one outside the resource scope."""

    def __init__(self, char: str, scope: str = ""):
        message = f"Invalid permission character: {char!r}"
        if scope:
            message = f"{message} for {scope} scope"
        super().__init__(message, "InvalidQueryParameterValue")
        self.char = char


class InvalidIpRange(BlobSASError):
    """Raised when an IP range is not a valid inclusive IPv4 range."""

    def __init__(self, message: str = "Invalid IP range"):
        super().__init__(message, "InvalidQueryParameterValue")


class InvalidKey(BlobSASError):
    """Raised when the account key cannot be decoded as key material."""

    def __init__(self, message: str = "Invalid account key"):
        super().__init__(message, "InvalidAuthenticationInfo")


class EncodingFailure(BlobSASError):
    """Raised when a percent-encoded string contains a malformed escape."""

    def __init__(self, message: str = "Malformed percent-encoding"):
        super().__init__(message, "InvalidUri")
