"""
tokenbridge/errors.py
Error taxonomy shared by the signer, issuer, data service client and HTTP layer.

  InvalidArgument   : caller supplied missing/empty input      → HTTP 400
  ConfigurationError: deployment is missing a key or app code  → HTTP 500
  UpstreamError     : the remote data service failed           → HTTP 500

public_message is the only text that may cross the process boundary.
str(exc) may carry detail for server-side logs: never secret values.
"""

from typing import Optional


class BridgeError(Exception):
    """Base class. public_message is safe to return to a caller."""

    default_public_message = "Internal error"

    def __init__(self, message: str = "", public_message: Optional[str] = None):
        super().__init__(message or self.default_public_message)
        self.public_message = public_message or message or self.default_public_message


class InvalidArgument(BridgeError, ValueError):
    """Missing or empty required input. Not retryable without fixing the input."""

    default_public_message = "Invalid argument"


class ConfigurationError(BridgeError):
    """Required process configuration is absent. Needs operator intervention."""

    default_public_message = "Server configuration error"


class UpstreamError(BridgeError):
    """Failure reported by (or while talking to) the remote data service."""

    default_public_message = "Upstream service error"

    def __init__(
        self,
        message:        str = "",
        public_message: Optional[str] = None,
        status:         Optional[int] = None,
        error_code:     Optional[int] = None,
    ):
        super().__init__(message, public_message=public_message or self.default_public_message)
        self.status     = status
        self.error_code = error_code
