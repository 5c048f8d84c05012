"""
Shared error handling for the regional API proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class ProxyException(Exception):
    """Base exception for proxy services."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(ProxyException):
    """Invalid service configuration, such as an unknown default region."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ClientInputError(ProxyException):
    """The inbound request lacks something the proxy needs.

    Surfaced as 500 rather than 400: the only case is a missing
    connecting-IP header, which the hosting platform always sets.
    """

    def __init__(self, message: str = "Invalid client request", details: Optional[Dict[str, Any]] = None):
        super().__init__("CLIENT_INPUT_ERROR", message, details)


class UpstreamError(ProxyException):
    """Upstream API errors."""

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_ERROR", f"{service}: {message}", details)


class StoreError(ProxyException):
    """Key-value store errors."""

    def __init__(self, message: str = "Store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_ERROR", message, details)
