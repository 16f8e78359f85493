"""
Error Definitions

Defines the exception classes raised by the adapter.

- ConversionError and its subclasses signal a caller/adapter contract mismatch
- MultipleImagesError rejects a multimodal request the backend cannot accept
- UpstreamError wraps a failed backend invocation
"""

from typing import Any, Optional


class AdapterError(Exception):
    """
    Adapter Base Exception

    Base class for all custom exceptions, containing error message, type, and code.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "adapter_error",
        code: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500,
    ):
        """
        Initialize exception

        Args:
            message: Error message
            error_type: Error type
            code: Error code
            details: Extra error details
            status_code: HTTP status code used by the API layer
        """
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.code = code
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary format (for API response)

        Returns:
            dict: Error information dictionary
        """
        result = {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class ConversionError(AdapterError):
    """
    Protocol Contract Violation

    Raised when the caller hands the adapter a variant it does not know.
    Never retried.
    """

    def __init__(
        self,
        message: str = "Conversion failed",
        code: str = "conversion_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="conversion_error",
            code=code,
            details=details,
            status_code=400,
        )


class UnsupportedPartError(ConversionError):
    """Unknown turn role or content part type."""

    def __init__(self, kind: str, value: Any):
        super().__init__(
            message=f"Unsupported {kind}: {value}",
            code=f"unsupported_{kind.replace(' ', '_')}",
            details={"kind": kind, "value": str(value)},
        )


class UnsupportedResponseFormatError(ConversionError):
    def __init__(self, format_type: Any):
        super().__init__(
            message=f"Unsupported type: {format_type}",
            code="unsupported_response_format",
            details={"type": str(format_type)},
        )


class UnsupportedToolChoiceError(ConversionError):
    def __init__(self, choice_type: Any):
        super().__init__(
            message=f"Unsupported tool choice type: {choice_type}",
            code="unsupported_tool_choice",
            details={"type": str(choice_type)},
        )


class MultipleImagesError(AdapterError):
    """
    Unsupported Input Cardinality

    Raised before any backend request is built when more than one image is attached.
    """

    def __init__(self, count: int):
        super().__init__(
            message="Multiple images are not yet supported as input",
            error_type="invalid_request_error",
            code="multiple_images",
            details={"image_count": count},
            status_code=400,
        )


class UpstreamError(AdapterError):
    """
    Upstream Service Error

    Raised when the backend call fails or the backend reports an error status.
    Carries the backend's own error payload in details.
    """

    def __init__(
        self,
        message: str = "Upstream service error",
        code: str = "upstream_error",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 502,
    ):
        super().__init__(
            message=message,
            error_type="upstream_error",
            code=code,
            details=details,
            status_code=status_code,
        )
