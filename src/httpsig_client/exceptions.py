"""
Exception classes for httpsig-client
"""

from typing import Optional, Dict, Any


class HttpSigClientError(Exception):
    """Base exception for all httpsig-client errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(HttpSigClientError):
    """Exception raised for validation failures"""
    
    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class PayloadTooLargeError(ValidationError):
    """Exception raised when a request payload exceeds the configured limit"""
    
    def __init__(self, limit: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Payload exceeds maximum size of {limit} bytes",
            "PAYLOAD_TOO_LARGE",
            details
        )
        self.limit = limit


class ConfigurationError(HttpSigClientError):
    """Exception raised for configuration loading and validation errors"""
    
    def __init__(self, message: str, error_code: str = "INVALID_CONFIG", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class SigningError(HttpSigClientError):
    """
    Error class for signing operations
    
    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """
    
    def __init__(self, message: str, code: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code, details)
    
    @property
    def code(self) -> str:
        return self.error_code
    
    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"
    
    def __repr__(self) -> str:
        return f"{type(self).__name__}(message='{self.message}', code='{self.code}', details={self.details})"


class UnsupportedAlgorithmError(SigningError):
    """Exception raised when a digest or signature algorithm is not implemented"""
    pass


class MissingSigningHeaderError(SigningError):
    """Exception raised when a covered header has no value to sign"""
    pass


class InvalidSecretError(SigningError):
    """Exception raised for empty or malformed shared secrets"""
    pass


class ServerCommunicationError(HttpSigClientError):
    """Exception raised for server communication errors"""
    
    def __init__(self, message: str, error_code: str = "SERVER_ERROR", 
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status
