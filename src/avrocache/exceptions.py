"""Custom exceptions for the avrocache library."""

from typing import Optional


class AvroCacheError(Exception):
    """Base exception for all avrocache errors."""
    pass


class ConfigurationError(AvroCacheError):
    """Raised when an operation needs configuration the cache does not have."""
    pass


class ProtocolError(AvroCacheError):
    """Raised when the message does not follow Confluent wire format."""
    pass


class RegistryError(AvroCacheError):
    """Raised when the schema registry cannot serve a request.

    Args:
        message: Human readable description, including the failing operation
        error_code: Registry error code from the response body, if any
        status_code: HTTP status code of the response, if any
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code


class SchemaNotFoundError(RegistryError):
    """Raised when a schema cannot be found in the registry."""
    pass


class SchemaNotRegisteredError(RegistryError):
    """Raised when a schema is not registered under the requested subject."""
    pass


class SchemaMismatchError(AvroCacheError):
    """Raised when a value cannot be shaped to the schema it is encoded with."""
    pass


class EncodeError(AvroCacheError):
    """Raised when encoding fails."""
    pass


class DecodeError(AvroCacheError):
    """Raised when decoding fails."""
    pass


class InvalidSchemaError(AvroCacheError):
    """Raised when a schema definition cannot be parsed."""
    pass
