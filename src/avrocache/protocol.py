"""Protocol definitions for avrocache."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

UNKNOWN_VERSION = -1


@dataclass(frozen=True)
class Schema:
    """A schema as registered under a subject.

    Args:
        id: Registry-wide unique id of the schema
        subject: Subject the schema is registered under
        version: Version of the schema within the subject
        schema: Schema definition as JSON text
    """
    id: int
    subject: str
    version: int
    schema: str


class SchemaRegistryClient(Protocol):
    """
    Protocol for schema registry clients.

    This protocol defines the interface that schema registry clients must implement
    to be usable by CodecCache. Both ConfluentClient and InMemoryClient
    implement this protocol.
    """

    def is_registered(self, subject: str, schema: str) -> tuple[bool, Schema | None]:
        """
        Check whether a schema is registered under a subject.

        Args:
            subject: Subject to look the schema up in
            schema: Schema content as JSON string

        Returns:
            Tuple of (found, schema metadata); metadata is None when not found

        Raises:
            RegistryError: If the registry cannot answer

        """
        ...

    def register_schema(self, subject: str, schema: str) -> int:
        """
        Register a schema under a subject.

        Registering content that is already registered under the subject
        returns the existing id.

        Args:
            subject: Subject to register the schema under
            schema: Schema content as JSON string

        Returns:
            Id of the registered schema

        Raises:
            RegistryError: If the registry rejects the schema or cannot be reached

        """
        ...

    def get_schema_by_id(self, schema_id: int) -> str:
        """
        Fetch schema content by its id.

        Args:
            schema_id: Registry id of the schema

        Returns:
            Schema content as JSON string

        Raises:
            SchemaNotFoundError: If no schema has this id
            RegistryError: For other registry failures

        """
        ...


@runtime_checkable
class AvroNamed(Protocol):
    """A value that chooses its own Avro type name when encoded in a union."""

    def avro_name(self) -> str:
        ...


@runtime_checkable
class AvroDecodable(Protocol):
    """A type that builds itself from the raw string or bytes of a field."""

    @classmethod
    def from_avro(cls, data: bytes):
        ...
