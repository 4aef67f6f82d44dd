"""In-memory implementation of schema registry client for testing and development."""

import json
import threading
from types import TracebackType
from typing import Self

from .exceptions import RegistryError, SchemaNotFoundError
from .protocol import Schema
from .schema_client import SCHEMA_NOT_FOUND, SUBJECT_NOT_FOUND, VERSION_NOT_FOUND

INVALID_SCHEMA = 42201


class InMemoryClient:
    """
    In-memory implementation of schema registry client.

    This client provides the same interface as ConfluentClient but stores
    all data in memory without any external dependencies. It's useful for:

    - Testing without a running schema registry
    - Local development and prototyping
    - Fast deterministic tests

    Ids are assigned from 1 upwards. Like the real registry, the same schema
    content gets the same id under every subject, and registering content a
    subject already holds returns the existing id without a new version.
    """

    def __init__(self) -> None:
        """Initialize in-memory client with empty storage."""
        self._schemas: dict[int, str] = {}  # id -> schema content
        self._subjects: dict[str, list[Schema]] = {}  # subject -> versions
        self._schema_to_id: dict[str, int] = {}  # normalized schema -> id
        self._lock = threading.Lock()

    def __enter__(self) -> Self:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Context manager exit."""
        self.close()

    def close(self) -> None:
        """Close the client (no-op)."""

    def _normalize_schema(self, schema: str) -> str:
        """
        Normalize schema to canonical JSON form for comparison.

        Args:
            schema: Schema content as JSON string

        Returns:
            Normalized schema string

        Raises:
            RegistryError: If the content is not valid JSON

        """
        try:
            schema_dict = json.loads(schema)
        except json.JSONDecodeError as e:
            msg = f"Invalid schema: {e}"
            raise RegistryError(msg, error_code=INVALID_SCHEMA, status_code=422) from e
        return json.dumps(schema_dict, sort_keys=True, separators=(",", ":"))

    def _find_version(self, subject: str, schema_id: int) -> Schema | None:
        for version in self._subjects.get(subject, []):
            if version.id == schema_id:
                return version
        return None

    def subjects(self) -> list[str]:
        """Return all registered subjects."""
        with self._lock:
            return sorted(self._subjects)

    def versions(self, subject: str) -> list[int]:
        """
        Return all schema versions registered under a subject.

        Raises:
            SchemaNotFoundError: If the subject does not exist

        """
        with self._lock:
            if subject not in self._subjects:
                msg = f"Subject {subject} not found"
                raise SchemaNotFoundError(msg, error_code=SUBJECT_NOT_FOUND, status_code=404)
            return [version.version for version in self._subjects[subject]]

    def register_schema(self, subject: str, schema: str) -> int:
        """
        Register a schema under a subject.

        This method is idempotent - registering the same schema content
        for the same subject returns the same id.

        Args:
            subject: Subject to register the schema under
            schema: Schema content as JSON string

        Returns:
            Id of the registered schema

        """
        normalized = self._normalize_schema(schema)

        with self._lock:
            schema_id = self._schema_to_id.get(normalized)
            if schema_id is None:
                schema_id = max(self._schemas, default=0) + 1
                self._schemas[schema_id] = schema
                self._schema_to_id[normalized] = schema_id

            if self._find_version(subject, schema_id) is None:
                versions = self._subjects.setdefault(subject, [])
                versions.append(
                    Schema(id=schema_id, subject=subject, version=len(versions) + 1, schema=schema)
                )
            return schema_id

    def is_registered(self, subject: str, schema: str) -> tuple[bool, Schema | None]:
        """
        Check if a schema is registered under a subject.

        Args:
            subject: Subject to look the schema up in
            schema: Schema content as JSON string

        Returns:
            Tuple of (found, schema metadata); metadata is None when not found

        """
        normalized = self._normalize_schema(schema)

        with self._lock:
            schema_id = self._schema_to_id.get(normalized)
            if schema_id is None:
                return False, None
            version = self._find_version(subject, schema_id)
            return version is not None, version

    def get_schema_by_id(self, schema_id: int) -> str:
        """
        Fetch schema content by its id.

        Raises:
            SchemaNotFoundError: If no schema has this id

        """
        with self._lock:
            if schema_id not in self._schemas:
                msg = f"Schema with ID {schema_id} not found"
                raise SchemaNotFoundError(msg, error_code=SCHEMA_NOT_FOUND, status_code=404)
            return self._schemas[schema_id]

    def get_schema_by_subject(self, subject: str, version: int) -> Schema:
        """
        Return the schema registered under a subject at a given version.

        Raises:
            SchemaNotFoundError: If the subject or version does not exist

        """
        with self._lock:
            for registered in self._subjects.get(subject, []):
                if registered.version == version:
                    return registered
        msg = f"Schema {subject}/{version} not found"
        raise SchemaNotFoundError(msg, error_code=VERSION_NOT_FOUND, status_code=404)

    def get_latest_schema(self, subject: str) -> Schema:
        """
        Return the latest schema registered under a subject.

        Raises:
            SchemaNotFoundError: If the subject does not exist

        """
        with self._lock:
            versions = self._subjects.get(subject)
            if not versions:
                msg = f"Subject {subject} not found"
                raise SchemaNotFoundError(msg, error_code=SUBJECT_NOT_FOUND, status_code=404)
            return versions[-1]

    def delete_subject(self, subject: str) -> list[int]:
        """
        Delete a subject and return the versions it held.

        Schemas stay retrievable by id, as in the real registry.

        Raises:
            SchemaNotFoundError: If the subject does not exist

        """
        with self._lock:
            if subject not in self._subjects:
                msg = f"Subject {subject} not found"
                raise SchemaNotFoundError(msg, error_code=SUBJECT_NOT_FOUND, status_code=404)
            return [version.version for version in self._subjects.pop(subject)]

    # Helper methods for testing

    def reset(self) -> None:
        """
        Clear all internal state (helper for tests).

        This resets the client to a fresh state, removing all registered
        schemas and subjects.
        """
        with self._lock:
            self._schemas.clear()
            self._subjects.clear()
            self._schema_to_id.clear()
