"""Client for the Confluent Schema Registry REST API."""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .config import RegistryConfig
from .exceptions import RegistryError, SchemaNotFoundError
from .protocol import Schema

logger = logging.getLogger(__name__)

# Error codes the registry puts in error response bodies
SUBJECT_NOT_FOUND = 40401
VERSION_NOT_FOUND = 40402
SCHEMA_NOT_FOUND = 40403

ACCEPT = (
    "application/vnd.schemaregistry.v1+json, "
    "application/vnd.schemaregistry+json, "
    "application/json"
)


class ConfluentClient:
    """Client for interacting with a Confluent Schema Registry.

    This client registers and looks up schemas by subject and fetches schema
    content by id. Schemas fetched by id are cached since their content
    never changes once registered.
    """

    def __init__(self, config: RegistryConfig):
        """Initialize the registry client.

        Args:
            config: Configuration for the registry connection
        """
        self.config = config
        self._client: Optional[httpx.Client] = None
        self._schema_cache: dict[int, str] = {}

    def __enter__(self) -> "ConfluentClient":
        """Context manager entry."""
        self._ensure_client()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    def _ensure_client(self) -> httpx.Client:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            auth = None
            if self.config.auth:
                auth = httpx.BasicAuth(self.config.auth[0], self.config.auth[1])

            self._client = httpx.Client(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                auth=auth,
                headers={
                    "Content-Type": "application/vnd.schemaregistry.v1+json",
                    "Accept": ACCEPT,
                    **self.config.headers,
                },
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _request(self, method: str, url: str, json_body: Any = None) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            RegistryError: For transport failures and error responses, carrying
                the registry error code when the body provides one
        """
        client = self._ensure_client()
        try:
            response = client.request(method, url, json=json_body)
        except httpx.RequestError as e:
            raise RegistryError(f"Request error on {method} {url}: {e}") from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                raise RegistryError(f"Invalid JSON in response to {method} {url}: {e}") from e

        error_code = None
        message = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error_code = body.get("error_code")
            message = body.get("message", message)
        raise RegistryError(
            f"HTTP error {response.status_code} on {method} {url}: {message} ({error_code})",
            error_code=error_code,
            status_code=response.status_code,
        )

    def subjects(self) -> list[str]:
        """Return all registered subjects."""
        return self._request("GET", "/subjects")

    def versions(self, subject: str) -> list[int]:
        """Return all schema versions registered under a subject."""
        return self._request("GET", f"/subjects/{_quote(subject)}/versions")

    def register_schema(self, subject: str, schema: str) -> int:
        """Register a schema under a subject.

        Args:
            subject: Subject to register the schema under
            schema: Schema content as JSON string

        Returns:
            Id of the registered schema; the existing id if the content is
            already registered under the subject

        Raises:
            RegistryError: For API errors
        """
        response = self._request(
            "POST", f"/subjects/{_quote(subject)}/versions", {"schema": schema}
        )
        schema_id = response.get("id")
        if schema_id is None:
            raise RegistryError(f"No schema ID returned for subject {subject}")
        logger.debug("Registered schema %d under subject %s", schema_id, subject)
        return schema_id

    def is_registered(self, subject: str, schema: str) -> tuple[bool, Optional[Schema]]:
        """Check if a schema is registered under a subject.

        Args:
            subject: Subject to look the schema up in
            schema: Schema content as JSON string

        Returns:
            Tuple of (found, schema metadata); metadata is None when not found

        Raises:
            RegistryError: For API errors other than a missing subject or schema
        """
        try:
            response = self._request("POST", f"/subjects/{_quote(subject)}", {"schema": schema})
        except RegistryError as e:
            if e.error_code in (SUBJECT_NOT_FOUND, SCHEMA_NOT_FOUND):
                return False, None
            raise
        return True, _to_schema(response, subject)

    def get_schema_by_id(self, schema_id: int) -> str:
        """Fetch schema content by its id.

        Args:
            schema_id: Registry id of the schema

        Returns:
            Schema content as JSON string

        Raises:
            SchemaNotFoundError: If no schema has this id
            RegistryError: For other API errors
        """
        # Check cache first
        if schema_id in self._schema_cache:
            return self._schema_cache[schema_id]

        try:
            response = self._request("GET", f"/schemas/ids/{schema_id}")
        except RegistryError as e:
            if e.error_code == SCHEMA_NOT_FOUND or e.status_code == 404:
                raise SchemaNotFoundError(
                    f"Schema with ID {schema_id} not found", e.error_code, e.status_code
                ) from e
            raise

        schema = response.get("schema")
        if schema is None:
            raise RegistryError(f"No schema content returned for ID {schema_id}")
        self._schema_cache[schema_id] = schema
        return schema

    def get_schema_by_subject(self, subject: str, version: int) -> Schema:
        """Return the schema registered under a subject at a given version.

        Raises:
            SchemaNotFoundError: If the subject or version does not exist
            RegistryError: For other API errors
        """
        return self._get_subject_version(subject, str(version))

    def get_latest_schema(self, subject: str) -> Schema:
        """Return the latest schema registered under a subject.

        Raises:
            SchemaNotFoundError: If the subject does not exist
            RegistryError: For other API errors
        """
        return self._get_subject_version(subject, "latest")

    def _get_subject_version(self, subject: str, version: str) -> Schema:
        try:
            response = self._request(
                "GET", f"/subjects/{_quote(subject)}/versions/{version}"
            )
        except RegistryError as e:
            if e.error_code in (SUBJECT_NOT_FOUND, VERSION_NOT_FOUND) or e.status_code == 404:
                raise SchemaNotFoundError(
                    f"Schema {subject}/{version} not found", e.error_code, e.status_code
                ) from e
            raise
        return _to_schema(response, subject)

    def delete_subject(self, subject: str) -> list[int]:
        """Delete a subject and return the versions it held."""
        return self._request("DELETE", f"/subjects/{_quote(subject)}")

    def clear_cache(self) -> None:
        """Clear the schema cache."""
        self._schema_cache.clear()


def _quote(subject: str) -> str:
    return quote(subject, safe="")


def _to_schema(response: dict[str, Any], subject: str) -> Schema:
    return Schema(
        id=response["id"],
        subject=response.get("subject", subject),
        version=response.get("version", -1),
        schema=response.get("schema", ""),
    )
