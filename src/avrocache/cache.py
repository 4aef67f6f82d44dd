"""Registry-backed cache of Avro codecs with Confluent wire framing."""

import dataclasses
import json
import logging
import threading
from typing import Any, Callable, Optional, TypeVar

from .codec import AvroCodec
from .config import CodecConfig
from .exceptions import (
    AvroCacheError,
    ConfigurationError,
    DecodeError,
    InvalidSchemaError,
    RegistryError,
    SchemaNotRegisteredError,
)
from .protocol import UNKNOWN_VERSION, Schema, SchemaRegistryClient
from .wire_format import UNKNOWN_ID, ConfluentWireFormat

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CodecCache:
    """Encodes and decodes framed Avro messages for one registry subject.

    The cache holds one current schema used for encoding and one codec per
    schema id it has seen. Messages written with another schema than the
    current one are reconciled: read with the writer's schema, written again
    with the current schema (which fills in its defaults and drops fields it
    does not know), then read with the current schema. A reader therefore
    always sees data shaped by its own schema.

    Args:
        client: Schema registry client
        subject: Subject the encoding schema is registered under
        schema: Optional encoding schema, as JSON text or a parsed dictionary.
            Without it encoding is disabled but any message can be decoded.
        register: Register the schema when the registry does not know it yet
        config: Type naming and namespace options for the codecs

    Raises:
        SchemaNotRegisteredError: If the schema is not registered and
            ``register`` is False
        RegistryError: If the registry cannot be queried
    """

    def __init__(
        self,
        client: SchemaRegistryClient,
        subject: str,
        schema: Optional[str | dict[str, Any]] = None,
        *,
        register: bool = False,
        config: Optional[CodecConfig] = None,
    ):
        self.client = client
        self.subject = subject
        self.config = dataclasses.replace(config) if config is not None else CodecConfig()
        self.schema_id = UNKNOWN_ID
        self.schema_version = UNKNOWN_VERSION
        self._codecs: dict[int, AvroCodec] = {}
        self._schemas: dict[int, Schema] = {}
        self._lock = threading.Lock()

        if schema:
            self._attach(_schema_text(schema), register)

    @classmethod
    def attach(
        cls,
        client: SchemaRegistryClient,
        subject: str,
        schema: str | dict[str, Any],
        config: Optional[CodecConfig] = None,
    ) -> "CodecCache":
        """Create a cache for a schema that must already be registered."""
        return cls(client, subject, schema, config=config)

    @classmethod
    def attach_or_register(
        cls,
        client: SchemaRegistryClient,
        subject: str,
        schema: str | dict[str, Any],
        config: Optional[CodecConfig] = None,
    ) -> "CodecCache":
        """Create a cache for a schema, registering it if needed."""
        return cls(client, subject, schema, register=True, config=config)

    @classmethod
    def empty(
        cls,
        client: SchemaRegistryClient,
        subject: str,
        config: Optional[CodecConfig] = None,
    ) -> "CodecCache":
        """Create a decode-only cache with no encoding schema."""
        return cls(client, subject, config=config)

    @property
    def cached_schema_ids(self) -> list[int]:
        """Ids of the schemas a codec has been built for."""
        return sorted(self._codecs)

    def schema_for(self, schema_id: int) -> Optional[Schema]:
        """Return the registration of a schema this cache attached or registered.

        Schemas fetched by id to decode a message carry no subject or version
        and give ``None``.
        """
        with self._lock:
            return self._schemas.get(schema_id)

    def register(self, schema: str | dict[str, Any]) -> int:
        """Register a schema and make it the encoding schema.

        Args:
            schema: Schema as JSON text or a parsed dictionary

        Returns:
            Id assigned by the registry

        Raises:
            RegistryError: If registration fails or cannot be confirmed
            InvalidSchemaError: If the schema cannot be parsed
        """
        text = _schema_text(schema)
        self._call_registry(
            f"Registering schema under subject {self.subject}",
            self.client.register_schema,
            self.subject,
            text,
        )
        found, registered = self._call_registry(
            f"Confirming registration under subject {self.subject}",
            self.client.is_registered,
            self.subject,
            text,
        )
        if not found or registered is None:
            raise SchemaNotRegisteredError(
                f"Schema registration under subject {self.subject} could not be confirmed"
            )
        self._adopt(registered, text)
        logger.info(
            "Registered schema %d (version %d) under subject %s",
            registered.id,
            registered.version,
            self.subject,
        )
        return registered.id

    def set_type_name_encoder(self, encoder: Callable[[str], str]) -> None:
        """Replace the type name encoder of the cache and of every built codec."""
        with self._lock:
            self.config.type_name_encoder = encoder
            for codec in self._codecs.values():
                codec.type_name_encoder = encoder

    def encode(self, value: Any) -> bytes:
        """Encode a value with the current schema and frame it.

        Args:
            value: Dataclass instance or mapping

        Returns:
            Framed message

        Raises:
            ConfigurationError: If the cache has no encoding schema
            EncodeError: If the value cannot be mapped
            SchemaMismatchError: If the value does not fit the schema
        """
        if self.schema_id == UNKNOWN_ID:
            raise ConfigurationError(
                f"No encoding schema has been configured for subject {self.subject}"
            )
        payload = self._codecs[self.schema_id].encode(value)
        return ConfluentWireFormat.encode(self.schema_id, payload)

    def decode(self, message: bytes, target: type[T] | type[dict] | None = dict) -> T | Any:
        """Decode a framed message.

        Args:
            message: Framed message
            target: Dataclass type to build, or ``dict`` for a plain mapping

        Returns:
            Decoded value, shaped by the current schema when one is configured

        Raises:
            ProtocolError: If the wire header is invalid
            RegistryError: If the writer schema cannot be fetched
            DecodeError: If the payload cannot be decoded or reconciled
        """
        if target is None:
            target = dict
        schema_id, payload = ConfluentWireFormat.decode(message)
        codec = self.codec_for(schema_id)
        if self.schema_id in (UNKNOWN_ID, schema_id):
            return codec.decode(payload, target)
        return self._reconcile(schema_id, codec, payload, target)

    def decode_with_schema(
        self, message: bytes, target: type[T] | type[dict] | None = dict
    ) -> tuple[T | Any, Any]:
        """Decode a framed message and return the writer schema with it.

        Returns:
            Tuple of (decoded value, writer schema definition)
        """
        schema_id, _ = ConfluentWireFormat.decode(message)
        value = self.decode(message, target)
        return value, self._codecs[schema_id].binary.definition

    def codec_for(self, schema_id: int) -> AvroCodec:
        """Return the codec of a schema id, fetching the schema on a cache miss.

        Raises:
            RegistryError: If the schema cannot be fetched
            DecodeError: If the fetched schema cannot be parsed
        """
        codec = self._codecs.get(schema_id)
        if codec is not None:
            return codec

        logger.debug("Schema %d is not cached, fetching it from the registry", schema_id)
        text = self._call_registry(
            f"Fetching schema {schema_id}", self.client.get_schema_by_id, schema_id
        )
        try:
            codec = self._build_codec(text)
        except InvalidSchemaError as e:
            raise DecodeError(f"Schema {schema_id} from the registry is invalid: {e}") from e
        with self._lock:
            return self._codecs.setdefault(schema_id, codec)

    def _reconcile(self, writer_id: int, writer: AvroCodec, payload: bytes, target: Any) -> Any:
        logger.debug(
            "Reconciling payload written with schema %d to schema %d", writer_id, self.schema_id
        )
        current = self._codecs[self.schema_id]
        try:
            generic = writer.binary.decode(payload)
            rewritten = current.binary.encode(generic)
        except AvroCacheError as e:
            raise DecodeError(
                f"Cannot reconcile schema {writer_id} with schema {self.schema_id}: {e}"
            ) from e
        return self.decode(ConfluentWireFormat.encode(self.schema_id, rewritten), target)

    def _attach(self, text: str, register: bool) -> None:
        found, registered = self._call_registry(
            f"Looking up schema under subject {self.subject}",
            self.client.is_registered,
            self.subject,
            text,
        )
        if found and registered is not None:
            self._adopt(registered, text)
            return
        if register:
            self.register(text)
            return
        raise SchemaNotRegisteredError(
            f"The given schema is not registered under subject {self.subject}"
        )

    def _adopt(self, schema: Schema, text: str) -> None:
        codec = self._build_codec(text)
        with self._lock:
            self._codecs[schema.id] = codec
            self._schemas[schema.id] = schema
            self.schema_id = schema.id
            self.schema_version = schema.version

    def _build_codec(self, text: str) -> AvroCodec:
        return AvroCodec(
            text,
            namespace=self.config.namespace,
            type_name_encoder=self.config.type_name_encoder,
        )

    def _call_registry(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        except RegistryError as e:
            raise type(e)(f"{operation} failed: {e}", e.error_code, e.status_code) from e


def _schema_text(schema: str | dict[str, Any] | list[Any]) -> str:
    if isinstance(schema, str):
        return schema
    return json.dumps(schema)
