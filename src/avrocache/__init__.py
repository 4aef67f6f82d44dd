"""avrocache: registry-backed Avro codecs with Confluent wire framing."""

from typing import Any, Optional

from .cache import CodecCache
from .codec import AvroCodec, BinaryCodec
from .config import CodecConfig, RegistryConfig
from .exceptions import (
    AvroCacheError,
    ConfigurationError,
    DecodeError,
    EncodeError,
    InvalidSchemaError,
    ProtocolError,
    RegistryError,
    SchemaMismatchError,
    SchemaNotFoundError,
    SchemaNotRegisteredError,
)
from .inmemory_client import InMemoryClient
from .mapper import RecordMapper, avro_field
from .names import add_namespace, camel_to_snake, default_type_name_encoder, to_avro_type
from .numeric import float32, float64, int32, int64
from .protocol import Schema
from .schema_client import ConfluentClient
from .wire_format import UNKNOWN_ID, ConfluentWireFormat

__all__ = [
    "CodecCache",
    "AvroCodec",
    "BinaryCodec",
    "RecordMapper",
    "avro_field",
    "ConfluentClient",
    "InMemoryClient",
    "RegistryConfig",
    "CodecConfig",
    "Schema",
    "ConfluentWireFormat",
    "UNKNOWN_ID",
    "add_namespace",
    "camel_to_snake",
    "default_type_name_encoder",
    "to_avro_type",
    "int32",
    "int64",
    "float32",
    "float64",
    "AvroCacheError",
    "ConfigurationError",
    "DecodeError",
    "EncodeError",
    "InvalidSchemaError",
    "ProtocolError",
    "RegistryError",
    "SchemaMismatchError",
    "SchemaNotFoundError",
    "SchemaNotRegisteredError",
    "create_codec_cache",
]

__version__ = "0.1.0"


def create_codec_cache(
    config: RegistryConfig,
    subject: str,
    schema: Optional[str | dict[str, Any]] = None,
    register: bool = False,
    codec_config: Optional[CodecConfig] = None,
) -> CodecCache:
    """Convenience function to create a CodecCache backed by a ConfluentClient.

    Args:
        config: Configuration for the schema registry connection
        subject: Subject the encoding schema is registered under
        schema: Optional encoding schema
        register: Register the schema if the registry does not know it
        codec_config: Type naming and namespace options

    Returns:
        Configured CodecCache instance

    Note:
        The cache's client holds an HTTP connection pool that should be
        closed when done, with ``cache.client.close()``.
    """
    client = ConfluentClient(config)
    return CodecCache(client, subject, schema, register=register, config=codec_config)
