"""Configuration classes for the avrocache library."""

from dataclasses import dataclass, field
from typing import Callable, Optional

from .names import default_type_name_encoder

DEFAULT_REGISTRY_URL = "http://localhost:8081"


@dataclass
class RegistryConfig:
    """Configuration for the Confluent Schema Registry client.

    Args:
        base_url: Base URL of the schema registry instance
        timeout: HTTP request timeout in seconds
        auth: Optional basic authentication tuple (username, password)
        headers: Extra headers sent with every request
    """
    base_url: str = DEFAULT_REGISTRY_URL
    timeout: float = 30.0
    auth: Optional[tuple[str, str]] = None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class CodecConfig:
    """Configuration shared by every codec a cache builds.

    Args:
        type_name_encoder: Translates Python type names into Avro type names
        namespace: Namespace prefixed to named types; when None, the namespace
            declared by each schema is used
    """
    type_name_encoder: Callable[[str], str] = default_type_name_encoder
    namespace: Optional[str] = None
