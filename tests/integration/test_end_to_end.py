"""End-to-end integration tests with a real Confluent schema registry."""

import time
from dataclasses import dataclass

import pytest

from avrocache import CodecCache, ConfluentClient
from avrocache.exceptions import SchemaNotFoundError, SchemaNotRegisteredError
from avrocache.wire_format import ConfluentWireFormat

EVENT_SCHEMA = {
    "type": "record",
    "name": "IntegrationTestEvent",
    "namespace": "avrocache.tests",
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "timestamp", "type": "long"},
        {"name": "message", "type": "string"},
    ],
}

EVENT_V2_SCHEMA = {
    "type": "record",
    "name": "IntegrationTestEvent",
    "namespace": "avrocache.tests",
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "timestamp", "type": "long"},
        {"name": "message", "type": "string"},
        {"name": "source", "type": ["null", "string"], "default": None},
    ],
}


@dataclass
class IntegrationTestEvent:
    """Simple event for integration tests."""

    id: str
    timestamp: int
    message: str


@dataclass
class IntegrationTestEventV2:
    """Event with an optional field added by the second schema."""

    id: str
    timestamp: int
    message: str
    source: str | None = None


@pytest.mark.integration
class TestEndToEndFlow:
    """Integration tests for the complete workflow against a live registry."""

    def test_basic_round_trip_with_registered_schema(
        self, registry_client: ConfluentClient, subject: str
    ):
        """Test complete encode and decode round trip with schema registration."""
        event = IntegrationTestEvent(
            id=subject, timestamp=int(time.time()), message="Hello from an integration test!"
        )
        cache = CodecCache.attach_or_register(registry_client, subject, EVENT_SCHEMA)

        message = cache.encode(event)

        assert len(message) >= 5
        assert message[0] == 0x0
        assert ConfluentWireFormat.decode(message)[0] == cache.schema_id
        assert cache.decode(message, IntegrationTestEvent) == event

    def test_attach_requires_registration(self, registry_client: ConfluentClient, subject: str):
        """Test that attaching an unknown schema fails without registering it."""
        with pytest.raises(SchemaNotRegisteredError):
            CodecCache.attach(registry_client, subject, EVENT_SCHEMA)

        assert subject not in registry_client.subjects()

    def test_schema_retrieval_by_subject(self, registry_client: ConfluentClient, subject: str):
        """Test looking a registered schema up by subject and id."""
        cache = CodecCache.attach_or_register(registry_client, subject, EVENT_SCHEMA)

        latest = registry_client.get_latest_schema(subject)
        found, registered = registry_client.is_registered(subject, latest.schema)

        assert latest.id == cache.schema_id
        assert found
        assert registered.version == latest.version
        assert registry_client.get_schema_by_id(cache.schema_id) == latest.schema

    def test_schema_evolution(self, registry_client: ConfluentClient, subject: str):
        """Test decoding across schema versions in both directions."""
        writer = CodecCache.attach_or_register(registry_client, subject, EVENT_SCHEMA)
        reader = CodecCache.attach_or_register(registry_client, subject, EVENT_V2_SCHEMA)
        event = IntegrationTestEvent(id="evt-1", timestamp=1, message="old")

        decoded = reader.decode(writer.encode(event), IntegrationTestEventV2)

        assert decoded == IntegrationTestEventV2(id="evt-1", timestamp=1, message="old")
        newer = IntegrationTestEventV2(id="evt-2", timestamp=2, message="new", source="tests")
        assert writer.decode(reader.encode(newer), IntegrationTestEvent) == IntegrationTestEvent(
            id="evt-2", timestamp=2, message="new"
        )
        assert registry_client.versions(subject) == [1, 2]

    def test_decode_only_cache(self, registry_client: ConfluentClient, subject: str):
        """Test that a cache without a schema decodes with the writer schema."""
        writer = CodecCache.attach_or_register(registry_client, subject, EVENT_SCHEMA)
        reader = CodecCache.empty(registry_client, subject)
        event = IntegrationTestEvent(id="evt-1", timestamp=1, message="hello")

        assert reader.decode(writer.encode(event)) == {
            "id": "evt-1",
            "timestamp": 1,
            "message": "hello",
        }

    def test_unknown_schema_id(self, registry_client: ConfluentClient, subject: str):
        """Test decoding a message that references a schema the registry lacks."""
        reader = CodecCache.empty(registry_client, subject)
        message = ConfluentWireFormat.encode(2**31 - 1, b"")

        with pytest.raises(SchemaNotFoundError):
            reader.decode(message)
