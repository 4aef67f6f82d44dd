"""Confluent wire format framing: magic byte, schema id, Avro payload."""

import struct
from typing import NamedTuple

from .exceptions import ProtocolError

MAGIC_BYTE = 0x0
HEADER_SIZE = 5

# Schema id used when no encoding schema has been configured
UNKNOWN_ID = -1

_HEADER = struct.Struct(">Bi")


class Header(NamedTuple):
    """The five bytes preceding every framed payload."""

    magic_byte: int
    schema_id: int


class ConfluentWireFormat:
    """Encode and decode the Confluent Schema Registry wire format.

    Layout: ``[0x00][4-byte big-endian signed schema id][Avro binary payload]``.
    """

    @staticmethod
    def encode(schema_id: int, payload: bytes) -> bytes:
        """Prefix an Avro payload with the wire header.

        Args:
            schema_id: Registry id of the schema the payload was written with
            payload: Avro binary body

        Returns:
            Framed message

        Raises:
            ProtocolError: If the schema id does not fit a signed 32-bit integer
        """
        try:
            header = _HEADER.pack(MAGIC_BYTE, schema_id)
        except struct.error as e:
            raise ProtocolError(f"Schema ID {schema_id} cannot be framed: {e}") from e
        return header + bytes(payload)

    @staticmethod
    def read_header(message: bytes) -> Header:
        """Parse and validate the header of a framed message.

        Raises:
            ProtocolError: If the message is truncated or the magic byte is wrong
        """
        if len(message) < HEADER_SIZE:
            raise ProtocolError(
                f"Message too short for wire format header: {len(message)} bytes"
            )
        magic_byte, schema_id = _HEADER.unpack_from(message)
        if magic_byte != MAGIC_BYTE:
            raise ProtocolError(
                f"Invalid magic byte {magic_byte:#04x} (expected {MAGIC_BYTE:#04x})"
            )
        return Header(magic_byte, schema_id)

    @classmethod
    def decode(cls, message: bytes) -> tuple[int, bytes]:
        """Split a framed message into its schema id and Avro payload.

        Args:
            message: Framed message

        Returns:
            Tuple of (schema_id, payload)

        Raises:
            ProtocolError: If the message is truncated or the magic byte is wrong
        """
        header = cls.read_header(message)
        return header.schema_id, bytes(message[HEADER_SIZE:])
