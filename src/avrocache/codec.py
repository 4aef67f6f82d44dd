"""Avro codecs bound to a single schema.

:class:`BinaryCodec` wraps fastavro and speaks the native value tree, in
which the chosen branch of a union is a mapping with exactly one key naming
the branch. :class:`AvroCodec` adds the record mapper on top of it so
dataclass values can be encoded and decoded directly.
"""

import json
import logging
from datetime import date, datetime, time
from decimal import Decimal
from io import BytesIO
from typing import Any, Callable, Optional
from uuid import UUID

import fastavro

from .exceptions import DecodeError, EncodeError, InvalidSchemaError, SchemaMismatchError
from .mapper import RecordMapper
from .names import default_type_name_encoder

logger = logging.getLogger(__name__)

NAMED_TYPES = frozenset(["record", "error", "enum", "fixed"])

_STRICT_KINDS = {
    "null": (type(None),),
    "boolean": (bool,),
    "int": (int,),
    "long": (int,),
    "float": (float,),
    "double": (float,),
    "bytes": (bytes, bytearray),
    "string": (str,),
}

# Branches that accept a value through Avro type promotion
_PROMOTED_KINDS = {
    "float": (int,),
    "double": (int,),
}

# Python types fastavro reads and writes for each logical type
_LOGICAL_KINDS = {
    "decimal": (Decimal,),
    "uuid": (UUID,),
    "date": (date,),
    "time-millis": (time,),
    "time-micros": (time,),
    "timestamp-millis": (datetime,),
    "timestamp-micros": (datetime,),
    "timestamp-nanos": (datetime,),
    "local-timestamp-millis": (datetime,),
    "local-timestamp-micros": (datetime,),
    "local-timestamp-nanos": (datetime,),
}


class BinaryCodec:
    """Encodes and decodes the native value tree for one schema.

    Args:
        schema: Schema definition as JSON text or as a parsed dictionary

    Raises:
        InvalidSchemaError: If the schema cannot be parsed
    """

    def __init__(self, schema: str | dict[str, Any] | list[Any]):
        try:
            definition = json.loads(schema) if isinstance(schema, str) else schema
            self._named_schemas: dict[str, Any] = {}
            self.parsed_schema = fastavro.parse_schema(
                definition, named_schemas=self._named_schemas
            )
        except Exception as e:
            raise InvalidSchemaError(f"Invalid Avro schema: {e}") from e
        self.definition = definition

    @property
    def namespace(self) -> Optional[str]:
        """Namespace declared at the top level of the schema, if any."""
        if isinstance(self.definition, dict):
            return self.definition.get("namespace") or None
        return None

    def encode(self, native: Any) -> bytes:
        """Write a native value as Avro binary.

        Record fields absent from a mapping take the default declared by the
        schema.

        Raises:
            SchemaMismatchError: If the value does not fit the schema, including
                a missing record field without a default
        """
        datum = self._to_writer(self.parsed_schema, native, "$")
        buffer = BytesIO()
        try:
            fastavro.schemaless_writer(buffer, self.parsed_schema, datum)
        except Exception as e:
            raise SchemaMismatchError(f"Data does not match schema: {e}") from e
        return buffer.getvalue()

    def decode(self, payload: bytes) -> Any:
        """Read Avro binary into a native value.

        Raises:
            DecodeError: If the payload cannot be read with the schema
        """
        try:
            datum = fastavro.schemaless_reader(
                BytesIO(payload),
                self.parsed_schema,
                None,
                return_named_type=True,
            )
        except Exception as e:
            raise DecodeError(f"Cannot read Avro payload: {e}") from e
        return self._from_reader(self.parsed_schema, datum)

    def _resolve(self, schema: Any) -> Any:
        if isinstance(schema, str) and schema in self._named_schemas:
            return self._named_schemas[schema]
        return schema

    # Native value tree -> fastavro datum

    def _to_writer(self, schema: Any, value: Any, path: str) -> Any:
        schema = self._resolve(schema)
        if isinstance(schema, list):
            return self._union_to_writer(schema, value, path)
        if not isinstance(schema, dict):
            return value
        avro_type = schema["type"]
        if avro_type in ("record", "error"):
            return self._record_to_writer(schema, value, path)
        if avro_type == "array" and isinstance(value, (list, tuple)):
            return [
                self._to_writer(schema["items"], item, f"{path}[{index}]")
                for index, item in enumerate(value)
            ]
        if avro_type == "map" and isinstance(value, dict):
            return {
                key: self._to_writer(schema["values"], item, f"{path}.{key}")
                for key, item in value.items()
            }
        return value

    def _record_to_writer(self, schema: dict[str, Any], value: Any, path: str) -> dict[str, Any]:
        if not isinstance(value, dict):
            raise SchemaMismatchError(
                f"{path}: record {schema['name']} expects a mapping, got {type(value).__name__}"
            )
        datum = {}
        for field in schema["fields"]:
            name = field["name"]
            if name in value:
                field_value = value[name]
            elif "default" in field:
                field_value = self._default_to_native(field["type"], field["default"])
            else:
                raise SchemaMismatchError(
                    f"{path}.{name}: field of record {schema['name']} has no value "
                    "and no default in the schema"
                )
            datum[name] = self._to_writer(field["type"], field_value, f"{path}.{name}")
        return datum

    def _union_to_writer(self, schema: list[Any], value: Any, path: str) -> Any:
        index = None
        if isinstance(value, dict) and len(value) == 1:
            name, inner = next(iter(value.items()))
            index = self._branch_by_name(schema, name)
            if index is not None or self._branch_for_value(schema, value) is None:
                # Python types without an Avro name, such as datetime, are
                # keyed by their own name and the wrapped value picks the branch
                value = inner
        if index is None:
            if value is None:
                return None
            index = self._branch_for_value(schema, value)
        if index is None:
            raise SchemaMismatchError(
                f"{path}: no branch of union {self._branch_names(schema)} "
                f"accepts {type(value).__name__}"
            )
        branch = schema[index]
        if value is None and self._branch_name(branch) == "null":
            return None
        return (self._branch_name(branch), self._to_writer(branch, value, path))

    def _default_to_native(self, schema: Any, default: Any) -> Any:
        schema = self._resolve(schema)
        if isinstance(schema, list):
            # A union default always belongs to the first branch
            first = schema[0]
            if self._branch_name(first) == "null":
                return None
            return {self._branch_name(first): self._default_to_native(first, default)}
        avro_type = schema["type"] if isinstance(schema, dict) else schema
        if avro_type in ("bytes", "fixed") and isinstance(default, str):
            return default.encode("latin-1")
        if avro_type in ("record", "error") and isinstance(default, dict):
            return {
                field["name"]: self._default_to_native(field["type"], default[field["name"]])
                for field in schema["fields"]
                if field["name"] in default
            }
        if avro_type == "array" and isinstance(default, list):
            return [self._default_to_native(schema["items"], item) for item in default]
        if avro_type == "map" and isinstance(default, dict):
            return {
                key: self._default_to_native(schema["values"], item)
                for key, item in default.items()
            }
        return default

    # fastavro datum -> native value tree

    def _from_reader(self, schema: Any, datum: Any) -> Any:
        schema = self._resolve(schema)
        if isinstance(schema, list):
            return self._union_from_reader(schema, datum)
        if not isinstance(schema, dict):
            return datum
        avro_type = schema["type"]
        if avro_type in ("record", "error"):
            return {
                field["name"]: self._from_reader(field["type"], datum.get(field["name"]))
                for field in schema["fields"]
            }
        if avro_type == "array":
            return [self._from_reader(schema["items"], item) for item in datum]
        if avro_type == "map":
            return {key: self._from_reader(schema["values"], item) for key, item in datum.items()}
        return datum

    def _union_from_reader(self, schema: list[Any], datum: Any) -> Any:
        if datum is None:
            return None
        if isinstance(datum, tuple):
            # Named types in unions are returned as (name, value)
            name, inner = datum
            index = self._branch_by_name(schema, name)
        else:
            inner = datum
            index = self._branch_for_value(schema, datum)
        if index is None:
            raise DecodeError(
                f"Cannot tell which branch of union {self._branch_names(schema)} was read"
            )
        branch = schema[index]
        return {self._branch_name(branch): self._from_reader(branch, inner)}

    # Union branch selection

    def _branch_name(self, branch: Any) -> str:
        if isinstance(branch, str):
            return branch
        avro_type = branch["type"]
        if avro_type in NAMED_TYPES:
            return branch["name"]
        return avro_type

    def _branch_names(self, schema: list[Any]) -> list[str]:
        return [self._branch_name(branch) for branch in schema]

    def _branch_by_name(self, schema: list[Any], name: str) -> Optional[int]:
        names = self._branch_names(schema)
        if name in names:
            return names.index(name)
        # Fall back to the short name of a named type when it is unambiguous
        short = [index for index, full in enumerate(names) if full.rsplit(".", 1)[-1] == name]
        if len(short) == 1:
            return short[0]
        return None

    def _branch_for_value(self, schema: list[Any], value: Any) -> Optional[int]:
        for kinds in (_STRICT_KINDS, _PROMOTED_KINDS):
            for index, branch in enumerate(schema):
                if self._accepts(self._resolve(branch), value, kinds):
                    return index
        return None

    def _accepts(self, branch: Any, value: Any, kinds: dict[str, tuple[type, ...]]) -> bool:
        avro_type = branch["type"] if isinstance(branch, dict) else branch
        logical = branch.get("logicalType") if isinstance(branch, dict) else None
        if kinds is _STRICT_KINDS and isinstance(value, _LOGICAL_KINDS.get(logical, ())):
            # datetime is a date subclass but never a date
            return not (logical == "date" and isinstance(value, datetime))
        if avro_type in kinds:
            accepted = kinds[avro_type]
            if isinstance(value, bool) and bool not in accepted:
                return False
            return isinstance(value, accepted)
        if kinds is _PROMOTED_KINDS or not isinstance(branch, dict):
            return False
        if avro_type == "enum":
            return isinstance(value, str) and value in branch["symbols"]
        if avro_type == "fixed":
            return isinstance(value, (bytes, bytearray)) and len(value) == branch["size"]
        if avro_type == "array":
            return isinstance(value, (list, tuple))
        if avro_type == "map":
            return isinstance(value, dict) and not self._looks_like_record(branch, value)
        if avro_type in ("record", "error"):
            return isinstance(value, dict) and self._looks_like_record(branch, value)
        return False

    def _looks_like_record(self, branch: dict[str, Any], value: dict[str, Any]) -> bool:
        if branch["type"] not in ("record", "error"):
            return False
        required = {field["name"] for field in branch["fields"] if "default" not in field}
        return required.issubset(value)


class AvroCodec:
    """Encodes and decodes Python values with one schema.

    Args:
        schema: Schema definition as JSON text or as a parsed dictionary
        namespace: Namespace for named types in unions; defaults to the
            namespace declared by the schema
        type_name_encoder: Translates Python type names into Avro type names
    """

    def __init__(
        self,
        schema: str | dict[str, Any],
        namespace: Optional[str] = None,
        type_name_encoder: Callable[[str], str] = default_type_name_encoder,
    ):
        self.binary = BinaryCodec(schema)
        self.namespace = namespace if namespace is not None else self.binary.namespace
        self.mapper = RecordMapper(self.namespace, type_name_encoder)

    @property
    def type_name_encoder(self) -> Callable[[str], str]:
        return self.mapper.type_name_encoder

    @type_name_encoder.setter
    def type_name_encoder(self, encoder: Callable[[str], str]) -> None:
        self.mapper.type_name_encoder = encoder

    def encode(self, value: Any) -> bytes:
        """Encode a dataclass instance, mapping or scalar to Avro binary.

        Raises:
            EncodeError: If the value cannot be mapped to the native value tree
            SchemaMismatchError: If the mapped value does not fit the schema
        """
        try:
            native = self.mapper.to_native(value)
        except EncodeError:
            raise
        except Exception as e:
            raise EncodeError(f"Cannot map {type(value).__name__} for encoding: {e}") from e
        return self.binary.encode(native)

    def decode(self, payload: bytes, target: Any = dict) -> Any:
        """Decode Avro binary into ``target``.

        Args:
            payload: Avro binary body, without wire header
            target: Dataclass type to build, or ``dict`` for the native value

        Raises:
            DecodeError: If the payload cannot be read or mapped onto ``target``
        """
        native = self.binary.decode(payload)
        if target is dict:
            if not isinstance(native, dict):
                raise DecodeError(f"Expected a record, got {type(native).__name__}")
            return native
        try:
            return self.mapper.from_native(native, target)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"Cannot map decoded value onto {target!r}: {e}") from e
