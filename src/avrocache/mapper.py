"""Mapping between dataclass values and the native Avro value tree.

The native value tree is what the binary codec reads and writes: ``None``,
scalars, lists, dicts keyed by field name, and single-key dicts naming the
chosen branch of a union.

Fields are described with ordinary dataclass fields. Per-field options are
set with :func:`avro_field`::

    @dataclass
    class Person:
        name: str
        age: int = avro_field("age", omit_if_default=True, default=-1)
        nickname: Optional[str] = None
        cache_key: str = avro_field(omit=True, default="")
"""

import dataclasses
import enum
import logging
import numbers
import types
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional, Union

from .exceptions import DecodeError, EncodeError
from .names import add_namespace, default_type_name_encoder, is_primitive
from .protocol import AvroDecodable, AvroNamed

logger = logging.getLogger(__name__)

AVRO_METADATA_KEY = "avro"

_NONE_TYPE = type(None)
_SEQUENCE_ORIGINS = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class FieldOptions:
    """Options attached to a dataclass field through its metadata."""

    name: Optional[str] = None
    omit: bool = False
    omit_if_default: bool = False
    as_string: bool = False


@dataclass(frozen=True)
class FieldDescriptor:
    """How one dataclass field maps onto an Avro record field.

    Args:
        attr: Attribute name on the dataclass
        wire_name: Field name in the Avro record
        hint: Resolved type annotation
        nilable: Whether the annotation is ``Optional[...]``
        inner: The annotation with ``None`` removed
        omit: Never encode or decode the field
        omit_if_default: Leave the field out when it holds its zero value,
            so the schema default is written instead
        as_string: Encode the field as ``str(value)``
        init: Whether the field is a constructor argument
        has_default: Whether the dataclass declares a default for the field
    """

    attr: str
    wire_name: str
    hint: Any
    nilable: bool
    inner: Any
    omit: bool = False
    omit_if_default: bool = False
    as_string: bool = False
    init: bool = True
    has_default: bool = False


def avro_field(
    name: Optional[str] = None,
    *,
    omit: bool = False,
    omit_if_default: bool = False,
    as_string: bool = False,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field with Avro mapping options.

    Args:
        name: Avro field name; defaults to the attribute name
        omit: Skip the field entirely when encoding and decoding
        omit_if_default: Write the schema default when the field holds its
            type's zero value. Encoding fails if the schema has no default.
        as_string: Encode the value as ``str(value)``
        **kwargs: Passed through to :func:`dataclasses.field`

    Returns:
        A dataclass field
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[AVRO_METADATA_KEY] = FieldOptions(name, omit, omit_if_default, as_string)
    return dataclasses.field(metadata=metadata, **kwargs)


def split_optional(hint: Any) -> tuple[bool, Any]:
    """Split ``Optional[X]`` into ``(True, X)``; other hints give ``(False, hint)``."""
    if typing.get_origin(hint) not in (Union, types.UnionType):
        return False, hint
    args = typing.get_args(hint)
    if _NONE_TYPE not in args:
        return False, hint
    rest = tuple(arg for arg in args if arg is not _NONE_TYPE)
    if len(rest) == 1:
        return True, rest[0]
    return True, Union[rest]


def _resolve_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        # Unresolvable forward references fall back to the raw field types
        logger.debug("Cannot resolve type hints of %s: %s", cls.__name__, e)
        return {}


@lru_cache(maxsize=None)
def field_descriptors(cls: type) -> tuple[FieldDescriptor, ...]:
    """Return the field descriptors of a dataclass, built once per type."""
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls!r} is not a dataclass")
    hints = _resolve_hints(cls)
    descriptors = []
    for f in dataclasses.fields(cls):
        options = f.metadata.get(AVRO_METADATA_KEY, FieldOptions())
        hint = hints.get(f.name, f.type)
        nilable, inner = split_optional(hint)
        descriptors.append(
            FieldDescriptor(
                attr=f.name,
                wire_name=options.name or f.name,
                hint=hint,
                nilable=nilable,
                inner=inner,
                omit=options.omit,
                omit_if_default=options.omit_if_default,
                as_string=options.as_string,
                init=f.init,
                has_default=(
                    f.default is not dataclasses.MISSING
                    or f.default_factory is not dataclasses.MISSING
                ),
            )
        )
    logger.debug("Built %d field descriptors for %s", len(descriptors), cls.__name__)
    return tuple(descriptors)


def zero_value(hint: Any) -> Any:
    """Return the value a field of the given type holds when it is empty.

    Optional and unknown types are ``None``; numbers are zero; strings, bytes
    and containers are empty; dataclasses are built from their own defaults
    and the zero values of their remaining fields.
    """
    nilable, inner = split_optional(hint)
    if nilable or hint is Any:
        return None
    origin = typing.get_origin(inner) or inner
    if dataclasses.is_dataclass(origin) and isinstance(origin, type):
        kwargs = {
            d.attr: zero_value(d.hint)
            for d in field_descriptors(origin)
            if d.init and not d.has_default
        }
        return origin(**kwargs)
    if not isinstance(origin, type) or issubclass(origin, enum.Enum):
        return None
    if issubclass(origin, (bool, numbers.Number, str, bytes, bytearray)):
        return origin()
    if issubclass(origin, (*_SEQUENCE_ORIGINS, dict)):
        return origin()
    return None


class RecordMapper:
    """Converts dataclass values to the native value tree and back.

    Args:
        namespace: Namespace prefixed to the names of named types in unions
        type_name_encoder: Translates Python type names into Avro type names
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        type_name_encoder: Callable[[str], str] = default_type_name_encoder,
    ):
        self.namespace = namespace
        self.type_name_encoder = type_name_encoder

    # Type naming

    def type_name(self, value: Any) -> str:
        """Return the unqualified Avro type name of a value.

        In priority order: the value's own ``avro_name()``, its class's
        ``Meta.schema_name``, then the translated Python type name.
        """
        if isinstance(value, AvroNamed):
            return value.avro_name()
        meta = getattr(type(value), "Meta", None)
        schema_name = getattr(meta, "schema_name", None)
        if schema_name:
            return schema_name
        return self.type_name_encoder(type(value).__name__)

    def qualified_name(self, value: Any) -> str:
        """Return the union branch name of a value, namespaced unless primitive."""
        name = self.type_name(value)
        if is_primitive(name) and not _is_dataclass_instance(value):
            return name
        return add_namespace(self.namespace, name)

    # Encoding

    def to_native(self, value: Any, hint: Any = Any) -> Any:
        """Convert a value to the native value tree.

        Args:
            value: Dataclass instance, container or scalar
            hint: Declared type of the value; ``Optional[...]`` hints produce
                union mappings

        Returns:
            Native value accepted by the binary codec
        """
        nilable, inner = split_optional(hint)
        if nilable:
            return self._union_to_native(value, inner)
        return self._value_to_native(value, inner)

    def _union_to_native(self, value: Any, inner: Any) -> dict[str, Any]:
        if value is None:
            return {"null": None}
        value = _as_hinted_number(value, inner)
        try:
            name = self.qualified_name(value)
        except Exception as e:
            raise EncodeError(
                f"Cannot name union branch for {type(value).__name__}: {e}"
            ) from e
        return {name: self._value_to_native(value, inner)}

    def _value_to_native(self, value: Any, hint: Any) -> Any:
        if value is None:
            return None
        if _is_dataclass_instance(value):
            return self.record_to_native(value)
        if isinstance(value, enum.Enum):
            return self._value_to_native(value.value, Any)
        if isinstance(value, bool):
            return bool(value)
        if isinstance(value, str):
            return str(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        if isinstance(value, numbers.Integral):
            return int(value)
        if isinstance(value, numbers.Real):
            return float(value)
        if isinstance(value, dict):
            value_hint = _type_arg(hint, 1)
            return {key: self.to_native(item, value_hint) for key, item in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            item_hint = _type_arg(hint, 0)
            return [self.to_native(item, item_hint) for item in value]
        return value

    def record_to_native(self, value: Any) -> dict[str, Any]:
        """Convert a dataclass instance to a record mapping."""
        native = {}
        for descriptor in field_descriptors(type(value)):
            if descriptor.omit:
                continue
            field_value = getattr(value, descriptor.attr)
            if descriptor.omit_if_default and field_value == zero_value(descriptor.hint):
                continue
            hint = descriptor.hint
            if descriptor.as_string and field_value is not None:
                field_value = str(field_value)
                hint = Optional[str] if descriptor.nilable else str
            native[descriptor.wire_name] = self.to_native(field_value, hint)
        return native

    # Decoding

    def from_native(self, native: Any, target: Any = Any) -> Any:
        """Convert a native value tree into an instance of ``target``.

        Args:
            native: Value produced by the binary codec
            target: Destination type. ``dict``, ``Any`` or ``None`` return the
                native value unchanged.

        Returns:
            Decoded value

        Raises:
            DecodeError: If the native value cannot be assigned to the target
        """
        if target is None:
            target = Any
        return self._decode(native, target)

    def _decode(self, native: Any, hint: Any) -> Any:
        nilable, hint = split_optional(hint)
        if nilable:
            if isinstance(native, dict) and len(native) == 1:
                # A union branch is a mapping of exactly one key; larger
                # mappings are records or maps and stay unaltered
                native = next(iter(native.values()))
            if native is None:
                return None

        if hint is Any or hint is object:
            return native

        origin = typing.get_origin(hint) or hint
        if isinstance(origin, type) and isinstance(origin, AvroDecodable):
            return self._custom_decode(native, origin)
        if native is None:
            return zero_value(hint)
        if not isinstance(origin, type):
            return native
        if dataclasses.is_dataclass(origin):
            if not isinstance(native, dict):
                raise DecodeError(
                    f"Expected a record for {origin.__name__}, got {type(native).__name__}"
                )
            return self.record_from_native(native, origin)
        if issubclass(origin, _SEQUENCE_ORIGINS):
            if not isinstance(native, list):
                raise DecodeError(f"Expected an array, got {type(native).__name__}")
            item_hint = _type_arg(hint, 0)
            return origin(self._decode(item, item_hint) for item in native)
        if issubclass(origin, dict):
            if not isinstance(native, dict):
                raise DecodeError(f"Expected a map, got {type(native).__name__}")
            value_hint = _type_arg(hint, 1)
            return {key: self._decode(item, value_hint) for key, item in native.items()}
        return _coerce_scalar(native, origin)

    def _custom_decode(self, native: Any, target: type) -> Any:
        if isinstance(native, str):
            data = native.encode("utf-8")
        elif isinstance(native, (bytes, bytearray)):
            data = bytes(native)
        else:
            raise DecodeError(
                f"{target.__name__}.from_avro expects a string or bytes value, "
                f"got {type(native).__name__}"
            )
        try:
            return target.from_avro(data)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"{target.__name__}.from_avro failed: {e}") from e

    def record_from_native(self, native: dict[str, Any], cls: type) -> Any:
        """Build a dataclass instance from a record mapping.

        Fields absent from the mapping keep their dataclass default, or their
        zero value when there is none. Mapping keys without a field are ignored.
        """
        kwargs = {}
        for descriptor in field_descriptors(cls):
            if not descriptor.init:
                continue
            if descriptor.omit or descriptor.wire_name not in native:
                if not descriptor.has_default:
                    kwargs[descriptor.attr] = zero_value(descriptor.hint)
                continue
            try:
                kwargs[descriptor.attr] = self._decode(
                    native[descriptor.wire_name], descriptor.hint
                )
            except DecodeError as e:
                raise DecodeError(f"{cls.__name__}.{descriptor.attr}: {e}") from e
        return cls(**kwargs)


def _is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _as_hinted_number(value: Any, hint: Any) -> Any:
    """Convert a plain int or float to the sized numeric subclass it is annotated with."""
    if not isinstance(hint, type) or issubclass(hint, (bool, enum.Enum)):
        return value
    if isinstance(value, (hint, bool)):
        return value
    for base in (int, float):
        if hint is not base and issubclass(hint, base) and type(value) is base:
            return hint(value)
    return value


def _type_arg(hint: Any, index: int) -> Any:
    args = typing.get_args(hint)
    if len(args) > index:
        return args[index]
    if len(args) == 1:
        # tuple[X, ...] and friends
        return args[0]
    return Any


def _coerce_scalar(native: Any, target: type) -> Any:
    try:
        if issubclass(target, enum.Enum):
            return target(native)
        if issubclass(target, bool):
            return bool(native)
        if issubclass(target, numbers.Number):
            if isinstance(native, (str, bytes)):
                raise TypeError(f"cannot assign {type(native).__name__} to a number")
            return target(native)
        if issubclass(target, str):
            if not isinstance(native, str):
                raise TypeError(f"cannot assign {type(native).__name__} to a string")
            return target(native)
        if issubclass(target, (bytes, bytearray)):
            if isinstance(native, str):
                return target(native.encode("utf-8"))
            return target(native)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Cannot decode {native!r} as {target.__name__}: {e}") from e
    return native
