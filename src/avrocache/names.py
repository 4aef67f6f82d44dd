"""Translation of Python type names into Avro type names."""

import re

# Python and numpy scalar type names mapped to the Avro primitive they encode as
_TYPE_CONVERSION = {
    "int8": "int",
    "int16": "int",
    "int32": "int",
    "uint8": "int",
    "uint16": "int",
    "uint32": "int",
    "rune": "int",
    "int": "long",
    "uint": "long",
    "int64": "long",
    "uint64": "long",
    "float32": "float",
    "float": "double",
    "float64": "double",
    "bool": "boolean",
    "bool_": "boolean",
    "str": "string",
    "bytes": "bytes",
    "bytearray": "bytes",
    "NoneType": "null",
}

AVRO_PRIMITIVE_TYPES = frozenset(
    ["null", "boolean", "int", "long", "float", "double", "bytes", "string"]
)

# Acronym followed by a capitalized word, capitalized word, acronym, digits
_WORD_BOUNDARY = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def to_avro_type(name: str) -> str:
    """Return the Avro primitive name for a Python scalar type name.

    Names without a primitive counterpart are returned unchanged.
    """
    return _TYPE_CONVERSION.get(name, name)


def camel_to_snake(name: str) -> str:
    """Transform a CamelCase identifier into snake_case.

    Acronyms stay together (``MyURL`` gives ``my_url``), but a trailing
    lowercase letter is split off an acronym the same way a new word would be,
    so ``LogoImageURLs`` gives ``logo_image_ur_ls``.
    """
    return "_".join(word.lower() for word in _WORD_BOUNDARY.findall(name))


def default_type_name_encoder(name: str) -> str:
    """Combine primitive type conversion and snake_case translation."""
    return camel_to_snake(to_avro_type(name))


def add_namespace(namespace: str | None, type_name: str) -> str:
    """Qualify a type name with a namespace in the Avro dotted form.

    Names that already hold a dot are fully qualified and returned as is.
    """
    if not namespace or "." in type_name:
        return type_name
    return f"{namespace}.{type_name}"


def is_primitive(type_name: str) -> bool:
    return type_name in AVRO_PRIMITIVE_TYPES
