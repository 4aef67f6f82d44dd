"""Test models and schemas for avrocache tests."""

import enum
import json
from dataclasses import dataclass, field
from typing import Optional

from dataclasses_avroschema import AvroModel, types

from avrocache.mapper import avro_field
from avrocache.numeric import int32


def schema_text(schema: dict) -> str:
    """Serialize a schema dictionary to JSON text."""
    return json.dumps(schema)


@dataclass
class PersonRecord(AvroModel):
    """Person record as the first producers registered it."""
    name: str
    age: types.Int32

    class Meta:
        schema_name = "Person"


@dataclass
class PersonRecordV2(AvroModel):
    """Person record with a height defaulting for older messages."""
    name: str
    age: types.Int32
    height: types.Int32 = 150

    class Meta:
        schema_name = "Person"


@dataclass
class OptionalPersonRecord(AvroModel):
    """Person record whose fields may all be missing."""
    name: Optional[str] = None
    age: Optional[int] = None
    married: Optional[bool] = None

    class Meta:
        schema_name = "OptionalPerson"
        namespace = "lbc"


@dataclass
class Label(AvroModel):
    """Label attached to a catalog item."""
    text: str

    class Meta:
        schema_name = "label_v1"


@dataclass
class CatalogItem(AvroModel):
    """Catalog item with an optional label."""
    sku: str
    label: Optional[Label] = None


PERSON_SCHEMA = json.loads(PersonRecord.avro_schema())

PERSON_V2_SCHEMA = json.loads(PersonRecordV2.avro_schema())

PERSON_WITH_DEFAULT_AGE_SCHEMA = {
    "type": "record",
    "name": "Person",
    "fields": [
        {"name": "age", "type": "int", "default": -1},
    ],
}

PERSON_WITH_DEFAULT_NAME_SCHEMA = {
    "type": "record",
    "name": "Person",
    "fields": [
        {"name": "name", "type": "string", "default": "anonymous"},
        {"name": "age", "type": "int"},
    ],
}

USER_WITH_ADDRESS_SCHEMA = {
    "type": "record",
    "name": "User",
    "namespace": "my.example",
    "fields": [
        {"name": "username", "type": "string"},
        {"name": "age", "type": "long"},
        {
            "name": "address",
            "type": {
                "type": "record",
                "name": "Address",
                "fields": [
                    {"name": "street", "type": "string"},
                    {"name": "city", "type": "string"},
                    {"name": "country", "type": "string"},
                    {"name": "zip", "type": "string"},
                ],
            },
        },
    ],
}

PARENT_SCHEMA = {
    "type": "record",
    "name": "Parent",
    "fields": [
        {
            "name": "children",
            "type": {
                "type": "array",
                "items": {
                    "type": "record",
                    "name": "Child",
                    "fields": [{"name": "name", "type": "string"}],
                },
            },
        }
    ],
}

OPTIONAL_FIELDS_SCHEMA = json.loads(OptionalPersonRecord.avro_schema())

PERSON_WITH_OPTIONAL_ADDRESS_SCHEMA = {
    "type": "record",
    "name": "Customer",
    "namespace": "shop",
    "fields": [
        {"name": "name", "type": "string"},
        {"name": "age", "type": "long"},
        {
            "name": "address",
            "type": [
                "null",
                {
                    "type": "record",
                    "name": "address_optional",
                    "fields": [
                        {"name": "street", "type": ["null", "string"], "default": None},
                        {"name": "city", "type": ["null", "string"], "default": None},
                    ],
                },
            ],
            "default": None,
        },
    ],
}

ORDER_SCHEMA = {
    "type": "record",
    "name": "Order",
    "fields": [
        {
            "name": "services",
            "type": {
                "type": "array",
                "items": {
                    "type": "record",
                    "name": "Service",
                    "fields": [
                        {"name": "quantity", "type": ["null", "int"], "default": None},
                    ],
                },
            },
        }
    ],
}

CUSTOM_NAMES_SCHEMA = {
    "type": "record",
    "name": "FakeData",
    "fields": [
        {
            "name": "fake",
            "type": {
                "type": "record",
                "name": "fake_urls",
                "fields": [{"name": "url", "type": "string"}],
            },
        },
        {
            "name": "fake_img",
            "type": {
                "type": "record",
                "name": "fake_imgs",
                "fields": [{"name": "img", "type": "string"}],
            },
        },
        {"name": "fake_opt", "type": ["null", "fake_urls"], "default": None},
    ],
}

ENUM_EVENT_SCHEMA = {
    "type": "record",
    "name": "EnumEvent",
    "namespace": "events",
    "fields": [
        {
            "name": "my_required_enum",
            "type": {"type": "enum", "name": "MyEnum", "symbols": ["value1", "value2"]},
        },
        {"name": "long_id", "type": "long"},
        {"name": "string_id", "type": "string"},
    ],
}

ENUM_UNION_SCHEMA = {
    "type": "record",
    "name": "UnionAndEnumEvent",
    "namespace": "events",
    "fields": [
        {
            "name": "my_optional_enum",
            "type": [
                "null",
                {"type": "enum", "name": "my_enum", "symbols": ["value1", "value2"]},
            ],
            "default": None,
        },
        {"name": "long_id", "type": "long"},
        {"name": "string_id", "type": "string"},
    ],
}

NESTED_STRING_SCHEMA = {
    "type": "record",
    "name": "TestNested",
    "fields": [{"name": "nested", "type": "string"}],
}

PAINT_SCHEMA = {
    "type": "record",
    "name": "Paint",
    "fields": [
        {
            "name": "color",
            "type": [
                "null",
                "string",
                {"type": "enum", "name": "Color", "symbols": ["RED", "GREEN"]},
            ],
            "default": None,
        },
        {
            "name": "digest",
            "type": ["null", "bytes", {"type": "fixed", "name": "Digest", "size": 2}],
            "default": None,
        },
    ],
}

ALL_TYPES_SCHEMA = {
    "type": "record",
    "name": "MyStruct",
    "fields": [
        {"name": "my_null", "type": "null"},
        {"name": "my_bool", "type": "boolean"},
        {"name": "my_int", "type": "int"},
        {"name": "my_long", "type": "long"},
        {"name": "my_float", "type": "float"},
        {"name": "my_double", "type": "double"},
        {"name": "my_bytes", "type": "bytes"},
        {"name": "my_string", "type": "string"},
    ],
}


@dataclass
class Person:
    """Simple person model for testing."""
    name: str
    age: int


@dataclass
class AgeOnly:
    """Person model without a name."""
    age: int


@dataclass
class DefaultedAge:
    """Person model whose age falls back to the schema default."""
    age: int = avro_field(omit_if_default=True, default=0)


@dataclass
class Address:
    street: str
    city: str
    country: str
    zip: str


@dataclass
class User:
    username: str
    age: int
    address: Address


@dataclass
class Child:
    name: str


@dataclass
class Parent:
    children: list[Child]


@dataclass
class OptionalPerson:
    name: Optional[str] = None
    age: Optional[int] = None
    married: Optional[bool] = None


@dataclass
class AddressOptional:
    street: Optional[str] = None
    city: Optional[str] = None


@dataclass
class Customer:
    name: str
    age: int
    address: Optional[AddressOptional] = avro_field(omit_if_default=True, default=None)


@dataclass
class Service:
    quantity: Optional[int32] = None


@dataclass
class Order:
    services: list[Service] = field(default_factory=list)


@dataclass
class FakeURLs:
    url: str

    def avro_name(self) -> str:
        return "fake_urls"


@dataclass
class FakeIMGs:
    img: str

    class Meta:
        schema_name = "fake_imgs"


@dataclass
class FakeData:
    fake: FakeURLs
    fake_img: FakeIMGs
    fake_opt: Optional[FakeURLs] = None


class MyEnum(enum.Enum):
    VALUE1 = "value1"
    VALUE2 = "value2"


@dataclass
class EnumEvent:
    my_required_enum: MyEnum
    long_id: int
    string_id: str


@dataclass
class UnionAndEnumEvent:
    my_optional_enum: Optional[MyEnum]
    long_id: int
    string_id: str


@dataclass
class Nested:
    """Value stored as a plain string on the wire."""
    s: str

    def __str__(self) -> str:
        return self.s

    @classmethod
    def from_avro(cls, data: bytes) -> "Nested":
        return cls(data.decode("utf-8"))


@dataclass
class WithNested:
    n: Nested = avro_field("nested", as_string=True)


@dataclass
class MyStruct:
    my_null: None = None
    my_bool: bool = False
    my_int: int = 0
    my_long: int = 0
    my_float: float = 0.0
    my_double: float = 0.0
    my_bytes: bytes = b""
    my_string: str = ""