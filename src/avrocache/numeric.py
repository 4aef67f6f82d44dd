"""Sized numeric types.

Python has a single ``int`` and a single ``float``, which name themselves as
Avro ``long`` and ``double``. When an optional field must select the ``int``
or ``float`` branch of a union, annotate and fill it with one of these
subclasses instead. They behave exactly like their base type otherwise.
"""

# Lowercase names follow numpy's scalar naming, which the type name
# translator maps onto Avro primitives.


class int32(int):  # noqa: N801
    """Integer encoded as Avro ``int``."""


class int64(int):  # noqa: N801
    """Integer encoded as Avro ``long``."""


class float32(float):  # noqa: N801
    """Floating point number encoded as Avro ``float``."""


class float64(float):  # noqa: N801
    """Floating point number encoded as Avro ``double``."""


__all__ = ["int32", "int64", "float32", "float64"]
