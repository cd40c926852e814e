"""Type guards and converters for caller-supplied binding records."""

from collections.abc import Mapping
from dataclasses import fields
from typing import Any

from msgspec import Struct
from typing_extensions import TypeGuard

__all__ = (
    "is_dataclass_instance",
    "is_mapping",
    "is_msgspec_struct",
    "is_record_like",
    "record_to_dict",
)


def is_dataclass_instance(obj: Any) -> bool:
    """Check if an object is a dataclass instance.

    Args:
        obj: An object to check.

    Returns:
        True if the object is a dataclass instance.
    """
    return not isinstance(obj, type) and hasattr(type(obj), "__dataclass_fields__")


def is_msgspec_struct(obj: Any) -> "TypeGuard[Struct]":
    """Check if a value is a msgspec struct instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return isinstance(obj, Struct)


def is_mapping(obj: Any) -> "TypeGuard[Mapping[str, Any]]":
    return isinstance(obj, Mapping)


def is_record_like(obj: Any) -> bool:
    """Whether ``obj`` can be turned into a field mapping by :func:`record_to_dict`."""
    return is_mapping(obj) or is_dataclass_instance(obj) or is_msgspec_struct(obj)


def record_to_dict(data: Any) -> "dict[str, Any]":
    """Dump a binding record to a field-name keyed dictionary.

    Values are not copied and nested objects are left untouched, so the
    resolver hands back exactly the objects the caller bound.

    Args:
        data: A mapping, dataclass instance or :class:`msgspec.Struct`.

    Raises:
        TypeError: If ``data`` is none of the supported record shapes.

    Returns:
        A new dictionary of field name to value.
    """
    if is_mapping(data):
        return {str(key): value for key, value in data.items()}
    if is_dataclass_instance(data):
        return {field.name: getattr(data, field.name) for field in fields(data)}
    if is_msgspec_struct(data):
        return {name: getattr(data, name) for name in data.__struct_fields__}
    msg = f"cannot read fields from {type(data).__name__!r}; expected a mapping, dataclass or msgspec.Struct"
    raise TypeError(msg)
