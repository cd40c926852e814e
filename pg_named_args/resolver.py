"""Resolution of scanned parameter and fragment names against binding records.

A caller binds values through records declared under one of two roles:
``Args`` holds one field per distinct parameter name and ``Sql`` holds one
field per fragment name. The resolver lines the values up with the
positional markers produced by :mod:`pg_named_args.scanner`:
``args[i - 1]`` is always the value for ``$i``.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final, Optional

from mypy_extensions import mypyc_attr

from pg_named_args.diagnostics import DEFAULT_SOURCE, Diagnostic, DiagnosticCollector
from pg_named_args.fragments import Fragment
from pg_named_args.utils.logging import get_logger
from pg_named_args.utils.type_guards import record_to_dict

__all__ = ("Record", "ResolveResult", "Role", "resolve", "substitute_fragments")

logger = get_logger("pg_named_args.resolver")

MSG_STRUCT_UPDATE: Final = "struct update syntax is not supported"
MSG_DUPLICATE_STRUCT: Final = "duplicate struct name"
MSG_FRAGMENT_DOLLAR: Final = "Fragment is not allowed to contain `$`"


class Role(str, Enum):
    """Purpose of a binding record, identified by its declared name."""

    PARAMETERS = "Args"
    FRAGMENTS = "Sql"

    def __str__(self) -> str:
        return self.value


@mypyc_attr(allow_interpreted_subclasses=False)
class Record:
    """A caller-declared block of name to value bindings.

    Attributes:
        name: Declared role name, ``"Args"`` or ``"Sql"``.
        fields: Field name to bound value.
        base: Source of record-update (spread) syntax. Spreading values from
            another object is always reported, because every referenced name
            has to be supplied explicitly.
    """

    __slots__ = ("base", "fields", "name")

    def __init__(self, name: str, fields: Any = None, base: Any = None) -> None:
        self.name = name
        self.fields: dict[str, Any] = record_to_dict(fields) if fields is not None else {}
        self.base = base

    @classmethod
    def args(cls, **fields: Any) -> "Record":
        """Build an ``Args`` record from keyword arguments."""
        return cls(Role.PARAMETERS.value, fields)

    @classmethod
    def sql(cls, **fields: Any) -> "Record":
        """Build a ``Sql`` record from keyword arguments."""
        return cls(Role.FRAGMENTS.value, fields)

    def __repr__(self) -> str:
        base = f", base={self.base!r}" if self.base is not None else ""
        return f"Record({self.name!r}, {self.fields!r}{base})"


@dataclass(frozen=True)
class ResolveResult:
    """Values aligned with the scanned names.

    Attributes:
        args: Parameter values; ``args[i - 1]`` belongs to ``$i``.
        fragments: Resolved fragment text, one entry per fragment hole when
            complete.
        diagnostics: Problems found in the records.
    """

    args: "tuple[Any, ...]" = ()
    fragments: "tuple[str, ...]" = ()
    diagnostics: "tuple[Diagnostic, ...]" = field(default=())

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def _fragment_text(value: Any) -> Optional[str]:
    if isinstance(value, Fragment):
        return value.get()
    if isinstance(value, str) and "$" not in value:
        return value
    return None


def _lookup(
    role: Role,
    wanted: "Sequence[str]",
    record: Optional[Record],
    diagnostics: DiagnosticCollector,
    allow_extra_fields: bool,
) -> "list[Any]":
    if record is None:
        if wanted:
            diagnostics.error(f"expected `{role}` struct")
        return []

    values = []
    for name in wanted:
        if name in record.fields:
            values.append(record.fields[name])
        else:
            diagnostics.error(f"missing field `{name}` in `{role}` struct")

    if not allow_extra_fields:
        expected = set(wanted)
        for name in record.fields:
            if name not in expected:
                diagnostics.error(f"unknown field `{name}` in `{role}` struct")
    return values


def resolve(
    names: "Sequence[str]",
    fragments: "Sequence[str]",
    *records: Record,
    allow_extra_fields: bool = True,
    source: str = DEFAULT_SOURCE,
) -> ResolveResult:
    """Resolve parameter and fragment names against binding records.

    Parameter names are looked up in the ``Args`` record in order, so the
    resulting values line up with ``$1..$N``. Fragment names are looked up
    once per occurrence in the ``Sql`` record.

    Args:
        names: Distinct parameter names in first-occurrence order.
        fragments: Fragment names, one per hole, in order.
        *records: Binding records declared by the caller.
        allow_extra_fields: Whether fields no marker refers to are accepted.
        source: Template label attached to diagnostics.

    Returns:
        A :class:`ResolveResult`; problems are reported as diagnostics.
    """
    diagnostics = DiagnosticCollector(source)
    declared: dict[str, Record] = {}
    for record in records:
        if record.base is not None:
            diagnostics.error(MSG_STRUCT_UPDATE)
        if record.name in declared:
            diagnostics.error(MSG_DUPLICATE_STRUCT)
        declared[record.name] = record

    args = _lookup(
        Role.PARAMETERS, names, declared.pop(Role.PARAMETERS.value, None), diagnostics, allow_extra_fields
    )

    resolved_fragments = []
    fragment_values = _lookup(
        Role.FRAGMENTS, fragments, declared.pop(Role.FRAGMENTS.value, None), diagnostics, allow_extra_fields
    )
    for value in fragment_values:
        text = _fragment_text(value)
        if text is None:
            if isinstance(value, str):
                diagnostics.error(MSG_FRAGMENT_DOLLAR)
            else:
                diagnostics.error(f"expected a Fragment or str as fragment value, got {type(value).__name__!r}")
            continue
        resolved_fragments.append(text)

    for name in declared:
        diagnostics.error(f"unknown struct name `{name}`")

    result = ResolveResult(tuple(args), tuple(resolved_fragments), diagnostics.freeze())
    logger.debug(
        "Resolved %d of %d parameters and %d of %d fragments with %d diagnostics",
        len(result.args),
        len(names),
        len(result.fragments),
        len(fragments),
        len(result.diagnostics),
    )
    return result


def substitute_fragments(template: str, hole_count: int, fragment_text: "Sequence[str]") -> str:
    """Fill ``{}`` holes in a scanned template and unescape doubled braces.

    The substitution only happens when every hole has a value. On a mismatch
    the escaped template is returned unchanged, since the missing values were
    already reported by :func:`resolve`.
    """
    if len(fragment_text) != hole_count:
        return template
    return template.format(*fragment_text)
