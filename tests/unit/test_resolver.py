"""Unit tests for pg_named_args.resolver."""

from dataclasses import dataclass

import msgspec
import pytest

from pg_named_args.fragments import Fragment, fragment
from pg_named_args.resolver import Record, Role, resolve, substitute_fragments


@dataclass
class InsertArgs:
    location: str
    report: str


class InsertArgsStruct(msgspec.Struct):
    location: str
    report: str


def test_args_follow_name_order() -> None:
    result = resolve(("b", "a"), (), Record.args(a=1, b=2))

    assert result.args == (2, 1)
    assert result.ok


def test_values_are_passed_through_untouched() -> None:
    payload = {"nested": [1, 2]}
    result = resolve(("payload",), (), Record.args(payload=payload))

    assert result.args[0] is payload


def test_fragments_resolve_per_occurrence() -> None:
    result = resolve((), ("col", "tbl", "col"), Record.sql(col=fragment("id"), tbl="users"))

    assert result.fragments == ("id", "users", "id")
    assert result.ok


def test_no_names_and_no_records() -> None:
    result = resolve((), ())

    assert result.args == ()
    assert result.fragments == ()
    assert result.ok


def test_missing_args_record() -> None:
    result = resolve(("a",), ())

    assert [d.message for d in result.diagnostics] == ["expected `Args` struct"]


def test_missing_sql_record() -> None:
    result = resolve((), ("col",), Record.args())

    assert [d.message for d in result.diagnostics] == ["expected `Sql` struct"]


def test_missing_field_skips_value() -> None:
    result = resolve(("a", "b", "c"), (), Record.args(a=1, c=3))

    assert result.args == (1, 3)
    assert [d.message for d in result.diagnostics] == ["missing field `b` in `Args` struct"]


def test_missing_fragment_field() -> None:
    result = resolve((), ("col",), Record.sql(other="x"))

    assert result.fragments == ()
    assert [d.message for d in result.diagnostics] == ["missing field `col` in `Sql` struct"]


def test_extra_fields_allowed_by_default() -> None:
    result = resolve(("a",), (), Record.args(a=1, unused=2))

    assert result.ok
    assert result.args == (1,)


def test_extra_fields_rejected_when_disabled() -> None:
    result = resolve(("a",), (), Record.args(a=1, unused=2), allow_extra_fields=False)

    assert [d.message for d in result.diagnostics] == ["unknown field `unused` in `Args` struct"]


def test_unknown_struct_name() -> None:
    result = resolve(("a",), (), Record("Params", {"a": 1}))

    assert [d.message for d in result.diagnostics] == ["expected `Args` struct", "unknown struct name `Params`"]


def test_duplicate_struct_later_wins() -> None:
    result = resolve(("a",), (), Record.args(a=1), Record.args(a=2))

    assert result.args == (2,)
    assert [d.message for d in result.diagnostics] == ["duplicate struct name"]


def test_struct_update_syntax_is_reported() -> None:
    result = resolve(("a",), (), Record("Args", {"a": 1}, base={"b": 2}))

    assert result.args == (1,)
    assert [d.message for d in result.diagnostics] == ["struct update syntax is not supported"]


def test_fragment_string_with_dollar_is_rejected() -> None:
    result = resolve((), ("col",), Record.sql(col="$1"))

    assert result.fragments == ()
    assert [d.message for d in result.diagnostics] == ["Fragment is not allowed to contain `$`"]


def test_unchecked_fragment_is_trusted() -> None:
    result = resolve((), ("col",), Record.sql(col=Fragment.new_unchecked("price$")))

    assert result.fragments == ("price$",)
    assert result.ok


def test_non_text_fragment_value() -> None:
    result = resolve((), ("col",), Record.sql(col=5))

    assert [d.message for d in result.diagnostics] == ["expected a Fragment or str as fragment value, got 'int'"]


def test_all_mistakes_are_reported_together() -> None:
    result = resolve(
        ("a", "b"),
        ("col",),
        Record.args(a=1),
        Record.args(a=1),
        Record("Extra", {}),
    )

    assert [d.message for d in result.diagnostics] == [
        "duplicate struct name",
        "missing field `b` in `Args` struct",
        "expected `Sql` struct",
        "unknown struct name `Extra`",
    ]


def test_diagnostics_carry_source() -> None:
    result = resolve(("a",), (), source="queries/get.sql")

    assert result.diagnostics[0].source == "queries/get.sql"
    assert result.diagnostics[0].position is None


@pytest.mark.parametrize(
    "fields",
    [
        {"location": "sweden", "report": "sunny"},
        InsertArgs(location="sweden", report="sunny"),
        InsertArgsStruct(location="sweden", report="sunny"),
    ],
    ids=["mapping", "dataclass", "msgspec_struct"],
)
def test_record_shapes(fields: object) -> None:
    result = resolve(("location", "report"), (), Record("Args", fields))

    assert result.args == ("sweden", "sunny")


def test_record_rejects_unsupported_shape() -> None:
    with pytest.raises(TypeError, match="cannot read fields"):
        Record("Args", 42)


def test_record_constructors() -> None:
    assert Record.args(a=1).name == "Args"
    assert Record.sql(a="x").name == "Sql"
    assert repr(Record.args(a=1)) == "Record('Args', {'a': 1})"


def test_role_values() -> None:
    assert str(Role.PARAMETERS) == "Args"
    assert str(Role.FRAGMENTS) == "Sql"


def test_substitute_fragments_fills_holes() -> None:
    assert substitute_fragments("SELECT {} FROM '{{x}}'", 1, ["id"]) == "SELECT id FROM '{x}'"


def test_substitute_fragments_leaves_template_on_mismatch() -> None:
    assert substitute_fragments("SELECT {}, {} FROM t", 2, ["id"]) == "SELECT {}, {} FROM t"
