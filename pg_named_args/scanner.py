"""Template scanner rewriting named markers into positional ones.

Supported markers:

- ``$name``: a named parameter, rewritten to ``$1``, ``$2``, ... in order of
  first occurrence. Repeated names reuse their number.
- ``${name}``: a fragment, rewritten to a ``{}`` formatting hole that is
  later filled with static SQL text.
- ``$[a, b]``: defines a column-list group. The raw column text is kept in
  place and the matching positional list is remembered.
- ``$[..]``: emits the positional list of the pending group.

Literal braces are doubled in the output because the rewritten template is
fed through :meth:`str.format` to fill fragment holes.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final, Optional, Union

from mypy_extensions import mypyc_attr

from pg_named_args.diagnostics import DEFAULT_SOURCE, Diagnostic, DiagnosticCollector, Template
from pg_named_args.utils.logging import get_logger

__all__ = ("PendingGroup", "ScanResult", "TemplateScanner", "is_identifier_char", "scan")

logger = get_logger("pg_named_args.scanner")

_ASCII_WHITESPACE: Final = frozenset(" \t\n\r\x0c")
_GROUP_BACK_REFERENCE: Final = ".."

MSG_FRAGMENT_IDENTIFIER: Final = "expected an identifier after `{`"
MSG_FRAGMENT_CLOSE: Final = "fragment should end with `}`"
MSG_IDENTIFIER_OR_BRACKET: Final = "expected identifier or `[` after `$`"
MSG_CLOSING_BRACKET: Final = "expected closing `]`"
MSG_GROUP_NOT_DEFINED: Final = "parameter group is used, but not defined"
MSG_EMPTY_GROUP_ENTRY: Final = "expected identifier between all of `$[`, every `,` and final `]`"
MSG_PREVIOUS_GROUP_UNUSED: Final = "previous parameter group is not used"
MSG_LAST_GROUP_UNUSED: Final = "last parameter group is not used"


def is_identifier_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _is_column_list_char(char: str) -> bool:
    return is_identifier_char(char) or char in _ASCII_WHITESPACE or char in ",."


def _escape_braces(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}")


@dataclass(frozen=True)
class PendingGroup:
    """A column-list group that was defined but not yet consumed by ``$[..]``."""

    positional: str
    position: int


@dataclass(frozen=True)
class ScanResult:
    """Output of scanning one template.

    Attributes:
        template: Rewritten template with positional markers, ``{}`` holes for
            fragments and literal braces doubled.
        names: Distinct parameter names; ``names[i]`` is bound to ``$<i+1>``.
        fragments: Fragment names, one entry per ``{}`` hole, in order.
        diagnostics: Every problem found while scanning.
        source: Label of the scanned template.
    """

    template: str
    names: "tuple[str, ...]" = ()
    fragments: "tuple[str, ...]" = ()
    diagnostics: "tuple[Diagnostic, ...]" = field(default=())
    source: str = DEFAULT_SOURCE

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    @property
    def aborted(self) -> bool:
        """Whether the scan stopped early and ``template`` is incomplete."""
        return any(diagnostic.is_fatal for diagnostic in self.diagnostics)

    @property
    def messages(self) -> "list[str]":
        return [diagnostic.message for diagnostic in self.diagnostics]


@mypyc_attr(allow_interpreted_subclasses=False)
class TemplateScanner:
    """Single-pass rewriter for one template.

    A scanner instance holds the cursor and output of one scan and is not
    meant to be shared; use :func:`scan` for one-off calls.
    """

    __slots__ = ("_fragments", "_index", "_names", "_out", "_pending", "_pos", "_text", "diagnostics", "template")

    def __init__(self, template: Union[str, Template]) -> None:
        if isinstance(template, str):
            template = Template(template)
        self.template = template
        self.diagnostics = DiagnosticCollector(template.source)
        self._text = template.text
        self._pos = 0
        self._out: list[str] = []
        self._names: list[str] = []
        self._index: dict[str, int] = {}
        self._fragments: list[str] = []
        self._pending: Optional[PendingGroup] = None

    def scan(self) -> ScanResult:
        """Rewrite the template.

        Returns:
            The rewritten template together with names, fragments and diagnostics.
        """
        if self._pos or self._out:
            msg = "TemplateScanner instances can only scan once"
            raise RuntimeError(msg)

        completed = self._scan_markers()
        if completed and self._pending is not None:
            self.diagnostics.error(MSG_LAST_GROUP_UNUSED, self._pending.position)

        result = ScanResult(
            template="".join(self._out),
            names=tuple(self._names),
            fragments=tuple(self._fragments),
            diagnostics=self.diagnostics.freeze(),
            source=self.template.source,
        )
        logger.debug(
            "Scanned template %s: %d parameters, %d fragments, %d diagnostics",
            self.template.source,
            len(result.names),
            len(result.fragments),
            len(result.diagnostics),
        )
        return result

    def _scan_markers(self) -> bool:
        """Run the main loop; returns ``False`` when the scan was aborted."""
        text = self._text
        while True:
            dollar = text.find("$", self._pos)
            if dollar == -1:
                self._out.append(_escape_braces(text[self._pos :]))
                return True

            self._out.append(_escape_braces(text[self._pos : dollar]))
            self._pos = dollar + 1

            is_fragment = text.startswith("{", self._pos)
            if is_fragment:
                self._pos += 1

            ident = self._take_while(is_identifier_char)
            if is_fragment:
                if not ident:
                    self.diagnostics.fatal(MSG_FRAGMENT_IDENTIFIER, dollar)
                    return False
                self._fragment(ident, dollar)
            elif ident:
                self._out.append(self._placeholder(ident))
            elif not self._column_list(dollar):
                return False

    def _take_while(self, predicate: "Callable[[str], bool]") -> str:
        text = self._text
        start = end = self._pos
        while end < len(text) and predicate(text[end]):
            end += 1
        self._pos = end
        return text[start:end]

    def _index_of(self, name: str) -> int:
        index = self._index.get(name)
        if index is None:
            index = len(self._names)
            self._index[name] = index
            self._names.append(name)
        return index

    def _placeholder(self, name: str) -> str:
        return f"${self._index_of(name) + 1}"

    def _fragment(self, name: str, marker: int) -> None:
        if self._text.startswith("}", self._pos):
            self._pos += 1
        else:
            self.diagnostics.error(MSG_FRAGMENT_CLOSE, marker)
        self._fragments.append(name)
        self._out.append("{}")

    def _column_list(self, marker: int) -> bool:
        """Handle ``$[...]``; returns ``False`` when the scan must stop."""
        text = self._text
        if not text.startswith("[", self._pos):
            self.diagnostics.fatal(MSG_IDENTIFIER_OR_BRACKET, marker)
            return False
        self._pos += 1

        columns = self._take_while(_is_column_list_char)
        if not text.startswith("]", self._pos):
            self.diagnostics.fatal(MSG_CLOSING_BRACKET, marker)
            return False
        self._pos += 1

        if columns == _GROUP_BACK_REFERENCE:
            if self._pending is None:
                self.diagnostics.error(MSG_GROUP_NOT_DEFINED, marker)
            else:
                self._out.append(self._pending.positional)
                self._pending = None
            return True

        placeholders = []
        for column in columns.split(","):
            name = column.strip()
            if not name:
                self.diagnostics.error(MSG_EMPTY_GROUP_ENTRY, marker)
                continue
            placeholders.append(self._placeholder(name))

        if self._pending is not None:
            self.diagnostics.error(MSG_PREVIOUS_GROUP_UNUSED, marker)
        self._pending = PendingGroup(", ".join(placeholders), marker)
        self._out.append(columns)
        return True


def scan(template: Union[str, Template]) -> ScanResult:
    """Rewrite a template with named markers into positional form.

    Example:
        >>> scan("INSERT INTO t(x, $[b, c]) VALUES(true, $[..]);").template
        'INSERT INTO t(x, b, c) VALUES(true, $1, $2);'

    Args:
        template: Template text, or a :class:`~pg_named_args.diagnostics.Template`
            carrying a source label for diagnostics.

    Returns:
        A :class:`ScanResult`.
    """
    return TemplateScanner(template).scan()
