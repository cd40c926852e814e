"""Diagnostics collected while scanning and resolving query templates.

Scanning and resolution never stop at the first problem: every independent
mistake is recorded in a :class:`DiagnosticCollector` and surfaced together.
Only a handful of ambiguous states abort the scan early; those are recorded
with :attr:`Severity.FATAL`.
"""

from collections.abc import Iterator
from enum import Enum
from typing import Final, Optional

from mypy_extensions import mypyc_attr

__all__ = ("DEFAULT_SOURCE", "Diagnostic", "DiagnosticCollector", "Severity", "Template")

DEFAULT_SOURCE: Final[str] = "<string>"


class Severity(str, Enum):
    """How a diagnostic affected processing."""

    RECOVERABLE = "recoverable"
    FATAL = "fatal"

    def __str__(self) -> str:
        return self.value


@mypyc_attr(allow_interpreted_subclasses=False)
class Template:
    """Immutable template text together with a label for its origin.

    The ``source`` label is only used to point diagnostics at a file or
    call site; it never influences the rewritten query.
    """

    __slots__ = ("source", "text")

    def __init__(self, text: str, source: str = DEFAULT_SOURCE) -> None:
        self.text = text
        self.source = source

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Template):
            return False
        return self.text == other.text and self.source == other.source

    def __hash__(self) -> int:
        return hash((self.text, self.source))

    def __repr__(self) -> str:
        return f"Template({self.text!r}, source={self.source!r})"

    def line_and_column(self, position: int) -> "tuple[int, int]":
        """Translate an offset into a 1-based ``(line, column)`` pair."""
        prefix = self.text[:position]
        line = prefix.count("\n") + 1
        column = position - (prefix.rfind("\n") + 1) + 1
        return line, column


@mypyc_attr(allow_interpreted_subclasses=False)
class Diagnostic:
    """A single problem found in a template or in the supplied records.

    Attributes:
        message: Human readable description.
        severity: Whether processing continued after the problem.
        position: Offset into the original template text, ``None`` when the
            problem concerns the binding records rather than the template.
        source: Label of the template the problem belongs to.
    """

    __slots__ = ("message", "position", "severity", "source")

    def __init__(
        self,
        message: str,
        severity: Severity = Severity.RECOVERABLE,
        position: Optional[int] = None,
        source: str = DEFAULT_SOURCE,
    ) -> None:
        self.message = message
        self.severity = severity
        self.position = position
        self.source = source

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL

    def describe(self) -> str:
        if self.position is None:
            return f"{self.source}: {self.message}"
        return f"{self.source}:{self.position}: {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Diagnostic):
            return False
        return (
            self.message == other.message
            and self.severity == other.severity
            and self.position == other.position
            and self.source == other.source
        )

    def __hash__(self) -> int:
        return hash((self.message, self.severity, self.position, self.source))

    def __repr__(self) -> str:
        return (
            f"Diagnostic({self.message!r}, severity={self.severity.value!r}, "
            f"position={self.position!r}, source={self.source!r})"
        )

    def __str__(self) -> str:
        return self.message


@mypyc_attr(allow_interpreted_subclasses=False)
class DiagnosticCollector:
    """Accumulates diagnostics for one scan or resolve invocation."""

    __slots__ = ("_items", "source")

    def __init__(self, source: str = DEFAULT_SOURCE) -> None:
        self.source = source
        self._items: list[Diagnostic] = []

    def error(self, message: str, position: Optional[int] = None) -> None:
        self._items.append(Diagnostic(message, Severity.RECOVERABLE, position, self.source))

    def fatal(self, message: str, position: Optional[int] = None) -> None:
        self._items.append(Diagnostic(message, Severity.FATAL, position, self.source))

    def extend(self, diagnostics: "tuple[Diagnostic, ...] | list[Diagnostic]") -> None:
        self._items.extend(diagnostics)

    @property
    def has_fatal(self) -> bool:
        return any(item.is_fatal for item in self._items)

    def freeze(self) -> "tuple[Diagnostic, ...]":
        return tuple(self._items)

    def __iter__(self) -> "Iterator[Diagnostic]":
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
