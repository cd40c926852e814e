from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from pg_named_args.diagnostics import Diagnostic

__all__ = (
    "FragmentError",
    "ImproperConfigurationError",
    "NamedArgsError",
    "TemplateError",
)


class NamedArgsError(Exception):
    """Base class of every error raised by pg-named-args.

    Template and record mistakes are never raised one at a time: they are
    gathered as diagnostics and surface together as a :class:`TemplateError`
    from :func:`~pg_named_args.query.query_args`. The other subclasses cover
    invalid fragments (:class:`FragmentError`) and invalid settings
    (:class:`ImproperConfigurationError`). ``except NamedArgsError`` catches
    all of them.

    The first positional argument becomes :attr:`detail` unless ``detail`` is
    passed explicitly; subclasses may set a class-level default ``detail``.
    """

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``NamedArgsError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class TemplateError(NamedArgsError):
    """Raised when a query template or its records produced diagnostics.

    Every diagnostic collected while scanning and resolving is kept on the
    exception so a caller sees all mistakes of one template at once.
    """

    sql: Optional[str]
    diagnostics: "tuple[Diagnostic, ...]"

    def __init__(self, diagnostics: "Sequence[Diagnostic]", sql: Optional[str] = None) -> None:
        self.diagnostics = tuple(diagnostics)
        self.sql = sql
        lines = [f"- {diagnostic.describe()}" for diagnostic in self.diagnostics]
        count = len(self.diagnostics)
        detail_message = f"query template has {count} error{'s' if count != 1 else ''}:\n" + "\n".join(lines)
        if sql:
            detail_message = f"{detail_message}\nSQL: {sql}"
        super().__init__(detail=detail_message)

    @property
    def messages(self) -> "list[str]":
        return [diagnostic.message for diagnostic in self.diagnostics]


class FragmentError(NamedArgsError):
    """Raised when a static SQL fragment contains a parameter marker."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Fragment is not allowed to contain `$`"
        super().__init__(message)


class ImproperConfigurationError(NamedArgsError):
    """Improper Configuration error.

    This exception is raised when the library configuration fails validation.
    """
