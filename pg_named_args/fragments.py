"""Static SQL fragments substituted into ``${name}`` holes."""

from typing import Any

from mypy_extensions import mypyc_attr

from pg_named_args.exceptions import FragmentError

__all__ = ("Fragment", "fragment")


@mypyc_attr(allow_interpreted_subclasses=False)
class Fragment:
    """A piece of static SQL text, such as a table or column name.

    Fragments are pasted into the query text verbatim, so they must never
    carry user input. Text containing ``$`` is rejected because it would be
    mistaken for a parameter marker by the database.
    """

    __slots__ = ("_text",)

    def __init__(self, text: str) -> None:
        if "$" in text:
            raise FragmentError
        self._text = text

    @classmethod
    def new_unchecked(cls, text: str) -> "Fragment":
        """Create a fragment without checking for ``$``."""
        instance = cls.__new__(cls)
        instance._text = text
        return instance

    def get(self) -> str:
        return self._text

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Fragment({self._text!r})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Fragment):
            return False
        return self._text == other._text

    def __hash__(self) -> int:
        return hash(self._text)


def fragment(text: str) -> Fragment:
    """Create a :class:`Fragment`.

    Raises:
        FragmentError: If ``text`` contains ``$``.
    """
    return Fragment(text)
