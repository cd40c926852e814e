"""High level entry points combining scanning, resolution and fragment substitution.

Example:
    >>> query, args = query_args(
    ...     "INSERT INTO weather_reports ($[location, report]) VALUES ($[..])",
    ...     Args={"location": "sweden", "report": "sunny"},
    ... )
    >>> query
    'INSERT INTO weather_reports (location, report) VALUES ($1, $2)'
    >>> args
    ['sweden', 'sunny']
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pg_named_args.cache import get_scan_cache
from pg_named_args.config import NamedArgsConfig, get_config
from pg_named_args.diagnostics import DEFAULT_SOURCE, Diagnostic, Template
from pg_named_args.exceptions import TemplateError
from pg_named_args.resolver import Record, resolve, substitute_fragments
from pg_named_args.scanner import ScanResult, scan
from pg_named_args.utils.logging import get_logger, log_with_context, template_context

__all__ = ("PreparedQuery", "prepare", "query_args")

logger = get_logger("pg_named_args.query")


@dataclass(frozen=True)
class PreparedQuery:
    """A rewritten query with its positional arguments.

    Attributes:
        query: Query text with ``$1..$N`` markers and fragments filled in.
        args: Positional arguments; ``args[i - 1]`` belongs to ``$i``.
        names: Parameter names in positional order.
        fragments: Fragment names, one per substituted hole.
        diagnostics: Every problem found in the template and the records.
        source: Label of the template.
    """

    query: str
    args: "tuple[Any, ...]" = ()
    names: "tuple[str, ...]" = ()
    fragments: "tuple[str, ...]" = ()
    diagnostics: "tuple[Diagnostic, ...]" = field(default=())
    source: str = DEFAULT_SOURCE

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def raise_for_diagnostics(self, sql: Optional[str] = None) -> None:
        """Raise :class:`TemplateError` listing every diagnostic, if there are any."""
        if self.diagnostics:
            raise TemplateError(self.diagnostics, sql=sql)

    def as_tuple(self) -> "tuple[str, list[Any]]":
        return self.query, list(self.args)


def _scan(template: Template, config: NamedArgsConfig) -> ScanResult:
    if not config.enable_caching:
        return scan(template)
    cache = get_scan_cache()
    if cache.max_size != config.max_cache_size:
        cache.resize(config.max_cache_size)
    return cache.scan(template)


def _collect_records(records: "tuple[Record, ...]", named_records: "dict[str, Any]") -> "list[Record]":
    collected = []
    for record in records:
        if not isinstance(record, Record):
            msg = f"positional records must be Record instances, got {type(record).__name__!r}"
            raise TypeError(msg)
        collected.append(record)
    collected.extend(Record(name, value) for name, value in named_records.items())
    return collected


def prepare(
    template: Union[str, Template],
    *records: Record,
    config: Optional[NamedArgsConfig] = None,
    **named_records: Any,
) -> PreparedQuery:
    """Rewrite ``template`` and bind its parameters without raising on diagnostics.

    Records can be given as :class:`~pg_named_args.resolver.Record` instances
    or as keyword arguments named after their role, e.g.
    ``prepare(sql, Args={"id": 1}, Sql={"table": fragment("users")})``.

    Args:
        template: Template text or :class:`~pg_named_args.diagnostics.Template`.
        *records: Binding records.
        config: Settings to use instead of the process-wide configuration.
        **named_records: Binding records keyed by role name.

    Returns:
        A :class:`PreparedQuery`; inspect ``diagnostics`` before executing it.
        ``args`` is empty when a parameter value is missing, so it never
        holds a list that is out of step with ``$1..$N``.
    """
    if isinstance(template, str):
        template = Template(template)
    config = config or get_config()

    with template_context(template.source):
        scanned = _scan(template, config)
        resolved = resolve(
            scanned.names,
            scanned.fragments,
            *_collect_records(records, named_records),
            allow_extra_fields=config.allow_extra_fields,
            source=template.source,
        )
        query = substitute_fragments(scanned.template, len(scanned.fragments), resolved.fragments)

        diagnostics = scanned.diagnostics + resolved.diagnostics
        if diagnostics:
            log_with_context(
                logger,
                logging.WARNING,
                "Template %s produced %d diagnostics",
                template.source,
                len(diagnostics),
                parameters=len(scanned.names),
                fragments=len(scanned.fragments),
                diagnostics=[diagnostic.describe() for diagnostic in diagnostics],
            )

    # a skipped field would shift every later value onto the wrong marker
    args = resolved.args if len(resolved.args) == len(scanned.names) else ()
    return PreparedQuery(
        query=query,
        args=args,
        names=scanned.names,
        fragments=scanned.fragments,
        diagnostics=diagnostics,
        source=template.source,
    )


def query_args(
    template: Union[str, Template],
    *records: Record,
    config: Optional[NamedArgsConfig] = None,
    **named_records: Any,
) -> "tuple[str, list[Any]]":
    """Rewrite ``template`` into a positional query and its argument list.

    The result can be passed straight to a driver using ``$1`` markers, e.g.
    ``await connection.fetch(query, *args)`` with asyncpg.

    Raises:
        TemplateError: If the template or the records contain any mistake.
            All diagnostics are attached to the exception.

    Returns:
        ``(query, args)``.
    """
    prepared = prepare(template, *records, config=config, **named_records)
    prepared.raise_for_diagnostics(sql=template.text if isinstance(template, Template) else template)
    return prepared.as_tuple()
