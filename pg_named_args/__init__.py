"""pg-named-args: named parameters for PostgreSQL queries."""

from pg_named_args import cache, config, diagnostics, exceptions, fragments, query, resolver, scanner, utils
from pg_named_args.__metadata__ import __version__
from pg_named_args.config import NamedArgsConfig
from pg_named_args.diagnostics import Diagnostic, Severity, Template
from pg_named_args.exceptions import FragmentError, ImproperConfigurationError, NamedArgsError, TemplateError
from pg_named_args.fragments import Fragment, fragment
from pg_named_args.query import PreparedQuery, prepare, query_args
from pg_named_args.resolver import Record, ResolveResult, Role, resolve
from pg_named_args.scanner import ScanResult, TemplateScanner, scan

__all__ = (
    "Diagnostic",
    "Fragment",
    "FragmentError",
    "ImproperConfigurationError",
    "NamedArgsConfig",
    "NamedArgsError",
    "PreparedQuery",
    "Record",
    "ResolveResult",
    "Role",
    "ScanResult",
    "Severity",
    "Template",
    "TemplateError",
    "TemplateScanner",
    "__version__",
    "cache",
    "config",
    "diagnostics",
    "exceptions",
    "fragment",
    "fragments",
    "prepare",
    "query",
    "query_args",
    "resolve",
    "resolver",
    "scan",
    "scanner",
    "utils",
)
