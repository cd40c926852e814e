"""Metadata for the project."""

from importlib.metadata import PackageNotFoundError, metadata, version

__all__ = ("__project__", "__version__")

try:
    __version__ = version("pg-named-args")
    __project__ = metadata("pg-named-args")["Name"]
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
    __project__ = "pg-named-args"
finally:
    del version, PackageNotFoundError, metadata
