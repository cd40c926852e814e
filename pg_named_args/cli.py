from pathlib import Path
from typing import TYPE_CHECKING, Optional, TextIO

import rich_click as click
from rich import get_console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from pg_named_args.utils.logging import LOG_FORMATS, LOG_LEVELS, configure_logging, template_context

if TYPE_CHECKING:
    from click import Group

    from pg_named_args.scanner import ScanResult

__all__ = ("add_template_commands", "get_pg_named_args_group", "main")


def get_pg_named_args_group() -> "Group":
    """Get the pg-named-args CLI group.

    Returns:
        The pg-named-args CLI group.
    """

    @click.group(name="pg-named-args")
    @click.option(
        "--log-level",
        help="Logging level for the pg_named_args logger.",
        type=click.Choice(LOG_LEVELS, case_sensitive=False),
        default=None,
    )
    @click.option(
        "--log-format",
        help="Log line format.",
        type=click.Choice(LOG_FORMATS),
        default=None,
    )
    def pg_named_args_group(log_level: Optional[str], log_format: Optional[str]) -> None:
        """Rewrite and check query templates with named parameters."""
        from pg_named_args.config import get_config

        config = get_config()
        configure_logging(level=log_level or config.log_level, format_style=log_format or config.log_format)

    return add_template_commands(pg_named_args_group)


def _display_template(result: "ScanResult") -> str:
    """Scanned template with fragment holes shown as their ``${name}`` markers."""
    from pg_named_args.resolver import substitute_fragments

    markers = [f"${{{name}}}" for name in result.fragments]
    return substitute_fragments(result.template, len(result.fragments), markers)


def _location(text: str, position: Optional[int]) -> str:
    from pg_named_args.diagnostics import Template

    if position is None:
        return ""
    line, column = Template(text).line_and_column(position)
    return f"{line}:{column}"


def add_template_commands(group: "Group") -> "Group":
    """Add template commands to the given group.

    Args:
        group: The group to add the commands to.

    Returns:
        The group with the template commands added.
    """
    from pg_named_args._serialization import encode_json
    from pg_named_args.diagnostics import Template
    from pg_named_args.scanner import scan

    console = get_console()

    @group.command(name="rewrite", help="Rewrite a template into positional form.")
    @click.argument("template_file", type=click.File("r"), default="-")
    @click.option(
        "--format",
        "output_format",
        help="Output format.",
        type=click.Choice(["text", "json"]),
        default="text",
        show_default=True,
    )
    @click.pass_context
    def rewrite(  # pyright: ignore[reportUnusedFunction]
        ctx: "click.Context", template_file: TextIO, output_format: str
    ) -> None:
        """Print the rewritten template and its numbered parameters."""
        text = template_file.read()
        source = str(getattr(template_file, "name", "<stdin>"))
        with template_context(source):
            result = scan(Template(text, source=source))

        if output_format == "json":
            click.echo(
                encode_json(
                    {
                        "source": result.source,
                        "query": _display_template(result),
                        "names": list(result.names),
                        "fragments": list(result.fragments),
                        "diagnostics": [
                            {
                                "message": diagnostic.message,
                                "severity": diagnostic.severity.value,
                                "position": diagnostic.position,
                            }
                            for diagnostic in result.diagnostics
                        ],
                    }
                )
            )
        else:
            console.rule(f"[yellow]{escape(result.source)}[/]", align="left")
            console.print(Syntax(_display_template(result), "sql", word_wrap=True))
            if result.names:
                table = Table("Marker", "Parameter")
                for index, name in enumerate(result.names, start=1):
                    table.add_row(f"${index}", name)
                console.print(table)
            if result.fragments:
                console.print(f"Fragments: {', '.join(result.fragments)}")
            for diagnostic in result.diagnostics:
                console.print(f"[red]{_location(text, diagnostic.position)} {escape(diagnostic.message)}[/]")

        if result.diagnostics:
            ctx.exit(1)

    @group.command(name="check", help="Check templates for marker mistakes.")
    @click.argument(
        "files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path)
    )
    @click.pass_context
    def check(ctx: "click.Context", files: "tuple[Path, ...]") -> None:  # pyright: ignore[reportUnusedFunction]
        """Scan every file and report its diagnostics."""
        failed = 0
        for path in files:
            text = path.read_text(encoding="utf-8")
            with template_context(str(path)):
                result = scan(Template(text, source=str(path)))
            if result.ok:
                console.print(f"[green]ok[/] {escape(str(path))} ({len(result.names)} parameters)")
                continue
            failed += 1
            for diagnostic in result.diagnostics:
                location = _location(text, diagnostic.position)
                console.print(f"[red]{escape(str(path))}:{location}: {escape(diagnostic.message)}[/]")

        if failed:
            console.print(f"[red]{failed} of {len(files)} templates have errors[/]")
            ctx.exit(1)

    return group


def main() -> None:
    """Console script entry point."""
    get_pg_named_args_group()()
