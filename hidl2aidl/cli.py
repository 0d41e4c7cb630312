"""Command-line interface for hidl2aidl."""

from __future__ import annotations

import json
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hidl2aidl import __version__
from hidl2aidl.convert import ConversionResult, convert_package
from hidl2aidl.errors import FatalInputError
from hidl2aidl.loader import SchemaRepository
from hidl2aidl.naming import canonical_fq_name
from hidl2aidl.replaced import ReplacedTypeRegistry


@click.group()
@click.version_option(__version__, prog_name="hidl2aidl")
def cli() -> None:
    """HIDL to AIDL conversion and translation code generator."""


def _run(schemas: str, fq_name: str, force: bool, replaced_types: str | None) -> ConversionResult:
    registry = ReplacedTypeRegistry.default()
    try:
        if replaced_types:
            registry.load(replaced_types)
        return convert_package(SchemaRepository(schemas), fq_name, force=force, registry=registry)
    except FatalInputError as e:
        Console(stderr=True).print(f"[bold red]error:[/bold red] {escape(str(e))}")
        sys.exit(1)


@cli.command()
@click.option(
    "--schemas", "-s", required=True, help="Directory holding the package release documents"
)
@click.option("--output", "-o", "output_path", required=True, help="Output directory")
@click.option(
    "--force", "-f", is_flag=True, default=False, help="Convert an older minor version"
)
@click.option("--replaced-types", default=None, help="JSON file with additional replaced types")
@click.argument("fq_name")
def convert(
    schemas: str, output_path: str, force: bool, replaced_types: str | None, fq_name: str
) -> None:
    """Convert the package FQ_NAME (e.g. android.hardware.foo@1.1) to AIDL."""
    result = _run(schemas, fq_name, force, replaced_types)
    written = result.write(output_path)

    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
    table.add_column("File", style="white")
    for path in written:
        table.add_row(str(path))
    console.print(table)

    count = len(result.notes)
    if count:
        console.print(
            f"[yellow]{count} note{'s' if count != 1 else ''}[/yellow] written to "
            f"{escape(str(written[-1]))}, review them before using the output."
        )
    else:
        console.print("[green]Converted without notes.[/green]")


@cli.command()
@click.option(
    "--schemas", "-s", required=True, help="Directory holding the package release documents"
)
@click.option(
    "--force", "-f", is_flag=True, default=False, help="Inspect an older minor version"
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.argument("fq_name")
def info(schemas: str, force: bool, output_json: bool, fq_name: str) -> None:
    """Show the merged field set of every compound type in FQ_NAME."""
    result = _run(schemas, fq_name, force, None)

    if output_json:
        _output_json(result)
    else:
        _output_plain(result)


def _output_json(result: ConversionResult) -> None:
    data: dict = {"package": str(result.fq_name), "types": {}, "notes": []}
    for named in result.types:
        entry: dict = {"aidl": canonical_fq_name(named.fq_name), "kind": named.keyword}
        schema = result.schemas.get(named.fq_name)
        if schema is not None:
            entry["fields"] = [
                {
                    "name": f.name,
                    "type": f.type.type_name(),
                    "version": str(f.origin),
                    "access": f.access,
                }
                for f in schema.fields
            ]
        data["types"][str(named.fq_name)] = entry
    data["notes"] = [{"kind": note.kind.value, "message": note.message} for note in result.notes]

    print(json.dumps(data, indent=2))


def _output_plain(result: ConversionResult) -> None:
    console = Console()

    for named in result.types:
        console.print(
            f"[bold cyan]{escape(str(named.fq_name))}[/bold cyan] "
            f"[dim]{named.keyword} -> {canonical_fq_name(named.fq_name)}[/dim]"
        )
        schema = result.schemas.get(named.fq_name)
        if schema is None:
            console.print()
            continue

        table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
        table.add_column("Field", style="white")
        table.add_column("Type", style="yellow")
        table.add_column("Version", style="green", justify="right")
        table.add_column("Access", style="dim")
        for field in schema.fields:
            table.add_row(
                field.name, escape(field.type.type_name()), str(field.origin), field.access
            )
        console.print(table)
        console.print()

    if len(result.notes):
        console.print("[bold cyan]Notes[/bold cyan]")
        for note in result.notes:
            console.print(f"[dim]{note.kind.value}[/dim] {escape(note.message)}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
