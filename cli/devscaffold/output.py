"""Rich console output utilities for the devscaffold CLI."""

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from registry.models import (
    BooleanOption,
    Collection,
    EnumOption,
    Feature,
    Template,
    format_lifecycle_hook,
)
from registry.search import SearchResult, collection_entries

console = Console()
error_console = Console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {message}")


def print_json(data: Any) -> None:
    """Print formatted JSON."""
    console.print_json(json.dumps(data, indent=2, default=str))


def print_key_value(key: str, value: Any, key_style: str = "bold") -> None:
    """Print a key-value pair."""
    console.print(f"[{key_style}]{key}:[/{key_style}] {value}")


def print_collections(collections: tuple[Collection, ...]) -> None:
    """Print an overview of every collection."""
    if not collections:
        print_info("No collections found.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("OCI Reference", style="cyan")
    table.add_column("Features", justify="right")
    table.add_column("Templates", justify="right")

    for collection in collections:
        table.add_row(
            collection.source_information.name,
            collection.oci_reference,
            str(len(collection.features)),
            str(len(collection.templates)),
        )

    console.print(table)


def print_collection_detail(collection: Collection) -> None:
    """Print a collection's source information and its entries."""
    source = collection.source_information
    print_key_value("Name", source.name)
    print_key_value("Maintainer", source.maintainer)
    print_key_value("Contact", source.contact)
    print_key_value("Repository", source.repository)
    print_key_value("OCI Reference", source.oci_reference)

    table = Table(show_header=True, header_style="bold")
    table.add_column("", justify="right")
    table.add_column("Type")
    table.add_column("OCI Reference", style="cyan")
    table.add_column("Name", max_width=40)
    table.add_column("Description", max_width=75)

    for i, result in enumerate(collection_entries(collection), start=1):
        table.add_row(
            str(i),
            result.collection.label,
            result.id.replace(collection.oci_reference, "~"),
            result.name,
            result.summary,
        )

    console.print(table)


def print_search_results(results: list[SearchResult]) -> None:
    """Print search results as a table."""
    if not results:
        print_info("No results found")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Version")
    table.add_column("Name")

    for result in results:
        table.add_row(result.id, result.version, result.name)

    console.print(table)


def _option_table(entry: Feature | Template) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Option", style="cyan")
    table.add_column("Type")
    table.add_column("Default")
    table.add_column("Values")
    table.add_column("Description")

    for name, option in (entry.options or {}).items():
        if isinstance(option, BooleanOption):
            kind, values = "boolean", "true, false"
        elif isinstance(option, EnumOption):
            kind, values = "enum", ", ".join(option.enum)
        else:
            kind, values = "string", ", ".join(option.proposals or [])
        table.add_row(name, kind, option.configured_default(), values, option.description or "")

    return table


def print_entry_detail(entry: Feature | Template) -> None:
    """Print a feature or template in detail."""
    print_key_value("ID", entry.id)
    print_key_value("Version", entry.version)
    print_key_value("Name", entry.name)
    if entry.description:
        print_key_value("Description", entry.description)
    if entry.documentation_url:
        print_key_value("Documentation", entry.documentation_url)
    if entry.keywords:
        print_key_value("Keywords", ", ".join(entry.keywords))

    if isinstance(entry, Feature):
        print_key_value("Merge key", entry.entry_key)
        if entry.installs_after:
            print_key_value("Installs after", ", ".join(entry.installs_after))
        if entry.container_env:
            print_key_value(
                "Container env", ", ".join(f"{k}={v}" for k, v in entry.container_env.items())
            )
        for mount in entry.mounts or []:
            print_key_value("Mount", mount)
        for label, hook in (
            ("onCreateCommand", entry.on_create_command),
            ("updateContentCommand", entry.update_content_command),
            ("postCreateCommand", entry.post_create_command),
            ("postStartCommand", entry.post_start_command),
            ("postAttachCommand", entry.post_attach_command),
        ):
            if hook is not None:
                print_key_value(label, format_lifecycle_hook(hook))
        if entry.customizations and entry.customizations.vscode_extensions():
            print_key_value("VS Code extensions", ", ".join(entry.customizations.vscode_extensions()))
        if entry.is_deprecated:
            print_warning("This feature is deprecated")
    else:
        if entry.type:
            print_key_value("Type", entry.type.value)
        if entry.platforms:
            print_key_value("Platforms", ", ".join(entry.platforms))

    if entry.options:
        console.print("\n[bold]Options:[/bold]")
        console.print(_option_table(entry))
