"""Index CLI commands for devscaffold.

Pull, browse, search, and inspect the devcontainer index.
"""

import logging
from enum import Enum
from typing import Optional

import typer

from cli.devscaffold.output import (
    print_collection_detail,
    print_collections,
    print_entry_detail,
    print_error,
    print_info,
    print_json,
    print_search_results,
    print_success,
)
from registry.client import RegistryClient, RegistryError
from registry.index import DevcontainerIndex, IndexFormatError
from registry.search import CollectionCategory, SearchField, search_index
from scaffolding.config import get_config

logger = logging.getLogger(__name__)

index_app = typer.Typer(
    name="index",
    help="Pull and browse the devcontainer index of features and templates.",
    no_args_is_help=True,
)


class CollectionChoice(str, Enum):
    """Index section for `search`; `t` and `f` are short aliases."""

    TEMPLATES = "templates"
    FEATURES = "features"
    T = "t"
    F = "f"

    @property
    def category(self) -> CollectionCategory:
        if self in (CollectionChoice.FEATURES, CollectionChoice.F):
            return CollectionCategory.FEATURES
        return CollectionCategory.TEMPLATES


class DisplayFormat(str, Enum):
    """Output format for search and inspect."""

    TABLE = "table"
    JSON = "json"


def get_registry_client() -> RegistryClient:
    """Get a registry client using the configured timeout."""
    return RegistryClient(timeout=get_config().registry.timeout)


def load_index() -> DevcontainerIndex:
    """Load the persisted index, exiting with a hint when it is missing."""
    path = get_config().index_path

    if not path.exists():
        print_error(f"Missing {path.name}")
        print_info("Run `devscaffold index pull`")
        raise typer.Exit(1)

    try:
        index = DevcontainerIndex.from_file(path)
    except (IndexFormatError, OSError) as e:
        print_error(f"Cannot read index {path}: {e}")
        raise typer.Exit(1)

    if index.stats.skipped:
        logger.info("Skipped %d malformed index entries", index.stats.skipped)
    return index


@index_app.command("pull")
def pull() -> None:
    """Download the latest index of features and templates.

    Example:
        devscaffold index pull
    """
    config = get_config()
    client = get_registry_client()

    try:
        size = client.pull_index(config.index_path, config.registry.index_reference)
    except RegistryError as e:
        print_error(f"Failed to pull index: {e}")
        raise typer.Exit(1)
    except OSError as e:
        print_error(f"Cannot write index: {e}")
        raise typer.Exit(1)

    print_success(f"Saved to {config.index_path} ({size} bytes)")


@index_app.command("list")
def list_collections(
    collection_id: Optional[str] = typer.Option(
        None,
        "--collection-id",
        "-C",
        help="Display a given collection, including features and templates",
    ),
) -> None:
    """Overview of collections.

    Examples:
        devscaffold index list
        devscaffold index list -C ghcr.io/devcontainers/features
    """
    index = load_index()

    if collection_id is None:
        print_collections(index.collections)
        return

    collection = index.get_collection(collection_id)
    if collection is None:
        print_error(f"No collection found by the given OCI Reference: {collection_id}")
        raise typer.Exit(1)

    print_collection_detail(collection)


@index_app.command("search")
def search(
    value: str = typer.Argument(..., help="The keyword(s) to match"),
    collection: CollectionChoice = typer.Option(
        CollectionChoice.TEMPLATES,
        "--collection",
        "-c",
        help="Match which section of the index",
    ),
    display_as: DisplayFormat = typer.Option(
        DisplayFormat.TABLE,
        "--display-as",
        "-d",
        help="Format for displaying the results",
    ),
    fields: Optional[list[SearchField]] = typer.Option(
        None,
        "--fields",
        "-f",
        help="Match only within the given fields (repeatable)",
    ),
    include_deprecated: bool = typer.Option(
        False,
        "--include-deprecated",
        help="Display deprecated results",
    ),
) -> None:
    """Text search the id, name and description of templates or features.

    Examples:
        devscaffold index search rust
        devscaffold index search node --collection features -f id
        devscaffold index search python --display-as json
    """
    index = load_index()
    results = search_index(
        index,
        value,
        category=collection.category,
        fields=fields or None,
        include_deprecated=include_deprecated,
    )

    if display_as is DisplayFormat.JSON:
        print_json([result.model_dump(mode="json") for result in results])
    else:
        print_search_results(results)


@index_app.command("inspect")
def inspect(
    entry_id: str = typer.Argument(..., metavar="OCI_REF", help="The id to inspect"),
    display_as: DisplayFormat = typer.Option(
        DisplayFormat.TABLE,
        "--display-as",
        "-d",
        help="Format for displaying the results",
    ),
) -> None:
    """Display details of a specific template or feature.

    Example:
        devscaffold index inspect ghcr.io/devcontainers/templates/rust
    """
    index = load_index()
    entry = index.get_template(entry_id) or index.get_feature(entry_id)

    if entry is None:
        print_error(f"No template or feature found with id: {entry_id}")
        raise typer.Exit(1)

    if display_as is DisplayFormat.JSON:
        print_json(entry.model_dump(mode="json", by_alias=True, exclude_none=True))
    else:
        print_entry_detail(entry)
