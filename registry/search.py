"""Text search over the devcontainer index."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from pydantic import BaseModel

from registry.index import DevcontainerIndex
from registry.models import Collection, Feature, Template


class CollectionCategory(str, Enum):
    """Which section of the index to search."""

    TEMPLATES = "templates"
    FEATURES = "features"

    @property
    def label(self) -> str:
        return "template" if self is CollectionCategory.TEMPLATES else "feature"


class SearchField(str, Enum):
    """Entry fields a search may match against."""

    ID = "id"
    NAME = "name"
    DESCRIPTION = "description"
    KEYWORDS = "keywords"


DEFAULT_SEARCH_FIELDS = (SearchField.ID, SearchField.NAME, SearchField.DESCRIPTION)


class SearchResult(BaseModel):
    """A feature or template matched by a search."""

    collection: CollectionCategory
    id: str
    version: str
    name: str
    description: str | None = None
    keywords: list[str] | None = None

    @classmethod
    def from_entry(cls, entry: Feature | Template) -> SearchResult:
        category = (
            CollectionCategory.FEATURES
            if isinstance(entry, Feature)
            else CollectionCategory.TEMPLATES
        )
        return cls(
            collection=category,
            id=entry.id,
            version=entry.version,
            name=entry.name,
            description=entry.description,
            keywords=entry.keywords,
        )

    @property
    def summary(self) -> str:
        """First line of the description."""
        if not self.description:
            return ""
        return self.description.splitlines()[0] if self.description.strip() else ""


def _lowercase_contains(target: str | None, value: str) -> bool:
    return target is not None and value.lower() in target.lower()


def _matches(
    entry: Feature | Template,
    value: str,
    field: SearchField,
    exact_identity: bool,
) -> bool:
    if field is SearchField.ID:
        return entry.id == value if exact_identity else _lowercase_contains(entry.id, value)
    if field is SearchField.NAME:
        return entry.name == value if exact_identity else _lowercase_contains(entry.name, value)
    if field is SearchField.DESCRIPTION:
        return _lowercase_contains(entry.description, value)
    return entry.keywords is not None and value in entry.keywords


def search_index(
    index: DevcontainerIndex,
    value: str,
    category: CollectionCategory = CollectionCategory.TEMPLATES,
    fields: Iterable[SearchField] | None = None,
    include_deprecated: bool = False,
) -> list[SearchResult]:
    """Search features or templates of an index.

    Features match `id` and `name` exactly, templates by case-insensitive
    substring. `description` is a case-insensitive substring match and
    `keywords` an exact membership test. Each entry is reported once.

    Args:
        index: Index to search.
        value: Text to match.
        category: Search templates or features.
        fields: Fields to match (default: id, name, description).
        include_deprecated: Include deprecated entries.

    Returns:
        Matching entries in index order.
    """
    search_fields = tuple(fields) if fields else DEFAULT_SEARCH_FIELDS

    entries: Iterable[Feature | Template]
    if category is CollectionCategory.FEATURES:
        entries = index.iter_features(include_deprecated)
        exact_identity = True
    else:
        entries = index.iter_templates(include_deprecated)
        exact_identity = False

    return [
        SearchResult.from_entry(entry)
        for entry in entries
        if any(_matches(entry, value, field, exact_identity) for field in search_fields)
    ]


def collection_entries(collection: Collection) -> list[SearchResult]:
    """Features then templates of a collection."""
    return [SearchResult.from_entry(f) for f in collection.features] + [
        SearchResult.from_entry(t) for t in collection.templates
    ]
