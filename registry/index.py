"""Devcontainer index store.

Parses the aggregated community catalog into a DevcontainerIndex. The
catalog is maintained by many third parties, so decoding is layered:

1. The document must be an object with a `collections` array (fatal).
2. A collection whose `sourceInformation` does not decode is skipped.
3. Each feature or template is decoded on its own; a bad entry is
   skipped without affecting its siblings or its collection.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, TypeVar

from pydantic import BaseModel, ValidationError

from registry.models import Collection, Feature, SourceInformation, Template

logger = logging.getLogger(__name__)

INDEX_FILENAME = "devcontainer-index.json"

EntryT = TypeVar("EntryT", Feature, Template)


class IndexFormatError(Exception):
    """Raised when the index document does not have the expected shape."""

    pass


class SchemaViolation(Exception):
    """Raised when a single index entry fails validation."""

    pass


@dataclass
class ParseStats:
    """Counts of loaded and skipped index entries."""

    collections: int = 0
    features: int = 0
    templates: int = 0
    skipped_collections: int = 0
    skipped_features: int = 0
    skipped_templates: int = 0

    @property
    def skipped(self) -> int:
        return self.skipped_collections + self.skipped_features + self.skipped_templates


def _decode(model: type[BaseModel], value: Any) -> Any:
    try:
        return model.model_validate(value)
    except ValidationError as e:
        raise SchemaViolation(f"{model.__name__}: {e.error_count()} validation error(s)") from e


def _decode_source_information(value: Any) -> SourceInformation:
    if not isinstance(value, dict) or "sourceInformation" not in value:
        raise SchemaViolation("Missing sourceInformation")
    return _decode(SourceInformation, value["sourceInformation"])


def _decode_entries(
    model: type[EntryT],
    values: list[Any],
    oci_reference: str,
) -> tuple[list[EntryT], int]:
    """Decode each entry independently, returning (entries, skipped count)."""
    entries: list[EntryT] = []
    skipped = 0
    label = model.__name__.lower()

    for value in values:
        try:
            entries.append(_decode(model, value))
        except SchemaViolation as e:
            skipped += 1
            logger.warning(
                "Skipping %s due to parsing error. Collection.oci_ref = %s (%s)",
                label,
                oci_reference,
                e,
            )

    return entries, skipped


class DevcontainerIndex:
    """Immutable catalog of collections, features and templates.

    Example:
        >>> index = DevcontainerIndex.from_file(path)
        >>> template = index.get_template("ghcr.io/devcontainers/templates/rust")
        >>> [f.id for f in index.iter_features(include_deprecated=False)]
    """

    def __init__(
        self,
        collections: list[Collection] | tuple[Collection, ...] = (),
        stats: ParseStats | None = None,
    ):
        self._collections = tuple(collections)
        self.stats = stats or ParseStats(
            collections=len(self._collections),
            features=sum(len(c.features) for c in self._collections),
            templates=sum(len(c.templates) for c in self._collections),
        )

    @classmethod
    def parse(cls, raw: str | bytes) -> DevcontainerIndex:
        """Parse raw index JSON.

        Args:
            raw: The index document.

        Returns:
            Parsed index with malformed entries skipped.

        Raises:
            IndexFormatError: If the document is not JSON or has no
                `collections` array.
        """
        try:
            document = json.loads(raw)
        except ValueError as e:
            raise IndexFormatError(f"Index is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise IndexFormatError("Unexpected json shape: top level is not an object")

        raw_collections = document.get("collections")
        if not isinstance(raw_collections, list):
            raise IndexFormatError("Unexpected json shape: missing `collections` array")

        stats = ParseStats()
        collections: list[Collection] = []

        for value in raw_collections:
            collection = cls._parse_collection(value, stats)
            if collection is None:
                stats.skipped_collections += 1
                continue
            collections.append(collection)
            stats.features += len(collection.features)
            stats.templates += len(collection.templates)

        stats.collections = len(collections)
        logger.debug(
            "Loaded %d collections, %d features, %d templates (%d entries skipped)",
            stats.collections,
            stats.features,
            stats.templates,
            stats.skipped,
        )

        return cls(collections, stats)

    @staticmethod
    def _parse_collection(value: Any, stats: ParseStats) -> Collection | None:
        try:
            source_information = _decode_source_information(value)
        except SchemaViolation:
            logger.warning("Skipping collection due to parsing error of sourceInformation")
            return None

        oci_reference = source_information.oci_reference
        raw_features = value.get("features")
        if not isinstance(raw_features, list):
            logger.warning(
                "Skipping collection due to parse error. The `features` field is not an array. "
                "Collection.oci_ref = %s",
                oci_reference,
            )
            return None

        raw_templates = value.get("templates")
        if not isinstance(raw_templates, list):
            logger.warning(
                "Skipping collection due to parse error. The `templates` field is not an array. "
                "Collection.oci_ref = %s",
                oci_reference,
            )
            return None

        features, skipped_features = _decode_entries(Feature, raw_features, oci_reference)
        templates, skipped_templates = _decode_entries(Template, raw_templates, oci_reference)
        stats.skipped_features += skipped_features
        stats.skipped_templates += skipped_templates

        return Collection(
            source_information=source_information,
            features=features,
            templates=templates,
        )

    @classmethod
    def from_file(cls, path: Path | str) -> DevcontainerIndex:
        """Read and parse a persisted index file."""
        logger.debug("Reading devcontainer index from %s", path)
        return cls.parse(Path(path).read_bytes())

    @property
    def collections(self) -> tuple[Collection, ...]:
        return self._collections

    def get_collection(self, oci_reference: str) -> Collection | None:
        for collection in self._collections:
            if collection.oci_reference == oci_reference:
                return collection
        return None

    def iter_features(self, include_deprecated: bool = False) -> Iterator[Feature]:
        """Iterate features of every collection, filtered by each feature's flag."""
        for collection in self._collections:
            for feature in collection.features:
                if include_deprecated or not feature.is_deprecated:
                    yield feature

    def get_feature(self, feature_id: str) -> Feature | None:
        return next(
            (f for f in self.iter_features(include_deprecated=True) if f.id == feature_id),
            None,
        )

    def iter_templates(self, include_deprecated: bool = False) -> Iterator[Template]:
        """Iterate templates, filtering whole collections marked deprecated."""
        for collection in self._collections:
            if not include_deprecated and collection.is_deprecated:
                continue
            yield from collection.templates

    def get_template(self, template_id: str) -> Template | None:
        return next(
            (t for t in self.iter_templates(include_deprecated=True) if t.id == template_id),
            None,
        )

    def __len__(self) -> int:
        return len(self._collections)
