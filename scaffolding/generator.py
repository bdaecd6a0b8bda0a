"""Devcontainer generator for `devscaffold init`."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Protocol

from registry.index import DevcontainerIndex
from registry.models import DevOption, Feature, Template
from scaffolding.archive import read_feature_manifest, read_template_manifest
from scaffolding.features import FeatureEntryBuilder
from scaffolding.materializer import TemplateMaterializer
from scaffolding.options import OptionPrompter, ProposalsCompleter, default_context, prompt_context
from scaffolding.start_point import create_empty_start_point

logger = logging.getLogger(__name__)


class ArtifactFetcher(Protocol):
    """Anything that can pull the tar archive behind an OCI reference."""

    def pull_archive_bytes(self, reference: str, tag_name: str | None = None) -> bytes: ...


class StartPoint(str, Enum):
    """Where an interactive `init` begins."""

    EXISTING = "existing"
    ENTER = "enter"
    EMPTY = "empty"

    @property
    def label(self) -> str:
        return {
            StartPoint.EXISTING: "Pick existing template",
            StartPoint.ENTER: "Enter known template OCI reference",
            StartPoint.EMPTY: "Start from scratch",
        }[self]


class FeatureCompleter(ProposalsCompleter):
    """Suggests index feature ids containing the typed text."""

    def __init__(self, index: DevcontainerIndex, include_deprecated: bool = False):
        super().__init__("", [f.id for f in index.iter_features(include_deprecated)])

    def suggestions(self, text: str) -> list[str]:
        return [c for c in self.candidates if text in c]


def resolve_feature(
    index: DevcontainerIndex,
    feature_id: str,
    fetcher: ArtifactFetcher,
    tag_name: str = "latest",
) -> Feature:
    """Look up a feature in the index, else pull its manifest from the registry.

    Args:
        index: Parsed index.
        feature_id: OCI reference of the feature, without tag.
        fetcher: Archive source used when the index has no entry.
        tag_name: Tag to pull.

    Returns:
        The feature declaration.
    """
    feature = index.get_feature(feature_id)
    if feature is not None:
        return feature

    logger.info("Feature %s not in index, pulling %s", feature_id, tag_name)
    archive_bytes = fetcher.pull_archive_bytes(feature_id, tag_name)
    return read_feature_manifest(archive_bytes, reference_id=feature_id)


class DevcontainerGenerator:
    """Builds a devcontainer configuration from a template archive.

    Holds:
    - The template archive bytes
    - The template declaration, when known
    - The resolved template options
    - The features to merge into devcontainer.json
    """

    def __init__(self, archive_bytes: bytes, config: Template | None = None):
        """Initialize the generator.

        Args:
            archive_bytes: Uncompressed tar stream of the template.
            config: Template declaration, usually from the index.
        """
        self.archive_bytes = archive_bytes
        self.config = config
        self.context: dict[str, str] = {}
        self.features = FeatureEntryBuilder()
        self.unresolved: list[str] = []

    @classmethod
    def from_registry(
        cls,
        fetcher: ArtifactFetcher,
        template_id: str,
        tag_name: str = "latest",
        config: Template | None = None,
    ) -> DevcontainerGenerator:
        """Pull a template archive."""
        logger.info("Pulling template %s:%s", template_id, tag_name)
        return cls(fetcher.pull_archive_bytes(template_id, tag_name), config)

    @classmethod
    def from_empty_start_point(cls) -> DevcontainerGenerator:
        archive_bytes, config = create_empty_start_point()
        return cls(archive_bytes, config)

    def replace_config(self) -> None:
        """Read the template declaration from the archive itself.

        The index only describes the latest version of a template, so a
        pinned tag or a template missing from the index needs this.
        """
        self.config = read_template_manifest(self.archive_bytes)

    @property
    def options(self) -> dict[str, DevOption] | None:
        return self.config.options if self.config else None

    def use_prompt_values(self, prompter: OptionPrompter) -> None:
        self.context.clear()
        self.context.update(prompt_context(self.options, prompter))

    def use_default_values(self) -> None:
        self.context.clear()
        self.context.update(default_context(self.options))

    def add_feature(self, feature: Feature, prompter: OptionPrompter | None = None) -> None:
        """Add a feature, prompting for its options when a prompter is given."""
        if prompter is None:
            self.features.use_default_values(feature)
        else:
            self.features.use_prompt_values(feature, prompter)

    def generate(
        self,
        workspace: Path,
        attempt_single_file: bool = False,
        remove_comments: bool = False,
    ) -> list[Path]:
        """Write the template into `workspace`.

        Returns:
            Paths of the files written.
        """
        materializer = TemplateMaterializer(
            self.archive_bytes, self.context, self.features, self.config
        )
        written = materializer.materialize(
            workspace,
            attempt_single_file=attempt_single_file,
            remove_comments=remove_comments,
        )
        self.unresolved = list(materializer.unresolved)
        return written
