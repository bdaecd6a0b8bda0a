"""Template materialization.

Walks a template archive, substitutes `${templateOption:NAME}` placeholders
and writes the result into a workspace. The primary configuration file is
special-cased: it may be moved to `.devcontainer.json` (single-file mode)
and have accumulated features merged into it.

Writes are not transactional. If an entry fails, files written before it
stay on disk.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path, PurePosixPath
from typing import Any, Mapping

import json5

from registry.models import Template, TemplateType
from scaffolding.archive import MalformedArchiveError, iter_members, read_member
from scaffolding.features import FeatureEntryBuilder

logger = logging.getLogger(__name__)

# Names may be any UTF-8 word characters; bytes \x80-\xff admit the
# multi-byte sequences, which NAME_RE then validates once decoded.
PLACEHOLDER_RE = re.compile(rb"\$\{templateOption:\s*(?P<name>[\w\x80-\xff]+)\s*\}")
NAME_RE = re.compile(r"\w+")

# Template metadata that never lands in the workspace.
TEMPLATE_SKIP = frozenset({"NOTES.md", "README.md", "devcontainer-template.json"})

SINGLE_FILE_NAME = ".devcontainer.json"

# Most image templates ship exactly four files: devcontainer.json,
# devcontainer-template.json, NOTES.md and README.md.
SINGLE_FILE_MAX_FILE_COUNT = 4


class MalformedConfigurationError(Exception):
    """Raised when devcontainer.json cannot be parsed for a feature merge."""

    pass


def substitute_placeholders(
    content: bytes,
    context: Mapping[str, str],
    unresolved: list[str] | None = None,
) -> bytes:
    """Replace `${templateOption:NAME}` tokens in raw bytes.

    Names missing from `context` become the empty string and are logged
    (and appended to `unresolved` when given).
    """

    def replace(match: re.Match[bytes]) -> bytes:
        try:
            name = match.group("name").decode("utf-8")
        except UnicodeDecodeError:
            return match.group(0)
        if not NAME_RE.fullmatch(name):
            return match.group(0)
        value = context.get(name)
        if value is None:
            logger.warning("No value provided for ${templateOption:%s}", name)
            if unresolved is not None:
                unresolved.append(name)
            return b""
        return value.encode("utf-8")

    return PLACEHOLDER_RE.sub(replace, content)


def dump_tab_indented(value: Any) -> str:
    """Serialize JSON pretty-printed with tab indentation."""
    return json.dumps(value, indent="\t", ensure_ascii=False)


def is_single_file_eligible(template: Template | None) -> bool:
    """Whether a template's configuration can live in `.devcontainer.json`."""
    if template is None or template.type is None:
        return False

    if template.type is TemplateType.DOCKER_COMPOSE:
        logger.warning(
            "Skipping --attempt-single-file as the selected template includes a docker-compose.yml"
        )
        return False

    if template.type is TemplateType.DOCKERFILE:
        logger.warning(
            "Skipping --attempt-single-file as the selected template includes a Dockerfile"
        )
        return False

    if template.file_count is not None and template.file_count > SINGLE_FILE_MAX_FILE_COUNT:
        logger.warning(
            "Skipping --attempt-single-file as the selected template has %d files",
            template.file_count,
        )
        return False

    return True


def is_configuration_path(relative: PurePosixPath) -> bool:
    parts = relative.parts
    return parts[-2:] == (".devcontainer", "devcontainer.json") or (
        bool(parts) and parts[-1] == SINGLE_FILE_NAME
    )


def merge_features(content: bytes, features: FeatureEntryBuilder) -> str:
    """Merge accumulated features into a devcontainer.json document.

    The document may contain comments; they are dropped by the rewrite.

    Raises:
        MalformedConfigurationError: If the document is not a JSON object.
    """
    try:
        document = json5.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedConfigurationError(f"Format of devcontainer.json is invalid: {e}") from e

    if not isinstance(document, dict):
        raise MalformedConfigurationError("Format of devcontainer.json is invalid: not an object")

    if len(features):
        existing = document.get("features")
        if isinstance(existing, dict):
            existing.update(features.as_value())
        else:
            document["features"] = features.as_value()

    return dump_tab_indented(document)


class TemplateMaterializer:
    """Writes a template archive into a workspace.

    Example:
        >>> materializer = TemplateMaterializer(archive_bytes, {"imageVariant": "bookworm"})
        >>> written = materializer.materialize(Path("."))
    """

    def __init__(
        self,
        archive_bytes: bytes,
        context: Mapping[str, str],
        features: FeatureEntryBuilder | None = None,
        template: Template | None = None,
    ):
        """Initialize the materializer.

        Args:
            archive_bytes: Uncompressed tar stream of the template.
            context: Resolved template option values.
            features: Accumulated feature entries to merge.
            template: Template declaration, used for single-file eligibility.
        """
        self.archive_bytes = archive_bytes
        self.context = context
        self.features = features or FeatureEntryBuilder()
        self.template = template
        self.unresolved: list[str] = []

    def materialize(
        self,
        workspace: Path,
        attempt_single_file: bool = False,
        remove_comments: bool = False,
    ) -> list[Path]:
        """Write every archive entry into `workspace`.

        Args:
            workspace: Target directory.
            attempt_single_file: Write `.devcontainer.json` when eligible.
            remove_comments: Rewrite devcontainer.json even without features.

        Returns:
            Paths of the files written.

        Raises:
            MalformedArchiveError: If the archive is corrupt or unsafe.
            MalformedConfigurationError: If devcontainer.json cannot be merged.
            OSError: If the workspace cannot be written.
        """
        written: list[Path] = []
        self.unresolved = []

        for tar, member in iter_members(self.archive_bytes):
            relative = PurePosixPath(member.name)

            if relative.is_absolute() or ".." in relative.parts:
                raise MalformedArchiveError(f"Unsafe path in archive: {member.name}")

            if relative.name in TEMPLATE_SKIP:
                logger.debug("Skipping template metadata %s", member.name)
                continue

            target = workspace.joinpath(*relative.parts)

            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
            elif member.isreg():
                content = substitute_placeholders(
                    read_member(tar, member), self.context, self.unresolved
                )
                if is_configuration_path(relative):
                    target = self._write_configuration(
                        workspace, target, content, attempt_single_file, remove_comments
                    )
                else:
                    self._write(target, content)
                written.append(target)
            else:
                logger.debug("Ignoring non-regular archive entry %s", member.name)

        return written

    def _write_configuration(
        self,
        workspace: Path,
        target: Path,
        content: bytes,
        attempt_single_file: bool,
        remove_comments: bool,
    ) -> Path:
        if attempt_single_file and is_single_file_eligible(self.template):
            target = workspace / SINGLE_FILE_NAME

        if len(self.features) or remove_comments:
            content = merge_features(content, self.features).encode("utf-8")

        self._write(target, content)
        return target

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.info("Wrote %s", target)
