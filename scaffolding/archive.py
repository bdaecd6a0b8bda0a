"""Reading devcontainer package archives.

Templates and features are published as uncompressed tar streams that
carry a JSON manifest next to their files.
"""

from __future__ import annotations

import io
import json
import logging
import tarfile
from typing import Iterator

from pydantic import ValidationError

from registry.models import Feature, Template

logger = logging.getLogger(__name__)

TEMPLATE_MANIFEST = "devcontainer-template.json"
FEATURE_MANIFEST = "devcontainer-feature.json"


class ArchiveError(Exception):
    """Base class for archive errors."""

    pass


class MalformedArchiveError(ArchiveError):
    """Raised when an archive cannot be read."""

    pass


class ManifestNotFoundError(ArchiveError):
    """Raised when an archive does not contain the expected manifest."""

    pass


def iter_members(archive_bytes: bytes) -> Iterator[tuple[tarfile.TarFile, tarfile.TarInfo]]:
    """Yield (archive, member) pairs of an uncompressed tar stream.

    Raises:
        MalformedArchiveError: If the stream is not a valid tar archive.
    """
    try:
        with tarfile.open(fileobj=io.BytesIO(archive_bytes), mode="r:") as tar:
            while True:
                member = tar.next()
                if member is None:
                    break
                yield tar, member
    except tarfile.TarError as e:
        raise MalformedArchiveError(f"Invalid tar archive: {e}") from e


def read_member(tar: tarfile.TarFile, member: tarfile.TarInfo) -> bytes:
    """Read the full content of a regular file member."""
    try:
        handle = tar.extractfile(member)
        if handle is None:
            raise MalformedArchiveError(f"Cannot read {member.name}")
        with handle:
            data = handle.read()
    except tarfile.TarError as e:
        raise MalformedArchiveError(f"Cannot read {member.name}: {e}") from e
    if len(data) != member.size:
        raise MalformedArchiveError(f"Truncated entry: {member.name}")
    return data


def read_archive_member(archive_bytes: bytes, suffix: str) -> bytes:
    """Content of the first regular file whose path ends with `suffix`.

    Raises:
        ManifestNotFoundError: If no entry matches.
        MalformedArchiveError: If the archive is corrupt.
    """
    for tar, member in iter_members(archive_bytes):
        if member.isreg() and member.name.endswith(suffix):
            return read_member(tar, member)
    raise ManifestNotFoundError(f"No {suffix} found in archive")


def read_template_manifest(archive_bytes: bytes) -> Template:
    """Parse the devcontainer-template.json of a template archive."""
    data = read_archive_member(archive_bytes, TEMPLATE_MANIFEST)
    try:
        return Template.model_validate(json.loads(data))
    except (ValueError, ValidationError) as e:
        raise MalformedArchiveError(f"Invalid {TEMPLATE_MANIFEST}: {e}") from e


def read_feature_manifest(archive_bytes: bytes, reference_id: str | None = None) -> Feature:
    """Parse the devcontainer-feature.json of a feature archive.

    The published manifest carries a short id and no major version; those
    are filled in from `reference_id` and `version` so the feature can be
    keyed like an index entry.

    Args:
        archive_bytes: Feature tar archive.
        reference_id: OCI reference of the feature, without tag.

    Returns:
        The feature declaration.
    """
    data = read_archive_member(archive_bytes, FEATURE_MANIFEST)
    try:
        manifest = json.loads(data)
        if not isinstance(manifest, dict):
            raise ValueError("manifest is not an object")
        if reference_id:
            manifest["id"] = reference_id
        if "majorVersion" not in manifest and isinstance(manifest.get("version"), str):
            manifest["majorVersion"] = manifest["version"].split(".")[0]
        return Feature.model_validate(manifest)
    except (ValueError, ValidationError) as e:
        raise MalformedArchiveError(f"Invalid {FEATURE_MANIFEST}: {e}") from e
