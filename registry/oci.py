"""OCI artifact references.

Parses `[registry/]repository[:tag][@digest]` the way container tooling
does: a first path component without a dot or port (other than
`localhost`) is a Docker Hub repository.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

DEFAULT_REGISTRY = "docker.io"
DEFAULT_TAG = "latest"

_TAG_RE = re.compile(r"^[\w][\w.-]{0,127}$")
_DIGEST_RE = re.compile(r"^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-fA-F0-9]{32,}$")


class InvalidReferenceError(ValueError):
    """Raised when an OCI reference cannot be parsed."""

    pass


@dataclass(frozen=True)
class OciReference:
    """A parsed OCI artifact reference."""

    registry: str
    repository: str
    tag: str | None = None
    digest: str | None = None

    @classmethod
    def parse(cls, text: str) -> OciReference:
        """Parse a reference string.

        Args:
            text: e.g. "ghcr.io/devcontainers/templates/rust:2".

        Returns:
            The parsed reference.

        Raises:
            InvalidReferenceError: If the reference is malformed.
        """
        name = text.strip()
        if not name:
            raise InvalidReferenceError("Empty OCI reference")

        digest = None
        if "@" in name:
            name, digest = name.split("@", 1)
            if not _DIGEST_RE.match(digest):
                raise InvalidReferenceError(f"Invalid digest in reference: {text}")

        tag = None
        last_slash = name.rfind("/")
        last_colon = name.rfind(":")
        if last_colon > last_slash:
            name, tag = name[:last_colon], name[last_colon + 1 :]
            if not _TAG_RE.match(tag):
                raise InvalidReferenceError(f"Invalid tag in reference: {text}")

        first, _, rest = name.partition("/")
        if rest and ("." in first or ":" in first or first == "localhost"):
            registry, repository = first, rest
        else:
            registry, repository = DEFAULT_REGISTRY, name

        if registry == DEFAULT_REGISTRY and "/" not in repository:
            repository = f"library/{repository}"

        if not repository or repository != repository.lower() or "//" in repository:
            raise InvalidReferenceError(f"Invalid repository in reference: {text}")

        return cls(registry=registry, repository=repository, tag=tag, digest=digest)

    @property
    def id(self) -> str:
        """Registry and repository, without tag or digest."""
        return f"{self.registry}/{self.repository}"

    @property
    def tag_name(self) -> str:
        return self.tag or DEFAULT_TAG

    @property
    def manifest_reference(self) -> str:
        """The tag or digest to request from the registry."""
        return self.digest or self.tag_name

    def with_tag(self, tag: str) -> OciReference:
        return replace(self, tag=tag, digest=None)

    def __str__(self) -> str:
        if self.digest:
            return f"{self.id}@{self.digest}"
        return f"{self.id}:{self.tag_name}"
