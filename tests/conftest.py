"""Shared test fixtures for devscaffold."""

import io
import json
import tarfile
from pathlib import Path

import pytest

from registry.index import DevcontainerIndex
from registry.models import Feature, Template

FEATURES_REF = "ghcr.io/devcontainers/features"
TEMPLATES_REF = "ghcr.io/devcontainers/templates"


def build_tar(files: dict[str, bytes], directories: tuple[str, ...] = ()) -> bytes:
    """Build an uncompressed tar stream from in-memory files."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        for name in directories:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def template_data(**overrides) -> dict:
    data = {
        "id": f"{TEMPLATES_REF}/rust",
        "version": "3.0.0",
        "name": "Rust",
        "description": "Develop Rust based applications.\nIncludes rustup.",
        "type": "image",
        "fileCount": 4,
        "keywords": ["rust", "cargo"],
        "options": {
            "imageVariant": {
                "type": "string",
                "description": "Debian OS version:",
                "proposals": ["bookworm", "bullseye"],
                "default": "bookworm",
            }
        },
    }
    data.update(overrides)
    return data


def feature_data(**overrides) -> dict:
    data = {
        "id": f"{FEATURES_REF}/node",
        "version": "1.6.1",
        "majorVersion": "1",
        "name": "Node.js (via nvm), yarn and pnpm",
        "description": "Installs Node.js, nvm, yarn, pnpm, and needed dependencies.",
        "keywords": ["node", "javascript"],
        "options": {
            "version": {
                "type": "string",
                "proposals": ["lts", "latest", "none", "18", "16"],
                "default": "lts",
                "description": "Select or enter a Node.js version to install",
            },
            "installYarnUsingApt": {
                "type": "boolean",
                "default": True,
                "description": "Install yarn using apt instead of npm",
            },
            "nodeGypDependencies": {
                "type": "string",
                "enum": ["true", "false"],
                "default": "true",
            },
        },
    }
    data.update(overrides)
    return data


def source_information(oci_reference: str, maintainer: str = "Dev Container Spec Maintainers") -> dict:
    return {
        "name": oci_reference.rsplit("/", 1)[-1],
        "maintainer": maintainer,
        "contact": "https://github.com/devcontainers/spec/issues",
        "repository": f"https://github.com/{oci_reference.split('/', 1)[-1]}",
        "ociReference": oci_reference,
    }


@pytest.fixture
def index_document() -> dict:
    """A small index with one deprecated collection."""
    return {
        "collections": [
            {
                "sourceInformation": source_information(FEATURES_REF),
                "features": [
                    feature_data(),
                    feature_data(
                        id=f"{FEATURES_REF}/rust",
                        version="1.1.3",
                        majorVersion="1",
                        name="Rust",
                        description="Installs Rust, common Rust utilities.",
                        keywords=["rust"],
                        options={},
                        mounts=[{"source": "cargo", "target": "/usr/local/cargo", "type": "volume"}],
                        postCreateCommand={"toolchain": "rustup update"},
                    ),
                    feature_data(
                        id=f"{FEATURES_REF}/gradle",
                        name="Gradle (deprecated)",
                        deprecated=True,
                        options=None,
                    ),
                ],
                "templates": [],
            },
            {
                "sourceInformation": source_information(TEMPLATES_REF),
                "features": [],
                "templates": [
                    template_data(),
                    template_data(
                        id=f"{TEMPLATES_REF}/docker-in-docker",
                        name="Docker in Docker",
                        description="Access Docker from inside the container.",
                        type="dockerfile",
                        fileCount=6,
                        keywords=["docker"],
                    ),
                ],
            },
            {
                "sourceInformation": source_information(
                    "ghcr.io/microsoft/vscode-dev-containers",
                    maintainer="DEPRECATED: see devcontainers/templates",
                ),
                "features": [],
                "templates": [
                    template_data(
                        id="ghcr.io/microsoft/vscode-dev-containers/rust-legacy",
                        name="Rust (legacy)",
                    ),
                ],
            },
        ]
    }


@pytest.fixture
def index(index_document) -> DevcontainerIndex:
    return DevcontainerIndex.parse(json.dumps(index_document))


@pytest.fixture
def index_file(tmp_path: Path, index_document) -> Path:
    path = tmp_path / "data" / "devcontainer-index.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(index_document))
    return path


@pytest.fixture
def rust_template() -> Template:
    return Template.model_validate(template_data())


@pytest.fixture
def node_feature() -> Feature:
    return Feature.model_validate(feature_data())


@pytest.fixture
def template_archive() -> bytes:
    """An image template archive with a commented devcontainer.json."""
    devcontainer_json = b"""// For format details, see https://aka.ms/devcontainer.json.
{
  "name": "Rust",
  // Or use a Dockerfile or Docker Compose file.
  "image": "mcr.microsoft.com/devcontainers/rust:1-${templateOption:imageVariant}",
  "features": {
    "ghcr.io/devcontainers/features/common-utils:2": {}
  }
}
"""
    manifest = json.dumps(template_data()).encode()
    return build_tar(
        {
            ".devcontainer/devcontainer.json": devcontainer_json,
            "devcontainer-template.json": manifest,
            "NOTES.md": b"# Notes\n",
            "README.md": b"# Rust\n",
        },
        directories=(".devcontainer",),
    )


class FakeFetcher:
    """ArtifactFetcher serving archives from a dict."""

    def __init__(self, archives: dict[str, bytes]):
        self.archives = archives
        self.calls: list[tuple[str, str | None]] = []

    def pull_archive_bytes(self, reference: str, tag_name: str | None = None) -> bytes:
        from registry.client import RegistryError

        self.calls.append((reference, tag_name))
        if reference not in self.archives:
            raise RegistryError(f"Artifact not found: {reference}")
        return self.archives[reference]


class ScriptedPrompter:
    """OptionPrompter answering from queued responses.

    Answers are consumed in order; `None` means "accept the default".
    """

    def __init__(self, answers: list | None = None):
        self.answers = list(answers or [])
        self.asked: list[tuple[str, str]] = []

    def _next(self, default):
        if not self.answers:
            return default
        answer = self.answers.pop(0)
        return default if answer is None else answer

    def confirm(self, message: str, default: bool) -> bool:
        self.asked.append(("confirm", message))
        return self._next(default)

    def select(self, message: str, choices: list[str], start: int) -> str:
        self.asked.append(("select", message))
        return self._next(choices[start])

    def text(self, message: str, default: str, completer=None) -> str:
        self.asked.append(("text", message))
        return self._next(default)
