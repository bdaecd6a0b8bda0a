"""Tests for OCI reference parsing."""

import pytest

from registry.oci import InvalidReferenceError, OciReference


class TestParse:
    """Test reference parsing."""

    def test_defaults_to_latest(self):
        ref = OciReference.parse("ghcr.io/devcontainers/templates/rust")
        assert ref.registry == "ghcr.io"
        assert ref.repository == "devcontainers/templates/rust"
        assert ref.tag is None
        assert str(ref) == "ghcr.io/devcontainers/templates/rust:latest"

    def test_id_drops_tag(self):
        ref = OciReference.parse("ghcr.io/devcontainers/templates/cpp:2")
        assert ref.id == "ghcr.io/devcontainers/templates/cpp"
        assert ref.tag_name == "2"

    def test_docker_hub_namespace(self):
        ref = OciReference.parse("github-actions/templates/release:lts")
        assert ref.registry == "docker.io"
        assert ref.repository == "github-actions/templates/release"
        assert ref.tag_name == "lts"

    def test_docker_hub_library(self):
        assert OciReference.parse("ubuntu").id == "docker.io/library/ubuntu"

    def test_registry_with_port(self):
        ref = OciReference.parse("localhost:5000/features/go:1")
        assert ref.registry == "localhost:5000"
        assert ref.repository == "features/go"
        assert ref.tag_name == "1"

    def test_digest(self):
        digest = "sha256:" + "a" * 64
        ref = OciReference.parse(f"ghcr.io/devcontainers/features/node@{digest}")
        assert ref.digest == digest
        assert ref.manifest_reference == digest
        assert str(ref) == f"ghcr.io/devcontainers/features/node@{digest}"

    def test_with_tag(self):
        ref = OciReference.parse("ghcr.io/devcontainers/index").with_tag("1.2")
        assert str(ref) == "ghcr.io/devcontainers/index:1.2"

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "ghcr.io/Upper/case", "ghcr.io/a/b:bad tag", "ghcr.io/a@sha256:zz"],
    )
    def test_invalid(self, text):
        with pytest.raises(InvalidReferenceError):
            OciReference.parse(text)
