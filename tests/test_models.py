"""Tests for the index schema models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from registry.models import (
    BooleanOption,
    Collection,
    Customizations,
    DevOption,
    DockerMount,
    EnumOption,
    Feature,
    ProposalsOption,
    Template,
    TemplateType,
    format_lifecycle_hook,
)

from conftest import feature_data, source_information, template_data

option_adapter = TypeAdapter(DevOption)


class TestDevOption:
    """Test option shape decoding and configured defaults."""

    def test_boolean_default_coerced_to_string(self):
        """Boolean defaults are rendered as true/false strings."""
        option = option_adapter.validate_python({"type": "boolean", "default": True})
        assert isinstance(option, BooleanOption)
        assert option.configured_default() == "true"

        option = option_adapter.validate_python({"type": "boolean", "default": False})
        assert option.configured_default() == "false"

    def test_boolean_string_default_kept(self):
        """Some publishers store boolean defaults as strings."""
        option = option_adapter.validate_python({"type": "boolean", "default": "false"})
        assert option.configured_default() == "false"

    def test_enum_shape_preferred(self):
        """A string option with `enum` decodes as EnumOption."""
        option = option_adapter.validate_python(
            {"type": "string", "enum": ["a", "b"], "default": "b"}
        )
        assert isinstance(option, EnumOption)
        assert option.configured_default() == "b"

    def test_proposals_shape(self):
        option = option_adapter.validate_python(
            {"type": "string", "proposals": ["lts", "18"], "default": "lts"}
        )
        assert isinstance(option, ProposalsOption)
        assert option.configured_default() == "lts"

    def test_proposals_default_falls_back_to_first_proposal(self):
        """Without a default the first proposal is used."""
        option = option_adapter.validate_python({"type": "string", "proposals": ["x", "y"]})
        assert option.configured_default() == "x"

    def test_proposals_default_falls_back_to_empty(self):
        option = option_adapter.validate_python({"type": "string"})
        assert option.configured_default() == ""

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            option_adapter.validate_python({"type": "number", "default": 1})

    def test_describe(self):
        option = option_adapter.validate_python(
            {"type": "string", "enum": ["a", "b"], "default": "a", "description": "Pick"}
        )
        assert option.describe() == "type=string, default=a, enum=[a, b], description=Pick"


class TestFeature:
    """Test feature decoding."""

    def test_camel_case_fields(self):
        feature = Feature.model_validate(
            feature_data(
                documentationURL="https://example.com/docs",
                containerEnv={"NVM_DIR": "/usr/local/share/nvm"},
                installsAfter=["ghcr.io/devcontainers/features/common-utils"],
            )
        )
        assert feature.major_version == "1"
        assert feature.documentation_url == "https://example.com/docs"
        assert feature.container_env == {"NVM_DIR": "/usr/local/share/nvm"}
        assert feature.installs_after == ["ghcr.io/devcontainers/features/common-utils"]

    def test_entry_key(self, node_feature):
        assert node_feature.entry_key == "ghcr.io/devcontainers/features/node:1"

    def test_missing_major_version_rejected(self):
        data = feature_data()
        del data["majorVersion"]
        with pytest.raises(ValidationError):
            Feature.model_validate(data)

    def test_deprecated_flag(self):
        assert Feature.model_validate(feature_data(deprecated=True)).is_deprecated
        assert not Feature.model_validate(feature_data()).is_deprecated

    def test_mounts_and_lifecycle_hooks(self):
        feature = Feature.model_validate(
            feature_data(
                mounts=[{"source": "dind-var-lib-docker", "target": "/var/lib/docker", "type": "volume"}],
                postCreateCommand={"server": "npm start", "db": ["mysql", "-u", "root"]},
            )
        )
        assert str(feature.mounts[0]) == (
            "source=dind-var-lib-docker, target=/var/lib/docker, type=volume"
        )
        assert format_lifecycle_hook(feature.post_create_command) == (
            "server=npm start; db=mysql, -u, root"
        )

    def test_nested_named_lifecycle_hooks(self):
        feature = Feature.model_validate(
            feature_data(postCreateCommand={"setup": {"deps": "npm ci", "db": ["make", "db"]}, "done": "echo"})
        )
        assert feature.post_create_command == {"setup": {"deps": "npm ci", "db": ["make", "db"]}, "done": "echo"}
        assert format_lifecycle_hook(feature.post_create_command) == (
            "setup={deps=npm ci; db=make, db}; done=echo"
        )

    def test_customizations_vscode_extensions(self):
        customizations = Customizations.model_validate(
            {"vscode": {"extensions": ["rust-lang.rust-analyzer", 3]}}
        )
        assert customizations.vscode_extensions() == ["rust-lang.rust-analyzer"]
        assert Customizations.model_validate({"jetbrains": {}}).vscode_extensions() is None

    def test_docker_mount_defaults_to_bind(self):
        assert str(DockerMount(source="/a", target="/b")) == "source=/a, target=/b, type=bind"


class TestTemplate:
    """Test template decoding."""

    def test_type_and_file_count(self, rust_template):
        assert rust_template.type is TemplateType.IMAGE
        assert rust_template.file_count == 4
        assert rust_template.owner == ""

    def test_docker_compose_type(self):
        template = Template.model_validate(template_data(type="dockerCompose"))
        assert template.type is TemplateType.DOCKER_COMPOSE

    def test_unknown_keys_ignored(self):
        template = Template.model_validate(template_data(somethingNew=True))
        assert template.name == "Rust"


class TestCollection:
    """Test collection helpers."""

    def test_deprecated_maintainer(self):
        collection = Collection.model_validate(
            {
                "sourceInformation": source_information(
                    "ghcr.io/microsoft/vscode-dev-containers",
                    maintainer="[Deprecated] Microsoft",
                ),
            }
        )
        assert collection.is_deprecated
        assert collection.oci_reference == "ghcr.io/microsoft/vscode-dev-containers"
        assert collection.features == []
