"""Devcontainer index schema.

Typed model of the community catalog: collections, features, templates
and the option declarations they carry. Field names follow the camelCase
keys of the published index; unknown keys are ignored.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, RootModel, Tag
from pydantic.alias_generators import to_camel
from typing_extensions import TypeAliasType


class IndexModel(BaseModel):
    """Base model reading camelCase index keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Options
# =============================================================================


class BooleanOption(IndexModel):
    """A yes/no option. Some publishers store the default as a string."""

    type: Literal["boolean"] = "boolean"
    default: bool | str = Field(..., description="Default value, bool or string")
    description: str | None = Field(None, description="Prompt text")

    def configured_default(self) -> str:
        if isinstance(self.default, bool):
            return "true" if self.default else "false"
        return self.default

    def describe(self) -> str:
        return (
            f"type=boolean, default={self.configured_default()}, "
            f"description={self.description or ''}"
        )


class EnumOption(IndexModel):
    """A string option restricted to a fixed list of values."""

    type: Literal["string"] = "string"
    default: str = Field(..., description="Default value")
    enum: list[str] = Field(..., description="Allowed values")
    description: str | None = Field(None, description="Prompt text")

    def configured_default(self) -> str:
        return self.default

    def describe(self) -> str:
        return (
            f"type=string, default={self.default}, enum=[{', '.join(self.enum)}], "
            f"description={self.description or ''}"
        )


class ProposalsOption(IndexModel):
    """A free-form string option with optional suggested values."""

    type: Literal["string"] = "string"
    # Required by the schema, but some published collections omit it.
    default: str | None = Field(None, description="Default value")
    proposals: list[str] | None = Field(None, description="Suggested values")
    description: str | None = Field(None, description="Prompt text")

    def configured_default(self) -> str:
        if self.default is not None:
            return self.default
        if self.proposals:
            return self.proposals[0]
        return ""

    def describe(self) -> str:
        parts = [f"type=string, default={self.configured_default()}"]
        if self.proposals is not None:
            parts.append(f"proposals=[{', '.join(self.proposals)}]")
        parts.append(f"description={self.description or ''}")
        return ", ".join(parts)


# Both string shapes share `type: "string"`; only `enum` tells them apart.
# EnumOption is listed first so it wins whenever the input satisfies it.
StringOption = Union[EnumOption, ProposalsOption]


def _option_kind(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("type")
    return getattr(value, "type", None)


DevOption = Annotated[
    Union[
        Annotated[BooleanOption, Tag("boolean")],
        Annotated[StringOption, Tag("string")],
    ],
    Discriminator(_option_kind),
]


# =============================================================================
# Feature metadata
# =============================================================================


class MountType(str, Enum):
    """Docker mount type."""

    BIND = "bind"
    VOLUME = "volume"


class DockerMount(IndexModel):
    """A mount declared by a feature."""

    source: str
    target: str
    type: MountType = MountType.BIND

    def __str__(self) -> str:
        return f"source={self.source}, target={self.target}, type={self.type.value}"


# A lifecycle command: one string, a list, or named commands, which may nest.
LifecycleHook = TypeAliasType(
    "LifecycleHook",
    Union[str, list[str], dict[str, "LifecycleHook"]],
)


def format_lifecycle_hook(hook: LifecycleHook) -> str:
    """Render a lifecycle hook on a single line.

    Nested named commands are wrapped in braces.
    """
    if isinstance(hook, str):
        return hook
    if isinstance(hook, list):
        return ", ".join(hook)
    parts = []
    for key, value in hook.items():
        rendered = format_lifecycle_hook(value)
        if isinstance(value, dict):
            rendered = f"{{{rendered}}}"
        parts.append(f"{key}={rendered}")
    return "; ".join(parts)


class Customizations(RootModel[Any]):
    """Opaque tool-specific customizations.

    The payload is arbitrary JSON; known paths are exposed as accessors.
    """

    def _get_path(self, *keys: str) -> Any:
        value = self.root
        for key in keys:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
        return value

    def vscode_extensions(self) -> list[str] | None:
        """Extension ids listed under `vscode.extensions`, if present."""
        extensions = self._get_path("vscode", "extensions")
        if not isinstance(extensions, list):
            return None
        return [ext for ext in extensions if isinstance(ext, str)]


class Feature(IndexModel):
    """A reusable add-on installable into a dev container."""

    id: str = Field(..., description="OCI reference without tag")
    version: str
    name: str
    major_version: str = Field(..., description="Major version used as the merge key suffix")
    description: str | None = None
    documentation_url: str | None = Field(None, alias="documentationURL")
    license_url: str | None = Field(None, alias="licenseURL")
    keywords: list[str] | None = None
    options: dict[str, DevOption] | None = None
    container_env: dict[str, str] | None = None
    privileged: bool | None = None
    init: bool | None = None
    cap_add: list[str] | None = None
    security_opt: list[str] | None = None
    entrypoint: str | None = None
    customizations: Customizations | None = None
    installs_after: list[str] | None = None
    legacy_ids: list[str] | None = None
    deprecated: bool | None = None
    mounts: list[DockerMount] | None = None
    on_create_command: Optional[LifecycleHook] = None
    update_content_command: Optional[LifecycleHook] = None
    post_create_command: Optional[LifecycleHook] = None
    post_start_command: Optional[LifecycleHook] = None
    post_attach_command: Optional[LifecycleHook] = None
    owner: str = ""

    @property
    def entry_key(self) -> str:
        """Key of this feature inside a devcontainer.json `features` object."""
        return f"{self.id}:{self.major_version}"

    @property
    def is_deprecated(self) -> bool:
        return bool(self.deprecated)


class TemplateType(str, Enum):
    """How a template builds its container."""

    IMAGE = "image"
    DOCKERFILE = "dockerfile"
    DOCKER_COMPOSE = "dockerCompose"


class Template(IndexModel):
    """A devcontainer scaffold published as a tar archive."""

    id: str = Field(..., description="OCI reference without tag")
    version: str
    name: str
    description: str | None = None
    documentation_url: str | None = Field(None, alias="documentationURL")
    license_url: str | None = Field(None, alias="licenseURL")
    options: dict[str, DevOption] | None = None
    platforms: list[str] | None = None
    publisher: str | None = None
    keywords: list[str] | None = None
    type: TemplateType | None = None
    file_count: int | None = Field(None, description="Number of files in the archive")
    feature_ids: list[str] | None = None
    owner: str = ""


class SourceInformation(IndexModel):
    """Publisher details of a collection."""

    name: str
    maintainer: str
    contact: str
    repository: str
    oci_reference: str


class Collection(IndexModel):
    """A publisher-owned bundle of features and templates."""

    source_information: SourceInformation
    features: list[Feature] = Field(default_factory=list)
    templates: list[Template] = Field(default_factory=list)

    @property
    def oci_reference(self) -> str:
        return self.source_information.oci_reference

    @property
    def is_deprecated(self) -> bool:
        # The one known deprecated collection is only marked in its maintainer field.
        return "deprecated" in self.source_information.maintainer.lower()
