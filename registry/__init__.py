"""Devcontainer registry access.

This package provides the typed model of the community index, the
resilient index parser, OCI reference handling and the registry client
used to pull template and feature archives.

The index is stored at ~/.devscaffold/devcontainer-index.json by default.
"""

from registry.client import RegistryClient, RegistryError
from registry.index import DevcontainerIndex, IndexFormatError, ParseStats, SchemaViolation
from registry.models import (
    BooleanOption,
    Collection,
    Customizations,
    DevOption,
    EnumOption,
    Feature,
    ProposalsOption,
    SourceInformation,
    Template,
    TemplateType,
)
from registry.oci import OciReference

__all__ = [
    "BooleanOption",
    "Collection",
    "Customizations",
    "DevOption",
    "DevcontainerIndex",
    "EnumOption",
    "Feature",
    "IndexFormatError",
    "OciReference",
    "ParseStats",
    "ProposalsOption",
    "RegistryClient",
    "RegistryError",
    "SchemaViolation",
    "SourceInformation",
    "Template",
    "TemplateType",
]
