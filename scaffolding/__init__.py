"""Devcontainer scaffolding for devscaffold.

Turns a template archive into devcontainer configuration on disk:
- Option resolution (defaults or interactive prompts)
- Feature entries merged into devcontainer.json
- Placeholder substitution across every template file
- Optional single-file `.devcontainer.json` output

Also supports:
- A synthetic "start from scratch" template
- Layered configuration (TOML file, environment)
"""

from .archive import (
    ArchiveError,
    MalformedArchiveError,
    ManifestNotFoundError,
    read_archive_member,
    read_feature_manifest,
    read_template_manifest,
)
from .config import Config, get_config, load_config, reload_config
from .features import FeatureEntryBuilder
from .generator import (
    ArtifactFetcher,
    DevcontainerGenerator,
    FeatureCompleter,
    StartPoint,
    resolve_feature,
)
from .materializer import (
    MalformedConfigurationError,
    TemplateMaterializer,
    is_single_file_eligible,
    substitute_placeholders,
)
from .options import (
    OptionError,
    OptionPrompter,
    ProposalsCompleter,
    default_context,
    prompt_context,
    resolve_option,
)
from .start_point import create_empty_start_point

__all__ = [
    # Archives
    "ArchiveError",
    "MalformedArchiveError",
    "ManifestNotFoundError",
    "read_archive_member",
    "read_feature_manifest",
    "read_template_manifest",
    # Configuration
    "Config",
    "get_config",
    "load_config",
    "reload_config",
    # Generator
    "ArtifactFetcher",
    "DevcontainerGenerator",
    "FeatureCompleter",
    "StartPoint",
    "resolve_feature",
    # Materialization
    "FeatureEntryBuilder",
    "MalformedConfigurationError",
    "TemplateMaterializer",
    "create_empty_start_point",
    "is_single_file_eligible",
    "substitute_placeholders",
    # Options
    "OptionError",
    "OptionPrompter",
    "ProposalsCompleter",
    "default_context",
    "prompt_context",
    "resolve_option",
]
