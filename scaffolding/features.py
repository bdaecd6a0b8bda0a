"""Accumulates feature entries for a devcontainer.json `features` object."""

from __future__ import annotations

import copy
from typing import Any

from registry.models import Feature
from scaffolding.options import OptionPrompter, format_value, resolve_option


class FeatureEntryBuilder:
    """Feature entries keyed by `id:majorVersion`.

    Only options whose value differs from the configured default are
    recorded, keeping the generated configuration minimal.
    """

    def __init__(self) -> None:
        self.features: dict[str, dict[str, Any]] = {}

    def use_prompt_values(self, feature: Feature, prompter: OptionPrompter) -> None:
        """Resolve each option of `feature` through the prompter."""
        entry: dict[str, Any] = {}

        for name, option in (feature.options or {}).items():
            value = resolve_option(name, option, prompter)
            if format_value(value) == option.configured_default():
                continue
            entry[name] = value

        self.features[feature.entry_key] = entry

    def use_default_values(self, feature: Feature) -> None:
        """Add `feature` accepting all of its defaults."""
        self.features[feature.entry_key] = {}

    def as_value(self) -> dict[str, Any]:
        return copy.deepcopy(self.features)

    def __len__(self) -> int:
        return len(self.features)

    def __contains__(self, key: object) -> bool:
        return key in self.features
