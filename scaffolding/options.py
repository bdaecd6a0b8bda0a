"""Option resolution for templates and features.

Maps each declared option to a value, either from its configured default
(non-interactive) or by asking an OptionPrompter.
"""

from __future__ import annotations

from typing import Mapping, Protocol

from registry.models import BooleanOption, DevOption, EnumOption, ProposalsOption

OptionValue = bool | str


class OptionError(Exception):
    """Raised when an option declaration cannot be resolved."""

    pass


class ProposalsCompleter:
    """Suggestions for a free-form string option.

    The configured default is offered first when it is not one of the
    proposals, so it stays reachable.
    """

    def __init__(self, default: str, proposals: list[str]):
        if default and default not in proposals:
            self.candidates = [default, *proposals]
        else:
            self.candidates = list(proposals)

    def suggestions(self, text: str) -> list[str]:
        """Candidates starting with `text`, ignoring case."""
        prefix = text.lower()
        return [c for c in self.candidates if c.lower().startswith(prefix)]

    def completion(self, text: str, highlighted: str | None = None) -> str | None:
        """The highlighted suggestion, else the only remaining suggestion."""
        if highlighted is not None:
            return highlighted
        matches = self.suggestions(text)
        if len(matches) == 1:
            return matches[0]
        return None


class OptionPrompter(Protocol):
    """Interactive collaborator that asks the user for option values."""

    def confirm(self, message: str, default: bool) -> bool: ...

    def select(self, message: str, choices: list[str], start: int) -> str: ...

    def text(
        self,
        message: str,
        default: str,
        completer: ProposalsCompleter | None = None,
    ) -> str: ...


def parse_bool(value: str) -> bool:
    """Parse a boolean default; only the exact strings "true" and "false" are accepted."""
    if value == "true":
        return True
    if value == "false":
        return False
    raise OptionError(f"Invalid boolean default: {value!r}")


def format_value(value: OptionValue) -> str:
    """Render a resolved value the way it is stored in a template context."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def resolve_option(name: str, option: DevOption, prompter: OptionPrompter) -> OptionValue:
    """Ask the prompter for one option value.

    Args:
        name: Declared option name.
        option: Option declaration.
        prompter: Prompt collaborator.

    Returns:
        A bool for boolean options, otherwise a string.
    """
    default = option.configured_default()

    if isinstance(option, BooleanOption):
        message = option.description or f"Include {name}?"
        return prompter.confirm(message, parse_bool(default))

    if isinstance(option, EnumOption):
        if not option.enum:
            raise OptionError(f"No values to choose from for {name}")
        message = option.description or f"Choose value for {name}:"
        start = option.enum.index(default) if default in option.enum else 0
        return prompter.select(message, list(option.enum), start)

    if isinstance(option, ProposalsOption):
        message = option.description or f"What value for {name}?"
        completer = ProposalsCompleter(default, option.proposals) if option.proposals else None
        return prompter.text(message, default, completer)

    raise OptionError(f"Unsupported option type for {name}: {type(option).__name__}")


def default_context(options: Mapping[str, DevOption] | None) -> dict[str, str]:
    """Resolve every option to its configured default."""
    return {name: option.configured_default() for name, option in (options or {}).items()}


def prompt_context(
    options: Mapping[str, DevOption] | None,
    prompter: OptionPrompter,
) -> dict[str, str]:
    """Resolve every option through the prompter."""
    return {
        name: format_value(resolve_option(name, option, prompter))
        for name, option in (options or {}).items()
    }
