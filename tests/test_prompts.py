"""Tests for the rich prompt adapter."""

import pytest
from rich.prompt import Confirm, IntPrompt, Prompt

from cli.devscaffold.prompts import RichPrompter
from registry.models import EnumOption
from scaffolding.options import OptionError, ProposalsCompleter, resolve_option


class Answers:
    """Replays answers for one rich prompt class and records the calls."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def __call__(self, message, default=None, console=None):
        self.calls.append((message, default))
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        return self.answers.pop(0)


@pytest.fixture
def answer(monkeypatch):
    """Install scripted answers for a prompt class."""

    def install(prompt_class, *answers) -> Answers:
        fake = Answers(*answers)
        monkeypatch.setattr(prompt_class, "ask", fake)
        return fake

    return install


class TestConfirm:
    """Test yes/no prompts."""

    def test_passes_default(self, answer):
        confirm = answer(Confirm, False)
        assert RichPrompter().confirm("Include zsh?", True) is False
        assert confirm.calls == [("Include zsh?", True)]


class TestSelect:
    """Test numbered choices."""

    def test_default_is_start(self, answer):
        ints = answer(IntPrompt, 3)
        assert RichPrompter().select("Pick:", ["a", "b", "c"], 1) == "c"
        assert ints.calls == [("Choice", 2)]

    def test_out_of_range_asks_again(self, answer):
        ints = answer(IntPrompt, 0, 9, 2)
        assert RichPrompter().select("Pick:", ["a", "b"], 0) == "b"
        assert len(ints.calls) == 3

    def test_empty_choices(self, answer):
        ints = answer(IntPrompt)
        with pytest.raises(OptionError):
            RichPrompter().select("Pick:", [], 0)
        assert ints.calls == []

    def test_empty_enum_option(self, answer):
        ints = answer(IntPrompt)
        with pytest.raises(OptionError):
            resolve_option("variant", EnumOption(default="", enum=[]), RichPrompter())
        assert ints.calls == []


class TestText:
    """Test free-form answers and completion."""

    def test_plain_answer(self, answer):
        text = answer(Prompt, "custom")
        assert RichPrompter().text("Name?", "default") == "custom"
        assert text.calls == [("Name?", "default")]

    def test_prefix_of_proposal_kept_when_completion_declined(self, answer):
        answer(Prompt, "3")
        confirm = answer(Confirm, False)
        completer = ProposalsCompleter("", ["3.12"])

        assert RichPrompter().text("Python version?", "", completer) == "3"
        assert confirm.calls == [("Use 3.12 instead?", False)]

    def test_completion_accepted(self, answer):
        answer(Prompt, "3")
        answer(Confirm, True)
        completer = ProposalsCompleter("", ["3.12"])
        assert RichPrompter().text("Python version?", "", completer) == "3.12"

    def test_candidate_answer_not_questioned(self, answer):
        answer(Prompt, "3.11")
        confirm = answer(Confirm)
        completer = ProposalsCompleter("3.12", ["3.11"])

        assert RichPrompter().text("Python version?", "3.12", completer) == "3.11"
        assert confirm.calls == []

    def test_ambiguous_prefix_kept(self, answer):
        answer(Prompt, "3")
        confirm = answer(Confirm)
        completer = ProposalsCompleter("", ["3.11", "3.12"])

        assert RichPrompter().text("Python version?", "", completer) == "3"
        assert confirm.calls == []
