"""Interactive prompts for `devscaffold init`, built on rich.prompt."""

from rich.prompt import Confirm, IntPrompt, Prompt

from cli.devscaffold.output import console
from scaffolding.options import OptionError, ProposalsCompleter


class RichPrompter:
    """OptionPrompter that asks on the terminal."""

    def confirm(self, message: str, default: bool) -> bool:
        return Confirm.ask(message, default=default, console=console)

    def select(self, message: str, choices: list[str], start: int) -> str:
        """Pick one of `choices` by number; `start` is the default."""
        if not choices:
            raise OptionError(f"Nothing to choose from: {message}")

        console.print(f"[bold]{message}[/bold]")
        for i, choice in enumerate(choices, start=1):
            console.print(f"  [cyan]{i:>3}[/cyan]  {choice}")

        while True:
            number = IntPrompt.ask("Choice", default=start + 1, console=console)
            if 1 <= number <= len(choices):
                return choices[number - 1]
            console.print(f"[red]Enter a number between 1 and {len(choices)}[/red]")

    def text(
        self,
        message: str,
        default: str,
        completer: ProposalsCompleter | None = None,
    ) -> str:
        """Free-form answer.

        A partial answer with a single matching suggestion is only completed
        when the user accepts the completion.
        """
        if completer is not None and completer.candidates:
            shown = ", ".join(completer.candidates[:10])
            if len(completer.candidates) > 10:
                shown += f" (+{len(completer.candidates) - 10} more)"
            console.print(f"[dim]Suggestions: {shown}[/dim]")

        answer = Prompt.ask(message, default=default, console=console)

        if completer is not None and answer and answer not in completer.candidates:
            completed = completer.completion(answer)
            if completed is not None and Confirm.ask(
                f"Use {completed} instead?", default=False, console=console
            ):
                return completed
        return answer
