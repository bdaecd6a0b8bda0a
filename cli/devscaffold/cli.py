"""devscaffold CLI.

Main command-line interface for creating devcontainer configuration.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from cli.commands.index import get_registry_client, index_app, load_index
from cli.devscaffold.output import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from cli.devscaffold.prompts import RichPrompter
from registry.client import RegistryError
from registry.index import DevcontainerIndex
from scaffolding.archive import ArchiveError
from scaffolding.generator import (
    ArtifactFetcher,
    DevcontainerGenerator,
    FeatureCompleter,
    StartPoint,
    resolve_feature,
)
from scaffolding.materializer import MalformedConfigurationError
from scaffolding.options import OptionError, OptionPrompter

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="devscaffold",
    help="Easily manage devcontainer configuration files.",
    no_args_is_help=True,
)

# Config sub-app
config_app = typer.Typer(
    name="config",
    help="Show configuration settings.",
)
app.add_typer(config_app, name="config")
app.add_typer(index_app, name="index")


def configure_logging(verbose: int) -> None:
    """Send log records to stderr at the requested verbosity."""
    from scaffolding.config import get_config

    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, get_config().log_level.upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(level)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


@app.callback()
def callback(
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase log output (-v info, -vv debug)",
    ),
) -> None:
    """Easily manage devcontainer configuration files."""
    configure_logging(verbose)


def _choose_start_point(
    index: DevcontainerIndex,
    fetcher: ArtifactFetcher,
    prompter: OptionPrompter,
    tag_name: str,
    include_deprecated: bool,
) -> DevcontainerGenerator:
    start_points = {point.label: point for point in StartPoint}
    start = start_points[prompter.select("Choose a starting point:", list(start_points), 0)]

    if start is StartPoint.EMPTY:
        return DevcontainerGenerator.from_empty_start_point()

    if start is StartPoint.EXISTING:
        template_ids = [t.id for t in index.iter_templates(include_deprecated)]
        if not template_ids:
            print_error("No templates in the index")
            raise typer.Exit(1)
        template_id = prompter.select("Pick existing template from the index:", template_ids, 0)
    else:
        template_id = prompter.text("Enter template by providing the OCI reference:", "")

    return DevcontainerGenerator.from_registry(
        fetcher, template_id, tag_name, index.get_template(template_id)
    )


@app.command()
def init(
    non_interactive: bool = typer.Option(
        False,
        "--non-interactive",
        "-z",
        help="Avoid interactive prompts",
    ),
    attempt_single_file: bool = typer.Option(
        False,
        "--attempt-single-file",
        "-s",
        help='Write to ".devcontainer.json" when using an image type template',
    ),
    remove_comments: bool = typer.Option(
        False,
        "--remove-comments",
        "-r",
        help="Strip comments from the generated devcontainer.json",
    ),
    template_id: Optional[str] = typer.Option(
        None,
        "--template-id",
        "-t",
        metavar="OCI_REF",
        help="Reference to a template in a supported OCI registry",
    ),
    tag_name: Optional[str] = typer.Option(
        None,
        "--tag-name",
        "-n",
        help="The tag name to use when pulling the template files (default: latest)",
    ),
    include_features: Optional[list[str]] = typer.Option(
        None,
        "--include-features",
        "-f",
        metavar="OCI_REF",
        help="Add the given feature, may be repeated",
    ),
    include_deprecated: bool = typer.Option(
        False,
        "--include-deprecated",
        help="Include deprecated templates and features in choices",
    ),
    workspace_folder: Optional[Path] = typer.Option(
        None,
        "--workspace-folder",
        "-w",
        metavar="DIRECTORY",
        help="Target workspace for the devcontainer configuration (default: current directory)",
    ),
) -> None:
    """Create a new devcontainer configuration.

    Examples:
        devscaffold init
        devscaffold init -z -t ghcr.io/devcontainers/templates/rust
        devscaffold init -z -s -t ghcr.io/devcontainers/templates/python -f ghcr.io/devcontainers/features/node
    """
    from scaffolding.config import get_config

    config = get_config()
    workspace = workspace_folder or Path.cwd()
    tag_name = tag_name or config.registry.default_tag
    attempt_single_file = attempt_single_file or config.init.attempt_single_file
    include_deprecated = include_deprecated or config.init.include_deprecated

    if template_id is None and non_interactive:
        print_error("Must provide --template-id in non-interactive mode")
        raise typer.Exit(1)

    index = load_index()
    client = get_registry_client()
    prompter = None if non_interactive else RichPrompter()

    try:
        if template_id is not None:
            generator = DevcontainerGenerator.from_registry(
                client, template_id, tag_name, index.get_template(template_id)
            )
        else:
            generator = _choose_start_point(index, client, prompter, tag_name, include_deprecated)

        if tag_name != "latest" or generator.config is None:
            generator.replace_config()

        if prompter is None:
            generator.use_default_values()
        else:
            generator.use_prompt_values(prompter)

        for feature_id in include_features or []:
            feature = resolve_feature(index, feature_id, client)
            if prompter is not None:
                print_info(f"Adding feature: {feature_id}")
            generator.add_feature(feature, prompter)

        if prompter is not None:
            completer = FeatureCompleter(index, include_deprecated)
            while typer.confirm("Add a feature?", default=False):
                feature_id = prompter.text("Choose or enter feature id (OCI REF):", "", completer)
                if not feature_id:
                    print_warning("No feature id given")
                    continue
                generator.add_feature(resolve_feature(index, feature_id, client), prompter)

        written = generator.generate(
            workspace,
            attempt_single_file=attempt_single_file,
            remove_comments=remove_comments,
        )

    except KeyboardInterrupt:
        print_warning("Interrupted by user")
        raise typer.Exit(130)
    except (RegistryError, ArchiveError, MalformedConfigurationError, OptionError) as e:
        print_error(str(e))
        raise typer.Exit(1)
    except OSError as e:
        print_error(f"Cannot write to {workspace}: {e}")
        raise typer.Exit(1)

    for path in written:
        try:
            shown = path.relative_to(workspace)
        except ValueError:
            shown = path
        print_success(f"Created: {shown}")

    if generator.unresolved:
        print_warning(f"No value provided for: {', '.join(sorted(set(generator.unresolved)))}")


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example:
        devscaffold config show
    """
    from scaffolding.config import find_config_file, get_config

    config_path = find_config_file()
    if config_path:
        print_info(f"Config file: {config_path}")
    else:
        print_warning("No devscaffold.toml found (using defaults)")

    config = get_config()

    for name, section in (
        ("registry", config.registry),
        ("storage", config.storage),
        ("init", config.init),
    ):
        console.print(f"\n[bold]\\[{name}][/bold]")
        for key, value in vars(section).items():
            console.print(f"  {key} = {value}")

    console.print(f"\nlog_level = {config.log_level}")
    console.print(f"index_path = {config.index_path}")


@app.command()
def version() -> None:
    """Show devscaffold version."""
    from cli.devscaffold import __version__

    console.print(f"devscaffold v{__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
