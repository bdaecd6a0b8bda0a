"""devscaffold CLI.

Command-line interface for scaffolding devcontainer configuration.
The application lives in cli.devscaffold.cli.
"""

__version__ = "0.1.0"
