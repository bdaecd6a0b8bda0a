"""CLI command modules for devscaffold."""

from cli.commands.index import index_app

__all__ = ["index_app"]
