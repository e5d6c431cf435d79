""""""
from flask import Flask

from .base import dropdb, initdb
from .tags import tags_commands

__all__ = ["register_commands", "tags_commands"]


def register_commands(app: Flask) -> None:
    app.cli.add_command(initdb)
    app.cli.add_command(dropdb)
    app.cli.add_command(tags_commands)
