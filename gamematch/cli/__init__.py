"""CLI package bootstrap.

Defines root group (`cli`) in helpers and imports submodules so their
decorators register commands. Keep this file minimal to avoid circular
imports and duplication.
"""
from gamematch.cli.helpers import cli  # root group
from gamematch.cli import match_cmds  # noqa: F401
from gamematch.cli import config_cmds  # noqa: F401

__all__ = ["cli"]
