"""Adapters — bindings to external programs and the filesystem.

Public re-exports for convenient access.
"""

from helmwrap.adapters.shell.command import Command, CommandError
from helmwrap.adapters.shell.path import command_env, path_with_binary

__all__ = [
    "Command",
    "CommandError",
    "command_env",
    "path_with_binary",
]
