"""CLI helpers."""

from apps.cli.chatter_cli.utils.async_wrapper import async_command

__all__ = ["async_command"]
