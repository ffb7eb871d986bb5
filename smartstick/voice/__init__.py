"""Spoken commands: parsing, dispatch and microphone listening."""

from .commands import Command, CommandHandler, CommandType, parse_command

__all__ = ["Command", "CommandHandler", "CommandType", "parse_command"]
