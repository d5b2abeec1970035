"""Command parser for CLI input."""

import shlex
from typing import Optional

from cli.models import (
    CommandRequest,
    ConfigCommand,
    DownloadCommand,
    ManifestCommand,
    SetCommand,
    TransferCommand,
    UploadCommand,
)
from cli.utils import parse_size


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL or the joined process arguments

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    return parse_tokens(tokens)


def parse_tokens(tokens: list[str]) -> CommandRequest:
    """Parse an already tokenized command line."""
    command_name, args = tokens[0], tokens[1:]

    if command_name == "upload":
        return _parse_upload(args)
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "transfer":
        return _parse_transfer(args)
    elif command_name == "manifest":
        return _parse_manifest(args)
    elif command_name == "config":
        return _parse_config(args)
    elif command_name == "set":
        return _parse_set(args)
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_fragment_size(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_size(value)
    except ValueError as e:
        raise ParseError(str(e))


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <file> [fragment_size]' command."""
    if not 1 <= len(args) <= 2:
        raise ParseError("upload requires 1 or 2 arguments: <file> [fragment_size]")

    return UploadCommand(
        file_path=args[0],
        fragment_size=_parse_fragment_size(args[1] if len(args) > 1 else None),
    )


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <manifest> [output_path]' command."""
    if not 1 <= len(args) <= 2:
        raise ParseError("download requires 1 or 2 arguments: <manifest> [output_path]")

    return DownloadCommand(
        manifest_path=args[0],
        output_path=args[1] if len(args) > 1 else None,
    )


def _parse_transfer(args: list[str]) -> TransferCommand:
    """Parse 'transfer <file> [fragment_size]' command."""
    if not 1 <= len(args) <= 2:
        raise ParseError("transfer requires 1 or 2 arguments: <file> [fragment_size]")

    return TransferCommand(
        file_path=args[0],
        fragment_size=_parse_fragment_size(args[1] if len(args) > 1 else None),
    )


def _parse_manifest(args: list[str]) -> ManifestCommand:
    """Parse 'manifest <manifest>' command."""
    if len(args) != 1:
        raise ParseError("manifest requires exactly 1 argument: <manifest>")

    return ManifestCommand(manifest_path=args[0])


def _parse_config(args: list[str]) -> ConfigCommand:
    if args:
        raise ParseError("config takes no arguments")
    return ConfigCommand()


def _parse_set(args: list[str]) -> SetCommand:
    """Parse 'set <key> <value>' command."""
    if len(args) != 2:
        raise ParseError("set requires exactly 2 arguments: <key> <value>")

    key, value = args
    return SetCommand(key=key, value=value)
