"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import (
    handle_config,
    handle_download,
    handle_manifest,
    handle_set,
    handle_transfer,
    handle_upload,
)
from cli.completer import SplitupCompleter
from cli.config import Config
from cli.constants import (
    HELP_TEXT,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    ConfigCommand,
    DownloadCommand,
    ManifestCommand,
    SetCommand,
    TransferCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command
from cli.types import CommandResult


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def dispatch_command(cmd_obj, config: Config) -> CommandResult:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, UploadCommand):
        return handle_upload(cmd_obj, config)
    elif isinstance(cmd_obj, DownloadCommand):
        return handle_download(cmd_obj, config)
    elif isinstance(cmd_obj, TransferCommand):
        return handle_transfer(cmd_obj, config)
    elif isinstance(cmd_obj, ManifestCommand):
        return handle_manifest(cmd_obj, config)
    elif isinstance(cmd_obj, ConfigCommand):
        return handle_config(cmd_obj, config)
    elif isinstance(cmd_obj, SetCommand):
        return handle_set(cmd_obj, config)
    else:
        return CommandResult(False, f"Unknown command type: {type(cmd_obj)}")


def repl_loop(config: Config) -> None:
    """Start interactive REPL with prompt_toolkit."""
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=SplitupCompleter(), history=history, style=STYLE
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            user_input = session.prompt([("class:prompt", PROMPT_TEXT)])

            if not user_input.strip():
                continue

            if user_input.strip() == "exit":
                print("Goodbye!")
                break

            if user_input.strip() == "help":
                print(HELP_TEXT)
                continue

            if user_input.strip() == "clear":
                clear_screen()
                show_welcome()
                continue

            cmd_obj = parse_command(user_input)
            result = dispatch_command(cmd_obj, config)
            print(result)

        except ParseError as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break
