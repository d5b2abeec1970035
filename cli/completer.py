"""Custom completer for the splitup REPL with local path autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS
from common.constants import MANIFEST_SUFFIX

FILE_COMMANDS = ("upload", "transfer")
MANIFEST_COMMANDS = ("download", "manifest")


class SplitupCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file completion for the first argument of 'upload' and 'transfer'
    - Manifest file completion for the first argument of 'download' and 'manifest'
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        arg_position = len(tokens) if is_typing_new_token else len(tokens) - 1
        if arg_position != 1:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        if command in FILE_COMMANDS:
            yield from self._complete_paths(current_word, manifests_only=False)
        elif command in MANIFEST_COMMANDS:
            yield from self._complete_paths(current_word, manifests_only=True)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_paths(self, partial: str, manifests_only: bool) -> Iterable[Completion]:
        """
        Complete entries of the directory named by the partial path.

        Directories are always offered (with a trailing slash) so the user
        can descend; files are filtered to manifests when manifests_only.
        """
        if "/" in partial:
            dir_part, name_part = partial.rsplit("/", 1)
            base = Path(dir_part or "/")
            prefix = dir_part + "/"
        else:
            base, name_part, prefix = Path.cwd(), partial, ""

        if not base.is_dir():
            return

        try:
            entries = sorted(base.iterdir(), key=lambda p: p.name)
        except OSError:
            return

        for item in entries:
            if not item.name.startswith(name_part):
                continue
            if item.name.startswith(".") and not name_part.startswith("."):
                continue
            if item.is_dir():
                yield Completion(f"{prefix}{item.name}/", start_position=-len(partial))
            elif not manifests_only or item.name.endswith(MANIFEST_SUFFIX):
                yield Completion(f"{prefix}{item.name}", start_position=-len(partial))
