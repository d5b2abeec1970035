"""Result type returned by command handlers."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one CLI command: printable message and success flag."""

    success: bool
    message: str

    def __str__(self) -> str:
        return self.message
