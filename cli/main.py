"""CLI entry point."""

import os
import signal
import sys
from typing import Optional

from common.logging_config import setup_logging
from cli.config import Config
from cli.constants import HELP_TEXT
from cli.parser import ParseError, parse_tokens
from cli.repl import dispatch_command, repl_loop

LOGGED_COMPONENTS = ('cli', 'pipeline', 'storage')


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt(f"signal {signum}")


def run_once(args: list[str], config: Config) -> int:
    """
    Run a single command given as process arguments.

    Returns:
        Process exit status: 0 on success, 1 on any failure
    """
    if args[0] in ("help", "-h", "--help"):
        print(HELP_TEXT)
        return 0

    try:
        cmd_obj = parse_tokens(args)
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = dispatch_command(cmd_obj, config)
    print(result)
    return 0 if result.success else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for CLI."""
    args = list(sys.argv[1:] if argv is None else argv)

    debug = '--debug' in args
    if debug:
        args = [a for a in args if a != '--debug']
    log_level = 'DEBUG' if debug else os.getenv('LOG_LEVEL', 'INFO')

    loggers = [setup_logging(name, log_level=log_level) for name in LOGGED_COMPONENTS]
    logger = loggers[0]
    if debug:
        logger.info("Debug logging enabled")

    # SIGTERM must unwind the stack so temporary fragment files get removed.
    signal.signal(signal.SIGTERM, _raise_interrupt)

    config = Config()
    try:
        if args:
            return run_once(args, config)
        repl_loop(config)
        return 0
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    sys.exit(main())
