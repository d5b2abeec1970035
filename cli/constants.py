"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["upload", "download", "transfer", "manifest", "config", "set", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2BA84A bold",
        "command": "#0088ff bold",
    }
)

GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"

WELCOME_TITLE = "splitup - chunked upload, restore and verify"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "splitup> "

CONFIG_DIR_NAME = ".splitup"
CONFIG_FILE_NAME = "config.json"

HELP_TEXT = """Available commands:
  upload <file> [fragment_size]          Split a file and upload every fragment, writes <file>.manifest.json
  download <manifest> [output_path]      Download fragments listed in a manifest, reassemble and verify
  transfer <file> [fragment_size]        Upload, then download and verify (writes <file>.restored)
  manifest <manifest>                    Show the fragment index -> root listing of a manifest
  config                                 Show current configuration
  set <key> <value>                      Change a configuration value
  clear                                  Clear screen and redisplay welcome message
  help                                   Show this help
  exit                                   Exit REPL

Fragment sizes accept K, M and G suffixes (binary units), e.g. 400M.
Examples:
  set endpoint https://indexer.example.org
  set private_key <hex key>
  upload data/archive.tar 400M
  download data/archive.tar.manifest.json restored/archive.tar
  transfer data/archive.tar"""
