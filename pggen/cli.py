"""Command-line argument parsing for the code generator."""

from __future__ import annotations

import sys
from typing import Sequence

from pggen.generator import Config

USAGE = """
Usage: pggen [<options>] <config-file>

Args:
  <config-file>   TOML file listing the database objects to generate code for.

Options:
  -h, --help
      Show this help and exit.

  -c, --connection-string <connection-string>
      Postgres connection string. Repeatable: the strings are tried in the
      order given until one connects. A value starting with '$' names an
      environment variable holding the string. Defaults to $DB_URL.

  -o, --output-file <file-name>
      File to write the generated code to. A name ending in .go is changed
      to end in .gen.go. Defaults to ./pg_generated.gen.go.

  -d, --disable-var <var-pattern>
      Do nothing when the pattern matches the environment. 'VAR' matches when
      a variable of that name is set; 'VAR=value' matches when it holds that
      value. Repeatable: any single match disables generation.

  -e, --enable-var <var-pattern>
      Do nothing unless the pattern matches the environment. Repeatable:
      every pattern must match. Combined with --disable-var, generation is
      skipped whenever either kind of pattern says so.
"""

_LIST_FLAGS = {
    "-c": "connection_strings",
    "--connection-string": "connection_strings",
    "-d": "disable_vars",
    "--disable-var": "disable_vars",
    "-e": "enable_vars",
    "--enable-var": "enable_vars",
}
_OUTPUT_FLAGS = {"-o", "--output-file"}
_HELP_FLAGS = {"-h", "--help"}


class UsageError(Exception):
    """Raised when the arguments are malformed or help was asked for."""

    def __init__(self, help_requested: bool = False) -> None:
        super().__init__(USAGE)
        self.usage = USAGE
        self.help_requested = help_requested

    @property
    def exit_code(self) -> int:
        return 0 if self.help_requested else 1


def parse_args(argv: Sequence[str] | None = None) -> Config:
    """Parse command-line arguments (without the program name) into a Config."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        raise UsageError()

    config = Config()
    while args:
        flag = args[0]
        if flag in _LIST_FLAGS or flag in _OUTPUT_FLAGS:
            if len(args) < 2:
                raise UsageError()
            value = args[1]
            if flag in _OUTPUT_FLAGS:
                config.output_file_name = value
            else:
                getattr(config, _LIST_FLAGS[flag]).append(value)
            args = args[2:]
        elif flag in _HELP_FLAGS:
            raise UsageError(help_requested=True)
        elif len(args) == 1:
            config.config_file_path = flag
            break
        else:
            raise UsageError()
    return config