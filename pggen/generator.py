"""Configuration and output assembly for the code generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

DEFAULT_OUTPUT_FILE_NAME = "./pg_generated.go"
GENERATED_HEADER = "// Code generated by pggen DO NOT EDIT.\n"


class GeneratorError(Exception):
    """Raised when the code generator cannot run."""


@dataclass
class Config:
    """Options for one run of the code generator."""

    config_file_path: str = ""
    output_file_name: str = ""
    connection_strings: list[str] = field(default_factory=list)
    disable_vars: list[str] = field(default_factory=list)
    enable_vars: list[str] = field(default_factory=list)
    # -1 is quiet, 0 normal, 1 verbose
    verbosity: int = 0


def normalize_output_file_name(name: str) -> str:
    """Fill in the default output name and make a ``.go`` name end in ``.gen.go``."""
    if not name:
        name = DEFAULT_OUTPUT_FILE_NAME
    if name.endswith(".go") and not name.endswith(".gen.go"):
        name = name[: -len(".go")] + ".gen.go"
    return name


def candidate_connection_strings(
    connection_strings: Iterable[str], environ: Mapping[str, str]
) -> list[str]:
    """Return the connection strings to try, in order.

    With none given, ``DB_URL`` from ``environ`` is used. Empty entries are
    skipped and entries of the form ``$VAR`` are read from ``environ``.
    """
    given = list(connection_strings)
    if not given:
        db_url = environ.get("DB_URL", "")
        if not db_url:
            raise GeneratorError(
                "No connection string. Either pass '-c' or set DB_URL in the environment."
            )
        given = [db_url]

    return [
        environ.get(conn[1:], "") if conn.startswith("$") else conn
        for conn in given
        if conn
    ]


def initial_imports() -> set[str]:
    """Return the imports every generated file needs."""
    return {'"context"'}


def render_generated_file(pkg: str, imports: Iterable[str], body: str) -> str:
    """Assemble the header, package clause, sorted imports and body of a file."""
    import_lines = "".join(f"\t{imp}\n" for imp in sorted(i for i in imports if i))
    return (
        GENERATED_HEADER
        + f"\npackage {pkg}\n\nimport (\n"
        + import_lines
        + ")\n\n"
        + body
    )