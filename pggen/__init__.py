"""Field sets, errors, handle protocols, SQL builders, Go templates and argument parsing for typed PostgreSQL client generation."""

__version__ = "0.1.0"