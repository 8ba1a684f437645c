"""golem CLI entry point.

This package synchronizes a versioned golem distribution into an install
root while preserving local edits. See `golem --help` for details.
"""

from golem.cli.cli import cli


def main() -> None:
    """CLI entry point used by the `golem` console script."""
    cli()
