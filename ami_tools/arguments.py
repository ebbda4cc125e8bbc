"""
Script: ami_tools/arguments.py
What: Turns the command-line tokens of an AMI lookup into one `SelectArgs` value.
Doing: Walks `--flag value` pairs, keeps the four reserved options, and collects every other flag as a describe-images filter.
Why: Filter names are open-ended (`--name`, `--tag:project`, ...), so a fixed argparse option table cannot describe them.
Goal: Fail early with a clear message before any remote call is made.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from ami_tools.common import (
    InvalidArgument,
    InvalidPath,
    MissingArgument,
    MissingRequiredOption,
)


RESERVED_OPTIONS = ("owners", "region", "build-file", "output-file")

USAGE = """\
usage: {prog} --owners <ids> --region <region> --build-file <path> --output-file <path> [--<filter> <value> ...]

Query describe-images and append the latest matching AMI to a build config.

required options:
  --owners <ids>         image owner account ids or aliases (comma or space separated)
  --region <region>      region to query
  --build-file <path>    build descriptor JSON (must exist and be readable)
  --output-file <path>   JSON file to append the selected AMI variables to

filters:
  --<filter> <value>     any other flag is passed to describe-images as
                         Name=<filter>,Values=<value>, e.g. --name 'ubuntu/*'
"""


@dataclass(frozen=True)
class SelectArgs:
    owners: str
    region: str
    build_file: Path
    output_file: Path
    # `(filter_name, value)` pairs in command-line order.
    filters: list[tuple[str, str]] = field(default_factory=list)


def usage(prog: str) -> str:
    return USAGE.format(prog=prog)


def _check_readable_file(path: Path) -> None:
    if not path.is_file() or not os.access(path, os.R_OK):
        raise InvalidPath(f"--build-file {path} is not a readable file")


def _check_writable_file(path: Path) -> None:
    # An existing file must be writable; a new file needs a writable directory.
    if path.exists():
        if not path.is_file() or not os.access(path, os.W_OK):
            raise InvalidPath(f"--output-file {path} is not a writable file")
        return
    parent = path.parent
    if not parent.is_dir() or not os.access(parent, os.W_OK | os.X_OK):
        raise InvalidPath(f"--output-file {path} cannot be created in {parent}")


def parse_select_args(tokens: Sequence[str]) -> SelectArgs:
    """
    Parse `--flag value` tokens.

    Rules:
    - Every flag takes exactly one value token; a missing token is an error.
    - An empty value for a required option counts as that option not being set.
    - `--owners`, `--region`, `--build-file`, `--output-file` are required.
    - Any other flag becomes a filter pair, kept in the order given.
    - Bare words (positional arguments) are rejected.
    """
    options: dict[str, str] = {}
    filters: list[tuple[str, str]] = []

    index = 0
    while index < len(tokens):
        token = tokens[index]
        if not token.startswith("--") or token == "--":
            raise InvalidArgument(f"Unexpected argument: {token}")

        name = token[2:]
        if index + 1 >= len(tokens) or tokens[index + 1].startswith("--"):
            raise MissingArgument(f"Option {token} requires a value")
        value = tokens[index + 1]

        if name in RESERVED_OPTIONS:
            options[name] = value
            # Empty values are reported as unset once all tokens are read.
            # Paths are validated as soon as we see them, so the error names the flag.
            if value and name == "build-file":
                _check_readable_file(Path(value))
            elif value and name == "output-file":
                _check_writable_file(Path(value))
        elif not value:
            raise MissingArgument(f"Filter {token} requires a value")
        else:
            filters.append((name, value))
        index += 2

    for name in RESERVED_OPTIONS:
        if not options.get(name):
            raise MissingRequiredOption(f"Missing required option: --{name}")

    return SelectArgs(
        owners=options["owners"],
        region=options["region"],
        build_file=Path(options["build-file"]),
        output_file=Path(options["output-file"]),
        filters=filters,
    )
