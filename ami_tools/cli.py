from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Mapping

from ami_tools.common import AmiToolError


def command_map() -> dict[str, Callable[[list[str]], None]]:
    """
    Map CLI command names to Python entry functions.

    Each value is a `main(argv)` function from one helper module.
    """
    from ami_tools.list_ami_candidates import main as list_ami_candidates
    from ami_tools.select_latest_ami import main as select_latest_ami

    return {
        "select-latest-ami": select_latest_ami,
        "list-ami-candidates": list_ami_candidates,
    }


def build_parser(commands: Mapping[str, Callable[[list[str]], None]]) -> argparse.ArgumentParser:
    """Build argument parser with one positional command choice."""
    parser = argparse.ArgumentParser(
        prog="python3 -m ami_tools.cli",
        description="Run one AMI helper command.",
    )
    parser.add_argument("command", choices=sorted(commands.keys()))
    # Everything after the command name belongs to that command's own parser.
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def run_command(
    command: str,
    args: list[str],
    commands: Mapping[str, Callable[[list[str]], None]],
) -> None:
    """
    Run one registered command.

    `commands` is passed in to keep this function easy to test.
    """
    commands[command](args)


def main(argv: list[str] | None = None) -> None:
    # Build command registry once so parser and dispatcher use the same keys.
    commands = command_map()
    parser = build_parser(commands)
    args = parser.parse_args(argv)

    try:
        run_command(args.command, args.args, commands)
    except AmiToolError as exc:
        # Keep failures short and readable in build logs.
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
