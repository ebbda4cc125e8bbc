"""
Script: ami_tools/list_ami_candidates.py
What: Prints every candidate AMI in selection order without writing anything.
Doing: Reuses the `select-latest-ami` flags and query, sorts with the same rules, and marks the pick with `*`.
Why: When a build picks an unexpected image, the sorted list shows why.
Goal: Make filter sets easy to debug from CI logs.
"""

from __future__ import annotations

import sys
from typing import Callable, Sequence

from ami_tools.common import NoMatchingImage, run_json_cmd
from ami_tools.describe_images import ImageRecord, describe_images
from ami_tools.select_latest_ami import RunInputs, prepare_inputs
from ami_tools.selection import SelectionMode, sort_candidates


PROG = "python3 -m ami_tools.cli list-ami-candidates"


def format_candidates(candidates: Sequence[ImageRecord]) -> list[str]:
    """One `<marker> <id>\\t<name>` line per image, oldest first; the last is the pick."""
    lines = []
    for index, image in enumerate(candidates):
        marker = "*" if index == len(candidates) - 1 else " "
        lines.append(f"{marker} {image.image_id}\t{image.name}")
    return lines


def run(
    inputs: RunInputs,
    *,
    runner: Callable[[Sequence[str]], dict] = run_json_cmd,
) -> list[ImageRecord]:
    args = inputs.args
    images = describe_images(inputs.config, args.owners, args.filters, runner=runner)
    candidates = sort_candidates(images, inputs.mode)
    if not candidates:
        raise NoMatchingImage(
            f"All {len(images)} image(s) were filtered out in {inputs.mode.value} mode"
        )

    print(f"Selection mode: {inputs.mode.value}")
    if inputs.mode is SelectionMode.BASE and len(candidates) < len(images):
        print(f"Skipped {len(images) - len(candidates)} release candidate image(s)")
    for line in format_candidates(candidates):
        print(line)
    return candidates


def main(argv: list[str] | None = None) -> None:
    run(prepare_inputs(sys.argv[1:] if argv is None else argv, PROG))


if __name__ == "__main__":
    main()
