"""
Script: ami_tools/select_latest_ami.py
What: Finds the latest source AMI for one builder and records it for the image build.
Doing: Parses flags, queries describe-images, selects and classifies one image, then appends its variables to the output file.
Why: Builds must start from the newest approved source image without anyone copying AMI ids by hand.
Goal: Leave exactly one new `variables` document in the output file per successful run.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Sequence

from ami_tools.arguments import SelectArgs, parse_select_args, usage
from ami_tools.common import load_json_file, optional_env, read_build_variable, require_commands, run_json_cmd
from ami_tools.describe_images import ImageRecord, ProviderConfig, describe_images, format_filters
from ami_tools.output import (
    SelectionResult,
    append_json_document,
    build_key_prefix,
    build_variables_document,
    summary_line,
)
from ami_tools.platforms import classify_platform
from ami_tools.selection import SelectionMode, lookup_root_device_type, select_latest_image


PROG = "python3 -m ami_tools.cli select-latest-ami"


@dataclass(frozen=True)
class RunInputs:
    args: SelectArgs
    config: ProviderConfig
    build_document: dict
    mode: SelectionMode


def prepare_inputs(argv: Sequence[str], prog: str) -> RunInputs:
    """
    Shared startup for commands that take the describe-images flag set.

    Order matters: help/usage first, then the PATH check, then flag parsing.
    """
    if not argv:
        print(usage(prog), file=sys.stderr, end="")
        raise SystemExit(1)
    if argv[0] in ("-h", "--help"):
        print(usage(prog), end="")
        raise SystemExit(0)

    require_commands([optional_env("AMI_TOOLS_AWS_CLI", "aws")])

    args = parse_select_args(argv)
    build_document = load_json_file(args.build_file)
    return RunInputs(
        args=args,
        config=ProviderConfig.from_env(args.region),
        build_document=build_document,
        mode=SelectionMode.from_build_file(build_document),
    )


def resolve_selection(images: Sequence[ImageRecord], mode: SelectionMode) -> SelectionResult:
    """Select, re-read the root device type, and classify, all without I/O."""
    latest = select_latest_image(images, mode)
    return SelectionResult(
        image_id=latest.image_id,
        image_name=latest.name,
        platform=classify_platform(latest, mode),
        root_device_type=lookup_root_device_type(images, latest.image_id),
    )


def run(
    inputs: RunInputs,
    *,
    runner: Callable[[Sequence[str]], dict] = run_json_cmd,
) -> SelectionResult:
    args = inputs.args
    images = describe_images(inputs.config, args.owners, args.filters, runner=runner)
    print(f"describe-images returned {len(images)} image(s) for filters {format_filters(args.filters)}")

    result = resolve_selection(images, inputs.mode)
    prefix = build_key_prefix(inputs.config.key_prefix, result.platform, result.root_device_type)

    # Everything above can fail; the output file is only touched after it all succeeded.
    append_json_document(args.output_file, build_variables_document(prefix, result))

    project_name = read_build_variable(inputs.build_document, "project_name")
    print(summary_line(project_name, prefix, result))
    return result


def main(argv: list[str] | None = None) -> None:
    run(prepare_inputs(sys.argv[1:] if argv is None else argv, PROG))


if __name__ == "__main__":
    main()
