"""
Script: ami_tools/describe_images.py
What: Calls `aws ec2 describe-images` and returns the image records we care about.
Doing: Builds the CLI command from an explicit provider config, owners, and filters, then parses the JSON reply.
Why: Keeps the only remote call in one place, with the runner injectable for tests.
Goal: Hand the selector a plain list of `ImageRecord` values, or stop with `NoMatchingImage`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Sequence

from ami_tools.common import AmiToolError, NoMatchingImage, optional_env, run_json_cmd


OWNER_SPLIT_RE = re.compile(r"[\s,]+")


@dataclass(frozen=True)
class ProviderConfig:
    """Provider settings passed into the query instead of read from the environment there."""

    region: str
    profile: str = ""
    cli: str = "aws"
    key_prefix: str = "aws"

    @classmethod
    def from_env(cls, region: str) -> "ProviderConfig":
        # The environment is only read here, at the edge of the tool.
        return cls(
            region=region,
            profile=optional_env("AWS_PROFILE"),
            cli=optional_env("AMI_TOOLS_AWS_CLI", "aws"),
            key_prefix=optional_env("AMI_TOOLS_KEY_PREFIX", "aws"),
        )


@dataclass(frozen=True)
class ImageRecord:
    image_id: str
    name: str
    root_device_type: str

    @classmethod
    def from_api(cls, image: dict) -> "ImageRecord":
        """Build a record from one entry of the `Images` array."""
        if not isinstance(image, dict):
            raise AmiToolError(f"describe-images returned a non-object image entry: {image}")
        image_id = str(image.get("ImageId") or "")
        if not image_id:
            raise AmiToolError(f"describe-images returned an image without ImageId: {image}")
        return cls(
            image_id=image_id,
            name=str(image.get("Name") or ""),
            root_device_type=str(image.get("RootDeviceType") or ""),
        )


def split_owners(owners: str) -> list[str]:
    """`"self, 123456789012"` -> `["self", "123456789012"]`."""
    return [owner for owner in OWNER_SPLIT_RE.split(owners) if owner]


def build_describe_images_command(
    config: ProviderConfig,
    owners: str,
    filters: Sequence[tuple[str, str]],
) -> list[str]:
    command = [config.cli, "ec2", "describe-images", "--region", config.region]
    if config.profile:
        command.extend(["--profile", config.profile])
    command.append("--owners")
    command.extend(split_owners(owners))
    if filters:
        command.append("--filters")
        # Values are passed through as typed; the CLI shorthand reads commas
        # inside a value as a list of values.
        command.extend(f"Name={name},Values={value}" for name, value in filters)
    command.extend(["--output", "json"])
    return command


def describe_images(
    config: ProviderConfig,
    owners: str,
    filters: Sequence[tuple[str, str]],
    *,
    runner: Callable[[Sequence[str]], dict] = run_json_cmd,
) -> list[ImageRecord]:
    """
    Return every image matching `owners` and `filters` in provider order.

    A failed query and an empty answer both end the run the same way.
    """
    command = build_describe_images_command(config, owners, filters)
    try:
        reply = runner(command)
        raw_images = reply.get("Images") if isinstance(reply, dict) else None
        if not isinstance(raw_images, list):
            raise AmiToolError(f"Unexpected describe-images reply: {reply}")
        images = [ImageRecord.from_api(image) for image in raw_images]
    except AmiToolError as exc:
        raise NoMatchingImage(f"No matching image: describe-images query failed\n{exc}") from exc

    if not images:
        raise NoMatchingImage(
            f"No matching image found for owners {owners} in {config.region} "
            f"with filters {format_filters(filters)}"
        )
    return images


def format_filters(filters: Sequence[tuple[str, str]]) -> str:
    if not filters:
        return "(none)"
    return " ".join(f"{name}={value}" for name, value in filters)
