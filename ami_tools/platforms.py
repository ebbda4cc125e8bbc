"""
Script: ami_tools/platforms.py
What: Works out which OS platform an AMI is for, from its name.
Doing: Base images go through an ordered list of name rules; derived images carry the platform as field 4 of the name.
Why: The platform label becomes part of the build variable names, so it must never be guessed.
Goal: Return a label such as `ubuntu`, `amazon-linux`, or `centos`, or fail loudly.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Callable

from ami_tools.common import MissingPlatformTag, UnrecognizedPlatform
from ami_tools.describe_images import ImageRecord
from ami_tools.selection import SelectionMode, name_field


# First match wins, so keep the most specific rules at the top.
BASE_PLATFORM_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (lambda name: name.startswith("ubuntu/"), "ubuntu"),
    (lambda name: name.startswith("amzn-ami-"), "amazon-linux"),
    (lambda name: fnmatchcase(name, "Nubis*CentOS*"), "centos"),
)


def classify_base_platform(image: ImageRecord) -> str:
    for matches, platform in BASE_PLATFORM_RULES:
        if matches(image.name):
            return platform
    raise UnrecognizedPlatform(
        f"Unrecognized platform for {image.image_id} ({image.name})"
    )


def classify_derived_platform(image: ImageRecord) -> str:
    # "nubis-base v1.10.0 ebs centos" -> "centos"
    platform = name_field(image.name, 4)
    if not platform:
        raise MissingPlatformTag(
            f"Image {image.image_id} ({image.name}) has no platform field in its name"
        )
    return platform


def classify_platform(image: ImageRecord, mode: SelectionMode) -> str:
    if mode is SelectionMode.BASE:
        return classify_base_platform(image)
    return classify_derived_platform(image)
