"""
Script: ami_tools/selection.py
What: Picks the one "latest" image out of a describe-images result.
Doing: Applies either plain name ordering (base images) or a numeric-aware version ordering (derived images).
Why: Vendor images carry free-text names, while our own builds carry `<product> <version> <devicemode> <platform>` names.
Goal: Make the choice deterministic and testable without any remote calls.
"""

from __future__ import annotations

import enum
import re
from typing import Sequence

from ami_tools.common import InternalInconsistency, NoMatchingImage, read_build_variable
from ami_tools.describe_images import ImageRecord


RELEASE_CANDIDATE_MARKER = ".rc-"
VERSION_SEPARATOR_RE = re.compile(r"[-.]+")
NUMERIC_RE = re.compile(r"^[0-9]+$")


class SelectionMode(enum.Enum):
    BASE = "base"
    DERIVED = "derived"

    @classmethod
    def from_build_file(cls, build_document: dict) -> "SelectionMode":
        """`variables.source_ami_project_name == "base"` selects BASE; anything else is DERIVED."""
        if read_build_variable(build_document, "source_ami_project_name") == "base":
            return cls.BASE
        return cls.DERIVED


def name_field(name: str, position: int) -> str:
    """Return the 1-indexed whitespace field of an image name, or `""`."""
    fields = name.split()
    return fields[position - 1] if len(fields) >= position else ""


def version_token(name: str) -> str:
    # "nubis-base v1.10.0 ebs centos" -> "1.10.0"
    token = name_field(name, 2)
    return token[1:] if token.startswith("v") else token


def version_key(token: str) -> tuple[tuple[int, int | str], ...]:
    """
    Sort key for one version token.

    Each sub-token becomes `(0, number)` or `(1, text)`, so numbers compare
    numerically, words compare as strings, and a number sorts before a word at
    the same position. Empty parts are dropped, so an empty token is `()` and
    sorts below every real version. Tuple comparison puts a shorter key with
    the same prefix first.
    """
    key: list[tuple[int, int | str]] = []
    for part in VERSION_SEPARATOR_RE.split(token):
        if not part:
            continue
        if NUMERIC_RE.match(part):
            key.append((0, int(part)))
        else:
            key.append((1, part))
    return tuple(key)


def compare_versions(left: str, right: str) -> int:
    """Three-way compare two version tokens: -1, 0, or 1."""
    left_key = version_key(left)
    right_key = version_key(right)
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0


def sort_candidates(images: Sequence[ImageRecord], mode: SelectionMode) -> list[ImageRecord]:
    """
    Return the candidates in ascending order; the last one is the pick.

    Release candidates (`.rc-` in the name) are dropped in BASE mode. Sorting
    is stable, so equal keys keep their query order.
    """
    if mode is SelectionMode.BASE:
        candidates = [image for image in images if RELEASE_CANDIDATE_MARKER not in image.name]
        return sorted(candidates, key=lambda image: image.name)
    return sorted(images, key=lambda image: version_key(version_token(image.name)))


def select_latest_image(images: Sequence[ImageRecord], mode: SelectionMode) -> ImageRecord:
    candidates = sort_candidates(images, mode)
    if not candidates:
        raise NoMatchingImage(
            f"No matching image left after {mode.value}-mode filtering of {len(images)} result(s)"
        )
    return candidates[-1]


def lookup_root_device_type(images: Sequence[ImageRecord], image_id: str) -> str:
    """Find the root device type of `image_id` in the same result list."""
    for image in images:
        if image.image_id == image_id:
            return image.root_device_type
    raise InternalInconsistency(f"Selected image {image_id} is missing from the describe-images result")
