"""
Script: ami_tools/output.py
What: Turns the chosen AMI into build variables and appends them to the output file.
Doing: Builds the `<provider>_<platform>_<rootdevicetype>` key prefix, the `variables` document, and the summary line.
Why: Later build steps read these variables to know which source AMI each builder uses.
Goal: Produce the same bytes for the same selection, and never touch the file on failure.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SelectionResult:
    image_id: str
    image_name: str
    platform: str
    root_device_type: str


def build_key_prefix(provider: str, platform: str, root_device_type: str) -> str:
    """
    Return the variable name prefix for one builder.

    Example: `("aws", "amazon-linux", "instance-store")` ->
    `aws_amazon_linux_instance_store`.
    """
    return f"{provider}_{platform.replace('-', '_')}_{root_device_type.replace('-', '_')}"


def build_variables_document(prefix: str, result: SelectionResult) -> dict:
    return {
        "variables": {
            f"{prefix}_ami": result.image_id,
            f"{prefix}_name": result.image_name,
            f"{prefix}_platform": result.platform,
            f"{prefix}_rootdevicetype": result.root_device_type,
        }
    }


def append_json_document(output_file: Path, document: dict) -> None:
    """
    Append one JSON document to `output_file`.

    The file becomes a sequence of concatenated JSON documents, one per run;
    earlier content is never rewritten.
    """
    with open(output_file, "a", encoding="utf-8") as handle:
        handle.write(json.dumps(document, indent=2) + "\n")


def summary_line(project_name: str, prefix: str, result: SelectionResult) -> str:
    return f"{project_name}: Builder {prefix} is using {result.image_name} ({result.image_id})"
