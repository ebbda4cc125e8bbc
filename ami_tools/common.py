"""
Script: ami_tools/common.py
What: Shared helper functions used by all `ami_tools` modules.
Doing: Defines the error types and wraps env reads, command execution, PATH checks, and JSON file reads.
Why: Avoids duplicated helper code.
Goal: Keep behavior consistent across all helper modules.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from pathlib import Path
from typing import Sequence


class AmiToolError(RuntimeError):
    """Raised when an AMI helper hits a known error condition."""


# Argument parsing stage.
class MissingArgument(AmiToolError):
    """A flag was given without its value."""


class InvalidPath(AmiToolError):
    """A file path flag points somewhere we cannot read or write."""


class MissingRequiredOption(AmiToolError):
    """One of the required flags was never given."""


class InvalidArgument(AmiToolError):
    """A token on the command line is not a `--flag` or a flag value."""


# Startup stage.
class DependencyMissing(AmiToolError):
    """A required external command is not on PATH."""


# Query, selection, and classification stages.
class CommandFailed(AmiToolError):
    """An external command exited non-zero or printed unexpected output."""


class BuildFileError(AmiToolError):
    """The build descriptor could not be read as JSON."""


class NoMatchingImage(AmiToolError):
    """The query returned nothing usable, or every image was filtered out."""


class InternalInconsistency(AmiToolError):
    """The selected image id is missing from the result list it came from."""


class UnrecognizedPlatform(AmiToolError):
    """A base image name matched none of the known platform patterns."""


class MissingPlatformTag(AmiToolError):
    """A derived image name has no platform field."""


def optional_env(name: str, default: str = "") -> str:
    """Return an environment variable with a fallback default."""
    return os.environ.get(name, default)


def require_commands(names: Sequence[str]) -> None:
    """Fail when any of the given executables cannot be found on PATH."""
    missing = [name for name in names if shutil.which(name) is None]
    if missing:
        raise DependencyMissing(f"Required command(s) not found on PATH: {' '.join(missing)}")


def run_cmd(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    cwd: str | None = None,
) -> str:
    """Run a command and return stdout, raising a readable error on failure."""
    try:
        result = subprocess.run(
            list(args),
            check=True,
            text=True,
            capture_output=capture_output,
            cwd=cwd,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        stdout = (exc.stdout or "").strip()
        details = stderr or stdout or str(exc)
        raise CommandFailed(f"Command failed: {' '.join(args)}\n{details}") from exc
    except OSError as exc:
        raise CommandFailed(f"Command failed: {' '.join(args)}\n{exc}") from exc

    if not capture_output:
        return ""
    return result.stdout


def run_json_cmd(args: Sequence[str]) -> dict:
    """Run a command that returns JSON and parse it."""
    output = run_cmd(args)
    try:
        return json.loads(output)
    except json.JSONDecodeError as exc:
        raise CommandFailed(f"Expected JSON from command: {' '.join(args)}") from exc


def load_json_file(path: Path) -> dict:
    """Read one JSON object from disk."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except OSError as exc:
        raise BuildFileError(f"Could not read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise BuildFileError(f"File is not valid JSON: {path}") from exc
    if not isinstance(data, dict):
        raise BuildFileError(f"Expected a JSON object at the top of {path}")
    return data


def read_build_variable(build_document: dict, name: str) -> str:
    """
    Return `variables.<name>` from a build descriptor as a string.

    Missing keys and JSON nulls both come back as an empty string, so callers
    can treat "not set" the same way everywhere.
    """
    variables = build_document.get("variables") or {}
    if not isinstance(variables, dict):
        return ""
    value = variables.get(name)
    return "" if value is None else str(value)
