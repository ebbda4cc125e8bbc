"""
Script: tests/test_select_latest_ami.py
What: End-to-end tests for the `select-latest-ami` command.
Doing: Runs the whole pipeline against a fake describe-images reply and checks the appended variables and summary.
Why: Catches wiring mistakes between parsing, selection, classification, and output.
Goal: Keep one successful run equal to one new `variables` document.
"""

from __future__ import annotations

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from ami_tools.common import DependencyMissing, NoMatchingImage, UnrecognizedPlatform
from ami_tools.describe_images import ImageRecord
from ami_tools.select_latest_ami import prepare_inputs, resolve_selection, run
from ami_tools.selection import SelectionMode


def _reply(*images: tuple[str, str, str]) -> dict:
    return {
        "Images": [
            {"ImageId": image_id, "Name": name, "RootDeviceType": root_device_type}
            for image_id, name, root_device_type in images
        ]
    }


class SelectLatestAmiTests(unittest.TestCase):
    def setUp(self) -> None:
        temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(temp_dir.cleanup)
        self.root = Path(temp_dir.name)
        self.output_file = self.root / "amis.json"
        # Keep the PATH check independent of whatever is installed on the test host.
        which = mock.patch("ami_tools.common.shutil.which", return_value="/usr/bin/aws")
        which.start()
        self.addCleanup(which.stop)
        env = mock.patch.dict("os.environ", {}, clear=True)
        env.start()
        self.addCleanup(env.stop)

    def _inputs(self, source_ami_project_name: str | None, *filters: str):
        variables = {"project_name": "nubis-jumphost"}
        if source_ami_project_name is not None:
            variables["source_ami_project_name"] = source_ami_project_name
        build_file = self.root / "project.json"
        build_file.write_text(json.dumps({"variables": variables}), encoding="utf-8")
        return prepare_inputs(
            [
                "--owners", "self",
                "--region", "us-west-2",
                "--build-file", str(build_file),
                "--output-file", str(self.output_file),
                *filters,
            ],
            "select-latest-ami",
        )

    def _run(self, inputs, reply: dict) -> tuple[str, list[list[str]]]:
        commands: list[list[str]] = []

        def _runner(command):
            commands.append(list(command))
            return reply

        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            run(inputs, runner=_runner)
        return stdout.getvalue(), commands

    def test_derived_mode_end_to_end(self) -> None:
        inputs = self._inputs("nubis-base", "--name", "nubis-base *")
        self.assertIs(inputs.mode, SelectionMode.DERIVED)

        stdout, commands = self._run(
            inputs,
            _reply(
                ("ami-new", "nubis-base v1.10.0 ebs centos", "ebs"),
                ("ami-old", "nubis-base v1.2.0 ebs centos", "ebs"),
            ),
        )

        self.assertIn("Name=name,Values=nubis-base *", commands[0])
        self.assertEqual(
            json.loads(self.output_file.read_text(encoding="utf-8")),
            {
                "variables": {
                    "aws_centos_ebs_ami": "ami-new",
                    "aws_centos_ebs_name": "nubis-base v1.10.0 ebs centos",
                    "aws_centos_ebs_platform": "centos",
                    "aws_centos_ebs_rootdevicetype": "ebs",
                }
            },
        )
        self.assertIn(
            "nubis-jumphost: Builder aws_centos_ebs is using nubis-base v1.10.0 ebs centos (ami-new)",
            stdout,
        )

    def test_base_mode_end_to_end(self) -> None:
        inputs = self._inputs("base")
        self.assertIs(inputs.mode, SelectionMode.BASE)

        self._run(
            inputs,
            _reply(
                ("ami-b", "ubuntu/images/b", "ebs"),
                ("ami-a", "ubuntu/images/a", "ebs"),
                ("ami-rc", "ubuntu/images/c.rc-1", "ebs"),
            ),
        )

        variables = json.loads(self.output_file.read_text(encoding="utf-8"))["variables"]
        self.assertEqual(variables["aws_ubuntu_ebs_ami"], "ami-b")
        self.assertEqual(variables["aws_ubuntu_ebs_platform"], "ubuntu")

    def test_derived_mode_skips_name_without_version(self) -> None:
        inputs = self._inputs("nubis-base")
        self._run(
            inputs,
            _reply(
                ("ami-1", "nubis-base v1.10.0 ebs centos", "ebs"),
                ("ami-2", "nubis-base", "ebs"),
            ),
        )
        variables = json.loads(self.output_file.read_text(encoding="utf-8"))["variables"]
        self.assertEqual(variables["aws_centos_ebs_ami"], "ami-1")

    def test_missing_mode_field_means_derived(self) -> None:
        self.assertIs(self._inputs(None).mode, SelectionMode.DERIVED)

    def test_key_prefix_comes_from_provider_config(self) -> None:
        with mock.patch.dict("os.environ", {"AMI_TOOLS_KEY_PREFIX": "amazon"}):
            inputs = self._inputs("base")
        self._run(inputs, _reply(("ami-1", "amzn-ami-hvm-2016", "instance-store")))
        variables = json.loads(self.output_file.read_text(encoding="utf-8"))["variables"]
        self.assertEqual(variables["amazon_amazon_linux_instance_store_ami"], "ami-1")

    def test_no_output_written_on_failure(self) -> None:
        inputs = self._inputs("base")
        with self.assertRaises(UnrecognizedPlatform):
            self._run(inputs, _reply(("ami-1", "debian-stretch", "ebs")))
        with self.assertRaises(NoMatchingImage):
            self._run(inputs, _reply())
        self.assertFalse(self.output_file.exists())

    def test_repeated_runs_append_identical_documents(self) -> None:
        inputs = self._inputs("base")
        reply = _reply(("ami-1", "Nubis CentOS 7", "ebs"))
        self._run(inputs, reply)
        first = self.output_file.read_text(encoding="utf-8")
        self._run(inputs, reply)
        self.assertEqual(self.output_file.read_text(encoding="utf-8"), first * 2)


class PrepareInputsTests(unittest.TestCase):
    def test_no_arguments_prints_usage_and_fails(self) -> None:
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as raised:
            prepare_inputs([], "select-latest-ami")
        self.assertEqual(raised.exception.code, 1)
        self.assertIn("usage: select-latest-ami", stderr.getvalue())

    def test_help_prints_usage_and_succeeds(self) -> None:
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout), self.assertRaises(SystemExit) as raised:
            prepare_inputs(["--help"], "select-latest-ami")
        self.assertEqual(raised.exception.code, 0)
        self.assertIn("--output-file", stdout.getvalue())

    def test_missing_cli_fails_before_parsing(self) -> None:
        with mock.patch("ami_tools.common.shutil.which", return_value=None):
            # The stray token would be an InvalidArgument if parsing ran first.
            with self.assertRaisesRegex(DependencyMissing, "aws"):
                prepare_inputs(["stray"], "select-latest-ami")


class ResolveSelectionTests(unittest.TestCase):
    def test_result_carries_root_device_type_of_pick(self) -> None:
        images = [
            ImageRecord("ami-1", "p v1 instance-store amazon-linux", "instance-store"),
            ImageRecord("ami-2", "p v2 ebs amazon-linux", "ebs"),
        ]
        result = resolve_selection(images, SelectionMode.DERIVED)
        self.assertEqual(
            (result.image_id, result.platform, result.root_device_type),
            ("ami-2", "amazon-linux", "ebs"),
        )


if __name__ == "__main__":
    unittest.main()
