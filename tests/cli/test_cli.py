"""Tests for the jlaunch command line."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from junitlaunch.cli.main import cli

from conftest import sample_project_data

runner = CliRunner()

C_M = "[engine:junit-jupiter]/[class:com.x.C]/[method:m()]"
FAILED_REPORT = f"""<testsuite name="JUnit Jupiter">
  <testcase name="m()" classname="com.x.C">
    <failure message="boom"/>
    <system-out>unique-id: {C_M}</system-out>
  </testcase>
</testsuite>
"""


def _write_yaml(path: Path, data: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _no_global_config(tmp_path: Path) -> Iterator[None]:
    with patch("junitlaunch.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "global.yaml"):
        yield


@pytest.fixture
def project_file(tmp_path: Path) -> Path:
    return _write_yaml(tmp_path / "project.yaml", sample_project_data())


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Project root whose config sends the runner to the Python interpreter."""
    repo = tmp_path / "repo"
    _write_yaml(
        repo / ".jlaunch" / "config.yaml",
        {
            "logging": {"level": "ERROR"},
            "launch": {
                "java_executable": sys.executable,
                "jvm_args": ["-c", "import sys; print('runner', sys.argv[-1])"],
                "scratch_dir": str(tmp_path / "scratch"),
            },
        },
    )
    return repo


def _spec(tmp_path: Path, **data: Any) -> Path:
    return _write_yaml(tmp_path / "spec.yaml", data)


class TestValidateCommand:
    def test_format_only(self, tmp_path: Path) -> None:
        spec = _spec(tmp_path, TEST_OBJECT="class", MAIN_CLASS_NAME="com.x.C")
        result = runner.invoke(cli, ["validate", str(spec)])
        assert result.exit_code == 0

    def test_against_project(self, tmp_path: Path, project_file: Path) -> None:
        spec = _spec(tmp_path, TEST_OBJECT="TEST_METHOD", MAIN_CLASS_NAME="com.x.C", METHOD_NAME="m")
        result = runner.invoke(cli, ["validate", str(spec), "--project", str(project_file)])
        assert result.exit_code == 0

    def test_invalid_specification(self, tmp_path: Path, project_file: Path) -> None:
        spec = _spec(tmp_path, TEST_OBJECT="package")
        result = runner.invoke(cli, ["validate", str(spec), "--project", str(project_file)])
        assert result.exit_code == 1
        assert "Package is not specified" in result.output

    def test_unknown_kind(self, tmp_path: Path) -> None:
        spec = _spec(tmp_path, TEST_OBJECT="everything")
        result = runner.invoke(cli, ["validate", str(spec)])
        assert result.exit_code == 1
        assert "TEST_OBJECT" in result.output

    def test_missing_spec_file(self, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["validate", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2


class TestPlanCommand:
    def test_json(self, tmp_path: Path, project_file: Path, root: Path) -> None:
        spec = _spec(tmp_path, TEST_OBJECT="class", MAIN_CLASS_NAME="com.x.C")
        result = runner.invoke(
            cli,
            ["plan", str(spec), "--project", str(project_file), "--root", str(root), "--json"],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "kind": "class",
            "engine": "junit5",
            "fork_mode": "none",
            "batches": [{"name": "", "leaves": ["com.x.C"]}],
            "warnings": [],
        }

    def test_whole_project_json_splits_modules(
        self, tmp_path: Path, project_file: Path, root: Path
    ) -> None:
        spec = _spec(tmp_path, TEST_OBJECT="package", PACKAGE_NAME="")
        result = runner.invoke(
            cli,
            ["plan", str(spec), "--project", str(project_file), "--root", str(root), "--json"],
        )
        assert result.exit_code == 0, result.output
        batches = json.loads(result.stdout)["batches"]
        assert [b["name"] for b in batches] == ["app", "core"]

    def test_text_output(self, tmp_path: Path, project_file: Path, root: Path) -> None:
        spec = _spec(tmp_path, TEST_OBJECT="class", MAIN_CLASS_NAME="com.x.Helper")
        result = runner.invoke(
            cli, ["plan", str(spec), "--project", str(project_file), "--root", str(root)]
        )
        assert result.exit_code == 0, result.output


class TestRunCommand:
    def test_runner_output_and_cleanup(
        self, tmp_path: Path, project_file: Path, root: Path
    ) -> None:
        spec = _spec(tmp_path, TEST_OBJECT="class", MAIN_CLASS_NAME="com.y.Literal")
        result = runner.invoke(
            cli, ["run", str(spec), "--project", str(project_file), "--root", str(root)]
        )
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("runner @")
        assert list((tmp_path / "scratch").iterdir()) == []

    def test_runner_exit_code_is_propagated(
        self, tmp_path: Path, project_file: Path, root: Path
    ) -> None:
        _write_yaml(
            root / ".jlaunch" / "config.yaml",
            {"launch": {"java_executable": sys.executable, "jvm_args": ["-c", "raise SystemExit(3)"]}},
        )
        spec = _spec(tmp_path, TEST_OBJECT="class", MAIN_CLASS_NAME="com.y.Literal")
        result = runner.invoke(
            cli, ["run", str(spec), "--project", str(project_file), "--root", str(root)]
        )
        assert result.exit_code == 3

    def test_spawn_failure(self, tmp_path: Path, project_file: Path, root: Path) -> None:
        _write_yaml(
            root / ".jlaunch" / "config.yaml",
            {"launch": {"java_executable": str(tmp_path / "no-java")}},
        )
        spec = _spec(tmp_path, TEST_OBJECT="class", MAIN_CLASS_NAME="com.y.Literal")
        result = runner.invoke(
            cli, ["run", str(spec), "--project", str(project_file), "--root", str(root)]
        )
        assert result.exit_code == 1
        assert "Failed to start test runner" in result.output


class TestRerunCommand:
    def _invoke(self, tmp_path: Path, project_file: Path, *extra: str) -> Any:
        spec = _spec(tmp_path, TEST_OBJECT="package", PACKAGE_NAME="com.x", FORK_MODE="method")
        report = tmp_path / "TEST-com.x.C.xml"
        report.write_text(FAILED_REPORT, encoding="utf-8")
        return runner.invoke(
            cli,
            ["rerun", str(spec), "--project", str(project_file), "--report", str(report), *extra],
        )

    def test_yaml_to_stdout(self, tmp_path: Path, project_file: Path) -> None:
        result = self._invoke(tmp_path, project_file)
        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.stdout)
        assert data["TEST_OBJECT"] == "uniqueId"
        assert data["UNIQUE_IDS"] == [C_M]
        assert data["FORK_MODE"] == "method"
        assert data["MODULE"] == "app"

    def test_output_file(self, tmp_path: Path, project_file: Path) -> None:
        output = tmp_path / "out" / "rerun.yaml"
        result = self._invoke(tmp_path, project_file, "--output", str(output))
        assert result.exit_code == 0, result.output
        data = yaml.safe_load(output.read_text(encoding="utf-8"))
        assert data["UNIQUE_IDS"] == [C_M]

    def test_status_counts_distinct_tests(self, tmp_path: Path, project_file: Path) -> None:
        again = tmp_path / "again" / "TEST-com.x.C.xml"
        again.parent.mkdir()
        again.write_text(FAILED_REPORT, encoding="utf-8")
        result = self._invoke(tmp_path, project_file, "--report", str(again))
        assert result.exit_code == 0, result.output
        assert "Rerunning 1 failed test" in result.stderr
        assert "2 failed tests" not in result.output

    def test_unreadable_report(self, tmp_path: Path, project_file: Path) -> None:
        spec = _spec(tmp_path, TEST_OBJECT="package", PACKAGE_NAME="com.x")
        report = tmp_path / "broken.xml"
        report.write_text("<testsuite>", encoding="utf-8")
        result = runner.invoke(
            cli, ["rerun", str(spec), "--project", str(project_file), "--report", str(report)]
        )
        assert result.exit_code == 1
        assert "broken.xml" in result.output
