"""Tests for JUnit XML report ingestion."""

from __future__ import annotations

from pathlib import Path

import pytest

from junitlaunch.core.errors import ReportUnreadable
from junitlaunch.launch.reports import (
    load_reports,
    node_id_segments,
    node_target,
    parse_junit_xml,
)

REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testsuites>
  <testsuite name="JUnit Jupiter" tests="4">
    <testcase name="m()" classname="com.x.C" time="0.01">
      <failure message="expected: 1 but was: 2" type="org.opentest4j.AssertionFailedError"/>
      <system-out><![CDATA[
unique-id: [engine:junit-jupiter]/[class:com.x.C]/[method:m()]
display-name: m()
]]></system-out>
    </testcase>
    <testcase name="passes()" classname="com.x.C" time="0.01"/>
    <testcase name="check(int)[2]" classname="com.z.Params" time="0.01">
      <error message="boom"/>
    </testcase>
    <testcase name="testOne" classname="com.x.A" time="0.01">
      <failure/>
    </testcase>
  </testsuite>
</testsuites>
"""


class TestNodeIds:
    def test_segments(self) -> None:
        assert node_id_segments("[engine:junit-jupiter]/[class:com.x.A]/[method:m(int)]") == [
            ("engine", "junit-jupiter"),
            ("class", "com.x.A"),
            ("method", "m(int)"),
        ]

    def test_method_target(self) -> None:
        target = node_target("[engine:junit-jupiter]/[class:com.x.A]/[method:m(int)]")
        assert target.class_name == "com.x.A"
        assert target.method == "m(int)"
        assert target.method_name == "m"
        assert not target.is_invocation

    def test_nested_class_uses_binary_name(self) -> None:
        target = node_target(
            "[engine:junit-jupiter]/[class:com.y.Outer]/[nested-class:Inner]/[method:inner()]"
        )
        assert target.class_name == "com.y.Outer$Inner"
        assert target.method_name == "inner"

    def test_parameterized_invocation(self) -> None:
        target = node_target(
            "[engine:junit-jupiter]/[class:com.z.Params]"
            "/[test-template:check(int)]/[test-template-invocation:#2]"
        )
        assert target.method_name == "check"
        assert target.is_invocation

    def test_class_only(self) -> None:
        target = node_target("[engine:junit-vintage]/[runner:com.x.A]")
        assert target.class_name is None
        assert target.method_name is None


class TestParseJunitXml:
    def test_only_problems_are_reported(self) -> None:
        reports = parse_junit_xml(REPORT)
        assert [r.name for r in reports] == ["m()", "check(int)[2]", "testOne"]

    def test_system_out_fields(self) -> None:
        report = parse_junit_xml(REPORT)[0]
        assert report.node_id == "[engine:junit-jupiter]/[class:com.x.C]/[method:m()]"
        assert report.display_name == "m()"
        assert report.message == "expected: 1 but was: 2"
        assert report.target is not None
        assert report.target.class_name == "com.x.C"

    def test_test_name_split(self) -> None:
        _, params, bare = parse_junit_xml(REPORT)
        assert (params.method_name, params.parameter_types) == ("check", ("int",))
        assert params.node_id is None
        assert params.display_name == "check(int)[2]"
        assert (bare.method_name, bare.parameter_types) == ("testOne", None)
        assert bare.target is None

    def test_empty_parameter_list(self) -> None:
        report = parse_junit_xml(REPORT)[0]
        assert report.parameter_types == ()

    def test_single_suite_root(self) -> None:
        content = (
            '<testsuite name="s"><testcase name="t" classname="com.x.A">'
            "<failure/></testcase></testsuite>"
        )
        assert [r.class_name for r in parse_junit_xml(content)] == ["com.x.A"]

    def test_malformed_xml(self) -> None:
        with pytest.raises(ReportUnreadable) as exc_info:
            parse_junit_xml("<testsuite>", "TEST-broken.xml")
        assert "TEST-broken.xml" in exc_info.value.message


class TestLoadReports:
    def test_reads_every_file(self, tmp_path: Path) -> None:
        first = tmp_path / "TEST-a.xml"
        first.write_text(REPORT, encoding="utf-8")
        second = tmp_path / "TEST-b.xml"
        second.write_text(
            '<testsuite><testcase name="x" classname="com.y.Literal"><error/></testcase></testsuite>',
            encoding="utf-8",
        )
        assert len(load_reports([first, second])) == 4

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ReportUnreadable):
            load_reports([tmp_path / "nope.xml"])
