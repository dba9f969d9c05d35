"""JUnit XML result ingestion.

Reads the XML reports written by the JUnit Platform legacy reporter (or
Surefire) and keeps the failed and errored test cases as FailureReport
records. The Platform reporter records each test's unique id and display
name in ``<system-out>``::

    unique-id: [engine:junit-jupiter]/[class:com.x.A]/[method:m()]
    display-name: m()
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from junitlaunch.core.errors import ReportUnreadable
from junitlaunch.core.logging import get_logger

log = get_logger("launch.reports")

_SYSTEM_OUT_FIELD = re.compile(r"^\s*(unique-id|display-name):\s*(.*?)\s*$", re.MULTILINE)
_SEGMENT = re.compile(r"\[(?P<type>[^:\]]+):(?P<value>.*?)\](?=/\[|$)")

_CLASS_SEGMENTS = frozenset({"class"})
_NESTED_SEGMENTS = frozenset({"nested-class"})
_METHOD_SEGMENTS = frozenset({"method", "test-template", "test-factory"})
_INVOCATION_SEGMENTS = frozenset(
    {"test-template-invocation", "dynamic-test", "dynamic-container"}
)


# =============================================================================
# Node Ids
# =============================================================================


def node_id_segments(node_id: str) -> list[tuple[str, str]]:
    """``[engine:x]/[class:A]`` -> ``[("engine", "x"), ("class", "A")]``."""
    return [(m.group("type"), m.group("value")) for m in _SEGMENT.finditer(node_id)]


@dataclass(frozen=True)
class NodeTarget:
    """Class and method a unique id points at."""

    class_name: str | None
    method: str | None  # ``name(params)`` as in the id
    is_invocation: bool  # parameterized or dynamic child of ``method``

    @property
    def method_name(self) -> str | None:
        return self.method.partition("(")[0] if self.method else None


def node_target(node_id: str) -> NodeTarget:
    class_name: str | None = None
    method: str | None = None
    last_type = ""
    for seg_type, value in node_id_segments(node_id):
        if seg_type in _CLASS_SEGMENTS:
            class_name = value
        elif seg_type in _NESTED_SEGMENTS and class_name is not None:
            class_name = f"{class_name}${value}"
        elif seg_type in _METHOD_SEGMENTS:
            method = value
        last_type = seg_type
    return NodeTarget(
        class_name=class_name,
        method=method,
        is_invocation=last_type in _INVOCATION_SEGMENTS,
    )


# =============================================================================
# Failure Reports
# =============================================================================


@dataclass(frozen=True)
class FailureReport:
    """One failed test as reported by the child runner."""

    name: str  # runner-reported test name, e.g. ``m(int)[1]``
    display_name: str
    class_name: str | None
    method_name: str | None
    parameter_types: tuple[str, ...] | None = None  # None when the report omits them
    node_id: str | None = None
    message: str | None = None

    @property
    def target(self) -> NodeTarget | None:
        return node_target(self.node_id) if self.node_id else None


def _split_test_name(name: str) -> tuple[str, tuple[str, ...] | None]:
    """``m(int, String)[2]`` -> ``("m", ("int", "String"))``; bare ``m`` gives None."""
    method, paren, rest = name.partition("(")
    if not paren:
        return method.partition("[")[0].strip(), None
    params = rest.partition(")")[0]
    types = tuple(p.strip() for p in params.split(",") if p.strip())
    return method.strip(), types


def _system_out_fields(testcase: ET.Element) -> dict[str, str]:
    fields: dict[str, str] = {}
    for elem in testcase.findall("system-out"):
        for match in _SYSTEM_OUT_FIELD.finditer(elem.text or ""):
            fields.setdefault(match.group(1), match.group(2))
    return fields


def parse_junit_xml(content: str, source: str = "<memory>") -> list[FailureReport]:
    """Failed and errored test cases of a JUnit XML report.

    Raises:
        ReportUnreadable: If ``content`` is not well-formed XML.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ReportUnreadable.parse_error(source, str(e)) from e

    suites = list(root) if root.tag == "testsuites" else [root]
    reports: list[FailureReport] = []
    for suite in suites:
        for testcase in suite.findall(".//testcase"):
            problem = testcase.find("failure")
            if problem is None:
                problem = testcase.find("error")
            if problem is None:
                continue

            name = testcase.get("name", "")
            fields = _system_out_fields(testcase)
            method_name, parameter_types = _split_test_name(name)
            reports.append(
                FailureReport(
                    name=name,
                    display_name=fields.get("display-name", name),
                    class_name=testcase.get("classname") or None,
                    method_name=method_name or None,
                    parameter_types=parameter_types,
                    node_id=fields.get("unique-id"),
                    message=problem.get("message"),
                )
            )

    log.debug("report_parsed", source=source, failures=len(reports))
    return reports


def load_reports(paths: list[Path]) -> list[FailureReport]:
    reports: list[FailureReport] = []
    for path in paths:
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ReportUnreadable.parse_error(str(path), str(e)) from e
        reports.extend(parse_junit_xml(content, str(path)))
    return reports
