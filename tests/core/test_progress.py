"""Tests for CLI progress helpers."""

import pytest

from junitlaunch.core.progress import (
    is_console_suppressed,
    leaf_label,
    pluralize,
    spinner,
    status,
    suppress_console_logs,
)


class TestPluralize:
    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, "0 tests"), (1, "1 test"), (2, "2 tests")],
    )
    def test_default_plural(self, count: int, expected: str) -> None:
        assert pluralize(count, "test") == expected

    def test_irregular_plural(self) -> None:
        assert pluralize(3, "batch", "batches") == "3 batches"


class TestLeafLabel:
    def test_unique_id_leaf(self) -> None:
        assert leaf_label("\x1b[engine:junit-jupiter]") == "<id> [engine:junit-jupiter]"

    def test_plain_leaf(self) -> None:
        assert leaf_label("com.x.A,foo()") == "com.x.A,foo()"


class TestConsoleSuppression:
    def test_nested_suppression_restores_outer_state(self) -> None:
        assert not is_console_suppressed()
        with suppress_console_logs():
            with suppress_console_logs():
                assert is_console_suppressed()
            assert is_console_suppressed()
        assert not is_console_suppressed()


class TestOutput:
    def test_status_prints_markup_literally(self, capsys: pytest.CaptureFixture[str]) -> None:
        status("[bold] is not markup", style="warning")
        assert "[bold] is not markup" in capsys.readouterr().err

    def test_spinner_without_terminal(self, capsys: pytest.CaptureFixture[str]) -> None:
        with spinner("Running tests"):
            assert not is_console_suppressed()
        assert "Running tests..." in capsys.readouterr().err
