"""Integration tests: real sys.monitoring, real files, full pipeline.

Tests:
- Module imported and called under tracking is reported exactly
- Hits inside multi-line literals never count
- Never-imported modules are discovered with zero coverage
- Projects living below a "tests" directory are still tracked
- Sessions from separate runs merge into one report
"""

import importlib.util
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType

import pytest

from covcheck import CoverageConfig, CoverageEngine, merge_sessions
from covcheck.application.services.aggregator import Aggregator
from covcheck.application.services.reconciler import Reconciler
from covcheck.infrastructure.adapters.static_analyzer import StaticAnalyzer
from covcheck.infrastructure.filters.path import normalize_path
from covcheck.infrastructure.monitoring import COVCHECK_TOOL_ID
from tests.factories import write_module

CALC = '''
    """Calculator module."""


    def add(a, b):
        return a + b


    def describe(value):
        text = """
        value is
        """
        if value > 0:
            return text + "positive"
        return text + "non-positive"


    def unused():
        return 0
'''

CALC_EXECUTABLE = frozenset({4, 5, 8, 9, 12, 13, 14, 17, 18})

MULTILINE = """
    def work(n):
        values = [n, -n]
        return sum(
            abs(v)
            for v in values
        )


    def main():
        return work(
            3,
        )
"""


@pytest.fixture(autouse=True)
def free_tool_id() -> Iterator[None]:
    """Skip when another tool holds the covcheck monitoring slot."""
    if sys.monitoring.get_tool(COVCHECK_TOOL_ID) is not None:
        pytest.skip(f"sys.monitoring tool {COVCHECK_TOOL_ID} in use")
    yield
    assert sys.monitoring.get_tool(COVCHECK_TOOL_ID) is None


def _import(path: Path) -> ModuleType:
    name = f"covcheck_e2e_{path.stem}_{abs(hash(str(path)))}"
    spec = importlib.util.spec_from_file_location(name, path)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _engine(root: Path, **options: object) -> CoverageEngine:
    config = CoverageConfig.from_mapping(
        {"enabled": True, "source_dirs": [str(root)], "discover_uncovered": False, **options}
    )
    return CoverageEngine(config)


class TestTrackedRun:
    """Import and call a module while tracking."""

    def test_lines_functions_blocks(self, tmp_path: Path) -> None:
        """Executed code is reported line by line."""
        calc_path = write_module(tmp_path, "calc.py", CALC)
        engine = _engine(tmp_path)

        engine.start()
        try:
            calc = _import(calc_path)
            calc.add(1, 2)
            calc.describe(5)
        finally:
            stats = engine.stop()

        path = normalize_path(str(calc_path))
        file_stats = stats.files[path]
        original = stats.original_files[path]
        assert original.executable == CALC_EXECUTABLE
        assert original.covered == frozenset({4, 5, 8, 9, 12, 13, 17})
        assert (file_stats.lines.covered, file_stats.lines.total) == (7, 9)
        assert [(f.name, f.executed) for f in file_stats.function_details] == [
            ("add", True),
            ("describe", True),
            ("unused", False),
        ]
        assert [(b.kind.value, b.executed) for b in file_stats.block_details] == [("if", True)]
        assert file_stats.uses_static_analysis

    def test_covered_lines_always_executable(self, tmp_path: Path) -> None:
        """Whatever the runtime reports, covered lines are executable."""
        calc_path = write_module(tmp_path, "calc.py", CALC)
        engine = _engine(tmp_path)

        def run() -> int:
            calc = _import(calc_path)
            calc.describe(-1)
            return 0

        _, stats = engine.track(run)

        original = stats.original_files[normalize_path(str(calc_path))]
        assert original.covered <= original.executable
        assert not original.covered & {1, 10, 11}

    def test_multiline_expressions_quiet(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Continuation lines reported by the runtime are dropped without a warning."""
        module_path = write_module(tmp_path, "multi.py", MULTILINE)
        engine = _engine(tmp_path)

        with caplog.at_level(logging.WARNING, logger="covcheck"):
            _, stats = engine.track(lambda: _import(module_path).main())

        original = stats.original_files[normalize_path(str(module_path))]
        assert original.executable == frozenset({1, 2, 3, 9, 10})
        assert original.covered == original.executable
        assert not [r for r in caplog.records if r.name.startswith("covcheck")]

    def test_untracked_code_not_recorded(self, tmp_path: Path) -> None:
        """Only files under the source dirs are recorded."""
        engine = _engine(tmp_path / "src")

        with engine.track_context() as handle:
            sorted([3, 1, 2])

        assert handle.result.files == {}

    def test_idempotent_reports(self, tmp_path: Path) -> None:
        """Reporting twice gives the same numbers."""
        calc_path = write_module(tmp_path, "calc.py", CALC)
        engine = _engine(tmp_path)
        engine.start()
        try:
            _import(calc_path).add(1, 1)
        finally:
            first = engine.stop()

        second = engine.get_report_data()

        path = normalize_path(str(calc_path))
        assert first.files[path] == second.files[path]
        assert first.summary == second.summary


class TestDiscovery:
    """Files that never ran."""

    def test_never_imported_module_reported(self, tmp_path: Path) -> None:
        """Discovered module counts with zero coverage."""
        calc_path = write_module(tmp_path, "calc.py", CALC)
        idle_path = write_module(tmp_path, "pkg/idle.py", "def idle():\n    return 1\n")
        engine = _engine(tmp_path, discover_uncovered=True)

        engine.start()
        try:
            _import(calc_path).add(1, 2)
        finally:
            stats = engine.stop()

        idle = stats.files[normalize_path(str(idle_path))]
        assert idle.discovered
        assert (idle.lines.covered, idle.lines.total) == (0, 2)
        assert not idle.function_details[0].executed
        assert stats.summary.files.total == 2

    def test_project_below_tests_directory(self, tmp_path: Path) -> None:
        """A parent directory named tests neither hides nor downgrades the project."""
        root = tmp_path / "tests" / "proj"
        idle_path = write_module(root, "idle.py", "def idle():\n    return 1\n")
        write_module(root, "tests/helpers.py", "VALUE = 1\n")
        engine = _engine(root, discover_uncovered=True)

        stats = engine.stop()

        assert list(stats.files) == [normalize_path(str(idle_path))]
        idle = stats.files[normalize_path(str(idle_path))]
        assert idle.discovered
        assert idle.uses_static_analysis
        assert (idle.lines.covered, idle.lines.total) == (0, 2)


class TestMerge:
    """Sessions from separate runs."""

    def test_merged_runs(self, tmp_path: Path) -> None:
        """Union of two runs covers what either covered."""
        calc_path = write_module(tmp_path, "calc.py", CALC)

        first = _engine(tmp_path)
        first.track(lambda: _import(calc_path).add(1, 2))
        second = _engine(tmp_path)
        second.track(lambda: _import(calc_path).describe(0))

        merged = merge_sessions(first.session, second.session)
        stats = Aggregator(Reconciler(StaticAnalyzer())).aggregate(merged)

        original = stats.original_files[normalize_path(str(calc_path))]
        assert original.covered == frozenset({4, 5, 8, 9, 12, 14, 17})
