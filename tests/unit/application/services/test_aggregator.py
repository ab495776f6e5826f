"""Tests for Aggregator: counts, percentages, overall score."""

from unittest.mock import Mock

import pytest

from covcheck.application.services.aggregator import Aggregator
from covcheck.application.services.reconciler import Reconciler
from covcheck.domain.model.code_map import MAIN_CHUNK_NAME, BlockKind, BlockRecord, FunctionRecord
from covcheck.domain.model.configuration import OverallWeights
from covcheck.domain.model.file_data import FileData
from covcheck.infrastructure.adapters.static_analyzer import StaticAnalyzer
from tests.factories import (
    DEFAULT_TEST_FILE,
    InMemoryDiscovery,
    make_code_map,
    make_config,
    make_file_data,
    make_reader,
    make_session,
    numbered_source,
)


def _aggregator() -> Aggregator:
    return Aggregator(Reconciler(StaticAnalyzer()))


def _reconciled_file(
    covered_lines: int,
    executed_functions: int,
    executed_blocks: int,
) -> FileData:
    """10 executable lines, 5 functions, 10 blocks with given execution."""
    code_map = make_code_map(
        line_count=10,
        executable=range(1, 11),
        functions=[FunctionRecord(f"f{n}", n, n) for n in range(1, 6)],
        blocks=[BlockRecord(f"if_{n}", BlockKind.IF, n, n) for n in range(1, 11)],
    )
    data = make_file_data(
        numbered_source(10), code_map=code_map, executed=range(1, covered_lines + 1)
    )
    data.executable = {line: True for line in range(1, 11)}
    data.functions_executed = {
        func.key: func.start_line <= executed_functions for func in code_map.functions
    }
    data.blocks_executed = {f"if_{n}": n <= executed_blocks for n in range(1, 11)}
    return data


class TestLineCoverage:
    """Line counts come from the reconciled executable map."""

    def test_seven_of_ten(self) -> None:
        """7 of 10 executable lines is 70.0 percent."""
        data = make_file_data(numbered_source(10), executed=range(1, 8))

        stats = _aggregator().aggregate(make_session(data))

        file_stats = stats.files[DEFAULT_TEST_FILE]
        assert (file_stats.lines.covered, file_stats.lines.total) == (7, 10)
        assert file_stats.lines.percent == 70.0
        assert not file_stats.passes_threshold
        assert stats.summary.lines.percent == 70.0

    def test_threshold_per_file(self) -> None:
        """A file passes at or above the threshold."""
        data = make_file_data(numbered_source(10), executed=range(1, 8))

        stats = _aggregator().aggregate(make_session(data, config=make_config(threshold=70.0)))

        assert stats.files[DEFAULT_TEST_FILE].passes_threshold

    def test_global_percent_over_all_files(self) -> None:
        """Totals are summed before dividing."""
        first = make_file_data(numbered_source(10), path="/proj/src/a.py", executed=range(1, 11))
        second = make_file_data(numbered_source(30), path="/proj/src/b.py")

        stats = _aggregator().aggregate(make_session(first, second))

        assert stats.summary.lines.percent == 25.0
        assert (stats.summary.files.covered, stats.summary.files.total) == (1, 2)


class TestFunctions:
    """Function details."""

    def test_module_without_functions(self) -> None:
        """One synthetic function, executed when any line ran."""
        data = make_file_data(numbered_source(3), executed=[1])

        stats = _aggregator().aggregate(make_session(data))

        (info,) = stats.files[DEFAULT_TEST_FILE].function_details
        assert info.name == MAIN_CHUNK_NAME
        assert info.executed
        assert stats.files[DEFAULT_TEST_FILE].functions.percent == 100.0

    def test_calls_reported(self) -> None:
        """Call counts appear in details, sorted by line."""
        source = "def b():\n    return 1\n\n\ndef a():\n    return 2\n"
        data = make_file_data(source, calls=[(5, "a"), (5, "a")])

        stats = _aggregator().aggregate(make_session(data))

        details = stats.files[DEFAULT_TEST_FILE].function_details
        assert [(d.name, d.calls, d.executed) for d in details] == [("b", 0, False), ("a", 2, True)]


class TestOverall:
    """Weighted overall score."""

    def test_weighted_with_blocks(self) -> None:
        """80% lines, 60% functions, 90% blocks give 82.0."""
        session = make_session(_reconciled_file(8, 3, 9))

        stats = Aggregator(Mock()).aggregate(session)

        summary = stats.summary
        assert (summary.lines.percent, summary.functions.percent, summary.blocks.percent) == (
            80.0,
            60.0,
            90.0,
        )
        assert summary.overall_percent == pytest.approx(82.0)
        assert not summary.passes_threshold

    def test_fallback_without_block_tracking(self) -> None:
        """Without blocks: 0.8 * lines + 0.2 * functions."""
        session = make_session(_reconciled_file(8, 3, 9), config=make_config(track_blocks=False))

        stats = Aggregator(Mock()).aggregate(session)

        assert stats.summary.overall_percent == pytest.approx(76.0)
        assert stats.summary.blocks.total == 0
        assert not stats.summary.tracking_blocks

    def test_branch_coverage_enables_blocks(self) -> None:
        """branch_coverage alone reports blocks."""
        config = make_config(track_blocks=False, branch_coverage=True)
        session = make_session(_reconciled_file(8, 3, 9), config=config)

        stats = Aggregator(Mock()).aggregate(session)

        assert stats.summary.overall_percent == pytest.approx(82.0)

    def test_fallback_when_no_blocks_exist(self) -> None:
        """Block tracking on but zero blocks uses fallback weights."""
        data = make_file_data(numbered_source(10), executed=range(1, 9))

        stats = _aggregator().aggregate(make_session(data))

        # 80% lines, 100% of the synthetic function
        assert stats.summary.overall_percent == pytest.approx(84.0)

    def test_custom_weights(self) -> None:
        """Weights are configuration."""
        config = make_config(weights=OverallWeights(line=1.0, function=0.0, block=0.0))
        session = make_session(_reconciled_file(8, 3, 9), config=config)

        stats = Aggregator(Mock()).aggregate(session)

        assert stats.summary.overall_percent == pytest.approx(80.0)

    def test_passes_threshold(self) -> None:
        """Summary passes when overall reaches the threshold."""
        session = make_session(_reconciled_file(8, 3, 9), config=make_config(threshold=81.0))

        assert Aggregator(Mock()).aggregate(session).summary.passes_threshold

    def test_empty_session(self) -> None:
        """No files: zero percent everywhere."""
        stats = _aggregator().aggregate(make_session())

        assert stats.summary.overall_percent == 0.0
        assert stats.files == {}


class TestSnapshot:
    """Statistics are a detached, immutable snapshot."""

    def test_files_read_only(self) -> None:
        """Per-file mapping cannot be modified."""
        stats = _aggregator().aggregate(make_session(make_file_data("x = 1\n", executed=[1])))

        with pytest.raises(TypeError):
            stats.files["/other.py"] = stats.files[DEFAULT_TEST_FILE]  # type: ignore[index]

    def test_original_files(self) -> None:
        """Source text and markers travel with the statistics."""
        source = 'x = """\ntext\n"""\ny = 1\n'
        data = make_file_data(source, executed=[1, 2, 4])

        stats = _aggregator().aggregate(make_session(data))

        original = stats.original_files[DEFAULT_TEST_FILE]
        assert original.source_text == source
        assert original.line_count == 4
        assert original.covered == frozenset({1, 4})
        assert original.executed == frozenset({1, 2, 4})
        assert original.executable == frozenset({1, 4})

    def test_pending_file_skipped(self) -> None:
        """Files whose reconciliation failed are left out."""
        data = make_file_data("x = 1\n", executed=[1])

        stats = Aggregator(Mock()).aggregate(make_session(data))

        assert stats.files == {}

    def test_analysis_flags(self) -> None:
        """Heuristic files are flagged partial, not static."""
        data = make_file_data("x = 1\n", executed=[1])
        session = make_session(data, config=make_config(use_static_analysis=False))

        file_stats = _aggregator().aggregate(session).files[DEFAULT_TEST_FILE]

        assert not file_stats.uses_static_analysis
        assert file_stats.partially_analyzed


class TestDiscovery:
    """Never-executed files count toward totals."""

    def test_discovered_file_reported(self) -> None:
        """Discovered file appears with zero coverage."""
        other = "/proj/src/unused.py"
        reconciler = Reconciler(
            StaticAnalyzer(),
            InMemoryDiscovery([DEFAULT_TEST_FILE, other]),
            reader=make_reader({other: numbered_source(10)}),
        )
        data = make_file_data(numbered_source(10), executed=range(1, 11))
        session = make_session(data, config=make_config(discover_uncovered=True))

        stats = Aggregator(reconciler).aggregate(session)

        assert stats.files[other].discovered
        assert stats.files[other].lines.covered == 0
        assert stats.summary.lines.percent == 50.0
        assert (stats.summary.files.covered, stats.summary.files.total) == (1, 2)
