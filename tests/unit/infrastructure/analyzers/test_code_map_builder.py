"""Tests for the AST extraction phase."""

import ast

import pytest

from covcheck.domain.model.code_map import AnalysisPhase, BlockKind
from covcheck.infrastructure.analyzers.budget import AnalysisBudget
from covcheck.infrastructure.analyzers.code_map_builder import (
    CodeMapExtractor,
    Extraction,
    is_executable_statement,
)
from tests.factories import StepClock, dedent, lines_of, numbered_source


def _extract(source: str, batch_size: int = 100, clock: object = None) -> Extraction:
    budget = AnalysisBudget("/proj/mod.py", 3.0, clock=clock or (lambda: 0.0))  # type: ignore[arg-type]
    extractor = CodeMapExtractor(budget, batch_size, lines_of(source))
    return extractor.extract(ast.parse(source))


class TestIsExecutableStatement:
    """Tests for is_executable_statement()."""

    @pytest.mark.parametrize(
        "code",
        ['"""docstring"""', "...", "pass", "global x", "x: int", "try:\n    pass\nfinally:\n    pass"],
    )
    def test_non_executable(self, code: str) -> None:
        """Statements that produce no line event of their own."""
        (stmt,) = ast.parse(code).body

        assert not is_executable_statement(stmt)

    @pytest.mark.parametrize("code", ["x = 1", "x: int = 1", "f()", "return_value = None", "import os"])
    def test_executable(self, code: str) -> None:
        """Ordinary statements are executable."""
        (stmt,) = ast.parse(code).body

        assert is_executable_statement(stmt)


class TestStatementLines:
    """Tests for statement line collection."""

    def test_function_with_if_elif_else(self) -> None:
        """Docstrings and else lines are skipped, elif is a statement."""
        source = dedent('''
            import os


            def f(x):
                """Doc."""
                if x:
                    return 1
                elif x is None:
                    return 2
                else:
                    return 3


            for i in range(3):
                pass
        ''')

        extraction = _extract(source)

        assert extraction.statement_lines == frozenset({1, 4, 6, 7, 8, 9, 11, 14})
        assert extraction.complete_through == len(lines_of(source))
        assert extraction.timeout is None

    def test_decorators_and_except(self) -> None:
        """Decorator lines and except clauses are executable."""
        source = dedent("""
            @decorator
            def f():
                try:
                    return 1
                except ValueError:
                    return 2
        """)

        extraction = _extract(source)

        assert extraction.statement_lines == frozenset({1, 2, 4, 5, 6})

    def test_case_patterns(self) -> None:
        """match and case pattern lines are executable."""
        source = dedent("""
            match x:
                case 1:
                    y = 1
                case _:
                    y = 2
        """)

        assert _extract(source).statement_lines == frozenset({1, 2, 3, 4, 5})


class TestFunctions:
    """Tests for function records."""

    def test_decorated_function_starts_at_decorator(self) -> None:
        """start_line matches co_firstlineno of decorated functions."""
        source = dedent("""
            @first
            @second
            def f(a, /, b, *args, c, **kw):
                return a
        """)

        (func,) = _extract(source).functions

        assert (func.start_line, func.end_line, func.body_start_line) == (1, 4, 4)
        assert func.params == ("a", "b", "*args", "c", "**kw")

    def test_methods_and_nested(self) -> None:
        """Methods and nested functions are recorded in source order."""
        source = dedent("""
            class A:
                def method(self):
                    def inner():
                        return 1
                    return inner

            async def later():
                return 2
        """)

        names = [func.name for func in _extract(source).functions]

        assert names == ["method", "inner", "later"]

    def test_lambda_is_not_a_function(self) -> None:
        """Lambdas do not become function records."""
        assert _extract("square = lambda x: x * x\n").functions == ()


class TestBlocks:
    """Tests for block records."""

    def test_if_elif_else(self) -> None:
        """elif becomes its own if block; else is a separate block."""
        source = dedent("""
            if a:
                x = 1
            elif b:
                x = 2
            else:
                x = 3
        """)

        blocks = _extract(source).blocks

        assert [(b.id, b.kind, b.start_line, b.end_line) for b in blocks] == [
            ("if_1", BlockKind.IF, 1, 2),
            ("if_2", BlockKind.IF, 3, 4),
            ("else_1", BlockKind.ELSE, 6, 6),
        ]

    def test_nested_else_if_is_not_elif(self) -> None:
        """An if nested in a plain else stays inside an else block."""
        source = dedent("""
            if a:
                x = 1
            else:
                if b:
                    x = 2
        """)

        blocks = _extract(source).blocks

        assert [(b.id, b.parent_id) for b in blocks] == [
            ("if_1", None),
            ("else_1", None),
            ("if_2", "else_1"),
        ]

    def test_try_except_finally(self) -> None:
        """try, except and finally each form a block."""
        source = dedent("""
            try:
                x = 1
            except ValueError:
                x = 2
            finally:
                x = 3
        """)

        blocks = _extract(source).blocks

        assert [(b.kind, b.start_line, b.end_line) for b in blocks] == [
            (BlockKind.TRY, 1, 2),
            (BlockKind.EXCEPT, 3, 4),
            (BlockKind.FINALLY, 6, 6),
        ]

    def test_match_cases_nest_under_match(self) -> None:
        """case blocks are children of their match block."""
        source = dedent("""
            match x:
                case 1:
                    y = 1
                case _:
                    y = 2
        """)

        blocks = _extract(source).blocks

        assert [(b.id, b.start_line, b.end_line, b.parent_id) for b in blocks] == [
            ("match_1", 1, 5, None),
            ("case_1", 2, 3, "match_1"),
            ("case_2", 4, 5, "match_1"),
        ]

    def test_loops_and_with(self) -> None:
        """Loops and with statements form nested blocks."""
        source = dedent("""
            for item in items:
                with open(item) as handle:
                    handle.read()
            while False:
                break
        """)

        blocks = _extract(source).blocks

        assert [(b.id, b.parent_id) for b in blocks] == [
            ("loop_1", None),
            ("with_1", "loop_1"),
            ("loop_2", None),
        ]


class TestBudget:
    """Tests for budget checks during the walk."""

    def test_timeout_keeps_visited_statements(self) -> None:
        """Walk stops at a batch boundary, earlier lines are kept."""
        # init read, check at line 1 pass; check at line 2 trips
        extraction = _extract(numbered_source(5), batch_size=2, clock=StepClock(trip_after=2))

        assert extraction.statement_lines == frozenset({1})
        assert extraction.complete_through == 1
        assert extraction.timeout is not None
        assert extraction.timeout.phase is AnalysisPhase.EXTRACT

    def test_checks_once_per_batch(self) -> None:
        """The clock is read at each batch boundary only."""
        clock = StepClock(trip_after=1000)

        _extract(numbered_source(250), batch_size=100, clock=clock)

        # init + lines 1, 100, 200
        assert clock.calls == 4

    def test_invalid_batch_size(self) -> None:
        """FAIL-FIRST: batch_size must be positive."""
        budget = AnalysisBudget("/proj/mod.py", 1.0, clock=lambda: 0.0)

        with pytest.raises(ValueError, match="batch_size"):
            CodeMapExtractor(budget, 0, ())
