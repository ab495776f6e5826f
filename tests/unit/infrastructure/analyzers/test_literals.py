"""Tests for the triple-quoted literal scanner."""

import pytest

from covcheck.infrastructure.analyzers.literals import (
    LiteralSpan,
    code_portion,
    find_closing,
    literal_lines,
    scan_literal_spans,
    skip_short_string,
)
from tests.factories import dedent, lines_of


class TestScanLiteralSpans:
    """Tests for scan_literal_spans()."""

    def test_leading_literal(self) -> None:
        """Literal opening a line covers its opening line too."""
        source = dedent('''
            def f():
                x = 1
                """
                text
                y = 2
                """
                return x
        ''')

        spans = scan_literal_spans(lines_of(source))

        assert spans == (LiteralSpan(start_line=3, end_line=6, leading=True, end_column=7),)
        assert list(spans[0].non_executable_lines) == [3, 4, 5, 6]

    def test_assigned_literal(self) -> None:
        """Opening line with code before the literal stays executable."""
        source = dedent('''
            x = """first
            second"""
            y = 1
        ''')

        (span,) = scan_literal_spans(lines_of(source))

        assert (span.start_line, span.end_line, span.leading) == (1, 2, False)
        assert list(span.non_executable_lines) == [2]

    def test_prefixed_literal_is_leading(self) -> None:
        """String prefixes before the delimiter still count as leading."""
        source = dedent("""
            rb'''
            data
            '''
        """)

        (span,) = scan_literal_spans(lines_of(source))

        assert span.leading

    def test_single_line_literal_ignored(self) -> None:
        """Literals closed on their opening line are not spans."""
        assert scan_literal_spans(lines_of('x = """one line"""\ny = 2\n')) == ()

    def test_comment_ignored(self) -> None:
        """Triple quotes inside comments open nothing."""
        assert scan_literal_spans(lines_of('x = 1  # """\ny = 2\n')) == ()

    def test_short_string_ignored(self) -> None:
        """Triple quotes inside a short string open nothing."""
        assert scan_literal_spans(lines_of("s = \"'''\"\ny = 2\n")) == ()

    def test_escaped_quotes_inside(self) -> None:
        """Escaped delimiter characters do not close the literal."""
        source = 'x = """a\n\\"""b\nc"""\n'

        (span,) = scan_literal_spans(lines_of(source))

        assert (span.start_line, span.end_line) == (1, 3)

    def test_unterminated_runs_to_end(self) -> None:
        """An unclosed literal spans the rest of the file."""
        (span,) = scan_literal_spans(lines_of("x = '''\nabc\ndef\n"))

        assert (span.end_line, span.end_column) == (3, -1)

    def test_state_runs_across_lines(self) -> None:
        """A second literal after the first is found too."""
        source = dedent('''
            a = """
            """
            b = 1
            c = \'\'\'
            \'\'\'
        ''')

        spans = scan_literal_spans(lines_of(source))

        assert [(s.start_line, s.end_line) for s in spans] == [(1, 2), (4, 5)]


class TestLiteralLines:
    """Tests for literal_lines()."""

    def test_union(self) -> None:
        """Union of all spans' non-executable lines."""
        spans = (LiteralSpan(1, 3, True, 3), LiteralSpan(5, 6, False, 3))

        assert literal_lines(spans) == frozenset({1, 2, 3, 6})


class TestLiteralSpanValidation:
    """FAIL-FIRST validation."""

    def test_single_line_span_raises(self) -> None:
        """A span must cover at least two lines."""
        with pytest.raises(ValueError, match="end_line"):
            LiteralSpan(start_line=2, end_line=2, leading=True, end_column=3)


class TestCodePortion:
    """Tests for code_portion()."""

    def test_strings_and_comment_removed(self) -> None:
        """String contents and trailing comments are dropped."""
        assert code_portion('x = "a#b"  # note') == "x ="

    def test_unclosed_triple_drops_rest(self) -> None:
        """Text after an unclosed triple quote is literal content."""
        assert code_portion('call("""abc') == "call("

    def test_closed_triple_kept_around(self) -> None:
        """Code around a closed triple-quoted string is kept."""
        assert code_portion('f("""a""", [1])') == "f(, [1])"


class TestStringHelpers:
    """Tests for find_closing() and skip_short_string()."""

    def test_find_closing_skips_escape(self) -> None:
        """Backslash-escaped quotes do not close."""
        text = 'a\\"""b"""'

        assert find_closing(text, 0, '"""') == 6

    def test_find_closing_missing(self) -> None:
        """-1 when there is no closing delimiter."""
        assert find_closing("abc", 0, "'''") == -1

    def test_skip_short_string(self) -> None:
        """Index right after the closing quote."""
        assert skip_short_string("'ab\\'c' + x", 0) == 7

    def test_skip_unterminated_short_string(self) -> None:
        """Unterminated string runs to the end of the line."""
        assert skip_short_string("'abc", 0) == 4
