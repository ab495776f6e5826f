"""AST extraction phase: statement lines, functions, blocks.

Single source-ordered pass over the module body. Statement start lines
only grow during the walk, which makes "everything before the current
statement" a valid resume point when the budget runs out.
"""

from __future__ import annotations

import ast
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from covcheck.domain.exceptions import AnalysisTimeoutError
from covcheck.domain.model.code_map import (
    AnalysisPhase,
    BlockKind,
    BlockRecord,
    FunctionRecord,
)

if TYPE_CHECKING:
    from covcheck.infrastructure.analyzers.budget import AnalysisBudget


@dataclass(frozen=True, slots=True)
class Extraction:
    """Result of the extraction phase.

    Attributes:
        statement_lines: Executable lines according to the AST
        functions: Function records in source order
        blocks: Block records in source order
        complete_through: Last line whose statements were all visited
        timeout: Budget error that cut the walk, None if it completed
    """

    statement_lines: frozenset[int]
    functions: tuple[FunctionRecord, ...]
    blocks: tuple[BlockRecord, ...]
    complete_through: int
    timeout: AnalysisTimeoutError | None = None


def is_executable_statement(stmt: ast.stmt) -> bool:
    """Check if a statement's first line produces a runtime line event.

    try headers, pass, global/nonlocal, bare annotations and constant
    expressions (docstrings, ...) compile to no line of their own.
    """
    match stmt:
        case ast.Expr(value=ast.Constant()):
            return False
        case ast.Pass() | ast.Global() | ast.Nonlocal():
            return False
        case ast.AnnAssign(value=None):
            return False
        case ast.Try() | ast.TryStar():
            return False
        case _:
            return True


class CodeMapExtractor:
    """Collects statement lines, functions and blocks from a module AST.

    Checks the budget each time a statement starts at or past the next
    batch boundary. One instance per analysis.
    """

    def __init__(self, budget: AnalysisBudget, batch_size: int, lines: Sequence[str]) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._budget = budget
        self._batch_size = batch_size
        self._source_lines = lines
        self._line_count = len(lines)
        self._lines: set[int] = set()
        self._functions: list[FunctionRecord] = []
        self._blocks: list[BlockRecord] = []
        self._parents: list[str] = []
        self._counters: dict[BlockKind, int] = {}
        self._next_check = 0

    def extract(self, tree: ast.Module) -> Extraction:
        """Walk the module. Timeouts are returned, not raised."""
        try:
            self._visit_body(tree.body)
        except AnalysisTimeoutError as exc:
            return self._result(complete_through=exc.line, timeout=exc)
        return self._result(complete_through=self._line_count, timeout=None)

    def _result(self, complete_through: int, timeout: AnalysisTimeoutError | None) -> Extraction:
        return Extraction(
            statement_lines=frozenset(self._lines),
            functions=tuple(self._functions),
            blocks=tuple(self._blocks),
            complete_through=complete_through,
            timeout=timeout,
        )

    # =========================================================================
    # Walk
    # =========================================================================

    def _visit_body(self, body: list[ast.stmt]) -> None:
        for stmt in body:
            self._visit_stmt(stmt)

    def _visit_stmt(self, stmt: ast.stmt) -> None:
        self._checkpoint(_first_line(stmt))
        if is_executable_statement(stmt):
            self._lines.add(stmt.lineno)

        match stmt:
            case ast.FunctionDef() | ast.AsyncFunctionDef():
                self._add_decorators(stmt.decorator_list)
                self._functions.append(_function_record(stmt))
                self._visit_body(stmt.body)

            case ast.ClassDef():
                self._add_decorators(stmt.decorator_list)
                self._visit_body(stmt.body)

            case ast.If():
                self._visit_block(BlockKind.IF, stmt.lineno, stmt.body)
                self._visit_else(stmt.orelse)

            case ast.For() | ast.AsyncFor() | ast.While():
                self._visit_block(BlockKind.LOOP, stmt.lineno, stmt.body)
                self._visit_else(stmt.orelse)

            case ast.Try() | ast.TryStar():
                self._visit_block(BlockKind.TRY, stmt.lineno, stmt.body)
                for handler in stmt.handlers:
                    self._lines.add(handler.lineno)
                    self._visit_block(BlockKind.EXCEPT, handler.lineno, handler.body)
                self._visit_else(stmt.orelse)
                if stmt.finalbody:
                    self._visit_block(BlockKind.FINALLY, stmt.finalbody[0].lineno, stmt.finalbody)

            case ast.With() | ast.AsyncWith():
                self._visit_block(BlockKind.WITH, stmt.lineno, stmt.body)

            case ast.Match():
                self._open_block(BlockKind.MATCH, stmt.lineno, _end_line(stmt))
                for case in stmt.cases:
                    self._lines.add(case.pattern.lineno)
                    self._visit_block(BlockKind.CASE, case.pattern.lineno, case.body)
                self._parents.pop()

            case _:
                # Simple statement, no nested body
                pass

    def _visit_else(self, orelse: list[ast.stmt]) -> None:
        # "elif" is a nested If in orelse, not an else block
        if not orelse:
            return
        if len(orelse) == 1 and isinstance(orelse[0], ast.If) and self._is_elif(orelse[0]):
            self._visit_stmt(orelse[0])
            return
        self._visit_block(BlockKind.ELSE, orelse[0].lineno, orelse)

    def _visit_block(self, kind: BlockKind, start: int, body: list[ast.stmt]) -> None:
        self._open_block(kind, start, _end_line(body[-1]))
        self._visit_body(body)
        self._parents.pop()

    def _open_block(self, kind: BlockKind, start: int, end: int) -> None:
        number = self._counters.get(kind, 0) + 1
        self._counters[kind] = number
        block_id = f"{kind.value}_{number}"
        self._blocks.append(
            BlockRecord(
                id=block_id,
                kind=kind,
                start_line=start,
                end_line=max(end, start),
                parent_id=self._parents[-1] if self._parents else None,
            )
        )
        self._parents.append(block_id)

    def _is_elif(self, node: ast.If) -> bool:
        text = self._source_lines[node.lineno - 1]
        return text.lstrip().startswith("elif")

    def _add_decorators(self, decorators: list[ast.expr]) -> None:
        for decorator in decorators:
            self._lines.add(decorator.lineno)

    def _checkpoint(self, line: int) -> None:
        if line < self._next_check:
            return
        self._budget.check(AnalysisPhase.EXTRACT, line - 1)
        self._next_check = (line // self._batch_size + 1) * self._batch_size


# =============================================================================
# Helpers
# =============================================================================


def _end_line(node: ast.stmt) -> int:
    return node.end_lineno if node.end_lineno is not None else node.lineno


def _first_line(node: ast.stmt) -> int:
    # Decorators precede the def/class line
    match node:
        case ast.FunctionDef() | ast.AsyncFunctionDef() | ast.ClassDef():
            return min([node.lineno, *(d.lineno for d in node.decorator_list)])
        case _:
            return node.lineno


def _function_record(node: ast.FunctionDef | ast.AsyncFunctionDef) -> FunctionRecord:
    return FunctionRecord(
        name=node.name,
        start_line=_first_line(node),
        end_line=_end_line(node),
        params=_parameters(node.args),
        body_start_line=node.body[0].lineno,
    )


def _parameters(args: ast.arguments) -> tuple[str, ...]:
    names = [arg.arg for arg in (*args.posonlyargs, *args.args)]
    if args.vararg:
        names.append(f"*{args.vararg.arg}")
    names.extend(arg.arg for arg in args.kwonlyargs)
    if args.kwarg:
        names.append(f"**{args.kwarg.arg}")
    return tuple(names)
