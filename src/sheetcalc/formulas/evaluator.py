"""Operator-precedence evaluator for tokenized formulas.

The scan keeps two stacks -- operand values and pending operators -- and
reduces whenever an incoming operator binds no tighter than the one on
top of the stack, which makes equal-precedence operators left-associative.

Every sub-step returns ``ErrorKind | None``; the scan stops at the first
error and the caller gets an ``EvaluationResult`` carrying it.  Nothing
raises past ``FormulaEvaluator.evaluate``.
"""

from __future__ import annotations

import operator
from typing import Callable, Protocol, Sequence

from pydantic import BaseModel, ConfigDict

from sheetcalc.formulas.errors import ErrorKind
from sheetcalc.formulas.result import EvaluationResult
from sheetcalc.formulas.tokens import (
    CLOSE_PAREN,
    OPEN_PAREN,
    is_number,
    is_operator,
    is_valid_cell_label,
    precedence,
)
from sheetcalc.logging.events import EventType, emit_warning


# ---------------------------------------------------------------------------
# Resolver contract
# ---------------------------------------------------------------------------


class CellSnapshot(BaseModel):
    """What the evaluator may read about a referenced cell."""

    model_config = ConfigDict(frozen=True)

    formula_length: int = 0
    value: float = 0.0
    error: ErrorKind | None = None


class CellResolver(Protocol):
    """Read-only lookup of cached cell state by label."""

    def lookup(self, label: str) -> CellSnapshot:
        """Return the snapshot for *label*; may raise ``LookupError``."""
        ...


LabelValidator = Callable[[str], bool]


# ---------------------------------------------------------------------------
# Reduction step
# ---------------------------------------------------------------------------

_ARITHMETIC: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}


def apply_operator(op: str, values: list[float]) -> ErrorKind | None:
    """Pop two operands, combine them with *op* and push the result.

    The most recently pushed value is the right-hand operand.  On error the
    stack is left as it was found minus any popped operands.
    """
    if len(values) < 2:
        return ErrorKind.invalid_formula
    fn = _ARITHMETIC.get(op)
    if fn is None:
        return ErrorKind.invalid_operator
    right = values.pop()
    left = values.pop()
    if op == "/" and right == 0:
        return ErrorKind.divide_by_zero
    values.append(fn(left, right))
    return None


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class FormulaEvaluator:
    """Evaluate token sequences against a cell resolver.

    Usage::

        evaluator = FormulaEvaluator(memory)
        outcome = evaluator.evaluate(["A1", "+", "3", "*", "4"])
        if outcome.ok:
            print(outcome.value)

    Parameters
    ----------
    resolver : CellResolver | None
        Source of referenced cell values.  Without one, any cell reference
        evaluates to ``ErrorKind.invalid_cell``.
    label_validator : callable
        Decides whether a token is a cell reference.
    strict_parentheses : bool
        When true, a ``)`` with no matching ``(`` is ``invalid_formula``.
        When false, the stray ``)`` only forces reduction of everything
        pending and the scan carries on.
    """

    def __init__(
        self,
        resolver: CellResolver | None = None,
        *,
        label_validator: LabelValidator = is_valid_cell_label,
        strict_parentheses: bool = True,
    ) -> None:
        self._resolver = resolver
        self._is_cell_label = label_validator
        self._strict_parentheses = strict_parentheses
        self._last = EvaluationResult()

    @property
    def result(self) -> float:
        """Value of the last evaluation (sentinel 0 when it failed)."""
        return self._last.value

    @property
    def error(self) -> ErrorKind | None:
        """Error of the last evaluation, if any."""
        return self._last.error

    def evaluate(self, tokens: Sequence[str]) -> EvaluationResult:
        """Evaluate *tokens* and return the outcome.

        The previous outcome held by ``result``/``error`` is replaced.
        """
        tokens = list(tokens)
        if not tokens:
            outcome = EvaluationResult.failure(ErrorKind.empty_formula)
        else:
            # Faults from injected resolvers or validators stay in the error channel
            try:
                outcome = self._reduce(tokens)
            except Exception:
                outcome = EvaluationResult.failure(ErrorKind.invalid_formula)

        if outcome.error is not None:
            emit_warning(
                EventType.evaluation_failed,
                f"Formula evaluated to {outcome.error.display}",
                {"tokens": tokens},
                error_code=outcome.error.value,
            )
        self._last = outcome
        return outcome

    def _reduce(self, tokens: list[str]) -> EvaluationResult:
        values: list[float] = []
        operators: list[str] = []

        for token in tokens:
            error: ErrorKind | None = None
            if is_number(token):
                values.append(float(token))
            elif self._is_cell_label(token):
                value, error = self._resolve_cell(token)
                if error is None:
                    values.append(value)
            elif token == OPEN_PAREN:
                operators.append(token)
            elif token == CLOSE_PAREN:
                error = self._close_group(operators, values)
            elif is_operator(token):
                while operators and precedence(operators[-1]) >= precedence(token):
                    error = apply_operator(operators.pop(), values)
                    if error is not None:
                        break
                operators.append(token)
            else:
                error = ErrorKind.invalid_formula
            if error is not None:
                return EvaluationResult.failure(error)

        while operators:
            op = operators.pop()
            if op == OPEN_PAREN:
                # Unclosed group
                return EvaluationResult.failure(ErrorKind.invalid_formula)
            error = apply_operator(op, values)
            if error is not None:
                return EvaluationResult.failure(error)

        if len(values) != 1:
            return EvaluationResult.failure(ErrorKind.invalid_formula)
        return EvaluationResult.success(values[0])

    def _close_group(self, operators: list[str], values: list[float]) -> ErrorKind | None:
        while operators and operators[-1] != OPEN_PAREN:
            error = apply_operator(operators.pop(), values)
            if error is not None:
                return error
        if operators:
            operators.pop()
        elif self._strict_parentheses:
            return ErrorKind.invalid_formula
        return None

    def _resolve_cell(self, label: str) -> tuple[float, ErrorKind | None]:
        """Read a referenced cell's cached value, or the error it stands for."""
        if self._resolver is None:
            return 0.0, ErrorKind.invalid_cell
        try:
            cell = self._resolver.lookup(label)
        except LookupError:
            return 0.0, ErrorKind.invalid_cell
        # An empty referenced cell reports as invalid_cell, not empty_formula
        if cell.error is not None and cell.error != ErrorKind.empty_formula:
            return 0.0, cell.error
        if cell.formula_length == 0:
            return 0.0, ErrorKind.invalid_cell
        return cell.value, None


def evaluate_formula(
    tokens: Sequence[str],
    resolver: CellResolver | None = None,
    *,
    label_validator: LabelValidator = is_valid_cell_label,
    strict_parentheses: bool = True,
) -> EvaluationResult:
    """Evaluate a token sequence with a throwaway ``FormulaEvaluator``.

    Args:
        tokens: Pre-tokenized formula, e.g. ``["(", "A1", "+", "2", ")"]``.
        resolver: Source of referenced cell values.
        label_validator: Decides whether a token is a cell reference.
        strict_parentheses: Reject a ``)`` with no matching ``(``.

    Returns:
        The evaluation outcome.
    """
    evaluator = FormulaEvaluator(
        resolver,
        label_validator=label_validator,
        strict_parentheses=strict_parentheses,
    )
    return evaluator.evaluate(tokens)
