"""Evaluation of pre-tokenized arithmetic cell formulas.

Public API::

    from sheetcalc.formulas import FormulaEvaluator, evaluate_formula
"""

from sheetcalc.formulas.errors import (
    CellLabelError,
    ErrorKind,
    FormulaError,
    SheetLoadError,
)
from sheetcalc.formulas.evaluator import (
    CellResolver,
    CellSnapshot,
    FormulaEvaluator,
    apply_operator,
    evaluate_formula,
)
from sheetcalc.formulas.result import EvaluationResult
from sheetcalc.formulas.tokens import (
    is_number,
    is_operator,
    is_valid_cell_label,
    precedence,
    split_label,
)

__all__ = [
    "CellLabelError",
    "CellResolver",
    "CellSnapshot",
    "ErrorKind",
    "EvaluationResult",
    "FormulaError",
    "FormulaEvaluator",
    "SheetLoadError",
    "apply_operator",
    "evaluate_formula",
    "is_number",
    "is_operator",
    "is_valid_cell_label",
    "precedence",
    "split_label",
]
