"""Error types for formula evaluation.

Two channels exist:

- ``ErrorKind`` -- the typed error an evaluation produces.  These are
  values, returned inside an ``EvaluationResult``; they never escape
  ``FormulaEvaluator.evaluate`` as exceptions.
- ``FormulaError`` -- exceptions for misuse outside the evaluation
  boundary (bad cell labels handed to sheet memory, malformed sheet
  documents).
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    empty_formula = "empty_formula"
    invalid_formula = "invalid_formula"
    invalid_operator = "invalid_operator"
    divide_by_zero = "divide_by_zero"
    invalid_cell = "invalid_cell"

    @property
    def display(self) -> str:
        """Spreadsheet-style text shown in a cell holding this error."""
        return _DISPLAY.get(self, "#ERR")


_DISPLAY: dict[ErrorKind, str] = {
    ErrorKind.empty_formula: "#EMPTY!",
    ErrorKind.divide_by_zero: "#DIV/0!",
    ErrorKind.invalid_cell: "#REF!",
}


class FormulaError(Exception):
    """Base class for all formula-related exceptions."""


class CellLabelError(FormulaError):
    """A cell label that is malformed or outside the sheet.

    Attributes:
        label: The rejected label.
    """

    def __init__(self, label: str, message: str | None = None) -> None:
        self.label = label
        super().__init__(message or f"Invalid cell label: {label!r}")


class SheetLoadError(FormulaError):
    """A sheet document or project config that cannot be loaded.

    Attributes:
        message: Description of the problem.
        source: File path or description of the offending document.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        self.message = message
        self.source = source
        full = f"Sheet load error: {message}"
        if source is not None:
            full += f" ({source})"
        super().__init__(full)
