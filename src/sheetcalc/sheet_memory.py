"""In-memory cell store that serves as the evaluator's resolver.

Each cell keeps its own token sequence plus the value and error from its
last evaluation.  The store never decides *when* a cell is recomputed:
callers evaluate cells in dependency order themselves.

Sheet documents are YAML::

    columns: 26
    rows: 100
    cells:
      A1: {formula: ["1", "+", "2"], value: 3}
      B1: {formula: ["A1", "*", "2"]}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from sheetcalc.formulas.errors import CellLabelError, ErrorKind, SheetLoadError
from sheetcalc.formulas.evaluator import CellSnapshot, FormulaEvaluator
from sheetcalc.formulas.result import EvaluationResult
from sheetcalc.formulas.tokens import col_letter_to_index, split_label
from sheetcalc.logging.events import EventType, emit_info

# Three column letters top out at ZZZ
_MAX_COLUMNS = 18_278


class Cell(BaseModel):
    """A single sheet cell and its cached evaluation state."""

    label: str
    formula: list[str] = Field(default_factory=list)
    value: float = 0.0
    error: ErrorKind | None = None

    def snapshot(self) -> CellSnapshot:
        return CellSnapshot(
            formula_length=len(self.formula),
            value=self.value,
            error=self.error,
        )


class SheetMemory:
    """Grid of cells addressed by label, ``A1`` through the configured bounds.

    Parameters
    ----------
    columns : int
        Number of columns (26 means ``A``..``Z``).
    rows : int
        Number of rows, numbered from 1.
    """

    def __init__(self, columns: int = 26, rows: int = 100) -> None:
        if not 1 <= columns <= _MAX_COLUMNS:
            raise ValueError(f"columns must be between 1 and {_MAX_COLUMNS}, got {columns}")
        if rows < 1:
            raise ValueError(f"rows must be positive, got {rows}")
        self.columns = columns
        self.rows = rows
        self._cells: dict[str, Cell] = {}

    def _check_label(self, label: str) -> None:
        letters, row = split_label(label)
        if col_letter_to_index(letters) >= self.columns or row > self.rows:
            raise CellLabelError(
                label,
                f"Cell {label!r} is outside the sheet ({self.columns} columns x {self.rows} rows)",
            )

    def get_cell(self, label: str) -> Cell:
        """Return the cell at *label*, creating an empty one on first access.

        Raises:
            CellLabelError: If *label* is malformed or outside the grid.
        """
        self._check_label(label)
        cell = self._cells.get(label)
        if cell is None:
            cell = Cell(label=label)
            self._cells[label] = cell
        return cell

    def set_cell(
        self,
        label: str,
        formula: list[str],
        value: float = 0.0,
        error: ErrorKind | None = None,
    ) -> Cell:
        """Store a cell's formula together with its cached value and error."""
        self._check_label(label)
        cell = Cell(label=label, formula=list(formula), value=value, error=error)
        self._cells[label] = cell
        return cell

    def labels(self) -> list[str]:
        """Labels of all cells that have been stored or accessed."""
        return sorted(self._cells)

    def lookup(self, label: str) -> CellSnapshot:
        """Resolver entry point used by ``FormulaEvaluator``.

        Read-only: unknown labels inside the grid read as empty cells
        without being stored.

        Raises:
            KeyError: If *label* does not address a cell of this sheet.
        """
        try:
            self._check_label(label)
        except CellLabelError as exc:
            raise KeyError(label) from exc
        cell = self._cells.get(label)
        if cell is None:
            return CellSnapshot()
        return cell.snapshot()

    def evaluate_cell(
        self, label: str, evaluator: FormulaEvaluator | None = None
    ) -> EvaluationResult:
        """Evaluate the formula stored at *label* and cache the outcome in the cell.

        Referenced cells are read from their caches, not recomputed.
        """
        cell = self.get_cell(label)
        if evaluator is None:
            evaluator = FormulaEvaluator(self)
        outcome = evaluator.evaluate(cell.formula)
        self._cells[label] = cell.model_copy(
            update={"value": outcome.value, "error": outcome.error}
        )
        emit_info(
            EventType.cell_evaluated,
            f"{label} = {outcome.display()}",
            {"cell": label, "error": outcome.error.value if outcome.error else None},
        )
        return outcome

    # ------------------------------------------------------------------
    # Sheet documents
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        columns: int | None = None,
        rows: int | None = None,
    ) -> SheetMemory:
        """Build a sheet from a parsed document.

        Explicit *columns*/*rows* win over the document's own bounds.

        Raises:
            SheetLoadError: On any malformed entry.
        """
        if not isinstance(data, dict):
            raise SheetLoadError("sheet document must be a mapping")
        try:
            memory = cls(
                columns=columns if columns is not None else int(data.get("columns", 26)),
                rows=rows if rows is not None else int(data.get("rows", 100)),
            )
        except (TypeError, ValueError) as exc:
            raise SheetLoadError(str(exc)) from exc

        cells = data.get("cells") or {}
        if not isinstance(cells, dict):
            raise SheetLoadError("'cells' must be a mapping of label to cell")
        for label, raw in cells.items():
            label = str(label)
            if not isinstance(raw, dict):
                raise SheetLoadError(f"cell {label} must be a mapping")
            formula = raw.get("formula", [])
            if not isinstance(formula, list):
                raise SheetLoadError(f"cell {label}: formula must be a list of tokens")
            try:
                cell = Cell.model_validate(
                    {
                        "label": label,
                        "formula": [str(t) for t in formula],
                        "value": raw.get("value", 0.0),
                        "error": raw.get("error"),
                    }
                )
                memory.set_cell(label, cell.formula, cell.value, cell.error)
            except ValidationError as exc:
                raise SheetLoadError(f"cell {label}: {exc}") from exc
            except CellLabelError as exc:
                raise SheetLoadError(str(exc)) from exc
        return memory


def load_sheet(path: Path, *, columns: int | None = None, rows: int | None = None) -> SheetMemory:
    """Load a YAML sheet document from *path*.

    Raises:
        SheetLoadError: If the file cannot be read or is malformed.
    """
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise SheetLoadError(str(exc), source=str(path)) from exc
    try:
        memory = SheetMemory.from_dict(data or {}, columns=columns, rows=rows)
    except SheetLoadError as exc:
        raise SheetLoadError(exc.message, source=str(path)) from exc
    emit_info(
        EventType.sheet_loaded,
        f"Loaded sheet {path.name}",
        {"path": str(path), "cells": len(memory.labels())},
    )
    return memory
