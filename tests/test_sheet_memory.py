"""Tests for the in-memory cell store and sheet documents."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from sheetcalc.formulas import CellLabelError, ErrorKind, SheetLoadError
from sheetcalc.sheet_memory import SheetMemory, load_sheet


@pytest.fixture
def sheet_file(tmp_path: Path) -> Path:
    doc = {
        "columns": 5,
        "rows": 20,
        "cells": {
            "A1": {"formula": [10], "value": 10},
            "A2": {"formula": ["A1", "*", "3"]},
            "B1": {"formula": ["1", "/", "0"], "error": "divide_by_zero"},
        },
    }
    path = tmp_path / "sheet.yaml"
    path.write_text(yaml.dump(doc, default_flow_style=False))
    return path


class TestGrid:
    def test_get_cell_creates_empty(self) -> None:
        mem = SheetMemory()
        cell = mem.get_cell("C3")
        assert cell.formula == []
        assert cell.error is None
        assert mem.labels() == ["C3"]

    @pytest.mark.parametrize("label", ["a1", "A0", "AA1", "A101"])
    def test_rejects_bad_labels(self, label: str) -> None:
        with pytest.raises(CellLabelError):
            SheetMemory().get_cell(label)

    def test_bad_bounds(self) -> None:
        with pytest.raises(ValueError):
            SheetMemory(columns=0)
        with pytest.raises(ValueError):
            SheetMemory(rows=0)

    def test_lookup_does_not_store(self) -> None:
        mem = SheetMemory()
        snap = mem.lookup("D4")
        assert snap.formula_length == 0
        assert mem.labels() == []

    def test_lookup_outside_grid(self) -> None:
        with pytest.raises(KeyError):
            SheetMemory(columns=2).lookup("C1")

    def test_snapshot(self) -> None:
        mem = SheetMemory()
        mem.set_cell("A1", ["2", "+", "2"], value=4)
        snap = mem.lookup("A1")
        assert snap.formula_length == 3
        assert snap.value == 4
        assert snap.error is None


class TestEvaluateCell:
    def test_caches_value(self) -> None:
        mem = SheetMemory()
        mem.set_cell("A1", ["2", "*", "3"])
        mem.set_cell("A2", ["A1", "+", "1"])
        assert mem.evaluate_cell("A1").value == 6
        assert mem.get_cell("A1").value == 6
        assert mem.evaluate_cell("A2").value == 7

    def test_uses_stale_cache_when_not_recomputed(self) -> None:
        mem = SheetMemory()
        mem.set_cell("A1", ["2", "*", "3"])
        mem.set_cell("A2", ["A1", "+", "1"])
        # A1 never evaluated: its cached value is still 0
        assert mem.evaluate_cell("A2").value == 1

    def test_caches_error_and_propagates(self) -> None:
        mem = SheetMemory()
        mem.set_cell("A1", ["1", "/", "0"])
        mem.set_cell("A2", ["A1", "+", "1"])
        assert mem.evaluate_cell("A1").error == ErrorKind.divide_by_zero
        assert mem.get_cell("A1").error == ErrorKind.divide_by_zero
        assert mem.get_cell("A1").value == 0
        assert mem.evaluate_cell("A2").error == ErrorKind.divide_by_zero

    def test_empty_cell(self) -> None:
        mem = SheetMemory()
        mem.set_cell("A2", ["A1", "+", "1"])
        assert mem.evaluate_cell("A1").error == ErrorKind.empty_formula
        assert mem.evaluate_cell("A2").error == ErrorKind.invalid_cell

    def test_recovery_after_fix(self) -> None:
        mem = SheetMemory()
        mem.set_cell("A1", ["1", "/", "0"])
        mem.evaluate_cell("A1")
        mem.set_cell("A1", ["1", "/", "4"])
        outcome = mem.evaluate_cell("A1")
        assert outcome.ok
        assert mem.get_cell("A1").error is None


class TestSheetDocuments:
    def test_load_sheet(self, sheet_file: Path) -> None:
        mem = load_sheet(sheet_file)
        assert (mem.columns, mem.rows) == (5, 20)
        assert mem.get_cell("A1").formula == ["10"]
        assert mem.get_cell("B1").error == ErrorKind.divide_by_zero
        assert mem.evaluate_cell("A2").value == 30

    def test_explicit_bounds_win(self, sheet_file: Path) -> None:
        mem = load_sheet(sheet_file, columns=10, rows=50)
        assert (mem.columns, mem.rows) == (10, 50)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SheetLoadError) as exc_info:
            load_sheet(tmp_path / "nope.yaml")
        assert exc_info.value.source == str(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("cells: [unclosed\n")
        with pytest.raises(SheetLoadError):
            load_sheet(path)

    def test_error_source_is_reported_once(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"cells": {"a1": {"formula": ["1"]}}}))
        with pytest.raises(SheetLoadError) as exc_info:
            load_sheet(path)
        assert str(exc_info.value).count("Sheet load error") == 1

    def test_formula_must_be_list(self) -> None:
        with pytest.raises(SheetLoadError):
            SheetMemory.from_dict({"cells": {"A1": {"formula": "1 + 2"}}})

    def test_unknown_error_kind(self) -> None:
        with pytest.raises(SheetLoadError):
            SheetMemory.from_dict({"cells": {"A1": {"formula": ["1"], "error": "#BOOM"}}})

    def test_cells_must_be_mapping(self) -> None:
        with pytest.raises(SheetLoadError):
            SheetMemory.from_dict({"cells": ["A1"]})

    def test_document_must_be_mapping(self) -> None:
        with pytest.raises(SheetLoadError):
            SheetMemory.from_dict(["A1"])

    @pytest.mark.parametrize("bounds", [{"columns": 0}, {"rows": 0}])
    def test_explicit_zero_bounds_rejected(self, bounds: dict) -> None:
        with pytest.raises(SheetLoadError):
            SheetMemory.from_dict({"columns": 5, "rows": 5, "cells": {}}, **bounds)

    def test_cell_outside_declared_grid(self) -> None:
        with pytest.raises(SheetLoadError):
            SheetMemory.from_dict({"columns": 1, "cells": {"B1": {"formula": ["1"]}}})
