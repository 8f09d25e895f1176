"""Tests for project configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from sheetcalc.formulas import SheetLoadError
from sheetcalc.project import DEFAULT_CONFIG, load_project_config


def test_defaults_without_file(tmp_path: Path) -> None:
    assert load_project_config(tmp_path) == DEFAULT_CONFIG


def test_file_overrides_defaults(tmp_path: Path) -> None:
    (tmp_path / "sheetcalc.yaml").write_text("strict_parentheses: false\nsheet_rows: 500\nowner: ops\n")
    cfg = load_project_config(tmp_path)
    assert cfg["strict_parentheses"] is False
    assert cfg["sheet_rows"] == 500
    assert cfg["sheet_columns"] == 26
    assert cfg["owner"] == "ops"


def test_empty_file(tmp_path: Path) -> None:
    (tmp_path / "sheetcalc.yaml").write_text("")
    assert load_project_config(tmp_path) == DEFAULT_CONFIG


def test_non_mapping_rejected(tmp_path: Path) -> None:
    (tmp_path / "sheetcalc.yaml").write_text("- one\n- two\n")
    with pytest.raises(SheetLoadError):
        load_project_config(tmp_path)


def test_invalid_yaml_rejected(tmp_path: Path) -> None:
    (tmp_path / "sheetcalc.yaml").write_text("a: [b\n")
    with pytest.raises(SheetLoadError):
        load_project_config(tmp_path)
