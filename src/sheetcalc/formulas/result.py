"""Discriminated outcome of a single formula evaluation."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, model_validator

from sheetcalc.formulas.errors import ErrorKind


class EvaluationResult(BaseModel):
    """Either a numeric value or a typed error, never both.

    When ``error`` is set, ``value`` is the sentinel ``0.0``.  Check
    ``ok`` (or ``error``) before trusting ``value``: a sentinel zero is
    not a computed zero.
    """

    model_config = ConfigDict(frozen=True)

    value: float = 0.0
    error: ErrorKind | None = None

    @model_validator(mode="after")
    def check_sentinel(self) -> EvaluationResult:
        if self.error is not None and self.value != 0.0:
            raise ValueError("an errored result must carry the sentinel value 0")
        return self

    @classmethod
    def success(cls, value: float) -> EvaluationResult:
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind) -> EvaluationResult:
        return cls(value=0.0, error=kind)

    @property
    def ok(self) -> bool:
        return self.error is None

    def display(self) -> str:
        """Format the result the way a cell shows it."""
        if self.error is not None:
            return self.error.display
        if math.isfinite(self.value) and self.value == int(self.value):
            return str(int(self.value))
        return f"{self.value:.10g}"
