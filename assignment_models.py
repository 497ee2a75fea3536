from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ASCII digits only; int() alone would also take "1_000" or Arabic-Indic digits.
_INT_ID_RE = re.compile(r"[+-]?[0-9]+")


def _coerce_int_id(v: object, label: str) -> int:
    """Accept ints and base-10 integer text; reject floats, bools and anything else."""
    if isinstance(v, bool):
        raise ValueError(f"{label} must be an integer.")
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        s = v.strip()
        if not _INT_ID_RE.fullmatch(s):
            raise ValueError(f"{label} must be an integer, got {v!r}.")
        return int(s)
    raise ValueError(f"{label} must be an integer.")


class AssignmentRecord(BaseModel):
    """One employee's tenure on one project.

    start_date > end_date is allowed; the overlap arithmetic treats such a
    range as contributing no days.
    """

    model_config = ConfigDict(frozen=True)

    employee_id: int
    project_id: int
    start_date: datetime
    end_date: datetime

    @field_validator("employee_id", mode="before")
    @classmethod
    def _employee_id_int(cls, v: object) -> int:
        return _coerce_int_id(v, "employee_id")

    @field_validator("project_id", mode="before")
    @classmethod
    def _project_id_int(cls, v: object) -> int:
        return _coerce_int_id(v, "project_id")


class PairOverlap(BaseModel):
    """Two distinct employees who overlapped on one project."""

    model_config = ConfigDict(frozen=True)

    employee_a: int
    employee_b: int
    project_id: int
    overlap_days: int

    @field_validator("overlap_days")
    @classmethod
    def _days_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("overlap_days must be positive.")
        return v

    @model_validator(mode="after")
    def _distinct_employees(self) -> "PairOverlap":
        if self.employee_a == self.employee_b:
            raise ValueError("employee_a and employee_b must differ.")
        return self

    @property
    def pair_key(self) -> frozenset[int]:
        """Unordered identity of the two employees."""
        return frozenset((self.employee_a, self.employee_b))


@dataclass(frozen=True)
class BestPair:
    employee_a: int
    employee_b: int
    overlap_days: int

    def matches(self, pair: PairOverlap) -> bool:
        """True if ``pair`` involves the same two employees, in either order."""
        return pair.pair_key == frozenset((self.employee_a, self.employee_b))


@dataclass(frozen=True)
class OverlapResult:
    all_pairs: List[PairOverlap] = field(default_factory=list)
    maximal: List[PairOverlap] = field(default_factory=list)
    best: Optional[BestPair] = None

    @property
    def best_ids(self) -> Optional[Tuple[int, int]]:
        if self.best is None:
            return None
        return self.best.employee_a, self.best.employee_b
