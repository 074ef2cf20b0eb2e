from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Sequence

from ...attendance.model import AttendanceRecord
from ...leaves.model import Leave
from ...shifts.model import Shift
from ..model import PayrollCalculationResult, SalaryStructure

ShiftLookup = Callable[[date], Optional[Shift]]


@dataclass(frozen=True)
class PayrollPeriod:
    """Everything the engine needs about one employee and one month."""

    employee_id: str
    month: int
    year: int
    structure: SalaryStructure
    attendance: Sequence[AttendanceRecord]
    approved_leaves: Sequence[Leave]
    shift_on: ShiftLookup


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(self, period: PayrollPeriod) -> PayrollCalculationResult:
        raise NotImplementedError
