from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Payroll, PayrollCalculationResult, PayrollStatus, Payslip, SalaryStructure


class SalaryStructureRepository(Protocol):
    def get_by_id(self, structure_id: str) -> Optional[SalaryStructure]:
        raise NotImplementedError

    def list_structures(
        self,
        *,
        employee_id: Optional[str] = None,
        role: Optional[Role] = None,
        active_only: bool = False,
    ) -> Sequence[SalaryStructure]:
        raise NotImplementedError

    def find_effective(self, *, on: date, employee_id: Optional[str] = None, role: Optional[Role] = None) -> Optional[SalaryStructure]:
        """Latest effective structure for exactly one target (employee, or role without employee)."""

        raise NotImplementedError

    def find_current(self, *, employee_id: Optional[str] = None, role: Optional[Role] = None) -> Optional[SalaryStructure]:
        """Active structure of the target regardless of dates (the one a new version replaces)."""

        raise NotImplementedError

    def create_structure(self, data: dict) -> str:
        raise NotImplementedError

    def deactivate(self, structure_id: str, *, effective_to: Optional[date]) -> bool:
        raise NotImplementedError


class PayrollRepository(Protocol):
    def get_by_id(self, payroll_id: str) -> Optional[Payroll]:
        raise NotImplementedError

    def get_for_period(self, employee_id: str, month: int, year: int) -> Optional[Payroll]:
        raise NotImplementedError

    def list_payrolls(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_ids: Optional[Sequence[str]] = None,
        status: Optional[PayrollStatus] = None,
    ) -> Sequence[Payroll]:
        raise NotImplementedError

    def save_processed(
        self,
        *,
        employee_id: str,
        month: int,
        year: int,
        structure: SalaryStructure,
        result: PayrollCalculationResult,
        processed_by: str,
    ) -> str:
        """Insert or replace the unlocked payroll of the period; status becomes processed."""

        raise NotImplementedError

    def set_status(self, payroll_id: str, *, expected: PayrollStatus, status: PayrollStatus, by: str) -> bool:
        raise NotImplementedError

    def mark_payslip_generated(self, payroll_id: str) -> bool:
        raise NotImplementedError


class PayslipRepository(Protocol):
    def get_by_payroll(self, payroll_id: str) -> Optional[Payslip]:
        raise NotImplementedError

    def create_payslip(self, payslip: Payslip) -> str:
        raise NotImplementedError
