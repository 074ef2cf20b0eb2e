from __future__ import annotations

from datetime import date
from typing import Optional

from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import AssignmentScope, AssignmentType, ResolvedShift, ShiftAssignment, ShiftSource
from .repository import RosterRepository, ShiftAssignmentRepository, ShiftRepository


class ShiftResolver:
    """Resolve which shift applies to an employee on a date.

    Priority: roster entry, temporary employee assignment, permanent employee
    assignment, team assignment (employee's manager), department assignment
    (employee's role).
    """

    def __init__(
        self,
        shifts: ShiftRepository,
        assignments: ShiftAssignmentRepository,
        roster: RosterRepository,
        employees: EmployeeRepository,
    ):
        self._shifts = shifts
        self._assignments = assignments
        self._roster = roster
        self._employees = employees

    def resolve(self, employee_id: str, work_date: date, *, employee: Optional[Employee] = None) -> Optional[ResolvedShift]:
        entry = self._roster.get_for_employee_and_date(employee_id, work_date)
        if entry:
            if entry.is_weekly_off or not entry.shift_id:
                return None
            shift = self._shifts.get_by_id(entry.shift_id)
            if shift and shift.is_active:
                return ResolvedShift(shift=shift, source=ShiftSource.ROSTER, reference_id=entry.roster_id)

        employee = employee or self._employees.get_by_id(employee_id)
        if not employee:
            return None

        candidates = [
            a
            for a in self._assignments.list_candidates(
                employee_id=employee.employee_id,
                manager_id=employee.manager_id,
                role=employee.role.value,
            )
            if a.covers(work_date)
        ]

        for source, matches in (
            (ShiftSource.TEMPORARY, self._employee_scoped(candidates, AssignmentType.TEMPORARY)),
            (ShiftSource.PERMANENT, self._employee_scoped(candidates, AssignmentType.PERMANENT)),
            (ShiftSource.TEAM, [a for a in candidates if a.scope == AssignmentScope.TEAM]),
            (ShiftSource.DEPARTMENT, [a for a in candidates if a.scope == AssignmentScope.DEPARTMENT]),
        ):
            for assignment in sorted(matches, key=_latest_first, reverse=True):
                shift = self._shifts.get_by_id(assignment.shift_id)
                if shift and shift.is_active:
                    return ResolvedShift(shift=shift, source=source, reference_id=assignment.assignment_id)
        return None

    @staticmethod
    def _employee_scoped(candidates, assignment_type: AssignmentType) -> list[ShiftAssignment]:
        return [a for a in candidates if a.scope == AssignmentScope.EMPLOYEE and a.assignment_type == assignment_type]


def _latest_first(assignment: ShiftAssignment) -> date:
    return assignment.start_date or assignment.effective_date
