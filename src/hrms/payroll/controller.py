from __future__ import annotations

from flask import Flask, request

from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.http import ok, parse_body, query_bool, query_int
from .model import PayrollStatus
from .schemas import PayrollActionBody, ProcessPayrollBody, SalaryRevisionBody, SalaryStructureBody

ADMINS = (Role.SUPER_ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    payroll = container.payroll_service
    structures = container.salary_structure_service

    @app.route("/api/payroll/process", methods=["POST"], endpoint="process_payroll")
    @roles_required(*ADMINS)
    def process_payroll():
        body = parse_body(ProcessPayrollBody)
        outcome = payroll.process(current_actor(), month=body.month, year=body.year, employee_ids=body.employee_ids)
        return ok(outcome, message=f"Processed payroll for {outcome.processed} employees")

    @app.route("/api/payroll", methods=["GET"], endpoint="list_payroll")
    @login_required
    def list_payroll():
        status = request.args.get("status")
        return ok(
            payroll.list_for(
                current_actor(),
                month=query_int("month"),
                year=query_int("year"),
                employee_id=request.args.get("employeeId") or None,
                status=PayrollStatus(status) if status else None,
            )
        )

    @app.route("/api/payroll/salary-structure", methods=["GET"], endpoint="list_salary_structures")
    @roles_required(*ADMINS)
    def list_salary_structures():
        role = request.args.get("role")
        return ok(
            structures.list_structures(
                current_actor(),
                employee_id=request.args.get("employeeId") or None,
                role=Role(role) if role else None,
                active_only=bool(query_bool("activeOnly")),
            )
        )

    @app.route("/api/payroll/salary-structure", methods=["POST"], endpoint="create_salary_structure")
    @roles_required(*ADMINS)
    def create_salary_structure():
        body = parse_body(SalaryStructureBody)
        return ok(structures.create(current_actor(), body.data()), 201)

    @app.route("/api/payroll/salary-structure/<structure_id>", methods=["PUT"], endpoint="revise_salary_structure")
    @roles_required(*ADMINS)
    def revise_salary_structure(structure_id: str):
        body = parse_body(SalaryRevisionBody)
        return ok(structures.revise(current_actor(), structure_id, body.data()))

    @app.route("/api/payroll/audit", methods=["GET"], endpoint="payroll_audit")
    @roles_required(*ADMINS)
    def payroll_audit():
        return ok(payroll.audit_log(current_actor(), entity_id=request.args.get("entityId") or None, limit=query_int("limit", 200)))

    @app.route("/api/payroll/payslip/<payroll_id>", methods=["GET"], endpoint="payslip")
    @login_required
    def payslip(payroll_id: str):
        return ok(payroll.payslip(current_actor(), payroll_id))

    @app.route("/api/payroll/<payroll_id>", methods=["GET"], endpoint="get_payroll")
    @login_required
    def get_payroll(payroll_id: str):
        return ok(payroll.get(current_actor(), payroll_id))

    @app.route("/api/payroll/<payroll_id>", methods=["PUT"], endpoint="update_payroll")
    @roles_required(*ADMINS)
    def update_payroll(payroll_id: str):
        body = parse_body(PayrollActionBody)
        actor = current_actor()
        if body.action == "lock":
            return ok(payroll.lock(actor, payroll_id), message="Payroll locked")
        return ok(payroll.unlock(actor, payroll_id), message="Payroll unlocked")
