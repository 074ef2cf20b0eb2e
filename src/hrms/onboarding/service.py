from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Optional, Sequence, Tuple

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.identifiers import generate_numeric_password, generate_token, yearly_code
from ..common.permissions import ensure_admin, is_admin
from ..core.constants import (
    DEFAULT_LEAVE_ALLOCATION,
    OFFER_ONBOARDING_TOKEN_DAYS,
    ONBOARDING_DEFAULT_EXPIRY_DAYS,
    ONBOARDING_GRACE_AFTER_JOINING_DAYS,
    ONBOARDING_MAX_EXPIRY_DAYS,
)
from ..core.enums import LeaveType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..database.repository import SequenceRepository
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..employees.service import EmployeeService
from ..leaves.repository import LeaveBalanceRepository
from ..notifications.model import NotificationType
from ..notifications.service import AuditService, NotificationService
from ..payroll.model import HalfDayDeductionRule, WorkingDaysRule
from ..payroll.service import SalaryStructureService
from ..recruitment.model import Candidate, JobRequisition, Offer
from ..users.model import SessionUser
from ..users.repository import UserRepository
from ..users.service import UserService
from .model import (
    ApprovalResult,
    OnboardingRequest,
    OnboardingStatus,
    OnboardingStep,
    OnboardingSubmission,
)
from .repository import OnboardingRequestRepository, OnboardingSubmissionRepository
from .validators import validate_step

logger = get_logger("hrms.onboarding")

AUDIT_MODULE = "onboarding"

EXPIRED_LINK_MESSAGE = "Onboarding link has expired. Please contact HR."


def infer_role(designation: Optional[str]) -> Role:
    """Login role implied by a job title."""
    title = (designation or "").lower()
    if "admin" in title or "super" in title:
        return Role.SUPER_ADMIN
    if "hr" in title.split() or "human resource" in title:
        return Role.HR
    if "manager" in title or "mgr" in title:
        return Role.MANAGER
    return Role.EMPLOYEE


class OnboardingService:
    """Invitation, self-service form by token, and HR review of new joiners."""

    def __init__(
        self,
        requests: OnboardingRequestRepository,
        submissions: OnboardingSubmissionRepository,
        employees: EmployeeService,
        employee_repo: EmployeeRepository,
        users: UserService,
        user_repo: UserRepository,
        salary: SalaryStructureService,
        balances: LeaveBalanceRepository,
        sequences: SequenceRepository,
        audit: AuditService,
        notifications: NotificationService,
    ):
        self._requests = requests
        self._submissions = submissions
        self._employees = employees
        self._employee_repo = employee_repo
        self._users = users
        self._user_repo = user_repo
        self._salary = salary
        self._balances = balances
        self._sequences = sequences
        self._audit = audit
        self._notifications = notifications

    # ---- lookups -------------------------------------------------------

    def find(self, request_id: str) -> OnboardingRequest:
        request = self._requests.get_by_id(request_id)
        if not request:
            raise NotFoundError("Onboarding request not found")
        return request

    def get_for(self, actor: SessionUser, request_id: str) -> Tuple[OnboardingRequest, Optional[OnboardingSubmission]]:
        request = self.find(request_id)
        if not is_admin(actor):
            if actor.role != Role.MANAGER or request.reporting_manager_id != actor.employee_id:
                raise AuthorizationError("Unauthorized - Not your team member")
        return request, self._submissions.get_for_request(request_id)

    def list_for(self, actor: SessionUser, *, status: Optional[OnboardingStatus] = None) -> Sequence[OnboardingRequest]:
        if is_admin(actor):
            return self._requests.list_requests(status=status)
        if actor.role == Role.MANAGER and actor.employee_id:
            return self._requests.list_requests(status=status, reporting_manager_id=actor.employee_id)
        raise AuthorizationError("Unauthorized")

    def _record(self, request: OnboardingRequest, action: str, description: str, *, by: Optional[str], **metadata: Any) -> None:
        self._audit.record(
            AUDIT_MODULE,
            action,
            description,
            entity_id=request.request_id,
            employee_id=request.employee_id,
            performed_by=by,
            metadata={"onboardingId": request.code, **metadata},
        )

    # ---- invitation ----------------------------------------------------

    def _next_code(self, year: int) -> str:
        return yearly_code("ONB", year, self._sequences.next_value(f"onb-{year}"))

    def _check_manager(self, manager_id: Optional[str]) -> None:
        if not manager_id:
            return
        manager = self._employee_repo.get_by_id(manager_id)
        if not manager or not manager.is_active:
            raise ValidationError("Reporting manager not found or inactive")

    def create(self, actor: SessionUser, data: dict, *, now: Optional[datetime] = None) -> OnboardingRequest:
        ensure_admin(actor)
        now = now or now_local()
        email = data["email"].strip().lower()
        if self._requests.find_active_by_email(email):
            raise ConflictError("An active onboarding request already exists for this email")
        self._check_manager(data.get("reporting_manager_id"))

        expiry_days = int(data.get("expiry_days") or ONBOARDING_DEFAULT_EXPIRY_DAYS)
        if not 1 <= expiry_days <= ONBOARDING_MAX_EXPIRY_DAYS:
            raise ValidationError(f"Expiry days must be between 1 and {ONBOARDING_MAX_EXPIRY_DAYS}")

        joining: date = data["date_of_joining"]
        fields = {k: v for k, v in data.items() if k != "expiry_days"}
        fields.update(
            {
                "email": email,
                "expiry_date": joining + timedelta(days=ONBOARDING_GRACE_AFTER_JOINING_DAYS),
                "status": OnboardingStatus.INVITED,
                "invited_by": actor.user_id,
                "invited_at": now,
            }
        )
        code = self._next_code(now.year)
        request_id = self._requests.create_request(
            fields, code=code, token=generate_token(), token_expiry=now + timedelta(days=expiry_days)
        )
        request = self.find(request_id)
        self._record(request, "onboarding_created", f"Onboarding request {code} created for {email}", by=actor.user_id)
        self._notifications.notify_employee(
            request.reporting_manager_id,
            NotificationType.ONBOARDING_INVITED,
            "New Team Member Onboarding",
            f"{request.full_name} has been invited to onboard as {request.designation}, joining on {joining.isoformat()}.",
            related_id=request_id,
        )
        logger.info("onboarding request %s created email=%s", code, email)
        return request

    def invite_from_offer(
        self,
        *,
        candidate: Candidate,
        offer: Offer,
        requisition: JobRequisition,
        work_location: str,
        now: Optional[datetime] = None,
    ) -> str:
        """Create or refresh the onboarding request of a candidate whose offer was accepted."""
        now = now or now_local()
        joining = offer.start_date or requisition.expected_start_date or now.date()
        fields = {
            "first_name": candidate.first_name,
            "last_name": candidate.last_name,
            "date_of_joining": joining,
            "department": offer.department or requisition.department,
            "designation": offer.job_title or requisition.job_title,
            "reporting_manager_id": requisition.hiring_manager_id,
            "work_location": work_location,
            "candidate_id": candidate.candidate_id,
            "expiry_date": joining + timedelta(days=ONBOARDING_GRACE_AFTER_JOINING_DAYS),
            "status": OnboardingStatus.INVITED,
            "progress": 0,
            "invited_at": now,
        }

        existing = self._requests.find_active_by_email(candidate.email)
        if existing:
            if existing.token_expired(now):
                fields["token"] = generate_token()
                fields["token_expiry"] = now + timedelta(days=OFFER_ONBOARDING_TOKEN_DAYS)
            self._requests.update_request(existing.request_id, fields)
            request = self.find(existing.request_id)
            self._record(request, "onboarding_updated", f"Onboarding refreshed from offer {offer.code}", by=offer.created_by)
        else:
            fields.update(
                {
                    "email": candidate.email,
                    "mobile_number": candidate.phone or None,
                    "invited_by": offer.created_by,
                }
            )
            request_id = self._requests.create_request(
                fields,
                code=self._next_code(now.year),
                token=generate_token(),
                token_expiry=now + timedelta(days=OFFER_ONBOARDING_TOKEN_DAYS),
            )
            request = self.find(request_id)
            self._record(request, "onboarding_created", f"Onboarding created from offer {offer.code}", by=offer.created_by)

        self._notifications.notify_employee(
            request.reporting_manager_id,
            NotificationType.ONBOARDING_INVITED,
            "New Team Member Onboarding",
            f"{request.full_name} accepted the offer and has been invited to onboard.",
            related_id=request.request_id,
        )
        logger.info("candidate %s converted to onboarding request %s", candidate.code, request.code)
        return request.request_id

    def discard(self, request_id: str, *, performed_by: Optional[str], reason: str) -> None:
        request = self.find(request_id)
        self._submissions.delete_for_request(request_id)
        self._requests.delete_request(request_id)
        self._record(request, "onboarding_deleted", f"Onboarding request deleted: {reason}", by=performed_by)
        logger.info("onboarding request %s deleted (%s)", request.code, reason)

    def delete(self, actor: SessionUser, request_id: str) -> None:
        ensure_admin(actor)
        request = self.find(request_id)
        if request.employee_id:
            raise ValidationError("Cannot delete onboarding request. Employee has already been created from this request.")
        self.discard(request_id, performed_by=actor.user_id, reason="deleted by HR")

    # ---- self-service by token ----------------------------------------

    def _by_token(self, token: str, now: datetime) -> OnboardingRequest:
        request = self._requests.get_by_token(token)
        if not request:
            raise NotFoundError("Invalid onboarding token")
        if request.token_expired(now):
            raise ValidationError(EXPIRED_LINK_MESSAGE)
        return request

    def open_by_token(self, token: str, *, now: Optional[datetime] = None) -> Tuple[OnboardingRequest, Optional[OnboardingSubmission]]:
        request = self._by_token(token, now or now_local())
        return request, self._submissions.get_for_request(request.request_id)

    def save_step(self, token: str, step: OnboardingStep, data: Any, *, now: Optional[datetime] = None) -> OnboardingSubmission:
        now = now or now_local()
        request = self._by_token(token, now)
        if not request.is_editable:
            raise ValidationError(f"Onboarding cannot be edited in status {request.status.value}")

        submission = self._submissions.save_step(request.request_id, step, validate_step(step, data))
        fields: dict = {"progress": submission.progress}
        if request.status == OnboardingStatus.INVITED:
            fields["status"] = OnboardingStatus.IN_PROGRESS
            fields["started_at"] = now
        self._requests.update_request(request.request_id, fields)
        self._record(request, "step_completed", f'Step "{step.value}" completed', by=None, step=step.value)
        return submission

    def submit(self, token: str, *, now: Optional[datetime] = None) -> OnboardingRequest:
        now = now or now_local()
        request = self._by_token(token, now)
        if not request.is_editable:
            raise ValidationError(f"Onboarding cannot be edited in status {request.status.value}")
        submission = self._submissions.get_for_request(request.request_id)
        if submission is None or not submission.is_complete:
            raise ValidationError("All steps must be completed before submission")

        self._submissions.set_draft(request.request_id, is_draft=False, submitted_at=now)
        self._requests.update_request(
            request.request_id,
            {"status": OnboardingStatus.SUBMITTED, "submitted_at": now, "progress": 100},
        )
        self._record(request, "onboarding_submitted", "Employee submitted onboarding for review", by=None)
        self._notifications.notify(
            request.invited_by,
            NotificationType.ONBOARDING_SUBMITTED,
            "Onboarding Submitted",
            f"{request.full_name} submitted onboarding {request.code} for review.",
            related_id=request.request_id,
        )
        logger.info("onboarding %s submitted", request.code)
        return self.find(request.request_id)

    # ---- HR review -----------------------------------------------------

    def review(self, actor: SessionUser, request_id: str, action: str, payload: dict) -> Any:
        ensure_admin(actor, "Unauthorized - Only HR can review onboarding")
        if action == "approve":
            return self.approve(actor, request_id)
        if action == "reject":
            return self.reject(actor, request_id, payload.get("rejection_reason"))
        if action == "request_changes":
            return self.request_changes(actor, request_id, payload.get("comments"))
        if action == "regenerate_token":
            return self.regenerate_token(actor, request_id, expiry_days=payload.get("expiry_days"))
        raise ValidationError(f"Unknown action: {action}")

    def approve(self, actor: SessionUser, request_id: str, *, today: Optional[date] = None) -> ApprovalResult:
        ensure_admin(actor)
        request = self.find(request_id)
        if request.status not in (OnboardingStatus.SUBMITTED, OnboardingStatus.CHANGES_REQUESTED):
            raise ValidationError("Can only approve submitted onboarding requests")
        submission = self._submissions.get_for_request(request_id)
        if submission is None or submission.is_draft:
            raise ValidationError("Onboarding submission not found or not submitted")
        if not submission.is_complete:
            raise ValidationError("All onboarding steps must be completed before approval")
        today = today or now_local().date()

        personal = submission.step(OnboardingStep.PERSONAL_DETAILS)
        employment = submission.step(OnboardingStep.EMPLOYMENT_DETAILS)
        designation = employment.get("designation") or request.designation
        role = infer_role(designation)
        name = personal.get("fullName") or request.full_name
        manager_id = employment.get("reportingManagerId") or request.reporting_manager_id
        department = employment.get("department") or request.department

        employee, is_new = self._provision_employee(
            actor, request, name=name, role=role, manager_id=manager_id, department=department, designation=designation
        )
        password = self._provision_user(request, employee, role)

        if is_new:
            compensation = submission.step(OnboardingStep.COMPENSATION_PAYROLL)
            if compensation.get("annualCTC"):
                self._provision_salary(actor, request, employee, float(compensation["annualCTC"]))
            self._provision_leave(employee, today.year)

        self._requests.update_request(
            request_id,
            {"status": OnboardingStatus.APPROVED, "employee_id": employee.employee_id, "reviewed_by": actor.user_id},
        )
        self._submissions.link_employee(request_id, employee.employee_id)
        approved = self.find(request_id)
        self._record(
            approved,
            "onboarding_approved",
            f"Onboarding approved. Employee ID: {employee.code} {'created' if is_new else 'updated'}.",
            by=actor.user_id,
            isNewEmployee=is_new,
        )

        message = f"Your onboarding has been approved. Your Employee ID is {employee.code}."
        if password:
            message += f" Default password: {password}"
        self._notifications.notify_employee(
            employee.employee_id, NotificationType.ONBOARDING_APPROVED, "Onboarding Approved", message, related_id=request_id
        )
        self._notifications.notify_employee(
            manager_id,
            NotificationType.ONBOARDING_APPROVED,
            "New Team Member",
            f"{employee.name} ({employee.code}) has joined your team.",
            related_id=request_id,
        )
        logger.info("onboarding %s approved employee=%s new=%s", request.code, employee.code, is_new)
        return ApprovalResult(request=approved, employee=employee, is_new_employee=is_new, default_password=password)

    def _provision_employee(
        self,
        actor: SessionUser,
        request: OnboardingRequest,
        *,
        name: str,
        role: Role,
        manager_id: Optional[str],
        department: str,
        designation: str,
    ) -> Tuple[Employee, bool]:
        existing = self._employee_repo.get_by_email(request.email)
        if existing:
            self._employees.update(
                actor,
                existing.employee_id,
                {"name": name, "role": role, "manager_id": manager_id, "department": department, "designation": designation},
            )
            return self._employees.set_status(actor, existing.employee_id, is_active=True), False
        employee = self._employees.create(
            None,
            name=name,
            email=request.email,
            role=role,
            manager_id=manager_id,
            department=department,
            designation=designation,
        )
        return employee, True

    def _provision_user(self, request: OnboardingRequest, employee: Employee, role: Role) -> Optional[str]:
        """Link or create the login. Returns the generated password for new accounts only."""
        user = self._user_repo.get_by_email(request.email)
        if user:
            self._user_repo.link_employee(user.user_id, employee.employee_id)
            self._user_repo.update_role(user.user_id, role=role)
            self._user_repo.set_active(user.user_id, is_active=True)
            return None
        password = generate_numeric_password()
        self._users.create_account(email=request.email, password=password, role=role, employee_id=employee.employee_id)
        return password

    def _provision_salary(self, actor: SessionUser, request: OnboardingRequest, employee: Employee, annual_ctc: float) -> None:
        self._salary.create(
            None,
            {
                "employee_id": employee.employee_id,
                "gross_monthly_salary": round(annual_ctc / 12, 2),
                "working_days_rule": WorkingDaysRule.SHIFT_BASED,
                "paid_leave_types": (LeaveType.PAID, LeaveType.SICK, LeaveType.CASUAL, LeaveType.ANNUAL),
                "unpaid_leave_types": (LeaveType.UNPAID,),
                "half_day_deduction_rule": HalfDayDeductionRule.HALF_DAY,
                "effective_from": request.date_of_joining,
                "created_by": actor.user_id,
            },
        )

    def _provision_leave(self, employee: Employee, year: int) -> None:
        if self._balances.list_for_employee(employee.employee_id, year):
            return
        for leave_type, days in DEFAULT_LEAVE_ALLOCATION.items():
            self._balances.set_total(employee.employee_id, LeaveType(leave_type), year, days)

    def reject(self, actor: SessionUser, request_id: str, reason: Optional[str]) -> OnboardingRequest:
        ensure_admin(actor)
        request = self.find(request_id)
        if request.status not in (OnboardingStatus.SUBMITTED, OnboardingStatus.CHANGES_REQUESTED):
            raise ValidationError("Can only reject submitted onboarding requests")
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required")
        self._requests.update_request(
            request_id,
            {"status": OnboardingStatus.REJECTED, "rejection_reason": reason.strip(), "reviewed_by": actor.user_id},
        )
        self._record(request, "onboarding_rejected", f"Onboarding rejected: {reason.strip()}", by=actor.user_id)
        self._notifications.notify_employee(
            request.reporting_manager_id,
            NotificationType.ONBOARDING_REJECTED,
            "Onboarding Rejected",
            f"Onboarding of {request.full_name} was rejected: {reason.strip()}",
            related_id=request_id,
        )
        logger.info("onboarding %s rejected by user=%s", request.code, actor.user_id)
        return self.find(request_id)

    def request_changes(self, actor: SessionUser, request_id: str, comments: Optional[str]) -> OnboardingRequest:
        ensure_admin(actor)
        request = self.find(request_id)
        if request.status != OnboardingStatus.SUBMITTED:
            raise ValidationError("Can only request changes for submitted onboarding requests")
        if not comments or not comments.strip():
            raise ValidationError("Change request comments are required")
        self._requests.update_request(
            request_id,
            {"status": OnboardingStatus.CHANGES_REQUESTED, "hr_comments": comments.strip(), "reviewed_by": actor.user_id},
        )
        self._submissions.set_draft(request_id, is_draft=True, submitted_at=None)
        self._record(request, "changes_requested", f"Changes requested: {comments.strip()}", by=actor.user_id)
        self._notifications.notify(
            request.invited_by,
            NotificationType.ONBOARDING_CHANGES_REQUESTED,
            "Onboarding Changes Requested",
            f"Changes were requested on onboarding {request.code}.",
            related_id=request_id,
        )
        return self.find(request_id)

    def regenerate_token(
        self,
        actor: SessionUser,
        request_id: str,
        *,
        expiry_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> OnboardingRequest:
        ensure_admin(actor)
        request = self.find(request_id)
        if request.status in (OnboardingStatus.APPROVED, OnboardingStatus.REJECTED, OnboardingStatus.COMPLETED):
            raise ValidationError(f"Cannot regenerate token for a {request.status.value} onboarding request")
        days = int(expiry_days or ONBOARDING_DEFAULT_EXPIRY_DAYS)
        if not 1 <= days <= ONBOARDING_MAX_EXPIRY_DAYS:
            raise ValidationError(f"Expiry days must be between 1 and {ONBOARDING_MAX_EXPIRY_DAYS}")
        now = now or now_local()
        self._requests.update_request(request_id, {"token": generate_token(), "token_expiry": now + timedelta(days=days)})
        self._record(request, "token_regenerated", "Onboarding token regenerated", by=actor.user_id)
        self._notifications.notify(
            request.invited_by,
            NotificationType.ONBOARDING_INVITED,
            "Onboarding Link Regenerated",
            f"A new onboarding link was issued for {request.full_name}.",
            related_id=request_id,
        )
        return self.find(request_id)

    def update(self, actor: SessionUser, request_id: str, fields: dict) -> OnboardingRequest:
        """Edit invitation details while the request is still open."""
        ensure_admin(actor)
        request = self.find(request_id)
        if not request.is_editable and request.status != OnboardingStatus.SUBMITTED:
            raise ValidationError(f"Cannot edit a {request.status.value} onboarding request")
        if "reporting_manager_id" in fields:
            self._check_manager(fields["reporting_manager_id"])
        if isinstance(fields.get("date_of_joining"), str):
            fields = {**fields, "date_of_joining": parse_iso_date(fields["date_of_joining"])}
        if "date_of_joining" in fields:
            fields = {**fields, "expiry_date": fields["date_of_joining"] + timedelta(days=ONBOARDING_GRACE_AFTER_JOINING_DAYS)}
        if fields:
            self._requests.update_request(request_id, fields)
        return self.find(request_id)

    def edit_submission(self, actor: SessionUser, request_id: str, step: OnboardingStep, data: Any) -> OnboardingSubmission:
        """HR fixes one step of a submitted form without sending it back to the employee."""
        ensure_admin(actor, "Unauthorized - Only HR can edit onboarding submissions")
        request = self.find(request_id)
        if request.status != OnboardingStatus.SUBMITTED:
            raise ValidationError(f"Cannot edit. Status must be 'submitted'. Current status: {request.status.value}")
        if self._submissions.get_for_request(request_id) is None:
            raise NotFoundError("Submission not found")

        submission = self._submissions.save_step(request_id, step, validate_step(step, data))
        self._record(
            request,
            "hr_updated_submission",
            f"HR updated {step.value} step",
            by=actor.user_id,
            step=step.value,
            updatedBy=actor.email,
        )
        logger.info("onboarding %s step %s edited by user=%s", request.code, step.value, actor.user_id)
        return submission

    def send_reminder(self, actor: SessionUser, request_id: str, *, now: Optional[datetime] = None) -> OnboardingRequest:
        ensure_admin(actor)
        request = self.find(request_id)
        if request.status in (OnboardingStatus.APPROVED, OnboardingStatus.COMPLETED, OnboardingStatus.REJECTED):
            raise ValidationError(f"Cannot send reminder for a {request.status.value} onboarding request")

        count = request.reminder_count + 1
        self._requests.update_request(request_id, {"reminder_count": count, "last_reminder_sent_at": now or now_local()})
        self._record(
            request,
            "reminder_sent",
            f"Reminder sent to {request.email} (Reminder #{count})",
            by=actor.user_id,
            reminderCount=count,
        )
        self._notifications.notify_employee(
            request.reporting_manager_id,
            NotificationType.REMINDER,
            "Onboarding Reminder Sent",
            f"{request.full_name} was reminded to complete onboarding {request.code} (reminder #{count}).",
            related_id=request_id,
        )
        logger.info("onboarding %s reminder #%d sent", request.code, count)
        return self.find(request_id)
