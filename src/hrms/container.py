from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .appraisal.mongo_appraisal_repository import (
    MongoCycleRepository,
    MongoManagerReviewRepository,
    MongoSelfReviewRepository,
)
from .appraisal.repository import CycleRepository, ManagerReviewRepository, SelfReviewRepository
from .appraisal.service import CycleService, ReviewService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mongo_attendance_repository import MongoAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .breaks.mongo_break_repository import MongoBreakPolicyRepository, MongoBreakSessionRepository
from .breaks.repository import BreakPolicyRepository, BreakSessionRepository
from .breaks.service import BreakPolicyService, BreakService
from .database.connection import MongoConfig, MongoConnection
from .database.mongo_base import MongoSequenceRepository
from .database.repository import SequenceRepository
from .employees.mongo_employee_repository import MongoEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .leaves.mongo_leave_repository import MongoLeaveBalanceRepository, MongoLeaveRepository
from .leaves.repository import LeaveBalanceRepository, LeaveRepository
from .leaves.service import LeaveService
from .notifications.mongo_notification_repository import MongoAuditRepository, MongoNotificationRepository
from .notifications.repository import AuditRepository, NotificationRepository
from .notifications.service import AuditService, NotificationService
from .onboarding.mongo_onboarding_repository import (
    MongoOnboardingRequestRepository,
    MongoOnboardingSubmissionRepository,
)
from .onboarding.repository import OnboardingRequestRepository, OnboardingSubmissionRepository
from .onboarding.service import OnboardingService
from .payroll.mongo_payroll_repository import (
    MongoPayrollRepository,
    MongoPayslipRepository,
    MongoSalaryStructureRepository,
)
from .payroll.repository import PayrollRepository, PayslipRepository, SalaryStructureRepository
from .payroll.service import PayrollService, SalaryStructureService
from .recruitment.mongo_recruitment_repository import (
    MongoCandidateRepository,
    MongoFeedbackRepository,
    MongoInterviewRepository,
    MongoJobRequisitionRepository,
    MongoOfferRepository,
)
from .recruitment.repository import (
    CandidateRepository,
    FeedbackRepository,
    InterviewRepository,
    JobRequisitionRepository,
    OfferRepository,
)
from .recruitment.service import (
    CandidateService,
    FeedbackService,
    InterviewService,
    JobRequisitionService,
    OfferService,
    PublicJobService,
)
from .shifts.mongo_shift_repository import (
    MongoRosterRepository,
    MongoShiftAssignmentRepository,
    MongoShiftRepository,
    MongoShiftSwapRepository,
)
from .shifts.repository import RosterRepository, ShiftAssignmentRepository, ShiftRepository, ShiftSwapRepository
from .shifts.resolver import ShiftResolver
from .shifts.service import RosterService, ShiftAssignmentService, ShiftService, ShiftSwapService
from .users.mongo_user_repository import MongoUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .wifi.mongo_wifi_repository import (
    MongoAttendanceOverrideRepository,
    MongoWifiNetworkRepository,
    MongoWifiPolicyRepository,
)
from .wifi.repository import AttendanceOverrideRepository, WifiNetworkRepository, WifiPolicyRepository
from .wifi.service import AttendanceOverrideService, WifiAdminService, WifiValidationService


@dataclass(frozen=True)
class Repositories:
    sequences: SequenceRepository
    users: UserRepository
    employees: EmployeeRepository
    attendance: AttendanceRepository
    wifi_networks: WifiNetworkRepository
    wifi_policies: WifiPolicyRepository
    overrides: AttendanceOverrideRepository
    break_policies: BreakPolicyRepository
    break_sessions: BreakSessionRepository
    leaves: LeaveRepository
    leave_balances: LeaveBalanceRepository
    shifts: ShiftRepository
    shift_assignments: ShiftAssignmentRepository
    roster: RosterRepository
    shift_swaps: ShiftSwapRepository
    salary_structures: SalaryStructureRepository
    payrolls: PayrollRepository
    payslips: PayslipRepository
    cycles: CycleRepository
    self_reviews: SelfReviewRepository
    manager_reviews: ManagerReviewRepository
    notifications: NotificationRepository
    audit: AuditRepository
    requisitions: JobRequisitionRepository
    candidates: CandidateRepository
    interviews: InterviewRepository
    feedback: FeedbackRepository
    offers: OfferRepository
    onboarding_requests: OnboardingRequestRepository
    onboarding_submissions: OnboardingSubmissionRepository


@dataclass(frozen=True)
class Container:
    repos: Repositories
    conn: Optional[MongoConnection]

    shift_resolver: ShiftResolver
    notification_service: NotificationService
    audit_service: AuditService
    auth_service: AuthService
    user_service: UserService
    employee_service: EmployeeService
    wifi_admin_service: WifiAdminService
    wifi_validation_service: WifiValidationService
    override_service: AttendanceOverrideService
    break_service: BreakService
    break_policy_service: BreakPolicyService
    attendance_service: AttendanceService
    leave_service: LeaveService
    shift_service: ShiftService
    shift_assignment_service: ShiftAssignmentService
    roster_service: RosterService
    shift_swap_service: ShiftSwapService
    salary_structure_service: SalaryStructureService
    payroll_service: PayrollService
    cycle_service: CycleService
    review_service: ReviewService
    onboarding_service: OnboardingService
    requisition_service: JobRequisitionService
    candidate_service: CandidateService
    interview_service: InterviewService
    feedback_service: FeedbackService
    offer_service: OfferService
    public_job_service: PublicJobService


def assemble(repos: Repositories, *, conn: Optional[MongoConnection] = None) -> Container:
    """Wire services over any repository set."""

    resolver = ShiftResolver(repos.shifts, repos.shift_assignments, repos.roster, repos.employees)
    notification_service = NotificationService(repos.notifications, repos.users)
    audit_service = AuditService(repos.audit)

    auth_service = AuthService(repos.users, repos.employees)
    user_service = UserService(repos.users, repos.employees)
    employee_service = EmployeeService(repos.employees, repos.sequences)

    wifi_admin_service = WifiAdminService(repos.wifi_networks, repos.wifi_policies)
    wifi_validation_service = WifiValidationService(
        repos.wifi_networks, repos.wifi_policies, repos.overrides, resolver
    )
    override_service = AttendanceOverrideService(repos.overrides, repos.employees)

    break_service = BreakService(repos.break_sessions, repos.break_policies, repos.attendance, repos.employees)
    break_policy_service = BreakPolicyService(repos.break_policies)
    attendance_service = AttendanceService(
        repos.attendance,
        repos.employees,
        resolver,
        strategy_factory=AttendanceStrategyFactory(),
        wifi=wifi_validation_service,
    )
    attendance_service.attach_breaks(break_service)

    leave_service = LeaveService(
        repos.leaves, repos.leave_balances, repos.attendance, repos.employees, notification_service
    )

    shift_service = ShiftService(repos.shifts)
    shift_assignment_service = ShiftAssignmentService(repos.shift_assignments, repos.shifts, repos.employees)
    roster_service = RosterService(repos.roster, repos.shifts, repos.employees, repos.leaves, resolver)
    shift_swap_service = ShiftSwapService(
        repos.shift_swaps, repos.roster, repos.employees, resolver, notification_service
    )

    salary_structure_service = SalaryStructureService(repos.salary_structures, repos.employees, audit_service)
    payroll_service = PayrollService(
        repos.payrolls,
        repos.payslips,
        salary_structure_service,
        repos.attendance,
        repos.leaves,
        repos.employees,
        resolver,
        audit_service,
    )

    cycle_service = CycleService(repos.cycles, notification_service)
    review_service = ReviewService(
        repos.cycles, repos.self_reviews, repos.manager_reviews, repos.employees, notification_service
    )

    onboarding_service = OnboardingService(
        repos.onboarding_requests,
        repos.onboarding_submissions,
        employee_service,
        repos.employees,
        user_service,
        repos.users,
        salary_structure_service,
        repos.leave_balances,
        repos.sequences,
        audit_service,
        notification_service,
    )

    requisition_service = JobRequisitionService(repos.requisitions, repos.employees, repos.sequences, audit_service)
    candidate_service = CandidateService(repos.candidates, requisition_service, repos.sequences, audit_service)
    interview_service = InterviewService(
        repos.interviews,
        candidate_service,
        requisition_service,
        repos.users,
        repos.sequences,
        audit_service,
        notification_service,
    )
    feedback_service = FeedbackService(repos.feedback, interview_service, candidate_service)
    offer_service = OfferService(
        repos.offers,
        candidate_service,
        requisition_service,
        repos.employees,
        repos.interviews,
        repos.users,
        repos.sequences,
        audit_service,
        notification_service,
        onboarding_service,
    )
    public_job_service = PublicJobService(repos.requisitions, candidate_service)

    return Container(
        repos=repos,
        conn=conn,
        shift_resolver=resolver,
        notification_service=notification_service,
        audit_service=audit_service,
        auth_service=auth_service,
        user_service=user_service,
        employee_service=employee_service,
        wifi_admin_service=wifi_admin_service,
        wifi_validation_service=wifi_validation_service,
        override_service=override_service,
        break_service=break_service,
        break_policy_service=break_policy_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        shift_service=shift_service,
        shift_assignment_service=shift_assignment_service,
        roster_service=roster_service,
        shift_swap_service=shift_swap_service,
        salary_structure_service=salary_structure_service,
        payroll_service=payroll_service,
        cycle_service=cycle_service,
        review_service=review_service,
        onboarding_service=onboarding_service,
        requisition_service=requisition_service,
        candidate_service=candidate_service,
        interview_service=interview_service,
        feedback_service=feedback_service,
        offer_service=offer_service,
        public_job_service=public_job_service,
    )


def build_container(*, mongo_config: dict) -> Container:
    config = MongoConfig(uri=str(mongo_config["uri"]), database=str(mongo_config["database"]))
    conn = MongoConnection.get_instance(config)
    db = conn.db

    repos = Repositories(
        sequences=MongoSequenceRepository(db),
        users=MongoUserRepository(db),
        employees=MongoEmployeeRepository(db),
        attendance=MongoAttendanceRepository(db),
        wifi_networks=MongoWifiNetworkRepository(db),
        wifi_policies=MongoWifiPolicyRepository(db),
        overrides=MongoAttendanceOverrideRepository(db),
        break_policies=MongoBreakPolicyRepository(db),
        break_sessions=MongoBreakSessionRepository(db),
        leaves=MongoLeaveRepository(db),
        leave_balances=MongoLeaveBalanceRepository(db),
        shifts=MongoShiftRepository(db),
        shift_assignments=MongoShiftAssignmentRepository(db),
        roster=MongoRosterRepository(db),
        shift_swaps=MongoShiftSwapRepository(db),
        salary_structures=MongoSalaryStructureRepository(db),
        payrolls=MongoPayrollRepository(db),
        payslips=MongoPayslipRepository(db),
        cycles=MongoCycleRepository(db),
        self_reviews=MongoSelfReviewRepository(db),
        manager_reviews=MongoManagerReviewRepository(db),
        notifications=MongoNotificationRepository(db),
        audit=MongoAuditRepository(db),
        requisitions=MongoJobRequisitionRepository(db),
        candidates=MongoCandidateRepository(db),
        interviews=MongoInterviewRepository(db),
        feedback=MongoFeedbackRepository(db),
        offers=MongoOfferRepository(db),
        onboarding_requests=MongoOnboardingRequestRepository(db),
        onboarding_submissions=MongoOnboardingSubmissionRepository(db),
    )
    return assemble(repos, conn=conn)
