from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .api.auth import Guard
from .assessments.cycle_service import CycleService
from .assessments.mysql_assessment_repository import MySQLAssessmentRepository
from .assessments.mysql_cycle_repository import MySQLCycleRepository
from .assessments.repository import AssessmentRepository, CycleRepository
from .assessments.service import AssessmentService
from .auth.mysql_verification_repository import MySQLVerificationTokenRepository
from .auth.repository import VerificationTokenRepository
from .auth.service import AuthService
from .auth.tokens import TokenSigner
from .competencies.mysql_competency_repository import MySQLCompetencyRepository, MySQLRequirementRepository
from .competencies.repository import CompetencyRepository, RequirementRepository
from .competencies.service import CompetencyService
from .database.connection import DBConfig, DatabaseConnection
from .emails.mysql_email_repository import MySQLEmailLogRepository, MySQLEmailTemplateRepository
from .emails.repository import EmailLogRepository, EmailTemplateRepository
from .emails.sender import EmailSender
from .emails.service import EmailService, EmailTemplateService
from .profile_requests.mysql_profile_request_repository import MySQLProfileRequestRepository
from .profile_requests.repository import ProfileRequestRepository
from .profile_requests.service import ProfileRequestService
from .requests.mysql_request_repository import MySQLWorkRequestRepository
from .requests.repository import WorkRequestRepository
from .requests.service import RequestService
from .teams.mysql_team_repository import MySQLTeamRepository
from .teams.repository import TeamRepository
from .teams.service import TeamService
from .timesheet.holiday_provider import HolidayProvider
from .timesheet.mysql_holiday_repository import MySQLHolidayRepository
from .timesheet.repository import HolidayRepository
from .timesheet.service import TimesheetService
from .users.mysql_user_repository import MySQLCareerBandRepository, MySQLUserRepository
from .users.repository import CareerBandRepository, UserRepository
from .users.service import UserService


@dataclass(frozen=True)
class Repositories:
    users: UserRepository
    career_bands: CareerBandRepository
    tokens: VerificationTokenRepository
    teams: TeamRepository
    competencies: CompetencyRepository
    requirements: RequirementRepository
    cycles: CycleRepository
    assessments: AssessmentRepository
    work_requests: WorkRequestRepository
    holidays: HolidayRepository
    profile_requests: ProfileRequestRepository
    email_templates: EmailTemplateRepository
    email_logs: EmailLogRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    repos: Repositories

    signer: TokenSigner
    guard: Guard

    email_service: EmailService
    email_template_service: EmailTemplateService
    auth_service: AuthService
    user_service: UserService
    team_service: TeamService
    competency_service: CompetencyService
    cycle_service: CycleService
    assessment_service: AssessmentService
    request_service: RequestService
    timesheet_service: TimesheetService
    profile_request_service: ProfileRequestService


def mysql_repositories(conn: DatabaseConnection) -> Repositories:
    return Repositories(
        users=MySQLUserRepository(conn),
        career_bands=MySQLCareerBandRepository(conn),
        tokens=MySQLVerificationTokenRepository(conn),
        teams=MySQLTeamRepository(conn),
        competencies=MySQLCompetencyRepository(conn),
        requirements=MySQLRequirementRepository(conn),
        cycles=MySQLCycleRepository(conn),
        assessments=MySQLAssessmentRepository(conn),
        work_requests=MySQLWorkRequestRepository(conn),
        holidays=MySQLHolidayRepository(conn),
        profile_requests=MySQLProfileRequestRepository(conn),
        email_templates=MySQLEmailTemplateRepository(conn),
        email_logs=MySQLEmailLogRepository(conn),
    )


def assemble(
    repos: Repositories,
    *,
    secret_key: str,
    token_max_age: int,
    app_url: str,
    email_sender: EmailSender,
    holiday_provider: Optional[HolidayProvider] = None,
    holiday_country: str = "VN",
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services on top of any repository set (MySQL in the app, in-memory fakes in tests)."""
    signer = TokenSigner(secret_key, max_age_seconds=token_max_age)

    email_service = EmailService(repos.email_templates, repos.email_logs, email_sender)
    auth_service = AuthService(repos.users, repos.tokens, email_service, signer, app_url=app_url)

    return Container(
        conn=conn,
        repos=repos,
        signer=signer,
        guard=Guard(signer),
        email_service=email_service,
        email_template_service=EmailTemplateService(repos.email_templates),
        auth_service=auth_service,
        user_service=UserService(repos.users, repos.career_bands, auth_service),
        team_service=TeamService(repos.teams, repos.users),
        competency_service=CompetencyService(repos.competencies, repos.requirements, repos.career_bands),
        cycle_service=CycleService(
            repos.cycles,
            repos.assessments,
            repos.users,
            repos.requirements,
            email_service,
            app_url=app_url,
        ),
        assessment_service=AssessmentService(
            repos.assessments,
            repos.cycles,
            repos.users,
            repos.teams,
            repos.competencies,
            email_service,
            app_url=app_url,
        ),
        request_service=RequestService(repos.work_requests, repos.teams),
        timesheet_service=TimesheetService(
            repos.work_requests,
            repos.holidays,
            repos.users,
            repos.teams,
            holiday_provider=holiday_provider,
            country=holiday_country,
        ),
        profile_request_service=ProfileRequestService(repos.profile_requests, repos.users),
    )


def build_container(
    *,
    db_config: dict,
    secret_key: str,
    token_max_age: int,
    app_url: str,
    email_sender: EmailSender,
    holiday_provider: Optional[HolidayProvider] = None,
    holiday_country: str = "VN",
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return assemble(
        mysql_repositories(conn),
        secret_key=secret_key,
        token_max_age=token_max_age,
        app_url=app_url,
        email_sender=email_sender,
        holiday_provider=holiday_provider,
        holiday_country=holiday_country,
        conn=conn,
    )
