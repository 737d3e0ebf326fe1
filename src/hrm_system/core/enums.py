from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "ADMIN"
    HR = "HR"
    LEADER = "LEADER"
    DEV = "DEV"

    @property
    def is_manager(self) -> bool:
        return self in (Role.ADMIN, Role.HR)


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ON_LEAVED = "ON_LEAVED"
    RETIRED = "RETIRED"


class VerificationType(str, Enum):
    ACTIVATION = "ACTIVATION"
    RESET_PASSWORD = "RESET_PASSWORD"


class CycleStatus(str, Enum):
    """Lifecycle of an assessment cycle: DRAFT -> ACTIVE -> COMPLETED."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class AssessmentStatus(str, Enum):
    """Linear workflow of a single user assessment."""

    SELF_ASSESSING = "SELF_ASSESSING"
    LEADER_ASSESSING = "LEADER_ASSESSING"
    DISCUSSION = "DISCUSSION"
    DONE = "DONE"


class RequestType(str, Enum):
    LEAVE = "LEAVE"
    WFH = "WFH"
    LATE = "LATE"
    EARLY = "EARLY"
    OVERTIME = "OVERTIME"


class RequestStatus(str, Enum):
    """Approval states shared by work requests and profile update requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class EmailStatus(str, Enum):
    SENT = "SENT"
    FAILED = "FAILED"
    QUEUED = "QUEUED"
