from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account roles. Capabilities live in core/permissions.py."""

    ADMIN = "admin"
    TOWN_STAFF = "town_staff"
    STATION_STAFF = "station_staff"
    WORK_TEAM = "work_team"

    @property
    def label(self) -> str:
        return {
            Role.ADMIN: "系统管理员",
            Role.TOWN_STAFF: "镇干部",
            Role.STATION_STAFF: "站所工作人员",
            Role.WORK_TEAM: "包村工作队",
        }[self]


class Capability(str, Enum):
    VOTE = "vote"
    EVALUATE = "evaluate"
    REQUEST_LEAVE = "request_leave"
    TEAM_EVALUATE = "team_evaluate"
    MANAGE_USERS = "manage_users"
    MANAGE_VOTES = "manage_votes"
    MANAGE_TEAM_ACTIVITIES = "manage_team_activities"
    DECIDE_LEAVE = "decide_leave"
    VIEW_STATISTICS = "view_statistics"
    EXPORT_REPORTS = "export_reports"
    VIEW_SYSTEM_LOGS = "view_system_logs"


class Dimension(str, Enum):
    """Annual peer-evaluation axes, each scored 0-20."""

    DE = "score_de"
    NENG = "score_neng"
    QIN = "score_qin"
    JI = "score_ji"
    LIAN = "score_lian"

    @property
    def label(self) -> str:
        return {
            Dimension.DE: "德",
            Dimension.NENG: "能",
            Dimension.QIN: "勤",
            Dimension.JI: "技",
            Dimension.LIAN: "廉",
        }[self]


class TeamDimension(str, Enum):
    """Work-team scoring axes, each scored 0-20."""

    WORK_QUALITY = "work_quality_score"
    COOPERATION = "cooperation_score"
    EFFICIENCY = "efficiency_score"
    INNOVATION = "innovation_score"
    SERVICE_ATTITUDE = "service_attitude_score"


class EvaluationState(str, Enum):
    PENDING = "pending"
    DRAFT = "draft"
    COMPLETED = "completed"


class VoteStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CLOSED = "closed"


class LeaveType(str, Enum):
    PERSONAL = "personal"
    SICK = "sick"
    ANNUAL = "annual"
    OTHER = "other"


class RequestStatus(str, Enum):
    """Leave approval flow; APPROVED and REJECTED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ActivityStatus(str, Enum):
    """Team-evaluation activity; COMPLETED and CANCELLED are terminal."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
