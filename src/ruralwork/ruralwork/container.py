from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.ledger import ScoreLedger
from .attendance.mysql_score_repository import MySQLScoreRepository
from .attendance.repository import ScoreRepository
from .common.audit import AuditLog
from .database.connection import DBConfig, DatabaseConnection
from .evaluations.service import EvaluationService
from .evaluations.store_evaluation_repository import StoreEvaluationRepository
from .leaves.service import LeaveService
from .leaves.store_leave_repository import StoreLeaveRepository
from .statistics.service import StatisticsService
from .store.mysql_record_store import MySQLRecordStore
from .store.repository import RecordStore
from .teams.service import TeamEvaluationService
from .systemlogs.service import SystemLogService
from .teams.store_team_repository import StoreTeamActivityRepository, StoreTeamEvaluationRepository
from .users.service import AuthService, UserService
from .users.store_user_repository import StoreUserRepository
from .votes.service import VoteService
from .votes.store_vote_repository import StoreVoteRepository


@dataclass(frozen=True)
class Container:
    store: RecordStore

    users_repo: StoreUserRepository
    evaluations_repo: StoreEvaluationRepository
    votes_repo: StoreVoteRepository
    leaves_repo: StoreLeaveRepository
    teams_repo: StoreTeamEvaluationRepository
    team_activities_repo: StoreTeamActivityRepository

    ledger: ScoreLedger
    auth_service: AuthService
    user_service: UserService
    evaluation_service: EvaluationService
    vote_service: VoteService
    leave_service: LeaveService
    team_service: TeamEvaluationService
    statistics_service: StatisticsService
    system_log_service: SystemLogService


def build_services(
    store: RecordStore,
    scores: ScoreRepository,
    *,
    evaluation_year: Optional[str] = None,
) -> Container:
    audit = AuditLog(store)

    users_repo = StoreUserRepository(store)
    evaluations_repo = StoreEvaluationRepository(store)
    votes_repo = StoreVoteRepository(store)
    leaves_repo = StoreLeaveRepository(store)
    teams_repo = StoreTeamEvaluationRepository(store)
    team_activities_repo = StoreTeamActivityRepository(store)

    ledger = ScoreLedger(scores)

    return Container(
        store=store,
        users_repo=users_repo,
        evaluations_repo=evaluations_repo,
        votes_repo=votes_repo,
        leaves_repo=leaves_repo,
        teams_repo=teams_repo,
        team_activities_repo=team_activities_repo,
        ledger=ledger,
        auth_service=AuthService(users_repo, audit=audit),
        user_service=UserService(users_repo, audit=audit),
        evaluation_service=EvaluationService(
            evaluations_repo, users_repo, audit=audit, evaluation_year=evaluation_year
        ),
        vote_service=VoteService(votes_repo, users_repo, audit=audit),
        leave_service=LeaveService(leaves_repo, users_repo, ledger, audit=audit),
        team_service=TeamEvaluationService(teams_repo, users_repo, team_activities_repo, audit=audit),
        statistics_service=StatisticsService(
            users_repo, evaluations_repo, votes_repo, leaves_repo, evaluation_year=evaluation_year
        ),
        system_log_service=SystemLogService(store, users_repo),
    )


def build_container(*, db_config: dict, evaluation_year: Optional[str] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return build_services(
        MySQLRecordStore(conn),
        MySQLScoreRepository(conn),
        evaluation_year=evaluation_year,
    )
