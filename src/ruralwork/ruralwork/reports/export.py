"""Excel workbooks for the admin reports (pandas + openpyxl)."""

from __future__ import annotations

from io import BytesIO
from typing import Iterable, Sequence

import pandas as pd

from ..attendance.model import AttendanceReport
from ..core.enums import Dimension
from ..evaluations.aggregator import index_users
from ..evaluations.model import EvaluationRecord
from ..statistics.model import EvaluationStats
from ..users.model import User

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SUMMARY_SHEET = "个人得分汇总"
DETAIL_SHEET = "详细评分记录"
STATS_SHEET = "统计分析"
DEPARTMENT_SHEET = "部门排名"
ATTENDANCE_SHEET = "考勤积分"

SUMMARY_COLUMNS = {
    "rank": "排名",
    "name": "姓名",
    "department": "部门",
    "position": "职位",
    **{d.value: d.label for d in Dimension},
    "total_average": "平均分",
    "evaluation_count": "评价人数",
}

UNKNOWN = "未知"


def evaluation_filename(year: str) -> str:
    return f"{year}年度干部互评结果.xlsx"


def _summary_frame(stats: EvaluationStats) -> pd.DataFrame:
    rows = [s.to_row() for s in stats.user_scores]
    return pd.DataFrame(rows, columns=list(SUMMARY_COLUMNS)).rename(columns=SUMMARY_COLUMNS)


def _detail_frame(records: Iterable[EvaluationRecord], users: Sequence[User]) -> pd.DataFrame:
    user_map = index_users(users)
    rows = []
    for r in records:
        if not r.is_completed:
            continue
        evaluator = user_map.get(r.evaluator_id)
        evaluatee = user_map.get(r.evaluatee_id)
        row = {
            "评价人": evaluator.name if evaluator else UNKNOWN,
            "评价人部门": (evaluator.department if evaluator else None) or UNKNOWN,
            "被评价人": evaluatee.name if evaluatee else UNKNOWN,
            "被评价人部门": (evaluatee.department if evaluatee else None) or UNKNOWN,
        }
        for d in Dimension:
            row[d.label] = r.scores[d.value]
        row["总分"] = r.total_score
        row["评价意见"] = r.comment or ""
        row["评价时间"] = r.updated_at.strftime("%Y-%m-%d %H:%M:%S") if r.updated_at else ""
        rows.append(row)
    return pd.DataFrame(rows)


def _stats_frame(stats: EvaluationStats) -> pd.DataFrame:
    completion = stats.completion
    rows = [
        {"统计项目": "参与人数", "数值": completion.participants, "单位": "人"},
        {"统计项目": "已完成评价", "数值": completion.completed, "单位": "条"},
        {"统计项目": "总可能评价数", "数值": completion.possible, "单位": "条"},
        {"统计项目": "完成率", "数值": completion.completion_rate, "单位": "%"},
    ]
    rows.extend({"统计项目": f"{s.label}平均分", "数值": s.score, "单位": "分"} for s in stats.dimension_stats)
    return pd.DataFrame(rows)


def _department_frame(stats: EvaluationStats) -> pd.DataFrame:
    rows = []
    for r in stats.departments:
        row = {"排名": r.rank, "部门": r.department, "人数": r.participant_count}
        for d in Dimension:
            row[d.label] = r.dimension_averages.get(d.value, 0.0)
        row["平均分"] = r.average_score
        row["评价次数"] = r.evaluation_count
        rows.append(row)
    return pd.DataFrame(rows)


def export_evaluation_workbook(
    stats: EvaluationStats,
    records: Iterable[EvaluationRecord],
    users: Sequence[User],
) -> BytesIO:
    out = BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        _summary_frame(stats).to_excel(writer, index=False, sheet_name=SUMMARY_SHEET)
        _detail_frame(records, users).to_excel(writer, index=False, sheet_name=DETAIL_SHEET)
        _stats_frame(stats).to_excel(writer, index=False, sheet_name=STATS_SHEET)
        _department_frame(stats).to_excel(writer, index=False, sheet_name=DEPARTMENT_SHEET)
    out.seek(0)
    return out


def export_attendance_workbook(report: AttendanceReport) -> BytesIO:
    rows = [
        {
            "排名": s.rank,
            "姓名": s.name,
            "部门": s.department or "",
            "职位": s.position or "",
            "当前积分": s.current_score,
            "累计扣分": s.total_deduction,
            "私假次数": s.personal_leave_count,
            "私假天数": s.personal_leave_days,
            "积分百分比": s.score_percent,
        }
        for s in report.standings
    ]
    out = BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, index=False, sheet_name=ATTENDANCE_SHEET)
    out.seek(0)
    return out
