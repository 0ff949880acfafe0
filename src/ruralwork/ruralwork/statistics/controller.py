from __future__ import annotations

from flask import Flask, request, send_file

from ..common.web import capability_required, current_role, ok
from ..core.enums import Capability
from ..container import Container
from ..reports.export import XLSX_MIMETYPE, evaluation_filename, export_attendance_workbook, export_evaluation_workbook


def register(app: Flask, container: Container) -> None:
    @app.route("/api/statistics", methods=["GET"], endpoint="statistics")
    @capability_required(Capability.VIEW_STATISTICS)
    def statistics():
        dashboard = container.statistics_service.dashboard(
            current_role=current_role(), evaluation_year=request.args.get("year")
        )
        return ok(dashboard)

    @app.route("/api/exports/evaluations.xlsx", methods=["GET"], endpoint="export_evaluations")
    @capability_required(Capability.EXPORT_REPORTS)
    def export_evaluations():
        users, records, stats = container.statistics_service.evaluation_snapshot(
            current_role=current_role(), evaluation_year=request.args.get("year")
        )
        out = export_evaluation_workbook(stats, records, users)
        return send_file(
            out,
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=evaluation_filename(stats.evaluation_year),
        )

    @app.route("/api/exports/attendance.xlsx", methods=["GET"], endpoint="export_attendance")
    @capability_required(Capability.EXPORT_REPORTS)
    def export_attendance():
        report = container.statistics_service.attendance_snapshot(current_role=current_role())
        return send_file(
            export_attendance_workbook(report),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name="考勤积分.xlsx",
        )
