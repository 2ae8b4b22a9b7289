from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, query_arg, session_required
from ..container import Container
from .validation import parse_bulk_request, parse_single_request


def register(app: Flask, container: Container) -> None:
    login_required = session_required(container.session_codec)
    service = container.attendance_service

    @app.route("/attendance/bulk", methods=["POST"], endpoint="attendance_bulk")
    @login_required
    def attendance_bulk(current):
        request_data = parse_bulk_request(json_body())
        result = service.record_bulk(current, request_data)
        return jsonify(result.to_dict())

    @app.route("/attendance", methods=["POST"], endpoint="attendance_single")
    @login_required
    def attendance_single(current):
        request_data = parse_single_request(json_body())
        return jsonify(service.record_single(current, request_data))

    @app.route("/attendance", methods=["GET"], endpoint="attendance_list")
    @login_required
    def attendance_list(current):
        records = service.list_day(current, class_id=query_arg("classId"), date=query_arg("date"))
        return jsonify({"attendance": [r.to_dict() for r in records]})

    @app.route("/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @login_required
    def attendance_stats(current):
        return jsonify(
            service.stats(
                current,
                class_id=query_arg("classId"),
                student_id=query_arg("studentId"),
                start_date=query_arg("startDate"),
                end_date=query_arg("endDate"),
            )
        )
