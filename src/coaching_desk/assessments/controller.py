from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, query_arg, session_required
from ..container import Container
from .validation import parse_marks_request, parse_single_mark


def register(app: Flask, container: Container) -> None:
    login_required = session_required(container.session_codec)
    service = container.assessment_service

    @app.route("/tests", methods=["GET"], endpoint="list_tests")
    @login_required
    def list_tests(current):
        tests = service.list_tests(current, class_id=query_arg("classId"), subject_id=query_arg("subjectId"))
        return jsonify({"tests": [t.to_dict() for t in tests]})

    @app.route("/tests", methods=["POST"], endpoint="create_test")
    @login_required
    def create_test(current):
        created = service.create_test(current, json_body())
        return jsonify({"success": True, "test": created.to_dict()}), 201

    @app.route("/tests", methods=["PUT"], endpoint="update_test")
    @login_required
    def update_test(current):
        body = json_body()
        service.update_test(current, body.get("testId"), body)
        return jsonify({"success": True, "message": "Test updated successfully"})

    @app.route("/tests", methods=["DELETE"], endpoint="delete_test")
    @login_required
    def delete_test(current):
        service.delete_test(current, query_arg("testId"))
        return jsonify({"success": True, "message": "Test deleted successfully"})

    @app.route("/marks", methods=["GET"], endpoint="list_marks")
    @login_required
    def list_marks(current):
        marks = service.list_marks(
            current,
            test_id=query_arg("testId"),
            class_id=query_arg("classId"),
            subject_id=query_arg("subjectId"),
        )
        return jsonify({"marks": marks})

    @app.route("/marks", methods=["POST"], endpoint="save_marks")
    @login_required
    def save_marks(current):
        saved = service.save_marks(current, parse_marks_request(json_body()))
        return jsonify({"success": True, "message": "Marks saved successfully", "saved": saved})

    @app.route("/marks", methods=["PUT"], endpoint="update_mark")
    @login_required
    def update_mark(current):
        test_id, entry = parse_single_mark(json_body())
        service.update_mark(current, test_id, entry)
        return jsonify({"success": True, "message": "Marks updated successfully"})

    @app.route("/marks", methods=["DELETE"], endpoint="delete_marks")
    @login_required
    def delete_marks(current):
        service.delete_marks(current, query_arg("testId"), query_arg("studentId"))
        return jsonify({"success": True, "message": "Marks deleted successfully"})
