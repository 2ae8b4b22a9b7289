from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, query_arg, session_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required = session_required(container.session_codec)
    roster = container.roster_service

    @app.route("/classes", methods=["GET"], endpoint="list_classes")
    @login_required
    def list_classes(current):
        return jsonify({"classes": [c.to_dict() for c in roster.list_classes(current)]})

    @app.route("/classes", methods=["POST"], endpoint="create_class")
    @login_required
    def create_class(current):
        body = json_body()
        created = roster.create_class(current, name=body.get("name"), coach_id=body.get("coachId"))
        return jsonify({"success": True, "class": created.to_dict()}), 201

    @app.route("/coaches", methods=["GET"], endpoint="list_coaches")
    @login_required
    def list_coaches(current):
        return jsonify({"coaches": [c.to_dict() for c in roster.list_coaches(current)]})

    @app.route("/coaches", methods=["POST"], endpoint="create_coach")
    @login_required
    def create_coach(current):
        body = json_body()
        created = roster.create_coach(current, name=body.get("name"), email=body.get("email"))
        return jsonify({"success": True, "coach": created.to_dict()}), 201

    @app.route("/students", methods=["GET"], endpoint="list_students")
    @login_required
    def list_students(current):
        students = roster.list_students(current, class_id=query_arg("classId"))
        return jsonify({"students": [s.to_dict() for s in students]})

    @app.route("/students", methods=["POST"], endpoint="create_student")
    @login_required
    def create_student(current):
        body = json_body()
        created = roster.create_student(
            current,
            name=body.get("name"),
            class_id=body.get("classId"),
            email=body.get("email"),
        )
        return jsonify({"success": True, "student": created.to_dict()}), 201

    @app.route("/classes", methods=["PUT"], endpoint="update_class")
    @login_required
    def update_class(current):
        body = json_body()
        roster.update_class(current, body.get("classId"), body)
        return jsonify({"success": True, "message": "Class updated successfully"})

    @app.route("/classes", methods=["DELETE"], endpoint="delete_class")
    @login_required
    def delete_class(current):
        roster.delete_class(current, query_arg("classId"))
        return jsonify({"success": True, "message": "Class deleted successfully"})

    @app.route("/coaches", methods=["PUT"], endpoint="update_coach")
    @login_required
    def update_coach(current):
        body = json_body()
        roster.update_coach(current, body.get("coachId"), body)
        return jsonify({"success": True, "message": "Coach updated successfully"})

    @app.route("/coaches", methods=["DELETE"], endpoint="delete_coach")
    @login_required
    def delete_coach(current):
        roster.delete_coach(current, query_arg("coachId"))
        return jsonify({"success": True, "message": "Coach deleted successfully"})

    @app.route("/students", methods=["PUT"], endpoint="update_student")
    @login_required
    def update_student(current):
        body = json_body()
        roster.update_student(current, body.get("studentId"), body)
        return jsonify({"success": True, "message": "Student updated successfully"})

    @app.route("/students", methods=["DELETE"], endpoint="delete_student")
    @login_required
    def delete_student(current):
        roster.delete_student(current, query_arg("studentId"))
        return jsonify({"success": True, "message": "Student deleted successfully"})
