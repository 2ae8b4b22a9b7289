from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, query_arg, session_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required = session_required(container.session_codec)

    @app.route("/management", methods=["GET"], endpoint="get_management")
    @login_required
    def get_management(current):
        data = container.management_service.get_overview(current, query_arg("managementId"))
        return jsonify({"management": data})

    @app.route("/management", methods=["PUT"], endpoint="update_management")
    @login_required
    def update_management(current):
        container.management_service.update(current, json_body())
        return jsonify({"success": True, "message": "Management updated successfully"})

    @app.route("/management/stats", methods=["GET"], endpoint="management_stats")
    @login_required
    def management_stats(current):
        return jsonify({"stats": container.management_service.stats(current)})
