from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import clear_session_cookie, json_body, query_arg, session_required, set_session_cookie
from ..container import Container


def register(app: Flask, container: Container) -> None:
    codec = container.session_codec
    login_required = session_required(codec)

    def _signed_in(result, message: str):
        response = jsonify({"success": True, "message": message, "user": result.user.summary()})
        return set_session_cookie(
            response,
            codec.encode(result.session),
            max_age=codec.max_age,
            secure=container.cookie_secure,
        )

    @app.route("/auth/register", methods=["POST"], endpoint="register")
    def register_account():
        body = json_body()
        result = container.auth_service.register(
            email=body.get("email"),
            password=body.get("password"),
            name=body.get("name"),
        )
        return _signed_in(result, "Registration successful")

    @app.route("/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body()
        result = container.auth_service.authenticate(body.get("email"), body.get("password"))
        return _signed_in(result, "Login successful")

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        response = jsonify({"success": True, "message": "Logged out successfully"})
        return clear_session_cookie(response, secure=container.cookie_secure)

    @app.route("/users", methods=["GET"], endpoint="get_users")
    @login_required
    def get_users(current):
        user_id = query_arg("userId")
        if user_id:
            return jsonify({"user": container.user_service.get_user(current, user_id).public_view()})

        management_id = query_arg("managementId")
        if management_id:
            users = container.user_service.list_users(current, management_id)
            return jsonify({"users": [u.public_view() for u in users]})

        return jsonify({"user": container.user_service.get_current(current).public_view()})

    @app.route("/users", methods=["PUT"], endpoint="update_user")
    @login_required
    def update_user(current):
        body = json_body()
        container.user_service.update_profile(current, name=body.get("name"), picture=body.get("picture"))
        return jsonify({"success": True, "message": "User updated successfully"})

    team = container.team_service

    @app.route("/team", methods=["GET"], endpoint="list_team")
    @login_required
    def list_team(current):
        return jsonify({"users": [u.public_view() for u in team.list_members(current)]})

    @app.route("/team", methods=["POST"], endpoint="invite_member")
    @login_required
    def invite_member(current):
        body = json_body()
        member, created = team.invite(current, email=body.get("email"), name=body.get("name"), role=body.get("role"))
        message = "User invited successfully" if created else "User role updated successfully"
        return jsonify({"success": True, "message": message, "user": member.summary()}), (201 if created else 200)

    @app.route("/team", methods=["PUT"], endpoint="update_member_role")
    @login_required
    def update_member_role(current):
        body = json_body()
        team.update_role(current, user_id=body.get("userId"), role=body.get("role"))
        return jsonify({"success": True, "message": "User role updated successfully"})

    @app.route("/team", methods=["DELETE"], endpoint="remove_member")
    @login_required
    def remove_member(current):
        team.remove(current, query_arg("userId"))
        return jsonify({"success": True, "message": "User removed successfully"})
