from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, current_user_id, error_response, json_body, login_required, unexpected_error
from ..container import Container
from ..core.exceptions import DomainError
from .codes import rotation_note
from .model import TeamRow


def _team_row_json(row: TeamRow) -> dict:
    data = row.member.to_dict()
    data["totalMinutes"] = row.total_minutes
    data["connectedAt"] = row.connection.created_at.isoformat() if row.connection.created_at else None
    return data


def register(app: Flask, container: Container) -> None:
    sharing = container.sharing_service
    scheduler = container.code_rotation

    def _scheduler_json(message: str):
        status = scheduler.status()
        data = status.to_dict()
        data["status"] = status.state.value
        data["message"] = message
        return jsonify(data)

    @app.route("/api/sharing-code", methods=["GET"], endpoint="get_sharing_code")
    @login_required
    def get_sharing_code():
        try:
            code = sharing.get_or_create_code(current_user_id())
            return jsonify({"code": code, "note": rotation_note(scheduler.interval_seconds)})
        except DomainError as e:
            return error_response(e, fallback="Failed to load sharing code")
        except Exception:
            return unexpected_error("Failed to load sharing code")

    @app.route("/api/sharing-code", methods=["POST"], endpoint="redeem_sharing_code")
    @login_required
    def redeem_sharing_code():
        code = json_body().get("code")
        if not code or not isinstance(code, str):
            return jsonify({"error": "Sharing code is required", "reason": "validation_error"}), 400

        try:
            owner = sharing.redeem(code, current_user_id())
            return jsonify(
                {
                    "message": f"Successfully connected! You can now view {owner.name}'s work hours.",
                    "connectedUser": owner.to_dict(),
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/team/members", methods=["GET"], endpoint="team_members")
    @login_required
    def team_members():
        try:
            team = sharing.list_team(current_user_id())
            return jsonify(
                {
                    "workers": [_team_row_json(r) for r in team.workers],
                    "viewers": [_team_row_json(r) for r in team.viewers],
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/admin/code-rotation", methods=["POST"], endpoint="start_code_rotation")
    @admin_required
    def start_code_rotation():
        if scheduler.start():
            return _scheduler_json("Code rotation scheduler started successfully")
        return _scheduler_json("Code rotation scheduler is already running")

    @app.route("/api/admin/code-rotation", methods=["DELETE"], endpoint="stop_code_rotation")
    @admin_required
    def stop_code_rotation():
        if scheduler.stop():
            return _scheduler_json("Code rotation scheduler stopped")
        return _scheduler_json("Code rotation scheduler is not running")

    @app.route("/api/admin/code-rotation", methods=["GET"], endpoint="code_rotation_status")
    @admin_required
    def code_rotation_status():
        status = scheduler.status()
        return _scheduler_json("running" if status.running else "stopped")
