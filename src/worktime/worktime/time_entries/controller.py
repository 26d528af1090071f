from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import require_datetime
from ..common.web import current_user_id, error_response, json_body, login_required, unexpected_error
from ..core.constants import DEFAULT_ENTRIES_DAYS, DEFAULT_PAGE_SIZE
from ..container import Container
from ..core.exceptions import DomainError


def _paging_args() -> dict:
    return {
        "days": request.args.get("days", DEFAULT_ENTRIES_DAYS),
        "page": request.args.get("page", 1),
        "limit": request.args.get("limit", DEFAULT_PAGE_SIZE),
    }


def register(app: Flask, container: Container) -> None:
    service = container.time_entry_service

    @app.route("/api/time/clock", methods=["GET"], endpoint="clock_status")
    @login_required
    def clock_status():
        try:
            entry = service.current(current_user_id())
            return jsonify({"activeEntry": entry.to_dict() if entry else None, "isClockedIn": entry is not None})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/time/clock", methods=["POST"], endpoint="clock_in")
    @login_required
    def clock_in():
        try:
            entry = service.clock_in(current_user_id(), note=json_body().get("note"))
            return jsonify({"message": "Clocked in successfully", "timeEntry": entry.to_dict()})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/time/clock", methods=["PUT"], endpoint="clock_out")
    @login_required
    def clock_out():
        try:
            entry = service.clock_out(current_user_id())
            return jsonify({"message": "Clocked out successfully", "timeEntry": entry.to_dict()})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/time/entries", methods=["GET"], endpoint="time_entries")
    @login_required
    def time_entries():
        try:
            return jsonify(service.list_entries(current_user_id(), **_paging_args()).to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/time/entries/<int:entry_id>", methods=["PATCH"], endpoint="update_time_entry")
    @login_required
    def update_time_entry(entry_id: int):
        try:
            clock_out = require_datetime(json_body().get("clockOut"), "Clock out time")
            entry = service.update_clock_out(current_user_id(), entry_id, clock_out=clock_out)
            return jsonify({"message": "Time entry updated", "timeEntry": entry.to_dict()})
        except DomainError as e:
            return error_response(e, fallback="Failed to update time entry")
        except Exception:
            return unexpected_error("Failed to update time entry")

    @app.route("/api/time/entries/<int:entry_id>", methods=["DELETE"], endpoint="delete_time_entry")
    @login_required
    def delete_time_entry(entry_id: int):
        try:
            service.delete_entry(current_user_id(), entry_id)
            return jsonify({"message": "Time entry deleted successfully"})
        except DomainError as e:
            return error_response(e, fallback="Failed to delete time entry")
        except Exception:
            return unexpected_error("Failed to delete time entry")

    @app.route("/api/team/<int:owner_id>/entries", methods=["GET"], endpoint="team_member_entries")
    @login_required
    def team_member_entries(owner_id: int):
        try:
            page = service.list_entries_for_viewer(viewer_id=current_user_id(), owner_id=owner_id, **_paging_args())
            return jsonify(page.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()
