from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, session

from ..common.web import current_user_id, error_response, json_body, login_required, unexpected_error
from ..core.constants import DEFAULT_SESSION_DAYS
from ..container import Container
from ..core.exceptions import DomainError
from .model import User
from .service import SessionUser


def _profile_json(user: User) -> dict:
    return {
        "id": user.user_id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

    def _start_session(s_user: SessionUser, *, remember: bool) -> None:
        session.clear()
        session.permanent = remember
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

    def _session_json(s_user: SessionUser) -> dict:
        return {"id": s_user.user_id, "name": s_user.name, "email": s_user.email, "role": s_user.role.value}

    @app.route("/api/auth/register", methods=["POST"], endpoint="register")
    def register_user():
        body = json_body()
        try:
            s_user = container.auth_service.register(
                name=str(body.get("name", "")),
                email=str(body.get("email", "")),
                password=str(body.get("password", "")),
            )
            _start_session(s_user, remember=True)
            return jsonify({"user": _session_json(s_user)}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body()
        try:
            s_user = container.auth_service.authenticate(str(body.get("email", "")), str(body.get("password", "")))
            _start_session(s_user, remember=bool(body.get("remember", True)))
            return jsonify({"user": _session_json(s_user)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"message": "Logged out"})

    @app.route("/api/user/profile", methods=["GET"], endpoint="profile")
    @login_required
    def profile():
        try:
            return jsonify({"user": _profile_json(container.user_service.get_profile(current_user_id()))})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/user/profile/<int:target_id>", methods=["GET"], endpoint="connected_profile")
    @login_required
    def connected_profile(target_id: int):
        try:
            user = container.user_service.get_connected_profile(current_user_id(), target_id)
            return jsonify({"user": _profile_json(user)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()

    @app.route("/api/user/profile", methods=["PUT"], endpoint="update_profile")
    @login_required
    def update_profile():
        body = json_body()
        try:
            user = container.user_service.update_profile(current_user_id(), name=str(body.get("name", "")))
            session["name"] = user.name
            return jsonify({"user": _profile_json(user)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error()
