"""Core routes — health check, user directory, profile and dashboard stats."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from flask_login import login_required

from connection_graph import ConnectionGraph
from dashboard import dashboard_stats
from errors import NotFound
from helpers import current_user_id, json_body
from record_store import get_store
from stores import UserProfileStore

logger = logging.getLogger(__name__)

bp = Blueprint("core", __name__)


@bp.route("/health")
def health():
    return jsonify({"status": "ok"})


@bp.route("/users")
@login_required
def list_users():
    return jsonify(UserProfileStore.list_all(exclude_id=current_user_id()))


@bp.route("/profile", methods=["PUT"])
@login_required
def update_profile():
    profile = UserProfileStore.update(current_user_id(), json_body())
    return jsonify(profile)


@bp.route("/dashboard/stats")
@login_required
def api_dashboard_stats():
    uid = current_user_id()
    profile = UserProfileStore.get(uid)
    if profile is None:
        raise NotFound("User profile not found")
    state = ConnectionGraph(get_store()).get_state(uid)
    return jsonify(dashboard_stats(profile, set(state.connections)))
