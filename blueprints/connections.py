"""Peer connection routes — requests, acceptance, rejection and removal."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from flask_login import login_required

from audit import log_event
from connection_graph import REQUEST_ACCEPTED, ConnectionGraph
from errors import NotFound, ValidationError
from helpers import current_user_id, json_body, require_fields
from record_store import get_store
from stores import UserProfileStore

logger = logging.getLogger(__name__)

bp = Blueprint("connections", __name__)


def _graph() -> ConnectionGraph:
    return ConnectionGraph(get_store())


@bp.route("/connections")
@login_required
def get_connections():
    state = _graph().get_state(current_user_id())
    return jsonify({
        "connections": UserProfileStore.get_many(list(state.connections)),
        "pending": list(state.pending),
        "received": list(state.received),
    })


@bp.route("/connections/request", methods=["POST"])
@login_required
def send_request():
    uid = current_user_id()
    data = json_body()
    require_fields(data, "targetUserId")
    target_id = str(data["targetUserId"])

    if target_id == uid:
        raise ValidationError("You cannot send a connection request to yourself")
    if UserProfileStore.get(target_id) is None:
        raise NotFound("User not found")

    outcome = _graph().send_request(uid, target_id)
    log_event("connection_request", uid, f"target={target_id} outcome={outcome}")
    if outcome == REQUEST_ACCEPTED:
        return jsonify({"message": "Connection accepted"})
    return jsonify({"message": "Connection request sent"})


@bp.route("/connections/accept", methods=["POST"])
@login_required
def accept_request():
    uid = current_user_id()
    data = json_body()
    require_fields(data, "requesterId")
    requester_id = str(data["requesterId"])
    if requester_id == uid:
        raise ValidationError("You cannot connect with yourself")

    _graph().accept_request(uid, requester_id)
    log_event("connection_accept", uid, f"requester={requester_id}")
    return jsonify({"message": "Connection accepted"})


@bp.route("/connections/reject", methods=["POST"])
@login_required
def reject_request():
    uid = current_user_id()
    data = json_body()
    require_fields(data, "requesterId")
    requester_id = str(data["requesterId"])

    _graph().reject_request(uid, requester_id)
    log_event("connection_reject", uid, f"requester={requester_id}")
    return jsonify({"message": "Connection rejected"})


@bp.route("/connections/<user_id>", methods=["DELETE"])
@login_required
def remove_connection(user_id):
    uid = current_user_id()
    _graph().remove_connection(uid, user_id)
    log_event("connection_remove", uid, f"other={user_id}")
    return jsonify({"message": "Connection removed"})
