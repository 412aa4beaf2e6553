"""Campus event routes."""

from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from helpers import current_user_id, json_body
from stores import EventStore

bp = Blueprint("events", __name__)


@bp.route("/events")
def list_events():
    return jsonify(EventStore.list_all())


@bp.route("/events", methods=["POST"])
@login_required
def create_event():
    return jsonify(EventStore.create(current_user, json_body()))


@bp.route("/events/<event_id>/join", methods=["POST"])
@login_required
def join_event(event_id):
    return jsonify(EventStore.join(event_id, current_user_id()))


@bp.route("/events/<event_id>", methods=["PUT"])
@login_required
def update_event(event_id):
    return jsonify(EventStore.update(event_id, current_user_id(), json_body()))
