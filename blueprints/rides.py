"""Ride sharing routes."""

from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from helpers import current_user_id, json_body
from stores import RideStore

bp = Blueprint("rides", __name__)


@bp.route("/rides")
def list_rides():
    return jsonify(RideStore.list_all())


@bp.route("/rides", methods=["POST"])
@login_required
def create_ride():
    return jsonify(RideStore.create(current_user, json_body()))


@bp.route("/rides/<ride_id>/request", methods=["POST"])
@login_required
def request_ride(ride_id):
    return jsonify(RideStore.request_seat(ride_id, current_user_id()))
