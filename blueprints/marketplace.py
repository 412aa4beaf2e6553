"""Marketplace listing routes."""

from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from audit import log_event
from helpers import current_user_id, json_body
from stores import ListingStore

bp = Blueprint("marketplace", __name__)


@bp.route("/marketplace")
def list_listings():
    return jsonify(ListingStore.list_all())


@bp.route("/marketplace", methods=["POST"])
@login_required
def create_listing():
    return jsonify(ListingStore.create(current_user, json_body()))


@bp.route("/marketplace/<listing_id>", methods=["DELETE"])
@login_required
def delete_listing(listing_id):
    uid = current_user_id()
    ListingStore.delete(listing_id, uid)
    log_event("listing_delete", uid, f"listing={listing_id}")
    return jsonify({"message": "Listing deleted"})
