"""Lost & found routes."""

from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from audit import log_event
from helpers import current_user_id, json_body
from stores import LostFoundStore

bp = Blueprint("lost_found", __name__)


@bp.route("/lost-found")
def list_items():
    return jsonify(LostFoundStore.list_all())


@bp.route("/lost-found", methods=["POST"])
@login_required
def create_item():
    return jsonify(LostFoundStore.create(current_user, json_body()))


@bp.route("/lost-found/<item_id>", methods=["PUT"])
@login_required
def update_item(item_id):
    # Typically {"status": "resolved"}
    return jsonify(LostFoundStore.update(item_id, current_user_id(), json_body()))


@bp.route("/lost-found/<item_id>", methods=["DELETE"])
@login_required
def delete_item(item_id):
    uid = current_user_id()
    LostFoundStore.delete(item_id, uid)
    log_event("lost_found_delete", uid, f"item={item_id}")
    return jsonify({"message": "Item deleted"})
