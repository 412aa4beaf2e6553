"""Exam resource sharing — uploads, counters and recommendations."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from audit import log_event
from connection_graph import ConnectionGraph
from errors import NotFound
from helpers import current_user_id, json_body
from recommendations import recommend_exam_resources
from record_store import get_store
from stores import ExamResourceStore, UserProfileStore

logger = logging.getLogger(__name__)

bp = Blueprint("exam", __name__)


@bp.route("/exam-resources")
def list_resources():
    return jsonify(ExamResourceStore.list_all())


@bp.route("/exam-resources", methods=["POST"])
@login_required
def create_resource():
    return jsonify(ExamResourceStore.create(current_user, json_body()))


@bp.route("/exam-resources/<resource_id>/download", methods=["POST"])
@login_required
def download_resource(resource_id):
    return jsonify(ExamResourceStore.increment(resource_id, "downloads"))


@bp.route("/exam-resources/<resource_id>/helpful", methods=["POST"])
@login_required
def mark_helpful(resource_id):
    return jsonify(ExamResourceStore.increment(resource_id, "helpful"))


@bp.route("/exam-resources/<resource_id>", methods=["DELETE"])
@login_required
def delete_resource(resource_id):
    uid = current_user_id()
    ExamResourceStore.delete(resource_id, uid)
    log_event("exam_resource_delete", uid, f"resource={resource_id}")
    return jsonify({"message": "Resource deleted"})


@bp.route("/exam-resources/recommendations")
@login_required
def resource_recommendations():
    uid = current_user_id()
    profile = UserProfileStore.get(uid)
    if profile is None:
        raise NotFound("User profile not found")

    state = ConnectionGraph(get_store()).get_state(uid)
    ranked = recommend_exam_resources(profile, state.connections, ExamResourceStore.list_all())
    logger.info("Recommended %d exam resources for %s", len(ranked), uid)
    return jsonify(ranked)
