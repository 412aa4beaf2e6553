"""Study group routes, including personalised recommendations."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from connection_graph import ConnectionGraph
from errors import NotFound
from helpers import current_user_id, json_body
from recommendations import recommend_study_groups
from record_store import get_store
from stores import StudyGroupStore, UserProfileStore

logger = logging.getLogger(__name__)

bp = Blueprint("study_groups", __name__)


@bp.route("/study-groups")
def list_groups():
    return jsonify(StudyGroupStore.list_all())


@bp.route("/study-groups", methods=["POST"])
@login_required
def create_group():
    return jsonify(StudyGroupStore.create(current_user, json_body()))


@bp.route("/study-groups/<group_id>/join", methods=["POST"])
@login_required
def join_group(group_id):
    return jsonify(StudyGroupStore.join(group_id, current_user_id()))


@bp.route("/study-groups/recommendations")
@login_required
def group_recommendations():
    uid = current_user_id()
    profile = UserProfileStore.get(uid)
    if profile is None:
        raise NotFound("User profile not found")

    state = ConnectionGraph(get_store()).get_state(uid)
    ranked = recommend_study_groups(profile, state.connections, StudyGroupStore.list_all())
    logger.info("Recommended %d study groups for %s", len(ranked), uid)
    return jsonify(ranked)
