"""
Blueprint registration for the campus portal.

All blueprints are registered without URL prefixes so paths match the
public API (``/study-groups``, ``/connections`` ...).
"""

from __future__ import annotations


def register_blueprints(app):
    from blueprints.core import bp as core_bp
    from blueprints.connections import bp as connections_bp
    from blueprints.events import bp as events_bp
    from blueprints.study_groups import bp as study_groups_bp
    from blueprints.exam import bp as exam_bp
    from blueprints.marketplace import bp as marketplace_bp
    from blueprints.lost_found import bp as lost_found_bp
    from blueprints.rides import bp as rides_bp

    app.register_blueprint(core_bp)
    app.register_blueprint(connections_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(study_groups_bp)
    app.register_blueprint(exam_bp)
    app.register_blueprint(marketplace_bp)
    app.register_blueprint(lost_found_bp)
    app.register_blueprint(rides_bp)
