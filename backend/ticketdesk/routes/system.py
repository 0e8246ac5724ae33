# Overview: Flask API routes for service health.

from flask import Blueprint, jsonify, current_app
from sqlalchemy import text

from ..extensions import db


system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.get("/health")
def health_route():
    """Liveness plus database reachability; no authentication."""
    try:
        db.session.execute(text("SELECT 1"))
        return jsonify({"status": "ok", "database": "ok"})
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Health check failed")
        return jsonify({"status": "degraded", "database": "unreachable"}), 503
