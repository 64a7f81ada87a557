"""
agriops API modules

Layout:
- agent/          - Agent accounts and login
- admin/          - Admin-only views
- tickets/        - Support ticket queue and lifecycle
- field_tickets/  - Field-visit tickets
- public/         - Unauthenticated endpoints (webhooks)
"""

from flask import jsonify, request

from agriops.core import get_app, get_db


def register_all_routes():
    """Register every API route"""
    from agriops.api.agent import routes as agent_routes
    from agriops.api.admin import routes as admin_routes
    from agriops.api.tickets import routes as ticket_routes
    from agriops.api.field_tickets import routes as field_ticket_routes
    from agriops.api.public import routes as public_routes


def json_body():
    """Request JSON object, or an empty dict for a missing/non-object body"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def error_response(error, status_code=None):
    """Client error raised by a service operation"""
    return jsonify({"success": False, "message": error.message}), status_code or error.status_code


def server_error(where, error):
    """Roll back, log the failure and answer with a generic 500"""
    app = get_app()
    get_db().session.rollback()
    app.logger.error(f"Error in {where}: {error}", exc_info=True)
    body = {"success": False, "message": "Internal Server Error"}
    if app.debug or app.config.get('EXPOSE_ERRORS'):
        body['error'] = str(error)
    return jsonify(body), 500
