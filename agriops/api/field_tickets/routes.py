"""
Field-visit ticket API endpoints

- POST /field-ticket - Create a field ticket
- GET /field-ticket/<fieldUserId> - Open field tickets of one field user
- PUT /field-ticket - Update a field ticket status
"""

from flask import jsonify

from agriops.core import get_app
from agriops.auth import agent_required
from agriops.api import json_body, error_response, server_error
from agriops import field_tickets as field_service
from agriops.tickets import TicketError

app = get_app()


@app.route('/field-ticket', methods=['POST'])
@agent_required
def create_field_ticket(caller):
    try:
        ticket = field_service.create_field_ticket(json_body())
        return jsonify({"success": True, "message": "Field ticket created successfully.",
                        "ticket": ticket.to_dict()}), 201
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("create_field_ticket", e)


@app.route('/field-ticket/<field_user_id>', methods=['GET'])
@agent_required
def get_open_field_tickets(caller, field_user_id):
    try:
        tickets = field_service.open_field_tickets(field_user_id)
        return jsonify({"success": True, "message": "Field tickets fetched successfully.",
                        "data": [t.to_dict() for t in tickets]}), 200
    except Exception as e:
        return server_error("get_open_field_tickets", e)


@app.route('/field-ticket', methods=['PUT'])
@agent_required
def update_field_ticket_status(caller):
    try:
        ticket = field_service.update_field_ticket_status(json_body())
        return jsonify({"success": True, "message": "Field ticket updated successfully.",
                        "ticket": ticket.to_dict()}), 200
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("update_field_ticket_status", e)
