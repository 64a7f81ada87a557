"""
Support ticket API endpoints

- POST /ticket - Create a ticket
- GET /ticket/get-opened-tickets - Ranked open queue (admin: all, agent: assigned)
- PUT /ticket - Partial update of one ticket
- PUT /ticket/multiple - Bulk update
- GET /ticket/user/<userId> - Ranked history of a farmer, closed included
- GET /ticket/<id> - Single ticket
- DELETE /ticket - Bulk delete of the caller's tickets
"""

from flask import jsonify, request

from agriops.core import get_app
from agriops.auth import agent_required
from agriops.api import json_body, error_response, server_error
from agriops import tickets as ticket_service
from agriops.tickets import TicketError, TicketAccessDenied

app = get_app()

QUEUE_PAGE_SIZE = 10
HISTORY_PAGE_SIZE = 50


@app.route('/ticket', methods=['POST'])
@agent_required
def create_ticket(caller):
    """Create a ticket on behalf of the caller"""
    try:
        ticket = ticket_service.create_ticket(caller, json_body())
        return jsonify({
            "success": True,
            "message": "Ticket created successfully.",
            "ticket": ticket.to_dict()
        }), 201
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("create_ticket", e)


@app.route('/ticket/get-opened-tickets', methods=['GET'])
@agent_required
def get_opened_tickets(caller):
    """Ranked, paginated queue of open tickets for the caller's scope"""
    try:
        page, limit = ticket_service.parse_pagination(request.args, QUEUE_PAGE_SIZE)
        query = ticket_service.open_queue_query(caller)
        entries, pagination = ticket_service.ranked_page(query, page, limit)
        return jsonify({
            "success": True,
            "message": "Tickets fetched successfully.",
            "data": [entry.to_dict() for entry in entries],
            "pagination": pagination
        }), 200
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("get_opened_tickets", e)


@app.route('/ticket', methods=['PUT'])
@agent_required
def update_ticket(caller):
    """Partial update; a remark is appended instead of replacing the list"""
    try:
        ticket = ticket_service.update_ticket(caller, json_body())
        return jsonify({
            "success": True,
            "message": "Ticket updated successfully.",
            "ticket": ticket.to_dict()
        }), 200
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("update_ticket", e)


@app.route('/ticket/multiple', methods=['PUT'])
@agent_required
def update_multiple_tickets(caller):
    """Bulk update; the batch is rejected when any ticket is not the caller's"""
    try:
        updated = ticket_service.update_tickets(caller, json_body())
        return jsonify({
            "success": True,
            "message": f"{updated} ticket(s) updated successfully.",
            "updatedCount": updated
        }), 200
    except TicketAccessDenied as e:
        return error_response(e, 401)
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("update_multiple_tickets", e)


@app.route('/ticket/user/<user_id>', methods=['GET'])
@agent_required
def get_user_tickets(caller, user_id):
    """Ticket history of one farmer; closed tickets rank last"""
    try:
        user_id = ticket_service.parse_id(user_id, 'user')
        page, limit = ticket_service.parse_pagination(request.args, HISTORY_PAGE_SIZE)
        query = ticket_service.customer_history_query(user_id)
        entries, pagination = ticket_service.ranked_page(query, page, limit)
        return jsonify({
            "success": True,
            "message": "Tickets fetched successfully.",
            "data": [entry.to_dict() for entry in entries],
            "pagination": pagination
        }), 200
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("get_user_tickets", e)


@app.route('/ticket/<ticket_id>', methods=['GET'])
@agent_required
def get_ticket(caller, ticket_id):
    try:
        ticket = ticket_service.get_ticket(ticket_id)
        return jsonify({"success": True, "message": "Ticket fetched successfully.", "ticket": ticket.to_dict()}), 200
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("get_ticket", e)


@app.route('/ticket', methods=['DELETE'])
@agent_required
def delete_tickets(caller):
    """Delete requested tickets assigned to the caller; others are skipped"""
    try:
        deleted = ticket_service.delete_tickets(caller, json_body())
        return jsonify({
            "success": True,
            "message": f"{deleted} ticket(s) deleted successfully.",
            "deletedCount": deleted
        }), 200
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("delete_tickets", e)
