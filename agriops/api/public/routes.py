"""
Public API endpoints (no token)

- POST /ticket/webhook - Ticket from an inbound call/contact event
"""

from flask import jsonify

from agriops.core import get_app, get_limiter
from agriops.api import json_body, error_response, server_error
from agriops import tickets as ticket_service
from agriops.tickets import TicketError

app = get_app()
limiter = get_limiter()


@app.route('/ticket/webhook', methods=['POST'])
@limiter.limit("120 per minute")
def ticket_webhook():
    """Create a ticket owned by the system agent"""
    try:
        ticket = ticket_service.create_ticket_from_webhook(json_body())
        return jsonify({
            "success": True,
            "message": "Ticket created successfully.",
            "ticket": ticket.to_dict()
        }), 201
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("ticket_webhook", e)
