"""
Admin API endpoints

- GET /admin/get-all-agents - List every agent
- GET /admin/tickets/<agentId> - Ranked open queue of one agent
"""

from flask import jsonify

from agriops.core import get_app, get_cache
from agriops.auth import admin_required
from agriops.api import error_response, server_error
from agriops.models.agent import Agent
from agriops import tickets as ticket_service
from agriops.tickets import TicketError

app = get_app()
cache = get_cache()


@app.route('/admin/get-all-agents', methods=['GET'])
@admin_required
def admin_get_all_agents(current_admin):
    try:
        agents = cache.get('all_agents')
        if agents is None:
            agents = [a.to_dict() for a in Agent.query.order_by(Agent.id).all()]
            cache.set('all_agents', agents, timeout=60)
        return jsonify({"success": True, "message": "Agents fetched successfully.", "data": agents}), 200
    except Exception as e:
        return server_error("admin_get_all_agents", e)


@app.route('/admin/tickets/<agent_id>', methods=['GET'])
@admin_required
def get_tickets_by_agent_id(current_admin, agent_id):
    """Open queue of a given agent, ranked like the agent sees it"""
    try:
        agent_id = ticket_service.parse_id(agent_id, 'agent')
        entries = ticket_service.ranked_list(ticket_service.agent_queue_query(agent_id))
        return jsonify({
            "success": True,
            "message": "Tickets fetched successfully.",
            "data": [entry.to_dict() for entry in entries]
        }), 200
    except TicketError as e:
        return error_response(e)
    except Exception as e:
        return server_error("get_tickets_by_agent_id", e)
