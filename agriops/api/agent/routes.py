"""
Agent API endpoints

- POST /agent - Create an agent
- PUT /agent/password - Reset a password
- POST /agent/login - Login with phone number and password
- GET /agent/<id> - Agent profile
- GET /agent/token/<token> - Decode a token into {id, role}
"""

from flask import jsonify
import jwt

from agriops.core import get_app, get_db, get_bcrypt, get_cache, get_limiter
from agriops.auth import create_local_jwt, decode_local_jwt, get_agent_from_token
from agriops.api import error_response, json_body, server_error
from agriops.models.agent import Agent, ROLES, ROLE_AGENT
from agriops.tickets import TicketValidationError, normalize_phone, parse_id

app = get_app()
db = get_db()
bcrypt = get_bcrypt()
cache = get_cache()
limiter = get_limiter()


def _hash_password(password):
    return bcrypt.generate_password_hash(password).decode('utf-8')


@app.route('/agent', methods=['POST'])
def create_agent():
    """
    Create an agent.

    While no agent exists the first account may be created without a token;
    after that only admins can add agents.
    """
    try:
        if Agent.query.first() is not None:
            current = get_agent_from_token()
            if not current:
                return jsonify({"success": False, "message": "Auth required"}), 401
            if not current.is_admin:
                return jsonify({"success": False, "message": "Access denied."}), 403

        data = json_body()
        name, password = data.get('name'), data.get('password')
        phone_number = normalize_phone(data.get('phoneNumber'), app.config.get('DEFAULT_COUNTRY_CODE'))
        role = data.get('role') or ROLE_AGENT

        if not isinstance(name, str) or not isinstance(password, str) or not phone_number:
            return jsonify({"success": False, "message": "Name, password, and phone number are required."}), 400
        if role not in ROLES:
            return jsonify({"success": False, "message": f"Invalid role: {role}"}), 400

        if Agent.query.filter_by(phone_number=phone_number).first():
            return jsonify({"success": False, "message": "An agent with this phone number already exists."}), 409

        agent = Agent(name=name.strip(), phone_number=phone_number, role=role,
                      password_hash=_hash_password(password))
        db.session.add(agent)
        db.session.commit()
        cache.delete('all_agents')

        return jsonify({"success": True, "message": "Agent created successfully", "agent": agent.to_dict()}), 201
    except Exception as e:
        return server_error("create_agent", e)


@app.route('/agent/password', methods=['PUT'])
def reset_password():
    """Admins reset any password, agents only their own"""
    current = get_agent_from_token()
    if not current:
        return jsonify({"success": False, "message": "Auth required"}), 401

    try:
        data = json_body()
        user_id, password = data.get('userId'), data.get('password')
        if user_id in (None, '') or not isinstance(password, str) or not password:
            return jsonify({"success": False, "message": "userId and password are required."}), 400
        try:
            user_id = parse_id(user_id, 'agent')
        except TicketValidationError as e:
            return error_response(e)

        if not current.is_admin and current.id != user_id:
            return jsonify({"success": False, "message": "Access denied."}), 403

        agent = db.session.get(Agent, user_id)
        if not agent:
            return jsonify({"success": False, "message": "Agent not found."}), 404

        agent.password_hash = _hash_password(password)
        db.session.commit()
        cache.delete('all_agents')
        return jsonify({"success": True, "message": "Password reset successfully."}), 200
    except Exception as e:
        return server_error("reset_password", e)


@app.route('/agent/login', methods=['POST'])
@limiter.limit("10 per minute")
def login_agent():
    """Login with phone number and password"""
    data = json_body()
    phone_number, password = data.get('phoneNumber'), data.get('password')

    if not phone_number or not isinstance(password, str):
        return jsonify({"success": False, "message": "phoneNumber and password are required."}), 400

    try:
        phone_number = normalize_phone(phone_number, app.config.get('DEFAULT_COUNTRY_CODE'))
        agent = Agent.query.filter_by(phone_number=phone_number).first()
        if not agent:
            return jsonify({"success": False, "message": "Agent not found."}), 404

        if not bcrypt.check_password_hash(agent.password_hash, password):
            return jsonify({"success": False, "message": "Invalid credentials."}), 401

        return jsonify({
            "success": True,
            "message": "Login successful.",
            "token": create_local_jwt(agent),
            "agent": agent.to_dict()
        }), 200
    except Exception as e:
        return server_error("login_agent", e)


@app.route('/agent/<agent_id>', methods=['GET'])
def get_agent_by_id(agent_id):
    if not get_agent_from_token():
        return jsonify({"success": False, "message": "Auth required"}), 401
    try:
        agent_id = parse_id(agent_id, 'agent')
    except TicketValidationError as e:
        return error_response(e)

    try:
        agent = db.session.get(Agent, agent_id)
        if not agent:
            return jsonify({"success": False, "message": "Agent not found."}), 404
        return jsonify({"success": True, "message": "Agent fetched successfully.", "agent": agent.to_dict()}), 200
    except Exception as e:
        return server_error("get_agent_by_id", e)


@app.route('/agent/token/<token>', methods=['GET'])
def verify_token(token):
    try:
        payload = decode_local_jwt(token)
    except jwt.InvalidTokenError:
        return jsonify({"success": False, "message": "Invalid or expired token."}), 401
    return jsonify({"success": True, "message": "Token is valid.",
                    "id": int(payload['sub']), "role": payload.get('role')}), 200
