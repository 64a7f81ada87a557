from flask import request, jsonify
from functools import wraps
import jwt
from datetime import datetime, timedelta, timezone

from agriops.core import get_app, get_db
from agriops.models.agent import Agent, ROLE_ADMIN

app = get_app()
db = get_db()


class Caller:
    """Identity resolved from the bearer token, passed explicitly into every ticket operation"""

    __slots__ = ('id', 'role')

    def __init__(self, id, role):
        self.id = id
        self.role = role

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @classmethod
    def from_agent(cls, agent):
        return cls(agent.id, agent.role)

    def __repr__(self):
        return f"Caller(id={self.id!r}, role={self.role!r})"


# Token helpers
def create_local_jwt(agent):
    now = datetime.now(timezone.utc)
    payload = {
        'iat': now,
        'exp': now + timedelta(days=app.config['JWT_EXPIRES_DAYS']),
        'sub': str(agent.id),
        'role': agent.role
    }
    return jwt.encode(payload, app.config['JWT_SECRET_KEY'], algorithm="HS256")


def decode_local_jwt(token):
    """Payload of a valid token; raises jwt.InvalidTokenError otherwise"""
    return jwt.decode(token, app.config['JWT_SECRET_KEY'], algorithms=["HS256"])


def _bearer_token():
    auth_header = request.headers.get('Authorization') or request.headers.get('X-Authorization')
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip()


def get_agent_from_token():
    token = _bearer_token()
    if not token:
        return None
    try:
        payload = decode_local_jwt(token)
        return db.session.get(Agent, int(payload['sub']))
    except (jwt.InvalidTokenError, KeyError, ValueError):
        return None


def agent_required(f):
    """Resolve the caller from the bearer token and pass it as `caller`"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _bearer_token():
            return jsonify({"success": False, "message": "Auth required"}), 401
        agent = get_agent_from_token()
        if not agent:
            return jsonify({"success": False, "message": "Invalid token"}), 401
        kwargs['caller'] = Caller.from_agent(agent)
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _bearer_token():
            return jsonify({"success": False, "message": "Auth required"}), 401
        agent = get_agent_from_token()
        if not agent:
            return jsonify({"success": False, "message": "Invalid token"}), 401
        if not agent.is_admin:
            return jsonify({"success": False, "message": "Access denied."}), 403
        kwargs['current_admin'] = agent
        return f(*args, **kwargs)
    return decorated_function
