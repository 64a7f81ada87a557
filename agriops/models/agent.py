"""
Agent model (support operator or admin)
"""
from agriops.core import get_db, local_clock

db = get_db()

ROLE_AGENT = 'agent'
ROLE_ADMIN = 'admin'
ROLES = (ROLE_AGENT, ROLE_ADMIN)


class Agent(db.Model):
    """Support operator; admins see every open ticket"""
    __tablename__ = 'agent'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    password_hash = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_AGENT, index=True)
    phone_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=local_clock)
    updated_at = db.Column(db.DateTime, default=local_clock, onupdate=local_clock)

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def to_dict(self):
        """Serialise for the API (never includes the password hash)"""
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role,
            'phoneNumber': self.phone_number,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None
        }
