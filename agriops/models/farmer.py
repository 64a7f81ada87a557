"""
Farmer / harvester CRM record that tickets link to
"""
from agriops.core import get_db, local_clock

db = get_db()


class Farmer(db.Model):
    __tablename__ = 'farmer'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=True)
    number = db.Column(db.String(20), unique=True, nullable=False, index=True)  # national 10-digit form
    identity = db.Column(db.String(20), nullable=False, default='Unknown')  # Harvester, Farmer, Loader, Unknown
    village = db.Column(db.String(120), nullable=True)
    taluk = db.Column(db.String(120), nullable=True)
    district = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=local_clock)
