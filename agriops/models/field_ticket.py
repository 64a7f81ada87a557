"""
Field-visit ticket models
"""
from agriops.core import get_db, local_clock

db = get_db()

FIELD_STATUSES = (
    'pending',
    'called',
    'on-the-way',
    'visited',
    'not-ready',
    'farm-didnt-pick',
    'submitted'
)
DONE_STATUSES = ('not-ready', 'farm-didnt-pick', 'submitted')
FIELD_PRIORITIES = ('ASAP', 'HIGH', 'MEDIUM', 'LOW')


class FieldTicket(db.Model):
    """Visit request handed to a field executive"""
    __tablename__ = 'field_ticket'

    id = db.Column(db.Integer, primary_key=True)
    field_guy_id = db.Column(db.String(64), nullable=False, index=True)
    farmer_id = db.Column(db.String(64), nullable=False)
    farmer_name = db.Column(db.String(200), nullable=False)
    farmer_number = db.Column(db.String(20), nullable=False)
    village = db.Column(db.String(120), nullable=False)
    taluk = db.Column(db.String(120), nullable=True)
    district = db.Column(db.String(120), nullable=False)
    reported_nhd = db.Column(db.String(64), nullable=False)
    crop_name = db.Column(db.String(64), nullable=False)
    crop_id = db.Column(db.String(64), nullable=False)
    priority = db.Column(db.String(10), nullable=False, default='MEDIUM')
    status = db.Column(db.String(20), nullable=False, default='pending')
    due_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=local_clock, nullable=False)
    updated_at = db.Column(db.DateTime, default=local_clock, onupdate=local_clock)

    status_logs = db.relationship('FieldTicketStatusLog', backref='field_ticket',
                                  order_by='FieldTicketStatusLog.id',
                                  cascade='all, delete-orphan', lazy='selectin')

    def to_dict(self):
        return {
            'id': self.id,
            'fieldGuyId': self.field_guy_id,
            'farmerId': self.farmer_id,
            'farmerName': self.farmer_name,
            'farmerNumber': self.farmer_number,
            'village': self.village,
            'taluk': self.taluk,
            'district': self.district,
            'reportedNHD': self.reported_nhd,
            'cropName': self.crop_name,
            'cropId': self.crop_id,
            'priority': self.priority,
            'status': self.status,
            'dueDate': self.due_date.isoformat() if self.due_date else None,
            'statusLogs': [log.to_dict() for log in self.status_logs],
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None
        }


class FieldTicketStatusLog(db.Model):
    __tablename__ = 'field_ticket_status_log'

    id = db.Column(db.Integer, primary_key=True)
    field_ticket_id = db.Column(db.Integer, db.ForeignKey('field_ticket.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.String(20), nullable=False)
    changed_at = db.Column(db.DateTime, default=local_clock, nullable=False)

    def to_dict(self):
        return {
            'status': self.status,
            'changedAt': self.changed_at.isoformat() if self.changed_at else None
        }
