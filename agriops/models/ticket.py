"""
Support ticket models
"""
from agriops.core import get_db, local_clock

db = get_db()

CROP_NAMES = ('Tender Coconut', 'Dry Coconut', 'Turmeric', 'Banana', 'NAP')

ticket_assignee = db.Table(
    'ticket_assignee',
    db.Column('ticket_id', db.Integer, db.ForeignKey('ticket.id', ondelete='CASCADE'), primary_key=True),
    db.Column('agent_id', db.Integer, db.ForeignKey('agent.id', ondelete='CASCADE'), primary_key=True)
)


class Ticket(db.Model):
    """Follow-up work tracked against a farmer"""
    __tablename__ = 'ticket'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('farmer.id'), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey('agent.id'), nullable=True)
    name = db.Column(db.String(200), nullable=True)
    number = db.Column(db.String(20), nullable=True)
    task = db.Column(db.Text, nullable=False)
    crop_name = db.Column(db.String(50), nullable=False, default='NAP')
    priority = db.Column(db.String(10), nullable=False, default='medium')  # asap, high, medium, low
    status = db.Column(db.String(20), nullable=False, default='Opened', index=True)  # Opened, Waiting For, Closed
    due_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=local_clock, nullable=False)

    assigned_to = db.relationship('Agent', secondary=ticket_assignee, lazy='selectin')
    remarks = db.relationship('TicketRemark', backref='ticket', order_by='TicketRemark.id',
                              cascade='all, delete-orphan', lazy='selectin')
    status_logs = db.relationship('TicketStatusLog', backref='ticket', order_by='TicketStatusLog.id',
                                  cascade='all, delete-orphan', lazy='selectin')

    @property
    def assignee_ids(self):
        return sorted(agent.id for agent in self.assigned_to)

    def is_assigned(self, agent_id):
        return agent_id in self.assignee_ids

    def to_dict(self):
        """Serialise for the API"""
        return {
            'id': self.id,
            'userId': self.user_id,
            'createdBy': self.created_by,
            'name': self.name,
            'number': self.number,
            'task': self.task,
            'cropName': self.crop_name,
            'priority': self.priority,
            'status': self.status,
            'dueDate': self.due_date.isoformat() if self.due_date else None,
            'assignedTo': self.assignee_ids,
            'remarks': [r.to_dict() for r in self.remarks],
            'statusLogs': [log.to_dict() for log in self.status_logs],
            'createdAt': self.created_at.isoformat() if self.created_at else None
        }


class TicketRemark(db.Model):
    """Append-only note on a ticket"""
    __tablename__ = 'ticket_remark'

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey('ticket.id', ondelete='CASCADE'), nullable=False, index=True)
    text = db.Column(db.Text, nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('agent.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=local_clock, nullable=False)

    def to_dict(self):
        return {
            'text': self.text,
            'authorBy': self.author_id,
            'timestamp': self.created_at.isoformat() if self.created_at else None
        }


class TicketStatusLog(db.Model):
    __tablename__ = 'ticket_status_log'

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey('ticket.id', ondelete='CASCADE'), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False)
    changed_by = db.Column(db.Integer, db.ForeignKey('agent.id'), nullable=True)
    changed_at = db.Column(db.DateTime, default=local_clock, nullable=False)

    def to_dict(self):
        return {
            'status': self.status,
            'changedBy': self.changed_by,
            'changedAt': self.changed_at.isoformat() if self.changed_at else None
        }
