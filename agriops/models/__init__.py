"""
SQLAlchemy models for agriops

All models are exported from here for convenient imports:
    from agriops.models import Agent, Ticket, FieldTicket, etc.
"""

from agriops.models.agent import Agent
from agriops.models.farmer import Farmer
from agriops.models.ticket import Ticket, TicketRemark, TicketStatusLog, ticket_assignee
from agriops.models.field_ticket import FieldTicket, FieldTicketStatusLog

__all__ = [
    'Agent',
    'Farmer',
    'Ticket', 'TicketRemark', 'TicketStatusLog', 'ticket_assignee',
    'FieldTicket', 'FieldTicketStatusLog'
]
