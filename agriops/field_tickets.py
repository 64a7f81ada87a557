"""
Field-visit tickets handed to field executives
"""

import logging
from datetime import datetime, timedelta

from agriops.core import get_db
from agriops.models.field_ticket import (
    FieldTicket, FieldTicketStatusLog, FIELD_STATUSES, DONE_STATUSES, FIELD_PRIORITIES
)
from agriops.tickets import TicketValidationError, TicketNotFound, current_time, parse_due_date, parse_id

logger = logging.getLogger(__name__)
db = get_db()

REQUIRED_FIELDS = (
    'field_guyId', 'farmerId', 'farmername', 'village', 'district',
    'reportedNHD', 'farmernumber', 'cropName', 'cropId'
)


def _due_rank(due_date, today_start):
    if due_date is None:
        return 2
    if due_date < today_start:
        return 0
    if due_date < today_start + timedelta(days=1):
        return 1
    return 2


def field_sort_key(ticket, today_start):
    """Priority first (ASAP..LOW), then overdue/today/later, then due date, newest first"""
    priority = (ticket.priority or '').upper()
    rank = FIELD_PRIORITIES.index(priority) if priority in FIELD_PRIORITIES else len(FIELD_PRIORITIES)
    created = ticket.created_at
    return (
        rank,
        _due_rank(ticket.due_date, today_start),
        ticket.due_date is None, ticket.due_date or datetime.min,
        -created.timestamp() if created else 0,
    )


def create_field_ticket(data, now=None):
    missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
    if missing:
        raise TicketValidationError("Missing required field(s): " + ', '.join(missing))

    priority = str(data.get('priority') or 'MEDIUM').strip().upper()
    if priority not in FIELD_PRIORITIES:
        raise TicketValidationError(f"Invalid priority: {data.get('priority')}")
    status = data.get('status') or 'pending'
    if status not in FIELD_STATUSES:
        raise TicketValidationError(f"Invalid status: {status}")

    now = now or current_time()
    ticket = FieldTicket(
        field_guy_id=str(data['field_guyId']),
        farmer_id=str(data['farmerId']),
        farmer_name=data['farmername'],
        farmer_number=str(data['farmernumber']),
        village=data['village'],
        taluk=data.get('taluk'),
        district=data['district'],
        reported_nhd=str(data['reportedNHD']),
        crop_name=data['cropName'],
        crop_id=str(data['cropId']),
        priority=priority,
        status=status,
        due_date=parse_due_date(data.get('dueDate')),
        created_at=now,
        updated_at=now
    )
    ticket.status_logs.append(FieldTicketStatusLog(status=status, changed_at=now))
    db.session.add(ticket)
    db.session.commit()
    logger.info("Field ticket %s created for field user %s", ticket.id, ticket.field_guy_id)
    return ticket


def open_field_tickets(field_user_id, now=None):
    now = now or current_time()
    today_start = datetime.combine(now.date(), datetime.min.time())
    tickets = FieldTicket.query.filter(
        FieldTicket.field_guy_id == str(field_user_id),
        FieldTicket.status.notin_(DONE_STATUSES)
    ).all()
    return sorted(tickets, key=lambda t: field_sort_key(t, today_start))


def update_field_ticket_status(data, now=None):
    status = data.get('status')
    if not status:
        raise TicketValidationError("Missing `status` in request body.")
    if status not in FIELD_STATUSES:
        raise TicketValidationError(f"Invalid status: {status}")

    ticket_id = parse_id(data.get('id'))
    ticket = db.session.get(FieldTicket, ticket_id)
    if not ticket:
        raise TicketNotFound(f"Ticket {ticket_id} not found.")

    if ticket.status != status:
        now = now or current_time()
        ticket.status = status
        ticket.status_logs.append(FieldTicketStatusLog(status=status, changed_at=now))
    db.session.commit()
    return ticket
