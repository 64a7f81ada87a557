"""
Ticket lifecycle operations

Scoped queue queries, creation, partial and bulk updates, remarks and bulk
delete. Every operation takes the caller explicitly; authorization is checked
before anything is written.

Bulk updates authorize the whole batch up front but commit ticket by ticket,
so a failure in the middle of a batch leaves the earlier tickets updated.
"""

import logging
import re
import secrets
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from agriops import triage
from agriops.core import get_db, get_bcrypt, local_clock
from agriops.models.agent import Agent
from agriops.models.farmer import Farmer
from agriops.models.ticket import Ticket, TicketRemark, TicketStatusLog, CROP_NAMES

logger = logging.getLogger(__name__)
db = get_db()

HISTORY_STATUSES = triage.STATUSES


class TicketError(Exception):
    """Base for errors reported back to the client"""
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class TicketValidationError(TicketError):
    status_code = 400


class TicketNotFound(TicketError):
    status_code = 404


class TicketAccessDenied(TicketError):
    status_code = 403


# ============================================================================
# INPUT PARSING
# ============================================================================

def _tz():
    return current_app.config.get('APP_TIMEZONE')


def current_time():
    return local_clock()


MAX_ID = 2 ** 63 - 1
_DIGITS = re.compile(r'[0-9]+')


def parse_id(value, label='ticket'):
    if isinstance(value, bool):
        raise TicketValidationError(f"Invalid {label} ID")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and _DIGITS.fullmatch(value.strip()):
        parsed = int(value.strip())
    else:
        raise TicketValidationError(f"Invalid {label} ID")
    if parsed < 1 or parsed > MAX_ID:
        raise TicketValidationError(f"Invalid {label} ID")
    return parsed


def parse_id_list(values, field, label='ticket'):
    if not isinstance(values, list) or not values:
        raise TicketValidationError(f"{field} must be a non-empty list")
    ids = []
    for value in values:
        parsed = parse_id(value, label)
        if parsed not in ids:
            ids.append(parsed)
    return ids


def _positive_int(value, name, default):
    if value is None or value == '':
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise TicketValidationError(f"{name} must be a positive integer")
    if parsed < 1:
        raise TicketValidationError(f"{name} must be a positive integer")
    return parsed


def parse_pagination(args, default_limit):
    """(page, limit) from query args; each endpoint passes its own default limit"""
    page = _positive_int(args.get('page'), 'page', 1)
    limit = _positive_int(args.get('limit'), 'limit', default_limit)
    return page, limit


def parse_due_date(value):
    """ISO date or datetime string (a trailing 'Z' means UTC) onto the local timeline"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return triage.to_local_naive(value, _tz())
    if not isinstance(value, str):
        raise TicketValidationError("Invalid dueDate")
    iso_string = value.strip()
    if iso_string.endswith('Z'):
        iso_string = iso_string[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(iso_string)
    except ValueError:
        raise TicketValidationError("Invalid dueDate")
    return triage.to_local_naive(parsed, _tz())


def _parse_priority(value):
    priority = triage.normalize_priority(value)
    if not priority:
        raise TicketValidationError(f"Invalid priority: {value}")
    return priority


def _parse_status(value):
    status = triage.normalize_status(value)
    if not status:
        raise TicketValidationError(f"Invalid status: {value}")
    return status


def _parse_crop(value):
    if not isinstance(value, str):
        raise TicketValidationError(f"Invalid cropName: {value}")
    for crop in CROP_NAMES:
        if crop.lower() == value.strip().lower():
            return crop
    raise TicketValidationError(f"Invalid cropName: {value}")


def _parse_task(value):
    if not isinstance(value, str) or not value.strip():
        raise TicketValidationError("task must be a non-empty string")
    return value.strip()


def _resolve_agents(value):
    if value is None:
        return []
    values = value if isinstance(value, list) else [value]
    ids = []
    for item in values:
        parsed = parse_id(item, 'agent')
        if parsed not in ids:
            ids.append(parsed)
    if not ids:
        return []
    agents = Agent.query.filter(Agent.id.in_(ids)).all()
    found = {agent.id for agent in agents}
    missing = [agent_id for agent_id in ids if agent_id not in found]
    if missing:
        raise TicketValidationError(f"Unknown agent ID(s): {', '.join(str(m) for m in missing)}")
    return sorted(agents, key=lambda agent: ids.index(agent.id))


def _remark_text(data):
    text = data.get('remarkText')
    if text is None and isinstance(data.get('remarks'), str):
        text = data.get('remarks')
    if text is None:
        return None
    if not isinstance(text, str) or not text.strip():
        raise TicketValidationError("remark must be a non-empty string")
    return text.strip()


def _parse_changes(data):
    """Only the fields present in the payload; absent fields stay untouched"""
    changes = {}
    if 'status' in data:
        changes['status'] = _parse_status(data['status'])
    if 'priority' in data:
        changes['priority'] = _parse_priority(data['priority'])
    if 'task' in data:
        changes['task'] = _parse_task(data['task'])
    if 'assignedTo' in data:
        changes['assigned_to'] = _resolve_agents(data['assignedTo'])
    if 'dueDate' in data:
        changes['due_date'] = parse_due_date(data['dueDate'])
    if 'cropName' in data:
        changes['crop_name'] = _parse_crop(data['cropName'])
    remark = _remark_text(data)
    if remark is not None:
        changes['remark'] = remark
    return changes


# ============================================================================
# SCOPED QUERIES
# ============================================================================

def _assigned_to(agent_id):
    return Ticket.assigned_to.any(Agent.id == agent_id)


def open_queue_query(caller):
    """Admins see every open ticket, agents only the ones assigned to them"""
    query = Ticket.query.filter(Ticket.status.in_(triage.OPEN_STATUSES))
    if not caller.is_admin:
        query = query.filter(_assigned_to(caller.id))
    return query


def agent_queue_query(agent_id):
    return Ticket.query.filter(_assigned_to(agent_id), Ticket.status.in_(triage.OPEN_STATUSES))


def customer_history_query(user_id):
    return Ticket.query.filter(Ticket.user_id == user_id, Ticket.status.in_(HISTORY_STATUSES))


def ranked_list(query, now=None):
    return triage.rank_tickets(query.all(), now or current_time(), _tz())


def ranked_page(query, page, limit, now=None):
    """Ranked page plus pagination block; the total is counted over the filtered set"""
    total = query.order_by(None).count()
    ranked = ranked_list(query, now)
    return triage.paginate(ranked, total, page, limit)


# ============================================================================
# READ / AUTHORIZE
# ============================================================================

def get_ticket(ticket_id):
    ticket = db.session.get(Ticket, parse_id(ticket_id))
    if not ticket:
        raise TicketNotFound("Ticket not found")
    return ticket


def authorize(caller, ticket):
    """Admins may touch any ticket, agents only tickets they are assigned to"""
    if caller.is_admin:
        return
    if not ticket.is_assigned(caller.id):
        raise TicketAccessDenied("Access denied. You are not assigned to this ticket.")


# ============================================================================
# MUTATIONS
# ============================================================================

def _log_status(ticket, status, changed_by, now):
    ticket.status_logs.append(TicketStatusLog(status=status, changed_by=changed_by, changed_at=now))


def _apply_changes(ticket, changes, caller, now):
    if 'status' in changes and changes['status'] != ticket.status:
        ticket.status = changes['status']
        _log_status(ticket, ticket.status, caller.id, now)
    if 'priority' in changes:
        ticket.priority = changes['priority']
    if 'task' in changes:
        ticket.task = changes['task']
    if 'assigned_to' in changes:
        ticket.assigned_to = list(changes['assigned_to'])
    if 'due_date' in changes:
        ticket.due_date = changes['due_date']
    if 'crop_name' in changes:
        ticket.crop_name = changes['crop_name']
    if 'remark' in changes:
        ticket.remarks.append(TicketRemark(text=changes['remark'], author_id=caller.id, created_at=now))


def create_ticket(caller, data, now=None):
    now = now or current_time()
    task = data.get('task')
    if not task or data.get('dueDate') in (None, ''):
        raise TicketValidationError("task and dueDate are required to create a ticket.")

    user_id = None
    if data.get('userId') not in (None, ''):
        user_id = parse_id(data['userId'], 'user')
        if not db.session.get(Farmer, user_id):
            raise TicketValidationError("Unknown user ID")

    ticket = Ticket(
        task=_parse_task(task),
        due_date=parse_due_date(data['dueDate']),
        priority=_parse_priority(data['priority']) if data.get('priority') else triage.PRIORITY_MEDIUM,
        status=_parse_status(data['status']) if data.get('status') else triage.STATUS_OPENED,
        crop_name=_parse_crop(data['cropName']) if data.get('cropName') else 'NAP',
        assigned_to=_resolve_agents(data.get('assignedTo')),
        user_id=user_id,
        name=data.get('name'),
        number=data.get('number'),
        created_by=caller.id,
        created_at=now
    )
    _log_status(ticket, ticket.status, caller.id, now)
    db.session.add(ticket)
    db.session.commit()
    logger.info("Ticket %s created by agent %s", ticket.id, caller.id)
    return ticket


def update_ticket(caller, data, now=None):
    """Partial update of one ticket; remarks are appended, never replaced"""
    now = now or current_time()
    ticket = get_ticket(data.get('id', data.get('ticketId')))
    authorize(caller, ticket)

    changes = _parse_changes(data)
    if not changes:
        raise TicketValidationError("No updatable fields provided")

    _apply_changes(ticket, changes, caller, now)
    db.session.commit()
    logger.info("Ticket %s updated by %s (%s)", ticket.id, caller.id, ', '.join(sorted(changes)))
    return ticket


def update_tickets(caller, data, now=None):
    """Apply one field subset to many tickets; authorization is all-or-nothing"""
    now = now or current_time()
    ids = parse_id_list(data.get('ticketIds'), 'ticketIds')
    tickets = Ticket.query.filter(Ticket.id.in_(ids)).all()

    found = {ticket.id for ticket in tickets}
    missing = [ticket_id for ticket_id in ids if ticket_id not in found]
    if missing:
        raise TicketNotFound(f"Ticket(s) not found: {', '.join(str(m) for m in missing)}")

    denied = []
    for ticket in tickets:
        try:
            authorize(caller, ticket)
        except TicketAccessDenied:
            denied.append(ticket.id)
    if denied:
        raise TicketAccessDenied(
            f"Access denied. You are not assigned to ticket(s): {', '.join(str(d) for d in sorted(denied))}"
        )

    changes = _parse_changes(data)
    if not changes:
        raise TicketValidationError("No updatable fields provided")

    updated = 0
    for ticket in tickets:
        _apply_changes(ticket, changes, caller, now)
        db.session.commit()
        updated += 1
    logger.info("Bulk update of %d ticket(s) by %s (%s)", updated, caller.id, ', '.join(sorted(changes)))
    return updated


def delete_tickets(caller, data):
    """Delete the requested tickets the caller is assigned to; the rest are skipped"""
    requester = data.get('id')
    if requester not in (None, '') and parse_id(requester, 'agent') != caller.id:
        raise TicketAccessDenied("Access denied. You can only delete your own tickets.")

    ids = parse_id_list(data.get('deleteIds'), 'deleteIds')
    tickets = Ticket.query.filter(Ticket.id.in_(ids), _assigned_to(caller.id)).all()
    for ticket in tickets:
        db.session.delete(ticket)
    db.session.commit()
    logger.info("Agent %s deleted %d of %d requested ticket(s)", caller.id, len(tickets), len(ids))
    return len(tickets)


# ============================================================================
# WEBHOOK CREATION
# ============================================================================

def normalize_phone(raw, country_code='91'):
    """National number without separators, leading zero or country-code prefix"""
    if raw is None:
        return None
    digits = re.sub(r'\D', '', str(raw))
    if country_code and len(digits) > 10 and digits.startswith(country_code) \
            and len(digits) - len(country_code) == 10:
        digits = digits[len(country_code):]
    elif len(digits) == 11 and digits.startswith('0'):
        digits = digits[1:]
    return digits or None


def get_system_agent():
    """Default agent that owns tickets created by external event sources"""
    config = current_app.config
    phone = config['SYSTEM_AGENT_PHONE']
    agent = Agent.query.filter_by(phone_number=phone).first()
    if agent:
        return agent

    password_hash = get_bcrypt().generate_password_hash(secrets.token_urlsafe(32)).decode('utf-8')
    agent = Agent(name=config['SYSTEM_AGENT_NAME'], phone_number=phone, password_hash=password_hash)
    db.session.add(agent)
    try:
        db.session.commit()
    except IntegrityError:
        # created by a concurrent webhook
        db.session.rollback()
        agent = Agent.query.filter_by(phone_number=phone).first()
    return agent


def create_ticket_from_webhook(data, now=None):
    """
    Create a ticket for an inbound call/contact event.

    The farmer is linked when one exists for the normalized phone number;
    otherwise the ticket is created without a userId.
    """
    now = now or current_time()
    number = normalize_phone(
        data.get('number') or data.get('phone') or data.get('from'),
        current_app.config.get('DEFAULT_COUNTRY_CODE')
    )
    if not number:
        raise TicketValidationError("number is required")

    farmer = Farmer.query.filter_by(number=number).first()
    if not farmer:
        logger.info("Webhook ticket for %s created without a linked farmer", number)

    agent = get_system_agent()
    due_date = parse_due_date(data.get('dueDate')) or now
    task = data.get('task') or data.get('message') or f"Follow up inbound contact from {number}"

    ticket = Ticket(
        task=_parse_task(task),
        due_date=due_date,
        priority=_parse_priority(data['priority']) if data.get('priority') else triage.PRIORITY_MEDIUM,
        status=triage.STATUS_OPENED,
        crop_name=_parse_crop(data['cropName']) if data.get('cropName') else 'NAP',
        user_id=farmer.id if farmer else None,
        name=data.get('name') or (farmer.name if farmer else None),
        number=number,
        created_by=agent.id,
        created_at=now
    )
    _log_status(ticket, ticket.status, agent.id, now)
    db.session.add(ticket)
    db.session.commit()
    logger.info("Webhook ticket %s created for %s", ticket.id, number)
    return ticket
