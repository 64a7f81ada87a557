"""
Ticket triage: rank keys and ordering for support ticket queues

Every ticket gets two derived integer keys, recomputed on each read:

    priorityRank  asap=1, high=2, medium=3, low=4, anything else=5
    groupRank     first match wins:
                    Closed                      -> 6
                    priority asap               -> 1
                    due before today            -> 2
                    due today                   -> 3
                    status "Waiting For"        -> 5
                    otherwise                   -> 4

Queues are sorted ascending by (groupRank, priorityRank, dueDate). A ticket
without a due date is neither overdue nor due today and sorts after the dated
tickets of its (groupRank, priorityRank) bucket. Remaining ties fall back to
creation time, then id.

"Today" is the calendar day of the as-of moment in the deployment time zone.
"""

import math
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

STATUS_OPENED = 'Opened'
STATUS_WAITING = 'Waiting For'
STATUS_CLOSED = 'Closed'
STATUSES = (STATUS_OPENED, STATUS_WAITING, STATUS_CLOSED)
OPEN_STATUSES = (STATUS_OPENED, STATUS_WAITING)

PRIORITY_ASAP = 'asap'
PRIORITY_HIGH = 'high'
PRIORITY_MEDIUM = 'medium'
PRIORITY_LOW = 'low'

PRIORITY_RANKS = {
    PRIORITY_ASAP: 1,
    PRIORITY_HIGH: 2,
    PRIORITY_MEDIUM: 3,
    PRIORITY_LOW: 4,
}
UNKNOWN_PRIORITY_RANK = 5

GROUP_ASAP = 1
GROUP_OVERDUE = 2
GROUP_DUE_TODAY = 3
GROUP_DEFAULT = 4
GROUP_WAITING = 5
GROUP_CLOSED = 6

# Historical spellings seen in stored data and client payloads
_STATUS_ALIASES = {
    'opened': STATUS_OPENED,
    'open': STATUS_OPENED,
    'pending': STATUS_OPENED,
    'waiting for': STATUS_WAITING,
    'waiting': STATUS_WAITING,
    'waitingfor': STATUS_WAITING,
    'closed': STATUS_CLOSED,
    'close': STATUS_CLOSED,
}


def normalize_priority(value):
    """Canonical lower-case priority, or None when the value is not a known priority"""
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    return key if key in PRIORITY_RANKS else None


def normalize_status(value):
    """Canonical status spelling, or None when the value is not a known status"""
    if not isinstance(value, str):
        return None
    key = ' '.join(value.replace('_', ' ').replace('-', ' ').split()).lower()
    return _STATUS_ALIASES.get(key)


def local_now(tz_name=None):
    """Current wall-clock time in the deployment time zone, as a naive datetime"""
    if not tz_name:
        return datetime.now()
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def to_local_naive(value, tz_name=None):
    """Bring a date/datetime onto the naive local timeline used for comparisons"""
    if value is None:
        return None
    if not isinstance(value, datetime):
        if isinstance(value, date):
            return datetime.combine(value, time.min)
        raise TypeError(f"Expected date or datetime, got {type(value).__name__}")
    if value.tzinfo is not None:
        target = ZoneInfo(tz_name) if tz_name else None
        return value.astimezone(target).replace(tzinfo=None)
    return value


def day_bounds(now):
    """Start (midnight) and end (last microsecond) of the calendar day containing `now`"""
    start = datetime.combine(now.date(), time.min)
    end = start + timedelta(days=1) - timedelta(microseconds=1)
    return start, end


def priority_rank(priority):
    return PRIORITY_RANKS.get(normalize_priority(priority), UNKNOWN_PRIORITY_RANK)


def group_rank(priority, status, due_date, now, tz_name=None):
    """Group placement for a ticket at moment `now`"""
    status = normalize_status(status)
    if status == STATUS_CLOSED:
        return GROUP_CLOSED
    if normalize_priority(priority) == PRIORITY_ASAP:
        return GROUP_ASAP

    due = to_local_naive(due_date, tz_name)
    if due is not None:
        start, end = day_bounds(to_local_naive(now, tz_name))
        if due < start:
            return GROUP_OVERDUE
        if start <= due <= end:
            return GROUP_DUE_TODAY

    if status == STATUS_WAITING:
        return GROUP_WAITING
    return GROUP_DEFAULT


def compute_rank(ticket, now, tz_name=None):
    """(groupRank, priorityRank) for any object exposing priority, status and due_date"""
    return (
        group_rank(ticket.priority, ticket.status, ticket.due_date, now, tz_name),
        priority_rank(ticket.priority),
    )


class RankedTicket:
    """A ticket paired with the rank keys computed for one read"""

    __slots__ = ('ticket', 'group_rank', 'priority_rank')

    def __init__(self, ticket, group, priority):
        self.ticket = ticket
        self.group_rank = group
        self.priority_rank = priority

    def sort_key(self, tz_name=None):
        due = to_local_naive(self.ticket.due_date, tz_name)
        created = to_local_naive(getattr(self.ticket, 'created_at', None), tz_name)
        ticket_id = getattr(self.ticket, 'id', None)
        return (
            self.group_rank,
            self.priority_rank,
            due is None, due or datetime.min,
            created is None, created or datetime.min,
            ticket_id is None, ticket_id or 0,
        )

    def to_dict(self):
        data = self.ticket.to_dict()
        data['groupRank'] = self.group_rank
        data['priorityRank'] = self.priority_rank
        return data


def rank_tickets(tickets, now, tz_name=None):
    """Rank keys for every ticket, returned in triage order"""
    ranked = [RankedTicket(t, *compute_rank(t, now, tz_name)) for t in tickets]
    ranked.sort(key=lambda entry: entry.sort_key(tz_name))
    return ranked


def paginate(items, total_items, page, limit):
    """
    Slice an already ordered sequence for 1-based `page`.

    `total_items` comes from the filtered count and is reported as-is;
    a page past the end yields an empty slice.
    """
    total_pages = math.ceil(total_items / limit) if limit else 0
    offset = (page - 1) * limit
    return list(items[offset:offset + limit]), {
        'currentPage': page,
        'totalPages': total_pages,
        'totalItems': total_items,
        'limit': limit
    }
