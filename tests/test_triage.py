from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from agriops import triage

NOW = datetime(2025, 6, 15, 11, 30)
TODAY = datetime(2025, 6, 15, 9, 0)
YESTERDAY = TODAY - timedelta(days=1)
TOMORROW = TODAY + timedelta(days=1)


def ticket(id, priority='medium', status='Opened', due_date=None, created_at=None):
    return SimpleNamespace(
        id=id, priority=priority, status=status, due_date=due_date,
        created_at=created_at or datetime(2025, 6, 1) + timedelta(minutes=id)
    )


def order(tickets, now=NOW):
    return [entry.ticket.id for entry in triage.rank_tickets(tickets, now)]


@pytest.mark.parametrize("value,rank", [
    ('asap', 1), ('ASAP', 1), ('High', 2), ('medium', 3), (' low ', 4),
    ('urgent', 5), (None, 5), ('', 5),
])
def test_priority_rank(value, rank):
    assert triage.priority_rank(value) == rank


@pytest.mark.parametrize("value,expected", [
    ('opened', 'Opened'), ('OPEN', 'Opened'), ('Pending', 'Opened'),
    ('waiting for', 'Waiting For'), ('Waiting_For', 'Waiting For'), ('WAITING', 'Waiting For'),
    ('closed', 'Closed'), ('done', None), (3, None),
])
def test_normalize_status(value, expected):
    assert triage.normalize_status(value) == expected


def test_group_cascade():
    assert triage.group_rank('low', 'Closed', YESTERDAY, NOW) == triage.GROUP_CLOSED
    assert triage.group_rank('asap', 'Closed', YESTERDAY, NOW) == triage.GROUP_CLOSED
    assert triage.group_rank('ASAP', 'Waiting For', TOMORROW, NOW) == triage.GROUP_ASAP
    assert triage.group_rank('low', 'Waiting For', YESTERDAY, NOW) == triage.GROUP_OVERDUE
    assert triage.group_rank('low', 'Opened', TODAY, NOW) == triage.GROUP_DUE_TODAY
    assert triage.group_rank('low', 'Waiting For', TOMORROW, NOW) == triage.GROUP_WAITING
    assert triage.group_rank('high', 'Opened', TOMORROW, NOW) == triage.GROUP_DEFAULT


def test_day_bounds_are_inclusive():
    start, end = triage.day_bounds(NOW)
    assert triage.group_rank('low', 'Opened', start, NOW) == triage.GROUP_DUE_TODAY
    assert triage.group_rank('low', 'Opened', end, NOW) == triage.GROUP_DUE_TODAY
    assert triage.group_rank('low', 'Opened', start - timedelta(microseconds=1), NOW) == triage.GROUP_OVERDUE
    assert triage.group_rank('low', 'Opened', end + timedelta(microseconds=1), NOW) == triage.GROUP_DEFAULT


def test_missing_due_date_is_neither_overdue_nor_today():
    assert triage.group_rank('low', 'Opened', None, NOW) == triage.GROUP_DEFAULT
    assert triage.group_rank('low', 'Waiting For', None, NOW) == triage.GROUP_WAITING


def test_missing_due_date_sorts_after_dated_tickets_in_same_bucket():
    tickets = [
        ticket(1, 'high', due_date=None),
        ticket(2, 'high', due_date=TOMORROW + timedelta(days=5)),
        ticket(3, 'high', due_date=TOMORROW),
    ]
    assert order(tickets) == [3, 2, 1]


def test_scenario_asap_overdue_today():
    t1 = ticket(1, 'asap', due_date=TOMORROW)
    t2 = ticket(2, 'low', due_date=YESTERDAY)
    t3 = ticket(3, 'medium', due_date=TODAY)
    ranked = triage.rank_tickets([t3, t2, t1], NOW)
    assert [(e.ticket.id, e.group_rank, e.priority_rank) for e in ranked] == [
        (1, 1, 1), (2, 2, 4), (3, 3, 3)
    ]


def test_priority_orders_within_group_regardless_of_due_date():
    tickets = [
        ticket(1, 'low', due_date=TOMORROW),
        ticket(2, 'high', due_date=TOMORROW + timedelta(days=30)),
        ticket(3, 'medium', due_date=TOMORROW + timedelta(days=2)),
    ]
    assert order(tickets) == [2, 3, 1]


def test_closed_always_last():
    tickets = [
        ticket(1, 'asap', status='Closed', due_date=YESTERDAY),
        ticket(2, 'low', status='Waiting For', due_date=None),
        ticket(3, 'low', status='Opened', due_date=TOMORROW),
    ]
    assert order(tickets) == [3, 2, 1]


def test_waiting_below_future_work_but_not_asap():
    tickets = [
        ticket(1, 'high', status='Waiting For', due_date=TOMORROW),
        ticket(2, 'low', status='Opened', due_date=TOMORROW),
        ticket(3, 'asap', status='Waiting For', due_date=TOMORROW),
    ]
    assert order(tickets) == [3, 2, 1]


def test_ties_break_on_creation_time():
    early = ticket(2, 'high', due_date=TOMORROW, created_at=datetime(2025, 6, 1))
    late = ticket(1, 'high', due_date=TOMORROW, created_at=datetime(2025, 6, 2))
    assert order([late, early]) == [2, 1]


def test_aware_due_dates_use_the_deployment_calendar():
    # 20:00 UTC on the 14th is 01:30 on the 15th in Kolkata
    due = datetime(2025, 6, 14, 20, 0, tzinfo=timezone.utc)
    assert triage.group_rank('low', 'Opened', due, NOW, 'Asia/Kolkata') == triage.GROUP_DUE_TODAY
    assert triage.group_rank('low', 'Opened', due, NOW, 'UTC') == triage.GROUP_OVERDUE


def test_paginate_past_the_end():
    data, pagination = triage.paginate(list(range(7)), 7, 3, 3)
    assert data == [6]
    assert pagination == {'currentPage': 3, 'totalPages': 3, 'totalItems': 7, 'limit': 3}

    data, pagination = triage.paginate(list(range(7)), 7, 5, 3)
    assert data == []
    assert pagination['totalPages'] == 3
