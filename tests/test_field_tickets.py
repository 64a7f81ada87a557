from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from agriops import triage
from agriops.field_tickets import field_sort_key

BASE = {
    'field_guyId': 'FG-7',
    'farmerId': 'F-1',
    'farmername': 'Gowda',
    'village': 'Hosur',
    'district': 'Tumakuru',
    'reportedNHD': '12',
    'farmernumber': '9876500000',
    'cropName': 'Tender Coconut',
    'cropId': 'C-9',
}


def create(client, headers, **overrides):
    payload = dict(BASE, **overrides)
    return client.post('/field-ticket', json=payload, headers=headers)


def test_create_field_ticket(client, make_agent, auth_header):
    response = create(client, auth_header(make_agent()), priority='high')
    assert response.status_code == 201
    ticket = response.get_json()['ticket']
    assert ticket['priority'] == 'HIGH'
    assert ticket['status'] == 'pending'
    assert [log['status'] for log in ticket['statusLogs']] == ['pending']


@pytest.mark.parametrize("overrides", [
    {'farmername': ''},
    {'priority': 'urgent'},
    {'status': 'lost'},
])
def test_create_field_ticket_validation(client, make_agent, auth_header, overrides):
    assert create(client, auth_header(make_agent()), **overrides).status_code == 400


def test_open_field_tickets_order(client, make_agent, auth_header):
    headers = auth_header(make_agent())
    now = triage.local_now('Asia/Kolkata')
    today = datetime.combine(now.date(), datetime.min.time()) + timedelta(hours=12)

    low = create(client, headers, priority='LOW', dueDate=(today - timedelta(days=2)).isoformat())
    asap_later = create(client, headers, priority='ASAP', dueDate=(today + timedelta(days=2)).isoformat())
    asap_today = create(client, headers, priority='ASAP', dueDate=today.isoformat())
    done = create(client, headers, priority='ASAP', status='submitted')
    create(client, headers, field_guyId='FG-8')

    response = client.get('/field-ticket/FG-7', headers=headers)
    assert response.status_code == 200
    ids = [t['id'] for t in response.get_json()['data']]
    expected = [asap_today, asap_later, low]
    assert ids == [r.get_json()['ticket']['id'] for r in expected]
    assert done.get_json()['ticket']['id'] not in ids


def test_update_field_ticket_status_logs(client, make_agent, auth_header):
    headers = auth_header(make_agent())
    ticket_id = create(client, headers).get_json()['ticket']['id']

    response = client.put('/field-ticket', json={'id': ticket_id, 'status': 'called'}, headers=headers)
    assert response.status_code == 200
    assert [log['status'] for log in response.get_json()['ticket']['statusLogs']] == ['pending', 'called']

    assert client.put('/field-ticket', json={'id': ticket_id}, headers=headers).status_code == 400
    assert client.put('/field-ticket', json={'id': ticket_id, 'status': 'gone'}, headers=headers).status_code == 400
    assert client.put('/field-ticket', json={'id': 999, 'status': 'called'}, headers=headers).status_code == 404


def test_field_sort_key_newest_first_on_ties():
    start = datetime(2025, 6, 15)
    older = SimpleNamespace(priority='HIGH', due_date=None, created_at=datetime(2025, 6, 1))
    newer = SimpleNamespace(priority='HIGH', due_date=None, created_at=datetime(2025, 6, 2))
    assert sorted([older, newer], key=lambda t: field_sort_key(t, start)) == [newer, older]
