import datetime as dt

import pytest
import requests

from chronos.activity import (
    GitlabClient,
    LinearClient,
    activity_lines,
    fetch_activity,
    format_gitlab_line,
    format_linear_line,
)
from chronos.errors import ApiError
from chronos.models import ActivityItem

from conftest import DummySession, FakeResponse

START = dt.datetime(2024, 3, 1, tzinfo=dt.timezone.utc)
END = dt.datetime(2024, 3, 31, 23, 59, 59, tzinfo=dt.timezone.utc)


def test_linear_client_queries_recent_issues():
    payload = {'data': {'issues': {'nodes': [
        {'id': '1', 'identifier': 'ENG-12', 'title': 'Fix totals', 'updatedAt': '2024-03-02T15:04:00.000Z'},
    ]}}}
    session = DummySession(FakeResponse(200, payload))
    client = LinearClient('lin-key', 'https://linear.example/graphql', timeout=3, session=session)
    items = client.last_activity(START, END)

    assert session.headers['Authorization'] == 'lin-key'
    method, url, timeout, kwargs = session.requests[0]
    assert (method, url, timeout) == ('POST', 'https://linear.example/graphql', 3)
    assert kwargs['json']['variables'] == {'from': '2024-03-01T00:00:00Z', 'to': '2024-03-31T23:59:59Z', 'first': 50}
    assert 'issues(' in kwargs['json']['query']
    assert items == [ActivityItem('linear', 'ENG-12', 'Fix totals', '2024-03-02T15:04:00.000Z')]


def test_linear_graphql_errors_raise():
    session = DummySession(FakeResponse(200, {'errors': [{'message': 'bad token'}]}))
    with pytest.raises(ApiError, match='bad token'):
        LinearClient('k', session=session).last_activity(START, END)


def test_gitlab_client_reads_events():
    payload = [
        {'action_name': 'opened', 'target_title': 'Grid editor', 'created_at': '2024-03-02T10:00:00Z'},
        {'action_name': 'pushed to', 'target_title': None, 'push_data': {'ref': 'main'}},
        {'action_name': 'joined'},
    ]
    session = DummySession(FakeResponse(200, payload))
    client = GitlabClient('gl-key', '42', 'https://gitlab.example/api/v4', session=session)
    items = client.last_activity(START, END)

    assert session.headers['PRIVATE-TOKEN'] == 'gl-key'
    method, url, _, kwargs = session.requests[0]
    assert (method, url) == ('GET', 'https://gitlab.example/api/v4/users/42/events')
    assert kwargs['params'] == {'after': '2024-03-01', 'before': '2024-03-31'}
    assert [(i.label, i.title) for i in items] == [('opened', 'Grid editor'), ('pushed to', 'main'), ('joined', 'N/A')]


def test_gitlab_http_error_raises():
    session = DummySession(FakeResponse(401, None, text='unauthorized'))
    with pytest.raises(ApiError) as info:
        GitlabClient('k', '1', session=session).last_activity(START, END)
    assert info.value.status == 401


def test_panel_lines():
    linear = ActivityItem('linear', 'ENG-1', 'Title', '2024-01-02T15:04:05Z')
    assert format_linear_line(linear) == 'Jan 2 15:04 | ENG-1    | Title'
    gitlab = ActivityItem('gitlab', 'opened', 'MR')
    assert format_gitlab_line(gitlab) == 'opened       | MR'
    assert activity_lines([], 'Linear') == ['No recent Linear activity found']
    assert activity_lines([gitlab], 'Git') == ['opened       | MR']


def test_fetch_activity_collects_failures():
    class Failing:
        def last_activity(self, start, end):
            raise ApiError('network down')

    class Working:
        def last_activity(self, start, end):
            return [ActivityItem('gitlab', 'opened', 'x')]

    errors = []
    out = fetch_activity({'Linear': Failing(), 'Git': Working(), 'Other': None}, START, END, errors=errors)
    assert out['Linear'] == []
    assert out['Other'] == []
    assert len(out['Git']) == 1
    assert errors == ['Failed to load Linear activity: network down']


def test_transport_errors_become_api_errors():
    session = DummySession(exc=requests.Timeout('slow'))
    with pytest.raises(ApiError, match='slow'):
        LinearClient('k', session=session).last_activity(START, END)
