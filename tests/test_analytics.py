from types import SimpleNamespace

import pytest
from google.api_core.exceptions import PermissionDenied

from services import analytics


def _row(dimensions, metrics):
    return SimpleNamespace(
        dimension_values=[SimpleNamespace(value=value) for value in dimensions],
        metric_values=[SimpleNamespace(value=value) for value in metrics],
    )


class FakeDataClient:
    """Returns canned rows and records every request it receives"""

    def __init__(self, rows=(), error=None):
        self.rows = list(rows)
        self.error = error
        self.requests = []

    def run_report(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return SimpleNamespace(rows=self.rows)

    run_realtime_report = run_report


@pytest.fixture
def data_client(monkeypatch):
    client = FakeDataClient()
    monkeypatch.setattr('services.analytics.get_client', lambda: client)
    return client


def test_reports_require_admin(client, data_client):
    response = client.get('/api/analytics/overview')

    assert response.status_code == 401
    assert data_client.requests == []


def test_overview(client, auth_headers, data_client):
    data_client.rows = [_row([], ['1520', '4810', '95.4567', '0.41234'])]

    response = client.get('/api/analytics/overview', headers=auth_headers)

    assert response.status_code == 200
    assert response.get_json() == {
        'totalVisitors': 1520,
        'pageViews': 4810,
        'avgSessionDuration': 95.46,
        'bounceRate': 0.41,
    }
    request = data_client.requests[0]
    assert request.property == 'properties/511345803'
    assert request.date_ranges[0].start_date == '30daysAgo'
    assert [metric.name for metric in request.metrics] == [
        'totalUsers', 'screenPageViews', 'averageSessionDuration', 'bounceRate']


def test_overview_without_data(client, auth_headers, data_client):
    body = client.get('/api/analytics/overview', headers=auth_headers).get_json()

    assert body == {'totalVisitors': 0, 'pageViews': 0, 'avgSessionDuration': 0.0, 'bounceRate': 0.0}


@pytest.mark.parametrize('period, start', [
    ('daily', '1daysAgo'),
    ('weekly', '7daysAgo'),
    ('6months', '180daysAgo'),
    ('yearly', '365daysAgo'),
    ('forever', '30daysAgo'),
])
def test_period_selects_date_range(client, auth_headers, data_client, period, start):
    client.get('/api/analytics/devices', query_string={'period': period}, headers=auth_headers)

    assert data_client.requests[0].date_ranges[0].start_date == start


def test_devices(client, auth_headers, data_client):
    data_client.rows = [_row(['desktop'], ['40']), _row(['mobile'], ['75']), _row(['tablet'], ['3'])]

    body = client.get('/api/analytics/devices', headers=auth_headers).get_json()

    assert body == {'desktop': 40, 'mobile': 75, 'tablet': 3}


def test_sources(client, auth_headers, data_client):
    data_client.rows = [_row(['google / organic'], ['120']), _row(['(direct) / (none)'], ['60'])]

    body = client.get('/api/analytics/sources', headers=auth_headers).get_json()

    assert body == [
        {'source': 'google / organic', 'sessions': 120},
        {'source': '(direct) / (none)', 'sessions': 60},
    ]
    assert data_client.requests[0].limit == 10


def test_top_pages_hide_admin_and_keep_five(client, auth_headers, data_client):
    paths = ['/', '/admin', '/tours', '/admin/reviews', '/about', '/contacts', '/reviews', '/visa']
    data_client.rows = [_row([path], [str(100 - index)]) for index, path in enumerate(paths)]

    body = client.get('/api/analytics/top-pages', headers=auth_headers).get_json()

    assert [page['path'] for page in body] == ['/', '/tours', '/about', '/contacts', '/reviews']
    assert body[0]['views'] == 100
    order = data_client.requests[0].order_bys[0]
    assert order.desc is True
    assert order.metric.metric_name == 'screenPageViews'


def test_session_duration_by_weekday(client, auth_headers, data_client):
    data_client.rows = [_row(['3'], ['61.5']), _row(['0'], ['40.25']), _row(['9'], ['1'])]

    body = client.get('/api/analytics/session-duration', headers=auth_headers).get_json()

    assert body == [{'day': 'Sun', 'seconds': 40.25}, {'day': 'Wed', 'seconds': 61.5}]
    assert data_client.requests[0].date_ranges[0].start_date == '7daysAgo'


def test_conversions_fill_missing_events(client, auth_headers, data_client):
    data_client.rows = [_row(['page_view'], ['900'])]

    body = client.get('/api/analytics/conversions', headers=auth_headers).get_json()

    assert body == [
        {'event': 'click', 'count': 0},
        {'event': 'page_view', 'count': 900},
        {'event': 'user_engagement', 'count': 0},
    ]
    event_filter = data_client.requests[0].dimension_filter.filter
    assert event_filter.field_name == 'eventName'
    assert list(event_filter.in_list_filter.values) == ['click', 'page_view', 'user_engagement']


def test_real_time(client, auth_headers, data_client):
    data_client.rows = [_row(['Home'], ['4']), _row(['Tours'], ['2'])]

    body = client.get('/api/analytics/real-time', headers=auth_headers).get_json()

    assert body == {
        'activeUsers': 6,
        'topActivePages': [{'path': 'Home', 'users': 4}, {'path': 'Tours', 'users': 2}],
    }


def test_provider_failure_is_a_server_error(client, auth_headers, data_client):
    data_client.error = PermissionDenied('service account lacks access')

    response = client.get('/api/analytics/sources', headers=auth_headers)

    assert response.status_code == 500
    assert 'service account' not in response.get_data(as_text=True)


def test_missing_property_is_a_server_error(app, client, auth_headers, data_client):
    app.config['GA_PROPERTY_ID'] = None

    response = client.get('/api/analytics/overview', headers=auth_headers)

    assert response.status_code == 500
    assert data_client.requests == []


def test_client_is_built_from_key_file(app, monkeypatch):
    built = []
    monkeypatch.setattr(analytics, '_client', None)
    monkeypatch.setattr(
        analytics.BetaAnalyticsDataClient, 'from_service_account_file',
        classmethod(lambda cls, path: built.append(path) or 'client'),
    )
    app.config['GA_KEY_FILE'] = '/etc/secrets/GA_KEY.json'

    with app.app_context():
        assert analytics.get_client() == 'client'
        assert analytics.get_client() == 'client'

    assert built == ['/etc/secrets/GA_KEY.json']
