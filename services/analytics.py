"""
Google Analytics 4 reports for the admin dashboard.

Each report runs one Data API query against the configured GA4 property and
reshapes the rows into plain JSON-friendly values.
"""
import logging

from flask import current_app
from google.analytics.data_v1beta import BetaAnalyticsDataClient
from google.analytics.data_v1beta.types import (
    DateRange, Dimension, Filter, FilterExpression, Metric, OrderBy,
    RunRealtimeReportRequest, RunReportRequest,
)
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

logger = logging.getLogger(__name__)

# Relative date ranges understood by the Data API, by dashboard period
PERIODS = {
    'daily': '1daysAgo',
    'weekly': '7daysAgo',
    'monthly': '30daysAgo',
    '6months': '180daysAgo',
    'yearly': '365daysAgo',
}
DEFAULT_PERIOD = 'monthly'

WEEKDAYS = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
TRACKED_EVENTS = ['click', 'page_view', 'user_engagement']
TOP_PAGES_LIMIT = 5
HIDDEN_PAGE_PREFIX = '/admin'

_client = None


class AnalyticsError(Exception):
    """Raised when the analytics provider is not configured or a report fails."""


def get_client():
    """Shared Data API client, built on first use"""
    global _client
    if _client is None:
        key_file = current_app.config.get('GA_KEY_FILE')
        try:
            if key_file:
                _client = BetaAnalyticsDataClient.from_service_account_file(key_file)
            else:
                _client = BetaAnalyticsDataClient()
        except (GoogleAuthError, OSError, ValueError) as e:
            logger.error("[Analytics] Could not create client: %s", e)
            raise AnalyticsError(str(e)) from e
    return _client

def date_range(period=None, default=DEFAULT_PERIOD):
    """Translate a dashboard period into a Data API date range"""
    start = PERIODS.get(period) or PERIODS[default]
    return DateRange(start_date=start, end_date='today')

def _property():
    property_id = current_app.config.get('GA_PROPERTY_ID')
    if not property_id:
        raise AnalyticsError("GA_PROPERTY_ID is not configured")
    return f"properties/{property_id}"

def _run(name, request, method='run_report'):
    try:
        response = getattr(get_client(), method)(request=request)
    except (GoogleAPIError, GoogleAuthError) as e:
        logger.error("[Analytics] %s report failed: %s", name, e)
        raise AnalyticsError(str(e)) from e
    return list(response.rows)

def _report(name, period, metrics, dimensions=(), default_period=DEFAULT_PERIOD, **extra):
    request = RunReportRequest(
        property=_property(),
        date_ranges=[date_range(period, default_period)],
        dimensions=[Dimension(name=dimension) for dimension in dimensions],
        metrics=[Metric(name=metric) for metric in metrics],
        **extra,
    )
    return _run(name, request)

def _number(value, cast=int):
    try:
        return cast(float(value))
    except (TypeError, ValueError):
        return cast(0)


def overview(period=None):
    """Visitors, page views, average session length and bounce rate"""
    rows = _report('overview', period, [
        'totalUsers', 'screenPageViews', 'averageSessionDuration', 'bounceRate',
    ])
    values = [metric.value for metric in rows[0].metric_values] if rows else [0, 0, 0, 0]
    return {
        'totalVisitors': _number(values[0]),
        'pageViews': _number(values[1]),
        'avgSessionDuration': round(_number(values[2], float), 2),
        'bounceRate': round(_number(values[3], float), 2),
    }

def devices(period=None):
    rows = _report('devices', period, ['totalUsers'], ['deviceCategory'])
    return {row.dimension_values[0].value: _number(row.metric_values[0].value) for row in rows}

def sources(period=None):
    rows = _report('sources', period, ['sessions'], ['sessionSourceMedium'], limit=10)
    return [
        {'source': row.dimension_values[0].value, 'sessions': _number(row.metric_values[0].value)}
        for row in rows
    ]

def top_pages(period=None):
    """Most viewed pages, admin pages excluded"""
    rows = _report(
        'top-pages', period, ['screenPageViews'], ['pagePath'],
        order_bys=[OrderBy(metric=OrderBy.MetricOrderBy(metric_name='screenPageViews'), desc=True)],
        limit=10,
    )
    pages = [
        {'path': row.dimension_values[0].value, 'views': _number(row.metric_values[0].value)}
        for row in rows
    ]
    return [page for page in pages if not page['path'].startswith(HIDDEN_PAGE_PREFIX)][:TOP_PAGES_LIMIT]

def session_duration(period=None):
    """Average session length per weekday, Sunday first"""
    rows = _report('session-duration', period, ['averageSessionDuration'], ['dayOfWeek'],
                   default_period='weekly')
    days = []
    for row in rows:
        index = _number(row.dimension_values[0].value)
        if 0 <= index < len(WEEKDAYS):
            days.append((index, _number(row.metric_values[0].value, float)))
    return [{'day': WEEKDAYS[index], 'seconds': seconds} for index, seconds in sorted(days)]

def conversions(period=None):
    """Counts for the tracked events, zero when an event never fired"""
    rows = _report(
        'conversions', period, ['eventCount'], ['eventName'],
        dimension_filter=FilterExpression(filter=Filter(
            field_name='eventName',
            in_list_filter=Filter.InListFilter(values=TRACKED_EVENTS, case_sensitive=False),
        )),
    )
    counts = {row.dimension_values[0].value: _number(row.metric_values[0].value) for row in rows}
    return [{'event': event, 'count': counts.get(event, 0)} for event in TRACKED_EVENTS]

def realtime():
    """Users active right now and the screens they are on"""
    rows = _run('real-time', RunRealtimeReportRequest(
        property=_property(),
        dimensions=[Dimension(name='unifiedScreenName')],
        metrics=[Metric(name='activeUsers')],
    ), method='run_realtime_report')
    pages = [
        {'path': row.dimension_values[0].value, 'users': _number(row.metric_values[0].value)}
        for row in rows
    ]
    return {
        'activeUsers': sum(page['users'] for page in pages),
        'topActivePages': pages,
    }
