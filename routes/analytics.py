from functools import wraps

from flask import Blueprint, jsonify, request

from services import admin_required, analytics
from utils import ServerError

analytics_bp = Blueprint('analytics', __name__, url_prefix='/api/analytics')

def report(f):
    """Guard a report view and render its result or a provider failure"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return jsonify(f(*args, **kwargs))
        except analytics.AnalyticsError as e:
            raise ServerError('analytics_unavailable', detail=str(e)) from e
    return admin_required(decorated_function)

@analytics_bp.route('/overview')
@report
def overview():
    return analytics.overview(request.args.get('period'))

@analytics_bp.route('/devices')
@report
def devices():
    return analytics.devices(request.args.get('period'))

@analytics_bp.route('/sources')
@report
def sources():
    return analytics.sources(request.args.get('period'))

@analytics_bp.route('/top-pages')
@report
def top_pages():
    return analytics.top_pages(request.args.get('period'))

@analytics_bp.route('/session-duration')
@report
def session_duration():
    return analytics.session_duration(request.args.get('period'))

@analytics_bp.route('/conversions')
@report
def conversions():
    return analytics.conversions(request.args.get('period'))

@analytics_bp.route('/real-time')
@report
def real_time():
    return analytics.realtime()
