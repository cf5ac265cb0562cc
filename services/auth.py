import logging
from functools import wraps

from flask import current_app, g, request
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from models import db, Admin
from utils.errors import Unauthorized

logger = logging.getLogger(__name__)

ADMIN_TOKEN_SALT = 'admin-auth'
ADMIN_TOKEN_MAX_AGE = 7 * 24 * 60 * 60  # 7 days

def get_serializer():
    """Get the admin credential serializer"""
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=ADMIN_TOKEN_SALT)

def issue_admin_token(admin):
    """Sign a bearer credential carrying the admin's id and role"""
    return get_serializer().dumps({'id': admin.id, 'role': admin.role})

def verify_admin_token(credential):
    """Resolve a bearer credential to the Admin it was issued for"""
    if not credential:
        raise Unauthorized()

    max_age = current_app.config.get('ADMIN_TOKEN_MAX_AGE', ADMIN_TOKEN_MAX_AGE)
    try:
        payload = get_serializer().loads(credential, max_age=max_age)
    except SignatureExpired:
        raise Unauthorized('invalid_admin_token', detail='credential expired')
    except BadData:
        raise Unauthorized('invalid_admin_token', detail='bad signature')

    if not isinstance(payload, dict) or 'id' not in payload:
        raise Unauthorized('invalid_admin_token', detail='malformed payload')

    admin = db.session.get(Admin, payload['id'])
    if admin is None or admin.role != payload.get('role'):
        raise Unauthorized('invalid_admin_token', detail='unknown admin')
    return admin

def bearer_credential():
    """Extract the credential from an 'Authorization: Bearer ...' header"""
    header = request.headers.get('Authorization', '')
    scheme, _, credential = header.partition(' ')
    if scheme.lower() != 'bearer':
        return None
    return credential.strip() or None

def admin_required(f):
    """Decorator to require a valid admin bearer credential"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.admin = verify_admin_token(bearer_credential())
        except Unauthorized:
            logger.warning("[Auth] Rejected admin request to %s", request.endpoint)
            raise
        return f(*args, **kwargs)
    return decorated_function
