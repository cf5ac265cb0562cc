from .helpers import generate_link_token, generate_reset_code, parse_datetime, require_fields, normalize_email
from .i18n import get_language, t
from .errors import ApiError, BadRequest, Unauthorized, NotFound, Conflict, InvalidLink, ServerError

__all__ = [
    'generate_link_token', 'generate_reset_code', 'parse_datetime', 'require_fields', 'normalize_email',
    'get_language', 't',
    'ApiError', 'BadRequest', 'Unauthorized', 'NotFound', 'Conflict', 'InvalidLink', 'ServerError',
]
