import os
import re
import secrets
from datetime import datetime, timezone

from flask import request

from .errors import BadRequest

# Configuration
LINK_TOKEN_BYTES = int(os.environ.get('LINK_TOKEN_BYTES', '16'))
RESET_CODE_DIGITS = 6

EMAIL_PATTERN = re.compile(r'\S+@\S+\.\S+')

def generate_link_token():
    """Generate an opaque hex token for a review invitation link"""
    return secrets.token_hex(LINK_TOKEN_BYTES)

def generate_reset_code():
    """Generate a 6-digit numeric password reset code (100000-999999)"""
    low = 10 ** (RESET_CODE_DIGITS - 1)
    return str(low + secrets.randbelow(9 * low))

def utcnow():
    """Naive UTC timestamp, matching what the models store"""
    return datetime.utcnow()

def parse_datetime(value):
    """Parse an ISO-8601 string into a naive UTC datetime, or None if invalid"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        # fromisoformat only learned the 'Z' suffix in 3.11
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

def clean_text(value):
    """Strip a submitted value; non-strings other than None become strings"""
    if value is None:
        return ''
    if not isinstance(value, str):
        value = str(value)
    return value.strip()

def require_fields(data, *names):
    """Pull required, non-empty string fields out of a request payload.

    Returns the cleaned values in the order requested and raises BadRequest
    naming every missing field.
    """
    values = [clean_text(data.get(name)) for name in names]
    missing = [name for name, value in zip(names, values) if not value]
    if missing:
        raise BadRequest('error_all_fields_required', detail=f"missing: {', '.join(missing)}")
    return values

def normalize_email(email):
    """Trim and lowercase an email address, rejecting malformed ones"""
    email = clean_text(email).lower()
    if not EMAIL_PATTERN.fullmatch(email):
        raise BadRequest('error_invalid_email', detail=email)
    return email

def request_data():
    """The request payload as a flat dict, whether sent as JSON or as a form"""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()
