from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def isoformat(value):
    """Render a naive UTC datetime the way the frontend expects it."""
    if value is None:
        return None
    return value.isoformat(timespec='milliseconds') + 'Z'
