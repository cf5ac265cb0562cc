from datetime import datetime
from .database import db, isoformat

class ReviewLink(db.Model):
    """Single-use invitation allowing one guest to submit one review."""
    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(64), nullable=False, unique=True)
    guest_name = db.Column(db.String(100))
    expires_at = db.Column(db.DateTime, nullable=False)
    used = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'token': self.token,
            'guestName': self.guest_name,
            'expiresAt': isoformat(self.expires_at),
            'used': self.used,
            'createdAt': isoformat(self.created_at),
        }
