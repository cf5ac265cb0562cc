from datetime import datetime
from .database import db, isoformat

class NewsletterSubscriber(db.Model):
    """Database model for newsletter email subscriptions."""
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'createdAt': isoformat(self.created_at),
        }
