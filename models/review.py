from datetime import datetime
from .database import db, isoformat

class Review(db.Model):
    """Guest testimonial, hidden until an admin approves it."""
    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(64), nullable=False)  # link that authorized it
    name = db.Column(db.String(100), nullable=False)
    location = db.Column(db.String(100), nullable=False)
    date = db.Column(db.String(20), nullable=False)  # display string, e.g. Mar/2025
    image_url = db.Column(db.String(500))
    rating = db.Column(db.Integer)
    comment = db.Column(db.Text, nullable=False)
    approved = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'token': self.token,
            'name': self.name,
            'location': self.location,
            'date': self.date,
            'imageUrl': self.image_url,
            'rating': self.rating,
            'comment': self.comment,
            'approved': self.approved,
            'createdAt': isoformat(self.created_at),
        }
