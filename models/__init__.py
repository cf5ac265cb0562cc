from .database import db
from .admin import Admin
from .review_link import ReviewLink
from .review import Review
from .subscriber import NewsletterSubscriber

__all__ = ['db', 'Admin', 'ReviewLink', 'Review', 'NewsletterSubscriber']
