from datetime import timedelta

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from models import db, Admin, Review, ReviewLink
from services import issue_admin_token
from services.mail import mail
from utils.helpers import generate_link_token, utcnow

ADMIN_PASSWORD = 'correct-horse'


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'MAIL_SERVER': 'localhost',
        'MAIL_DEFAULT_SENDER': 'test@ta-travel.ru',
        'ADMIN_EMAIL': 'office@ta-travel.ru',
        'YANDEX_OAUTH_TOKEN': 'test-yandex-token',
        'GA_PROPERTY_ID': '511345803',
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox():
    with mail.record_messages() as messages:
        yield messages


@pytest.fixture
def admin(app):
    with app.app_context():
        account = Admin(
            username='olga',
            email='olga@ta-travel.ru',
            password_hash=generate_password_hash(ADMIN_PASSWORD),
        )
        db.session.add(account)
        db.session.commit()
        return {'id': account.id, 'username': account.username, 'email': account.email}


@pytest.fixture
def auth_headers(app, admin):
    with app.app_context():
        token = issue_admin_token(db.session.get(Admin, admin['id']))
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def make_link(app):
    """Create a review link directly in the store and return its token"""
    def _make_link(expires_in=timedelta(hours=1), used=False, guest_name='Anna', created_at=None):
        with app.app_context():
            link = ReviewLink(
                token=generate_link_token(),
                guest_name=guest_name,
                expires_at=utcnow() + expires_in,
                used=used,
            )
            if created_at is not None:
                link.created_at = created_at
            db.session.add(link)
            db.session.commit()
            return link.token
    return _make_link


@pytest.fixture
def make_review(app):
    """Create a review directly in the store and return its id"""
    def _make_review(name='Guest', approved=False, created_at=None):
        with app.app_context():
            review = Review(
                token=generate_link_token(),
                name=name,
                location='Moscow',
                date='Mar/2025',
                comment='Wonderful trip',
                approved=approved,
            )
            if created_at is not None:
                review.created_at = created_at
            db.session.add(review)
            db.session.commit()
            return review.id
    return _make_review


def review_payload(token, /, **overrides):
    payload = {
        'token': token,
        'name': 'Anna',
        'location': 'Kazan',
        'date': 'Aug/2025',
        'rating': 5,
        'comment': 'Everything was organised perfectly.',
    }
    payload.update(overrides)
    return payload
