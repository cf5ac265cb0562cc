#!/usr/bin/env python3
"""
TA Travel API
A Flask backend for the TA Travel website: admin accounts, guest reviews
collected through single-use invitation links, newsletter signups, the order
form relay, a cloud storage proxy for images and Google Analytics reports.
"""

import logging
import os

import click
from dotenv import load_dotenv
from flask import Flask, g, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash

from models import db, Admin
from services.mail import mail
from services.auth import ADMIN_TOKEN_MAX_AGE
from utils import t, ApiError, ServerError
from routes import register_blueprints

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = ['http://localhost:3000', 'http://localhost:5000', 'https://www.ta-travel.ru']

def create_app(test_config=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///ta_travel.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['ADMIN_TOKEN_MAX_AGE'] = int(os.environ.get('ADMIN_TOKEN_MAX_AGE', ADMIN_TOKEN_MAX_AGE))

    # Mail
    app.config['MAIL_SERVER'] = os.environ.get('MAIL_SERVER')
    app.config['MAIL_PORT'] = int(os.environ.get('MAIL_PORT', '587'))
    app.config['MAIL_USE_TLS'] = os.environ.get('MAIL_USE_TLS', 'true').lower() == 'true'
    app.config['MAIL_USERNAME'] = os.environ.get('MAIL_USERNAME')
    app.config['MAIL_PASSWORD'] = os.environ.get('MAIL_PASSWORD')
    app.config['MAIL_DEFAULT_SENDER'] = os.environ.get('MAIL_DEFAULT_SENDER', 'TA Travel <info@ta-travel.ru>')
    app.config['ADMIN_EMAIL'] = os.environ.get('ADMIN_EMAIL')

    # File storage
    app.config['YANDEX_OAUTH_TOKEN'] = os.environ.get('YANDEX_OAUTH_TOKEN')

    # Google Analytics 4
    app.config['GA_PROPERTY_ID'] = os.environ.get('GA_PROPERTY_ID')
    app.config['GA_KEY_FILE'] = os.environ.get('GA_KEY_FILE')

    if test_config:
        app.config.update(test_config)

    # Handle PostgreSQL URL format for SQLAlchemy 2.0+
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = (
            app.config['SQLALCHEMY_DATABASE_URI'].replace('postgres://', 'postgresql://', 1)
        )

    logging.basicConfig(
        level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(name)s %(levelname)s %(message)s',
    )

    # Initialize extensions
    db.init_app(app)
    mail.init_app(app)
    Migrate(app, db)

    origins = list(ALLOWED_ORIGINS)
    if os.environ.get('PROJECT_URL'):
        origins.append(os.environ['PROJECT_URL'])
    CORS(app, origins=origins, methods=['GET', 'POST', 'DELETE', 'PUT', 'PATCH'])

    # Register blueprints
    register_blueprints(app)
    register_error_handlers(app)
    register_commands(app)

    return app

def register_error_handlers(app):
    """Render every failure as localized JSON"""

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error("[API] %s: %s", error.message_key, error.detail)
        else:
            logger.info("[API] %s %s: %s", error.status_code, error.message_key, error.detail)

        body = {'success': False, 'message': t(error.message_key)}
        # Admins get operational detail, but never for server errors
        if getattr(g, 'admin', None) is not None and error.status_code < 500 and error.detail:
            body['detail'] = error.detail
        return jsonify(body), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        logger.exception("[API] Database error")
        return handle_api_error(ServerError())

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'success': False, 'message': error.description}), error.code

def register_commands(app):
    """Flask CLI commands for provisioning"""

    @app.cli.command('create-admin')
    @click.option('--username', required=True)
    @click.option('--email', required=True)
    @click.option('--password', required=True)
    def create_admin(username, email, password):
        """Create an admin account, or update the one with this username/email."""
        email = email.strip().lower()
        password_hash = generate_password_hash(password)

        existing = Admin.query.filter(or_(Admin.username == username, Admin.email == email)).first()
        if existing:
            existing.username = username
            existing.email = email
            existing.password_hash = password_hash
            db.session.commit()
            click.echo(f"Updated existing admin: {existing.username}")
        else:
            admin = Admin(username=username, email=email, password_hash=password_hash, role='admin')
            db.session.add(admin)
            db.session.commit()
            click.echo(f"Created admin: {admin.username}")

    # Database migrations are handled by Flask-Migrate
    # Run: flask db upgrade (in production)

# Create the application
app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=int(os.environ.get('PORT', '5000')))
