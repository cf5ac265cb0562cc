from .admin import admin_bp
from .reviews import reviews_bp
from .newsletter import newsletter_bp
from .forms import forms_bp
from .storage import storage_bp
from .analytics import analytics_bp

def register_blueprints(app):
    """Register all blueprints with the Flask app"""
    app.register_blueprint(admin_bp)
    app.register_blueprint(reviews_bp)
    app.register_blueprint(newsletter_bp)
    app.register_blueprint(forms_bp)
    app.register_blueprint(storage_bp)
    app.register_blueprint(analytics_bp)
