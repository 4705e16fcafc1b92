"""Initialize the Flask app and Firebase."""

import json
import os

import firebase_admin
from firebase_admin import credentials
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from .constants import DEFAULT_CODE_MAX_ATTEMPTS


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from the first credentials found."""
    cred = None
    project_id = os.environ.get("FIREBASE_PROJECT_ID")

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id") or project_id
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id") or project_id
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        cred = credentials.ApplicationDefault()

    if firebase_admin._apps:
        app.logger.info("Firebase app already initialized.")
        return

    options = {"projectId": project_id} if project_id else None
    firebase_admin.initialize_app(cred, options)


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        REVIEW_TIMEZONE=os.environ.get("REVIEW_TIMEZONE") or None,
        GROUP_CODE_MAX_ATTEMPTS=int(
            os.environ.get("GROUP_CODE_MAX_ATTEMPTS") or DEFAULT_CODE_MAX_ATTEMPTS
        ),
        REFERRAL_CODE_MAX_ATTEMPTS=int(
            os.environ.get("REFERRAL_CODE_MAX_ATTEMPTS") or DEFAULT_CODE_MAX_ATTEMPTS
        ),
        LOG_LEVEL=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
    )

    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Register blueprints
    from . import user as user_bp

    app.register_blueprint(user_bp.bp)

    from . import family as family_bp

    app.register_blueprint(family_bp.bp)

    from . import payments as payments_bp

    app.register_blueprint(payments_bp.bp)

    from . import reviews as reviews_bp

    app.register_blueprint(reviews_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
