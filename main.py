"""
Main application entry point for the e-waste recycling workflow service.
"""
from flask import Flask
import logging
from flask_injector import FlaskInjector

from config.injection import ServiceModule
from routes.health import health_bp
from routes.submissions import submissions_bp
from routes.organization import organization_bp
from routes.notifications import notifications_bp
from routes.users import users_bp
from routes.assistant import assistant_bp
from database.connection import init_database
import config.settings as settings

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(extra_modules=None):
    """
    Create and configure the Flask application.

    Args:
        extra_modules: Additional injector modules whose bindings override ServiceModule
    """
    app = Flask(__name__)

    # Configure Flask settings
    app.config['MAX_CONTENT_LENGTH'] = settings.MAX_CONTENT_LENGTH
    app.config['DEBUG'] = settings.DEBUG

    # Initialize database tables
    try:
        init_database()
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")

    # Register blueprints
    app.register_blueprint(health_bp)
    app.register_blueprint(submissions_bp)
    app.register_blueprint(organization_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(assistant_bp)

    # Configure dependency injection
    FlaskInjector(app=app, modules=[ServiceModule] + list(extra_modules or []))

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(
        host=settings.HOST,
        port=settings.PORT,
        debug=settings.DEBUG
    )
