# extensions.py
"""
Flask extensions initialization.
Extensions are created here without an app and bound to it in the application factory,
so models and services can import them without circular imports.
"""

import logging

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Initialize extensions without app binding
db = SQLAlchemy()
migrate = Migrate()

logger = logging.getLogger(__name__)


def init_extensions(app):
    """
    Initialize all extensions with proper order and configuration.

    Args:
        app: Flask application instance
    """
    # Database first, migrations depend on it
    db.init_app(app)
    migrate.init_app(app, db)

    # Make sure every model is registered on the metadata before `flask db` or create_all runs
    from coursehub import models  # noqa: F401

    app.logger.info("Extensions initialized successfully in correct order")
