# __init__.py
"""
Application factory for the coursehub system.
The Flask application here is a container for configuration, the database and CLI commands.
"""

import os
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask
from flask.logging import default_handler
from dotenv import load_dotenv

from coursehub.config import get_config
from coursehub.extensions import init_extensions, db


def setup_logging(app):
    """
    Configure structured logging for the application.

    Args:
        app: Flask application instance
    """
    log_format = logging.Formatter(
        '%(asctime)s %(levelname)s %(name)s %(threadName)s : %(message)s'
    )
    level = logging.DEBUG if app.debug else logging.INFO

    handlers = []

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_format)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    # File handler with rotation
    if app.config.get('LOG_TO_FILE'):
        log_dir = app.config['LOG_DIR']
        os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'coursehub.log'),
            maxBytes=1024 * 1024 * 10,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(log_format)
        file_handler.setLevel(logging.INFO)
        handlers.append(file_handler)

    app.logger.setLevel(level)
    app.logger.removeHandler(default_handler)
    if not app.logger.handlers:
        for handler in handlers:
            app.logger.addHandler(handler)

    # Job loggers share the app handlers
    for name in ('dropout_service', 'dropout_audit'):
        job_logger = logging.getLogger(name)
        job_logger.setLevel(logging.DEBUG)
        if not job_logger.handlers:
            for handler in handlers:
                job_logger.addHandler(handler)

    # Forcefully suppress SQLAlchemy logs
    sa_logger = logging.getLogger('sqlalchemy.engine')
    sa_logger.setLevel(logging.WARNING)
    sa_logger.propagate = False


def register_shell_context(app):
    """
    Register shell context for flask shell command.

    Args:
        app: Flask application instance
    """

    @app.shell_context_processor
    def make_shell_context():
        from coursehub.models import Enrollment, Exam, Submission, Activity
        return {
            'db': db,
            'Enrollment': Enrollment,
            'Exam': Exam,
            'Submission': Submission,
            'Activity': Activity,
        }


def create_app(config_name=None):
    """
    Application factory function.

    Args:
        config_name (str): Configuration name ('development', 'production', 'testing')

    Returns:
        Flask: Configured Flask application instance
    """
    # Load environment variables
    load_dotenv()

    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.environ.get('FLASK_ENV', 'development')
    app.config.from_object(get_config(config_name))

    setup_logging(app)
    app.logger.info(f"Starting application with config: {config_name}")

    init_extensions(app)

    register_shell_context(app)

    # Register CLI commands
    from .cli import register_cli_commands
    register_cli_commands(app)

    app.logger.info("Application factory completed successfully")

    return app
