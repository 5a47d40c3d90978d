# app.py
"""
Main application entry point.
Lets `flask` discover the application from the project root, e.g. `flask enrollments:dropout`.
"""

import os

from coursehub import create_app


def create_application():
    """
    Create and configure the Flask application.

    Returns:
        Flask: Configured application instance
    """
    # Get configuration from environment
    config_name = os.environ.get('FLASK_ENV', 'development')

    return create_app(config_name)


# Create the application instance
app = create_application()
