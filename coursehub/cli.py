# cli.py
"""
Flask CLI commands for coursehub.
"""

import click
from flask import current_app
from flask.cli import with_appcontext
from werkzeug.utils import import_string
from sqlalchemy.exc import SQLAlchemyError

from coursehub.extensions import db


def _chunk_size_from_config():
    """Read DROPOUT_CHUNK_SIZE as a positive integer."""
    raw = current_app.config.get('DROPOUT_CHUNK_SIZE', 1000)
    try:
        chunk_size = int(raw)
    except (TypeError, ValueError):
        chunk_size = 0

    if chunk_size < 1:
        raise ValueError(f"DROPOUT_CHUNK_SIZE must be a positive integer, got {raw!r}")
    return chunk_size


@click.command("enrollments:dropout")
@with_appcontext
def dropout_enrollments():
    """Dropout enrollments on specified date."""
    from coursehub.services.dropout_service import DropoutService
    from coursehub.services.exceptions import StorageError

    dry_run = current_app.config.get('DROPOUT_DRY_RUN', False)

    try:
        chunk_size = _chunk_size_from_config()
        deadline_resolver = import_string(current_app.config['DROPOUT_DEADLINE_RESOLVER'])

        click.echo("Starting dropout process...")

        # The whole run shares db.session; it is committed or rolled back only here
        results = DropoutService.run(
            db.session,
            deadline_resolver=deadline_resolver,
            chunk_size=chunk_size
        )

        click.echo(f"Deadline: {results['deadline'].isoformat()}")
        click.echo(f"Enrollments to be dropped out: {results['checked']}")
        click.echo(f"Excluded from drop out: {results['excluded']}")
        click.echo(f"Final dropped out enrollments: {results['dropped']}")
        click.echo(f"Elapsed: {results['duration']:.3f}s over {results['chunks']} chunk(s)")

        if dry_run:
            db.session.rollback()
            click.echo("Dry run: changes rolled back.")
        else:
            try:
                db.session.commit()
            except SQLAlchemyError as e:
                raise StorageError(f"Dropout commit failed: {str(e)}") from e

    except Exception as e:
        db.session.rollback()
        click.echo(f"Dropout process failed: {str(e)}", err=True)
        raise


@click.command("init-db")
@with_appcontext
def init_database():
    """Initialize the database with tables."""
    try:
        db.create_all()
        click.echo("Database tables created.")

    except Exception as e:
        click.echo(f"Database initialization failed: {str(e)}", err=True)
        raise


def register_cli_commands(app):
    """
    Register all CLI commands with the Flask application.

    Args:
        app: Flask application instance
    """
    app.cli.add_command(dropout_enrollments)
    app.cli.add_command(init_database)


# # Create tables (or use `flask db upgrade` with migrations)
# flask init-db
#
# # Drop stale enrollments; set DROPOUT_DRY_RUN=true to roll the run back instead of committing
# flask enrollments:dropout
