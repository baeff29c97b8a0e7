import logging
import sqlite3

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event

logger = logging.getLogger("main")

db = SQLAlchemy()


def _sqlite_pragmas(uri):
    """Connect listener: WAL for file databases, busy timeout for all SQLite"""

    def apply(dbapi_connection, connection_record):
        if not isinstance(dbapi_connection, sqlite3.Connection):
            return
        cursor = dbapi_connection.cursor()
        if uri.startswith("sqlite:///"):
            cursor.execute("PRAGMA journal_mode=WAL;")
        # The scan thread and API requests write concurrently
        cursor.execute("PRAGMA busy_timeout=30000;")
        cursor.close()

    return apply


def init_db(app):
    """Install connection pragmas and create any missing tables"""
    with app.app_context():
        event.listen(db.engine, "connect", _sqlite_pragmas(app.config.get("SQLALCHEMY_DATABASE_URI", "")))

        # Models must be imported for create_all to see their tables
        from nexuslib import models  # noqa: F401

        db.create_all()
        logger.info(f"Catalog database ready at {db.engine.url.render_as_string(hide_password=True)}")
