"""
Database configuration and initialization for the Gradebook Export service
"""

from functools import wraps
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine
import sqlite3

# Initialize SQLAlchemy instance
db = SQLAlchemy()

@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite"""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

def init_db(app):
    """Initialize database with application context"""
    with app.app_context():
        # Import all models to ensure they are registered
        from models import ExportRecord  # noqa: F401

        db.create_all()
        app.logger.debug("Database initialized")

class DatabaseError(Exception):
    """Custom exception for database operations"""
    pass

def handle_db_error(func):
    """Decorator to handle database errors gracefully"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            db.session.rollback()
            raise DatabaseError(f"Database operation failed: {str(e)}") from e
    return wrapper
