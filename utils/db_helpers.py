"""
Database helper utilities for the Gradebook Export service
"""

from database import db, handle_db_error
from sqlalchemy.exc import IntegrityError

@handle_db_error
def safe_add_and_commit(obj):
    """Safely add object to database with error handling"""
    try:
        db.session.add(obj)
        db.session.commit()
        return True, "Record added successfully"
    except IntegrityError as e:
        db.session.rollback()
        if 'UNIQUE constraint failed' in str(e):
            return False, "Record with this identifier already exists"
        return False, "Database constraint violation"

@handle_db_error
def safe_delete_and_commit(obj):
    """Safely delete object from database with error handling"""
    db.session.delete(obj)
    db.session.commit()
    return True, "Record deleted successfully"

@handle_db_error
def safe_update_and_commit():
    """Safely commit database changes with error handling"""
    db.session.commit()
    return True, "Records updated successfully"
