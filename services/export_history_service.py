"""
Export history service
Keeps a persistent log of generated exports for the dashboard
"""

import logging

from database import DatabaseError
from models.export import ExportRecord
from utils.db_helpers import safe_add_and_commit, safe_delete_and_commit, safe_update_and_commit

logger = logging.getLogger(__name__)

class ExportHistoryService:
    """Service for recording and listing generated exports"""

    @staticmethod
    def record(result):
        """Store an ExportResult; failures are logged and never fail the export"""
        record = ExportRecord(
            export_id=result.export_id,
            kind=result.kind,
            filename=result.filename,
            truncated=bool(result.truncated),
        )
        try:
            return safe_add_and_commit(record)
        except DatabaseError as e:
            logger.error("Could not record export %s: %s", result.export_id, e)
            return False, str(e)

    @staticmethod
    def get(export_id):
        return ExportRecord.query.filter_by(export_id=export_id).first()

    @staticmethod
    def mark_downloaded(export_id):
        record = ExportHistoryService.get(export_id)
        if record is None:
            return False, "Export not found"
        record.mark_downloaded()
        try:
            return safe_update_and_commit()
        except DatabaseError as e:
            logger.error("Could not update export %s: %s", export_id, e)
            return False, str(e)

    @staticmethod
    def remove(export_id):
        record = ExportHistoryService.get(export_id)
        if record is None:
            return False, "Export not found"
        return safe_delete_and_commit(record)

    @staticmethod
    def recent(limit=100, registry=None):
        """History entries, newest first, flagged with whether the file is still downloadable"""
        entries = []
        for record in ExportRecord.recent(limit):
            entry = record.to_dict()
            entry['available'] = registry is not None and registry.resolve(record.export_id) is not None
            entries.append(entry)
        return entries
