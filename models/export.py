"""
Export history model for the Gradebook Export service
"""

from database import db
from datetime import datetime

class ExportRecord(db.Model):
    """A generated export file, kept for the dashboard history"""
    __tablename__ = 'export_record'

    id = db.Column(db.Integer, primary_key=True)
    export_id = db.Column(db.String(32), unique=True, nullable=False, index=True)
    kind = db.Column(db.String(40), nullable=False)
    filename = db.Column(db.String(255), nullable=False)
    truncated = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    downloaded_at = db.Column(db.DateTime, nullable=True)

    @classmethod
    def recent(cls, limit=100):
        """Newest exports first"""
        return cls.query.order_by(cls.created_at.desc(), cls.id.desc()).limit(limit).all()

    def mark_downloaded(self):
        self.downloaded_at = datetime.utcnow()

    def to_dict(self):
        """Convert export record to dictionary"""
        return {
            'id': self.export_id,
            'kind': self.kind,
            'filename': self.filename,
            'truncated': self.truncated,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'downloaded_at': self.downloaded_at.isoformat() if self.downloaded_at else None,
        }

    def __repr__(self):
        return f'<ExportRecord {self.export_id}: {self.kind}>'
