"""
Configuration settings for the Gradebook Export service
"""

import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    """Base configuration class"""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'gradebook-export-secret-key'

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///gradebook_exports.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Request settings
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max JSON payload

    # Template settings
    TEMPLATE_FOLDER = os.environ.get('TEMPLATE_FOLDER') or os.path.join(BASE_DIR, 'templates')
    TEMPLATE_FILENAMES = {
        'lower': 'mark_o_lower.xlsx',
        'upper': 'mark_o.xlsx',
        'mixed': 'mark_o.xlsx',
    }
    ATTENDANCE_TEMPLATE_FILENAME = 'Attendance and absence.xlsx'

    # Export settings
    EXPORT_FOLDER = os.environ.get('EXPORT_FOLDER') or os.path.join(BASE_DIR, 'exports')
    EXPORT_REGISTRY_MAX_ENTRIES = int(os.environ.get('EXPORT_REGISTRY_MAX_ENTRIES', 500))
    EXPORT_TTL_SECONDS = int(os.environ.get('EXPORT_TTL_SECONDS', 3600))
    EXPORT_HISTORY_LIMIT = 100

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Security settings
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None

class TestingConfig(Config):
    """Configuration used by the test suite"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
