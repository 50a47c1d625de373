"""
Database models package for the Gradebook Export service
"""

from .export import ExportRecord

__all__ = ['ExportRecord']
