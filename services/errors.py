"""
Exceptions raised by the export services
"""

class ExportError(Exception):
    """Precondition failure that aborts an export before anything is written"""
    pass

class TemplateError(ExportError):
    """Template file missing, unreadable or without usable markers"""
    pass
