"""
Sorting helper utilities for the Gradebook Export service
Provides consistent ordering for student names and class groups
"""

import unicodedata

class SortingHelpers:
    """Helper class for sorting operations"""

    @staticmethod
    def get_name_sort_key(name):
        """
        Base-sensitivity collation key for a display name.
        Ignores case, harakat and other combining marks, so
        'سارة' and 'سَارة' compare equal.
        """
        text = unicodedata.normalize('NFKD', str(name or '').strip())
        text = ''.join(ch for ch in text if not unicodedata.combining(ch))
        text = text.replace('ـ', '')
        return ' '.join(text.casefold().split())

    @staticmethod
    def sort_students(students):
        """Sort students by display name"""
        return sorted(students, key=lambda student: SortingHelpers.get_name_sort_key(student.name))
