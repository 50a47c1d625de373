"""
Roster input types for gradebook exports
Parses the JSON payload into class groups, divisions, subjects and students
"""

from dataclasses import dataclass, field
from typing import List, Optional

from services.errors import ExportError
from utils.sorting_helpers import SortingHelpers

@dataclass(frozen=True)
class Student:
    name: str
    class_name: str = ''
    division: str = ''
    id: Optional[str] = None

@dataclass(frozen=True)
class Subject:
    name: str
    id: Optional[str] = None

@dataclass
class Division:
    name: str
    subjects: List[Subject] = field(default_factory=list)
    id: Optional[str] = None
    students: List[Student] = field(default_factory=list)

    def subject_names(self):
        """Non-blank subject names in order"""
        return [subject.name.strip() for subject in self.subjects if subject.name and subject.name.strip()]

@dataclass
class ClassGroup:
    name: str
    divisions: List[Division] = field(default_factory=list)

def _text(value):
    return str(value).strip() if value is not None else ''

def student_key(class_name, division):
    return f"{_text(class_name)}|||{_text(division)}"

def parse_students(raw_students):
    students = []
    for raw in raw_students or []:
        if not isinstance(raw, dict):
            continue
        name = _text(raw.get('name'))
        if not name:
            continue
        students.append(Student(
            name=name,
            class_name=_text(raw.get('class')),
            division=_text(raw.get('division')),
            id=_text(raw.get('id')) or None,
        ))
    return students

def group_students(students):
    """Group students by class and division, each group sorted by name"""
    grouped = {}
    for student in SortingHelpers.sort_students(students):
        grouped.setdefault(student_key(student.class_name, student.division), []).append(student)
    return grouped

def parse_class_groups(raw_classes, students):
    """
    Build ClassGroups from the payload's class list and attach each
    division's roster. Raises ExportError on malformed entries.
    """
    grouped = group_students(students)
    groups = []
    for raw_group in raw_classes:
        if not isinstance(raw_group, dict):
            raise ExportError("invalid payload")
        class_name = _text(raw_group.get('className'))
        divisions = []
        for raw_division in raw_group.get('divisions') or []:
            if not isinstance(raw_division, dict):
                raise ExportError("invalid payload")
            division_name = _text(raw_division.get('division'))
            subjects = [
                Subject(name=_text(raw_subject.get('name')), id=_text(raw_subject.get('id')) or None)
                for raw_subject in raw_division.get('subjects') or []
                if isinstance(raw_subject, dict)
            ]
            divisions.append(Division(
                name=division_name,
                subjects=subjects,
                id=_text(raw_division.get('id')) or None,
                students=grouped.get(student_key(class_name, division_name), []),
            ))
        groups.append(ClassGroup(name=class_name, divisions=divisions))
    return groups
