"""
Slot allocator for the main gradebook template

Walks the roster (class -> division -> subject -> students) against the
template's reference markers and writes headers, subject labels and
paginated student lists into the marked rows.

Template layout constants below must change together with the
template files.
"""

import logging
from dataclasses import dataclass

from openpyxl.utils import column_index_from_string

logger = logging.getLogger(__name__)

CLASS_LABEL_COLUMN = column_index_from_string('D')
DIVISION_LABEL_COLUMN = column_index_from_string('I')
SUBJECT_VALUE_COLUMN = column_index_from_string('O')
SERIAL_COLUMN = column_index_from_string('A')
NAME_COLUMN = column_index_from_string('B')

STUDENT_ROW_OFFSET = 5
BLOCK_SIZE = 25

STEP_LOWER = 1
STEP_UPPER = 2

def class_label(class_name):
    return f"الصف : {class_name or ''}".strip()

def division_label(division_name):
    return f"الشعبة ({division_name or ''})"

@dataclass
class AllocationResult:
    placed_subjects: int = 0
    placed_students: int = 0
    skipped_subjects: int = 0
    dropped_students: int = 0
    truncated: bool = False

class AllocationCursor:
    """Last consumed header reference plus the exhaustion flag"""

    def __init__(self, step):
        if step < 1:
            raise ValueError("step must be a positive integer")
        self.step = step
        self.last_ref = None
        self.exhausted = False

    def target_start(self, index):
        if self.last_ref is None:
            return index.first()
        return self.last_ref + self.step

class SlotAllocator:
    """Places subject rosters into the marker slots of a loaded template"""

    def __init__(self, index, step=STEP_UPPER):
        self.index = index
        self.cursor = AllocationCursor(step)

    def allocate(self, class_groups):
        """Fill the template for every eligible subject; stops silently when slots run out"""
        result = AllocationResult()
        pending = self._eligible(class_groups)

        for group, division, subject_name in pending:
            if self.cursor.exhausted:
                break
            students = division.students
            placed = self._place_subject(group, division, subject_name, students)
            if placed is None:
                break
            result.placed_subjects += 1
            result.placed_students += placed
            result.dropped_students += len(students) - placed

        if self.cursor.exhausted:
            result.truncated = True
            result.skipped_subjects = len(pending) - result.placed_subjects
            result.dropped_students += sum(
                len(division.students) for _, division, _ in pending[result.placed_subjects:]
            )
            logger.info("Template slots exhausted after %d of %d subjects",
                        result.placed_subjects, len(pending))
        return result

    @staticmethod
    def _eligible(class_groups):
        pending = []
        for group in class_groups:
            for division in group.divisions:
                if not division.students:
                    continue
                for subject_name in division.subject_names():
                    pending.append((group, division, subject_name))
        return pending

    def _place_subject(self, group, division, subject_name, students):
        """
        Write one subject across as many blocks as its roster needs.
        Returns the number of students written, or None if no header slot was left.
        """
        start = self.cursor.target_start(self.index)
        header_ref = self.index.next_available(start) if start is not None else None
        if header_ref is None:
            self.cursor.exhausted = True
            return None

        written = 0
        remaining = list(students)
        while remaining:
            self._write_header(header_ref, group.name, division.name, subject_name)
            block, remaining = remaining[:BLOCK_SIZE], remaining[BLOCK_SIZE:]
            self._write_block(header_ref, block)
            written += len(block)
            self.cursor.last_ref = header_ref

            if remaining:
                header_ref = self.index.next_available(header_ref + self.cursor.step)
                if header_ref is None:
                    self.cursor.exhausted = True
                    break
        return written

    def _write_header(self, header_ref, class_name, division_name, subject_name):
        labels = (class_label(class_name), division_label(division_name), subject_name)
        sheet, row = self.index.consume(header_ref)
        self._write_labels(sheet, row, *labels)

        subject_ref = self.index.next_available(header_ref + 1)
        if subject_ref is not None:
            subject_sheet, subject_row = self.index.consume(subject_ref)
            self._write_labels(subject_sheet, subject_row, *labels)

    @staticmethod
    def _write_labels(sheet, row, class_text, division_text, subject_name):
        sheet.cell(row=row, column=CLASS_LABEL_COLUMN).value = class_text
        sheet.cell(row=row, column=DIVISION_LABEL_COLUMN).value = division_text
        sheet.cell(row=row, column=SUBJECT_VALUE_COLUMN).value = subject_name

    def _write_block(self, header_ref, block):
        sheet, header_row = self.index.slot(header_ref)
        first_row = header_row + STUDENT_ROW_OFFSET
        for offset, student in enumerate(block):
            sheet.cell(row=first_row + offset, column=SERIAL_COLUMN).value = offset + 1
            sheet.cell(row=first_row + offset, column=NAME_COLUMN).value = student.name
