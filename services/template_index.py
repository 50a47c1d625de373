"""
Reference index for gradebook templates
Finds the numeric placement markers of a template and hands them
out in ascending order, never the same marker twice
"""

import math
import re
from bisect import bisect_left
from collections import namedtuple
from datetime import date, datetime, time

from openpyxl.utils import column_index_from_string

from services.errors import TemplateError

MARKER_COLUMNS = ('J', 'K')
MIN_SCAN_ROWS = 750

ReferenceSlot = namedtuple('ReferenceSlot', ['sheet', 'row'])

_NON_NUMERIC_RE = re.compile(r'[^\d.\-]')
_LEADING_NUMBER_RE = re.compile(r'^-?(?:\d+(?:\.\d*)?|\.\d+)')

def numeric_cell_value(value):
    """
    Parse a marker cell. Numbers are taken as-is; text is stripped to
    digits, dots and minus signs and its leading number parsed.
    Returns None for empty, boolean, date or non-numeric cells.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (datetime, date, time)):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text or text.startswith('='):
            return None
        match = _LEADING_NUMBER_RE.match(_NON_NUMERIC_RE.sub('', text))
        if not match:
            return None
        number = float(match.group(0))
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number

class ReferenceIndex:
    """Sorted marker lookup with consumption tracking for one export"""

    def __init__(self, slots):
        self._slots = dict(slots)
        self._refs = sorted(self._slots)
        self._consumed = set()

    def __len__(self):
        return len(self._refs)

    def __contains__(self, ref):
        return ref in self._slots

    @property
    def refs(self):
        return list(self._refs)

    def slot(self, ref):
        return self._slots[ref]

    def first(self):
        """Smallest unconsumed reference, or None"""
        return self.next_available(self._refs[0]) if self._refs else None

    def next_available(self, minimum):
        """Smallest unconsumed reference >= minimum, or None"""
        for ref in self._refs[bisect_left(self._refs, minimum):]:
            if ref not in self._consumed:
                return ref
        return None

    def consume(self, ref):
        if ref not in self._slots:
            raise KeyError(ref)
        self._consumed.add(ref)
        return self._slots[ref]

    def is_consumed(self, ref):
        return ref in self._consumed

def _scan_limit(sheet):
    return max(sheet.max_row or 0, MIN_SCAN_ROWS)

def build_reference_index(sheets, value_sheets=None):
    """
    Scan the marker columns of each sheet and index every numeric marker.

    ``value_sheets`` may hold data-only loads of the same sheets so that
    formula markers are read through their cached results; slots always
    point at ``sheets``. The first occurrence of a number wins.
    """
    sheets = list(sheets)
    value_sheets = list(value_sheets) if value_sheets is not None else sheets
    first_col = column_index_from_string(MARKER_COLUMNS[0])
    last_col = column_index_from_string(MARKER_COLUMNS[-1])

    slots = {}
    for sheet, value_sheet in zip(sheets, value_sheets):
        if sheet is None or value_sheet is None:
            continue
        # Rows past max_row hold no values; iterating them would only create empty cells
        last_row = min(_scan_limit(value_sheet), value_sheet.max_row or 0)
        if last_row < 1:
            continue
        rows = value_sheet.iter_rows(min_row=1, max_row=last_row,
                                     min_col=first_col, max_col=last_col,
                                     values_only=True)
        for row_number, values in enumerate(rows, start=1):
            for value in values:
                ref = numeric_cell_value(value)
                if ref is not None and ref not in slots:
                    slots[ref] = ReferenceSlot(sheet, row_number)

    if not slots:
        raise TemplateError("تعذر العثور على أرقام المراجع داخل القالب")
    return ReferenceIndex(slots)
