"""
Attendance register export service
Clones the month sheet of the attendance template once per class and
fills in student names and daily attendance marks
"""

import calendar
import logging
import re
from datetime import datetime, timezone

import openpyxl
from openpyxl import Workbook
from openpyxl.cell.cell import MergedCell

from services.errors import ExportError, TemplateError
from services.export_files import ExportResult, export_path, new_export_id, resolve_template_path
from services.grade_classifier import normalize_class_name
from services.worksheet_assembler import clone_worksheet
from utils.sorting_helpers import SortingHelpers
from utils.validators import parse_months, validate_attendance_payload

logger = logging.getLogger(__name__)

EXPORT_KIND = 'attendance'

# Template layout: day numbers on row 2, weekday names on row 3, students from row 4
DAY_NUMBER_ROW = 2
DAY_NAME_ROW = 3
STUDENT_START_ROW = 4
SERIAL_COLUMN = 1
NAME_PART_COLUMNS = (2, 3, 4, 5)  # first, father, grand, family

MONTH_NAMES = {
    1: 'كانون الثاني',
    2: 'شباط',
    3: 'آذار',
    4: 'نيسان',
    5: 'أيار',
    6: 'حزيران',
    7: 'تموز',
    8: 'آب',
    9: 'أيلول',
    10: 'تشرين الأول',
    11: 'تشرين الثاني',
    12: 'كانون الأول',
}

WEEKEND_KEYWORDS = ('جمعة', 'سبت')
HOLIDAY_KEYWORDS = ('عطلة', 'عطله')

STATUS_MARKS = {
    'present': '✔',
    'absent': '✗',
    'excused': 'م',
}

MAX_SHEET_TITLE = 31
_SHEET_TITLE_INVALID_RE = re.compile(r'[\\/:?*\[\]]')

def sanitize_sheet_title(raw):
    title = _SHEET_TITLE_INVALID_RE.sub(' ', str(raw or '')).strip()
    return title if len(title) <= MAX_SHEET_TITLE else f"{title[:MAX_SHEET_TITLE - 3]}..."

def unique_sheet_title(base_title, taken):
    """``base_title`` or ``base_title (n)``, shortened so the suffix always fits"""
    taken = {name.lower() for name in taken}
    title = base_title
    count = 1
    while title.lower() in taken:
        count += 1
        suffix = f" ({count})"
        title = f"{base_title[:MAX_SHEET_TITLE - len(suffix)]}{suffix}"
    return title

def parse_record_date(value):
    """Parse an ISO date/datetime string to a UTC date, or None"""
    if not value:
        return None
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()

def split_name(student):
    """Four name parts, from explicit fields or a split full name"""
    parts = [student.get('firstName'), student.get('fatherName'),
             student.get('grandName'), student.get('familyName')]
    if any(parts):
        return [part or '' for part in parts]
    words = str(student.get('fullName') or student.get('name') or '').split()
    return [
        words[0] if len(words) > 0 else '',
        words[1] if len(words) > 1 else '',
        words[2] if len(words) > 2 else '',
        ' '.join(words[3:]),
    ]

def display_name(student):
    return ' '.join(part for part in split_name(student) if part)

def _day_number(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    digits = re.sub(r'\D', '', normalize_class_name(value))
    return int(digits) if digits else None

def collect_day_columns(sheet):
    """Map template columns to day numbers; flags weekend columns"""
    columns = []
    for cell in sheet[DAY_NUMBER_ROW]:
        day = _day_number(cell.value)
        if day is None or not 1 <= day <= 31:
            continue
        day_name = str(sheet.cell(row=DAY_NAME_ROW, column=cell.column).value or '')
        is_weekend = any(keyword in day_name for keyword in WEEKEND_KEYWORDS)
        columns.append((cell.column, day, is_weekend))

    if not columns:
        raise TemplateError("تعذر تحديد أعمدة الأيام في القالب")
    return columns

class AttendanceRegisterService:
    """Service for generating the monthly attendance register"""

    def __init__(self, template_folder, export_folder, template_filename, project_root=None):
        self.template_folder = template_folder
        self.export_folder = export_folder
        self.template_filename = template_filename
        self.project_root = project_root

    @classmethod
    def from_config(cls, config, project_root=None):
        return cls(
            template_folder=config['TEMPLATE_FOLDER'],
            export_folder=config['EXPORT_FOLDER'],
            template_filename=config['ATTENDANCE_TEMPLATE_FILENAME'],
            project_root=project_root,
        )

    @staticmethod
    def build_attendance_map(records, month, year=None):
        """student id -> {day: mark} for one month"""
        marks = {}
        for record in records or []:
            if not isinstance(record, dict):
                continue
            record_date = parse_record_date(record.get('date'))
            if record_date is None or record_date.month != month:
                continue
            if year is not None and record_date.year != year:
                continue
            mark = STATUS_MARKS.get(record.get('status'), STATUS_MARKS['absent'])
            marks.setdefault(str(record.get('studentId')), {})[record_date.day] = mark
        return marks

    @staticmethod
    def infer_years(records, months, fallback_year):
        """First year seen in the records for each month, else the fallback"""
        years = {}
        for record in records or []:
            if not isinstance(record, dict):
                continue
            record_date = parse_record_date(record.get('date'))
            if record_date is not None and record_date.month in months:
                years.setdefault(record_date.month, record_date.year)
        return {month: years.get(month, fallback_year) for month in months}

    @staticmethod
    def fallback_year(payload):
        match = re.search(r'\d{4}', str(payload.get('year') or ''))
        return int(match.group(0)) if match else datetime.now(timezone.utc).year

    def generate(self, payload):
        """Build the register workbook, save it and return an ExportResult"""
        is_valid, message = validate_attendance_payload(payload)
        if not is_valid:
            raise ExportError(message)

        months = parse_months(payload)
        records = payload.get('attendance') or []
        years = self.infer_years(records, months, self.fallback_year(payload))

        template_path = resolve_template_path(self.template_filename, self.template_folder, self.project_root)
        try:
            template = openpyxl.load_workbook(template_path)
            template_values = openpyxl.load_workbook(template_path, data_only=True)
        except (OSError, ValueError, KeyError) as e:
            raise TemplateError(f"تعذر قراءة القالب: {e}") from e

        students_by_class = {}
        for student in payload['students']:
            if isinstance(student, dict):
                students_by_class.setdefault(str(student.get('classId')), []).append(student)

        month_layouts = []
        for month in months:
            month_name = MONTH_NAMES[month]
            if month_name not in template.sheetnames:
                raise TemplateError(f"تعذر العثور على ورقة للشهر '{month_name}' في القالب")
            source = template[month_name]
            month_layouts.append((
                month_name,
                source,
                template_values[month_name],
                collect_day_columns(source),
                calendar.monthrange(years[month], month)[1],
                self.build_attendance_map(records, month, years[month]),
            ))

        output = Workbook()
        output.remove(output.active)

        for class_info in payload['classes']:
            if not isinstance(class_info, dict):
                continue
            class_name = str(class_info.get('name') or class_info.get('sheetName') or '').strip()
            students = sorted(
                students_by_class.get(str(class_info.get('id')), []),
                key=lambda student: SortingHelpers.get_name_sort_key(display_name(student)),
            )

            for month_name, source, values_source, day_columns, days_in_month, attendance in month_layouts:
                base_title = sanitize_sheet_title(f"{class_info.get('sheetName') or class_name or 'Class'} - {month_name}")
                title = unique_sheet_title(base_title, output.sheetnames)

                sheet = clone_worksheet(source, output, title, values_source=values_source)
                self._stamp_class_name(sheet, class_name)

                for offset, student in enumerate(students):
                    self._fill_row(sheet, STUDENT_START_ROW + offset, offset + 1, student,
                                   day_columns, attendance.get(str(student.get('id')), {}), days_in_month)

        if not output.worksheets:
            raise ExportError("لا توجد صفوف لمعالجتها")

        export_id = new_export_id()
        term_name = str(payload.get('termName') or '').strip()
        if term_name:
            descriptor = re.sub(r'\s+', '_', term_name)
        elif len(months) > 1:
            descriptor = 'مجمع'
        else:
            descriptor = MONTH_NAMES[months[0]]
        filename = f"دفتر_الحضور_{descriptor}_{export_id}.xlsx"
        output_path = export_path(self.export_folder, filename)
        output.save(output_path)
        logger.info("Attendance register %s written (%d sheets)", export_id, len(output.worksheets))

        return ExportResult(
            export_id=export_id,
            filename=filename,
            path=output_path,
            kind=EXPORT_KIND,
            details={'sheets': len(output.worksheets), 'months': months},
        )

    @staticmethod
    def _stamp_class_name(sheet, class_name):
        if not class_name:
            return
        current = str(sheet['A1'].value or '').strip()
        if ':' in current:
            sheet['A1'] = f"{current.split(':')[0].strip()}: {class_name}"
        elif current:
            sheet['A1'] = f"{current}: {class_name}"
        else:
            sheet['A1'] = class_name

    @staticmethod
    def _fill_row(sheet, row, serial, student, day_columns, marks, days_in_month):
        # Cells inside a merged range keep the template's anchor value
        serial_cell = sheet.cell(row=row, column=SERIAL_COLUMN)
        if not isinstance(serial_cell, MergedCell):
            serial_cell.value = serial
        for column, part in zip(NAME_PART_COLUMNS, split_name(student)):
            cell = sheet.cell(row=row, column=column)
            if not isinstance(cell, MergedCell):
                cell.value = part

        for column, day, is_weekend in day_columns:
            cell = sheet.cell(row=row, column=column)
            if isinstance(cell, MergedCell):
                continue
            current = str(cell.value or '')
            if any(keyword in current for keyword in HOLIDAY_KEYWORDS):
                continue
            if day > days_in_month or is_weekend:
                cell.value = None
            else:
                cell.value = marks.get(day)
