"""
Main gradebook export service
Fills the main gradebook template with class headers, subject labels
and paginated student lists
"""

import logging

import openpyxl

from services import grade_classifier
from services.errors import ExportError, TemplateError
from services.export_files import ExportResult, export_path, new_export_id, resolve_template_path
from services.roster import parse_class_groups, parse_students
from services.slot_allocator import STEP_LOWER, STEP_UPPER, SlotAllocator
from services.template_index import build_reference_index
from utils.validators import AUTO_VARIANT_VALUES, validate_main_gradebook_payload

logger = logging.getLogger(__name__)

EXPORT_KIND = 'main-gradebook'

# Header cells on the metadata sheets
HEADER_CELLS = (
    ('B1', 'directorate'),
    ('B2', 'town'),
    ('B3', 'school'),
    ('B6', 'teacherName'),
)
CLASS_LIST_CELL = 'B4'
SUBJECT_LIST_CELL = 'B5'

class MainGradebookService:
    """Service for generating the main gradebook workbook"""

    def __init__(self, template_folder, export_folder, template_filenames, project_root=None):
        self.template_folder = template_folder
        self.export_folder = export_folder
        self.template_filenames = template_filenames
        self.project_root = project_root

    @classmethod
    def from_config(cls, config, project_root=None):
        return cls(
            template_folder=config['TEMPLATE_FOLDER'],
            export_folder=config['EXPORT_FOLDER'],
            template_filenames=config['TEMPLATE_FILENAMES'],
            project_root=project_root,
        )

    @staticmethod
    def step_for_variant(variant):
        return STEP_LOWER if variant == grade_classifier.VARIANT_LOWER else STEP_UPPER

    @staticmethod
    def select_classes(class_groups, requested_variant):
        """
        Resolve the variant and the class groups that go on its template.
        An explicit variant filters and sorts by grade; auto-detection only
        picks the template.
        """
        if requested_variant in AUTO_VARIANT_VALUES:
            variant = grade_classifier.detect_variant(group.name for group in class_groups)
            return variant, list(class_groups)

        selected = grade_classifier.filter_classes(class_groups, requested_variant)
        return requested_variant, grade_classifier.sort_classes(selected, requested_variant)

    def generate(self, payload):
        """Build the workbook, save it to the export folder and return an ExportResult"""
        is_valid, message = validate_main_gradebook_payload(payload)
        if not is_valid:
            raise ExportError(message)

        students = parse_students(payload['students'])
        if not students:
            raise ExportError("لا توجد بيانات طلبة لمعالجتها")
        class_groups = parse_class_groups(payload['classes'], students)

        variant, class_groups = self.select_classes(class_groups, payload.get('variant'))
        if not class_groups:
            raise ExportError("لا توجد صفوف مطابقة للقالب المختار")

        filename = self.template_filenames.get(variant) or self.template_filenames[grade_classifier.VARIANT_MIXED]
        template_path = resolve_template_path(filename, self.template_folder, self.project_root)
        workbook, values_workbook = self._load_template(template_path)

        if not workbook.worksheets:
            raise TemplateError("تعذر قراءة ورقة العمل الرئيسية من القالب")

        index = build_reference_index(self._sheets(workbook, 0, 1), self._sheets(values_workbook, 0, 1))
        self.write_header_metadata(self._sheets(workbook, 1, 2), payload, class_groups)

        allocator = SlotAllocator(index, step=self.step_for_variant(variant))
        allocation = allocator.allocate(class_groups)
        if allocation.truncated:
            logger.warning(
                "Main gradebook truncated: %d subject(s) and %d student row(s) did not fit the %s template",
                allocation.skipped_subjects, allocation.dropped_students, variant,
            )

        export_id = new_export_id()
        output_name = f"دفتر_العلامات_الرئيسي_{export_id}.xlsx"
        output_path = export_path(self.export_folder, output_name)
        workbook.save(output_path)
        logger.info("Main gradebook %s written (%s variant, %d subjects placed)",
                    export_id, variant, allocation.placed_subjects)

        return ExportResult(
            export_id=export_id,
            filename=output_name,
            path=output_path,
            kind=EXPORT_KIND,
            truncated=allocation.truncated,
            details={
                'variant': variant,
                'placed_subjects': allocation.placed_subjects,
                'placed_students': allocation.placed_students,
                'skipped_subjects': allocation.skipped_subjects,
                'dropped_students': allocation.dropped_students,
            },
        )

    @staticmethod
    def _load_template(template_path):
        try:
            workbook = openpyxl.load_workbook(template_path)
            values_workbook = openpyxl.load_workbook(template_path, data_only=True)
        except (OSError, ValueError, KeyError) as e:
            raise TemplateError(f"تعذر قراءة القالب: {e}") from e
        return workbook, values_workbook

    @staticmethod
    def _sheets(workbook, *positions):
        sheets = workbook.worksheets
        return [sheets[position] if position < len(sheets) else None for position in positions]

    @staticmethod
    def write_header_metadata(sheets, payload, class_groups):
        """Write school metadata and the class/subject summaries on the header sheets"""
        class_list = []
        subject_list = []
        for group in class_groups:
            for division in group.divisions:
                label = ' - '.join(part for part in (group.name, division.name) if part).strip()
                if label and label not in class_list:
                    class_list.append(label)
                for subject_name in division.subject_names():
                    if subject_name not in subject_list:
                        subject_list.append(subject_name)

        for sheet in sheets:
            if sheet is None:
                continue
            for coordinate, key in HEADER_CELLS:
                sheet[coordinate] = payload.get(key) or ''
            sheet[CLASS_LIST_CELL] = ', '.join(class_list)
            sheet[SUBJECT_LIST_CELL] = ', '.join(subject_list)
