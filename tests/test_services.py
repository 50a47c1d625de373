"""
Unit tests for the export services
"""

import os
import tempfile
import unittest
import openpyxl
from config import Config
from services.attendance_service import AttendanceRegisterService, split_name, unique_sheet_title
from services.errors import ExportError, TemplateError
from services.main_gradebook_service import MainGradebookService
from template_fixtures import attendance_workbook, gradebook_workbook, roster_payload, spaced_markers

class ServiceTestCase(unittest.TestCase):

    def setUp(self):
        """Set up template and export folders"""
        self.tmpdir = tempfile.TemporaryDirectory()
        self.template_folder = os.path.join(self.tmpdir.name, 'templates')
        self.export_folder = os.path.join(self.tmpdir.name, 'exports')
        os.makedirs(self.template_folder)

    def tearDown(self):
        self.tmpdir.cleanup()

    def save_template(self, workbook, filename):
        workbook.save(os.path.join(self.template_folder, filename))

class TestMainGradebookService(ServiceTestCase):

    def setUp(self):
        super().setUp()
        self.service = MainGradebookService(
            template_folder=self.template_folder,
            export_folder=self.export_folder,
            template_filenames=Config.TEMPLATE_FILENAMES,
        )
        self.save_template(gradebook_workbook([(0, 10, 10), (0, 11, 11), (0, 12, 12)]), 'mark_o.xlsx')

    def test_generate_end_to_end(self):
        """Seventh grade roster lands on marker 10 with names sorted"""
        result = self.service.generate(roster_payload())

        self.assertTrue(os.path.exists(result.path))
        self.assertEqual(result.kind, 'main-gradebook')
        self.assertFalse(result.truncated)
        self.assertEqual(result.details['variant'], 'upper')
        self.assertTrue(result.filename.endswith(f'{result.export_id}.xlsx'))

        sheet = openpyxl.load_workbook(result.path).worksheets[0]
        self.assertEqual(sheet['D10'].value, 'الصف : الصف السابع')
        self.assertEqual(sheet['I10'].value, 'الشعبة (أ)')
        self.assertEqual(sheet['O11'].value, 'الرياضيات')
        self.assertEqual([sheet[f'B{row}'].value for row in range(15, 18)], ['سارة', 'ليان', 'نور'])
        self.assertEqual([sheet[f'A{row}'].value for row in range(15, 18)], [1, 2, 3])

    def test_header_metadata(self):
        result = self.service.generate(roster_payload())
        workbook = openpyxl.load_workbook(result.path)

        for sheet in workbook.worksheets[1:3]:
            self.assertEqual(sheet['B1'].value, 'مديرية التربية')
            self.assertEqual(sheet['B2'].value, 'إربد')
            self.assertEqual(sheet['B3'].value, 'مدرسة النور')
            self.assertEqual(sheet['B4'].value, 'الصف السابع - أ')
            self.assertEqual(sheet['B5'].value, 'الرياضيات')
            self.assertEqual(sheet['B6'].value, 'أحمد')

    def test_truncation_is_reported_not_raised(self):
        payload = roster_payload()
        payload['classes'][0]['divisions'][0]['subjects'].extend([
            {'id': 's2', 'name': 'العلوم'},
            {'id': 's3', 'name': 'التاريخ'},
        ])
        result = self.service.generate(payload)

        self.assertTrue(result.truncated)
        self.assertEqual(result.details['placed_subjects'], 2)
        self.assertEqual(result.details['skipped_subjects'], 1)

    def test_lower_variant_uses_lower_template_and_step(self):
        self.save_template(gradebook_workbook(spaced_markers([1, 2, 3, 4])), 'mark_o_lower.xlsx')
        payload = roster_payload(variant='lower')
        payload['classes'] = [
            {'className': 'الصف السابع', 'divisions': [{'division': 'أ', 'subjects': [{'name': 'الرياضيات'}]}]},
            {'className': 'الصف الثاني', 'divisions': [{'division': 'أ', 'subjects': [{'name': 'القراءة'}, {'name': 'الرسم'}]}]},
        ]
        payload['students'] = [
            {'name': 'سارة', 'class': 'الصف الثاني', 'division': 'أ'},
            {'name': 'ليان', 'class': 'الصف السابع', 'division': 'أ'},
        ]
        result = self.service.generate(payload)
        sheet = openpyxl.load_workbook(result.path).worksheets[0]

        self.assertEqual(result.details['variant'], 'lower')
        self.assertEqual(sheet['O1'].value, 'القراءة')
        self.assertEqual(sheet['O61'].value, 'الرسم')
        self.assertFalse(result.truncated)
        for row in sheet.iter_rows(values_only=True):
            self.assertNotIn('الرياضيات', row)

    def test_select_classes(self):
        from services.roster import ClassGroup
        groups = [ClassGroup('الصف التاسع'), ClassGroup('الصف الأول'), ClassGroup('الصف الخامس')]

        variant, selected = MainGradebookService.select_classes(groups, None)
        self.assertEqual(variant, 'upper')
        self.assertEqual([group.name for group in selected], ['الصف التاسع', 'الصف الأول', 'الصف الخامس'])

        variant, selected = MainGradebookService.select_classes(groups, 'upper')
        self.assertEqual([group.name for group in selected], ['الصف الخامس', 'الصف التاسع'])
        self.assertEqual(MainGradebookService.step_for_variant('lower'), 1)
        self.assertEqual(MainGradebookService.step_for_variant('mixed'), 2)

    def test_preconditions(self):
        with self.assertRaisesRegex(ExportError, 'لا توجد صفوف'):
            self.service.generate(roster_payload(classes=[]))
        with self.assertRaisesRegex(ExportError, 'لا توجد بيانات طلبة'):
            self.service.generate(roster_payload(students=[]))
        with self.assertRaisesRegex(ExportError, 'invalid payload'):
            self.service.generate(None)
        with self.assertRaises(ExportError):
            self.service.generate(roster_payload(variant='middle'))

    def test_no_matching_classes(self):
        with self.assertRaises(ExportError):
            self.service.generate(roster_payload(variant='lower'))

    def test_missing_template(self):
        os.remove(os.path.join(self.template_folder, 'mark_o.xlsx'))
        with self.assertRaises(TemplateError):
            self.service.generate(roster_payload())
        self.assertFalse(os.path.exists(self.export_folder) and os.listdir(self.export_folder))

    def test_template_without_markers(self):
        self.save_template(gradebook_workbook([]), 'mark_o.xlsx')
        with self.assertRaisesRegex(TemplateError, 'أرقام المراجع'):
            self.service.generate(roster_payload())

class TestAttendanceRegisterService(ServiceTestCase):

    def setUp(self):
        super().setUp()
        self.service = AttendanceRegisterService(
            template_folder=self.template_folder,
            export_folder=self.export_folder,
            template_filename=Config.ATTENDANCE_TEMPLATE_FILENAME,
        )
        self.save_template(attendance_workbook(), Config.ATTENDANCE_TEMPLATE_FILENAME)

    def payload(self, **overrides):
        payload = {
            'year': '2025',
            'month': 9,
            'classes': [{'id': 'c1', 'name': 'السابع أ'}],
            'students': [
                {'id': 's2', 'fullName': 'ليان محمد علي الخطيب', 'classId': 'c1'},
                {'id': 's1', 'firstName': 'سارة', 'familyName': 'العمري', 'classId': 'c1'},
            ],
            'attendance': [
                {'studentId': 's1', 'date': '2025-09-01T00:00:00Z', 'status': 'present'},
                {'studentId': 's1', 'date': '2025-09-02', 'status': 'excused'},
                {'studentId': 's2', 'date': '2025-09-01', 'status': 'absent'},
                {'studentId': 's2', 'date': '2025-09-05', 'status': 'absent'},
                {'studentId': 's2', 'date': '2025-10-01', 'status': 'absent'},
            ],
        }
        payload.update(overrides)
        return payload

    def test_generate_register(self):
        result = self.service.generate(self.payload())
        workbook = openpyxl.load_workbook(result.path)

        self.assertEqual(workbook.sheetnames, ['السابع أ - أيلول'])
        sheet = workbook.worksheets[0]
        self.assertEqual(sheet['A1'].value, 'الصف: السابع أ')
        self.assertEqual(sheet['A4'].value, 1)
        self.assertEqual(sheet['B4'].value, 'سارة')
        self.assertEqual(sheet['E4'].value, 'العمري')
        self.assertEqual(sheet['B5'].value, 'ليان')
        self.assertEqual(sheet['E5'].value, 'الخطيب')
        self.assertEqual(sheet['F4'].value, '✔')
        self.assertEqual(sheet['G4'].value, 'م')
        self.assertEqual(sheet['F5'].value, '✗')
        # day 5 is a weekend column in the template
        self.assertIsNone(sheet['J5'].value)
        self.assertEqual(sheet.column_dimensions['B'].width, 18)
        self.assertTrue(result.filename.startswith('دفتر_الحضور_أيلول_'))

    def test_multiple_months_and_duplicate_titles(self):
        template = attendance_workbook()
        template.create_sheet('تشرين الأول')
        for day in range(1, 32):
            template['تشرين الأول'].cell(row=2, column=5 + day, value=day)
        self.save_template(template, Config.ATTENDANCE_TEMPLATE_FILENAME)

        payload = self.payload(months=[10, 9, 9], classes=[{'id': 'c1', 'name': 'السابع أ'}, {'id': 'c2', 'name': 'السابع أ'}])
        result = self.service.generate(payload)
        workbook = openpyxl.load_workbook(result.path)

        self.assertEqual(workbook.sheetnames, [
            'السابع أ - أيلول', 'السابع أ - تشرين الأول',
            'السابع أ - أيلول (2)', 'السابع أ - تشرين الأول (2)',
        ])
        self.assertEqual(workbook['السابع أ - تشرين الأول']['F5'].value, '✗')
        self.assertIn('مجمع', result.filename)

    def test_merged_holiday_column_is_kept(self):
        """A holiday column merged down the student rows keeps its label"""
        template = attendance_workbook()
        template['أيلول']['H4'] = 'عطلة'
        template['أيلول'].merge_cells('H4:H40')
        self.save_template(template, Config.ATTENDANCE_TEMPLATE_FILENAME)

        result = self.service.generate(self.payload())
        sheet = openpyxl.load_workbook(result.path).worksheets[0]

        self.assertEqual(sheet['H4'].value, 'عطلة')
        self.assertIn('H4:H40', [str(r) for r in sheet.merged_cells.ranges])
        self.assertEqual(sheet['F4'].value, '✔')
        self.assertEqual(sheet['F5'].value, '✗')
        self.assertEqual(sheet['B5'].value, 'ليان')

    def test_long_duplicate_titles_stay_within_limit(self):
        long_name = 'الصف السابع الأساسي شعبة المتميزين'
        payload = self.payload(classes=[{'id': 'c1', 'name': long_name}, {'id': 'c2', 'name': long_name}])
        result = self.service.generate(payload)
        titles = openpyxl.load_workbook(result.path).sheetnames

        self.assertEqual(len(titles), 2)
        self.assertNotEqual(titles[0], titles[1])
        self.assertTrue(titles[1].endswith(' (2)'))
        for title in titles:
            self.assertLessEqual(len(title), 31)

    def test_unique_sheet_title(self):
        self.assertEqual(unique_sheet_title('أ - أيلول', []), 'أ - أيلول')
        self.assertEqual(unique_sheet_title('أ - أيلول', ['أ - أيلول']), 'أ - أيلول (2)')
        self.assertEqual(unique_sheet_title('Class', ['class', 'Class (2)']), 'Class (3)')
        base = 'x' * 31
        self.assertEqual(unique_sheet_title(base, [base]), 'x' * 27 + ' (2)')

    def test_missing_month_sheet(self):
        with self.assertRaises(TemplateError):
            self.service.generate(self.payload(month=3))

    def test_invalid_months(self):
        with self.assertRaises(ExportError):
            self.service.generate(self.payload(month=13))

    def test_split_name(self):
        self.assertEqual(split_name({'fullName': 'أ ب ج د هـ'}), ['أ', 'ب', 'ج', 'د هـ'])
        self.assertEqual(split_name({'firstName': 'سارة'}), ['سارة', '', '', ''])

if __name__ == '__main__':
    unittest.main()
