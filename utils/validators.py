"""
Validation utilities for export payloads
"""

from services.grade_classifier import VARIANT_LOWER, VARIANT_UPPER

AUTO_VARIANT_VALUES = (None, '', 'auto')

def validate_main_gradebook_payload(payload):
    """Validate the main gradebook request body"""
    if not isinstance(payload, dict):
        return False, "invalid payload"

    classes = payload.get('classes')
    students = payload.get('students')
    if not isinstance(classes, list) or not isinstance(students, list):
        return False, "invalid payload"

    if len(classes) == 0:
        return False, "لا توجد صفوف لمعالجتها"

    if len(students) == 0:
        return False, "لا توجد بيانات طلبة لمعالجتها"

    is_valid, message = validate_variant(payload.get('variant'))
    if not is_valid:
        return False, message

    return True, "Valid payload"

def validate_variant(variant):
    """Validate an optional template variant selector"""
    if variant in AUTO_VARIANT_VALUES:
        return True, "Auto-detect variant"

    if variant not in (VARIANT_LOWER, VARIANT_UPPER):
        return False, f"Unknown template variant: {variant}"

    return True, "Valid variant"

def parse_months(payload):
    """Return the sorted unique months (1-12) requested by an attendance payload"""
    raw_months = payload.get('months') if isinstance(payload.get('months'), list) else []
    candidates = raw_months if raw_months else [payload.get('month')]

    months = set()
    for value in candidates:
        try:
            month = int(str(value).strip())
        except (TypeError, ValueError):
            continue
        if 1 <= month <= 12:
            months.add(month)
    return sorted(months)

def validate_attendance_payload(payload):
    """Validate the attendance register request body"""
    if not isinstance(payload, dict):
        return False, "invalid attendance payload"

    if not isinstance(payload.get('classes'), list) or not isinstance(payload.get('students'), list):
        return False, "invalid attendance payload"

    if not parse_months(payload):
        return False, "يجب تحديد شهر واحد على الأقل (1-12)"

    return True, "Valid payload"
