"""
Grade classifier for class names
Maps free-text class names (mostly Arabic) to a grade rank 0-12
and picks the gradebook template variant from those ranks
"""

import re
import unicodedata

VARIANT_LOWER = 'lower'
VARIANT_UPPER = 'upper'
VARIANT_MIXED = 'mixed'
VARIANTS = (VARIANT_LOWER, VARIANT_UPPER, VARIANT_MIXED)

LOWER_MAX_RANK = 4

_DIGIT_TRANSLATION = {code: str(code - 0x0660) for code in range(0x0660, 0x066A)}
_DIGIT_TRANSLATION.update({code: str(code - 0x06F0) for code in range(0x06F0, 0x06FA)})
_LETTER_TRANSLATION = {
    ord('أ'): 'ا',
    ord('إ'): 'ا',
    ord('آ'): 'ا',
    ord('ٱ'): 'ا',
    ord('ى'): 'ي',
    ord('ة'): 'ه',
    ord('ؤ'): 'و',
    ord('ئ'): 'ي',
    ord('ـ'): None,  # tatweel
}

_PUNCTUATION_RE = re.compile(r'[^\w\s]', re.UNICODE)
_UNDERSCORE_RE = re.compile(r'_+')
_WHITESPACE_RE = re.compile(r'\s+')
_BARE_DIGIT_RE = re.compile(r'(?<!\d)(1[0-2]|[0-9])(?!\d)')

def normalize_class_name(value):
    """Normalize digits, letter variants, punctuation and spacing"""
    text = str(value or '')
    text = text.translate(_DIGIT_TRANSLATION).translate(_LETTER_TRANSLATION)
    # Drop harakat and other combining marks
    text = ''.join(ch for ch in unicodedata.normalize('NFKD', text) if not unicodedata.combining(ch))
    text = _PUNCTUATION_RE.sub(' ', text)
    text = _UNDERSCORE_RE.sub(' ', text)
    text = _WHITESPACE_RE.sub(' ', text).strip()
    return text.lower()

def _keyword_table(raw_table):
    table = []
    for rank, keywords in raw_table:
        normalized = {normalize_class_name(keyword) for keyword in keywords}
        table.append((rank, sorted(normalized, key=len, reverse=True)))
    return table

# Checked from rank 12 down to 0; the first rank with a matching keyword wins
GRADE_KEYWORDS = _keyword_table([
    (12, ['الثاني الثانوي', 'ثاني ثانوي', 'الثاني عشر', 'ثاني عشر', 'توجيهي']),
    (11, ['الأول الثانوي', 'أول ثانوي', 'الحادي عشر', 'حادي عشر']),
    (10, ['العاشر', 'عاشر']),
    (9, ['التاسع', 'تاسع']),
    (8, ['الثامن', 'ثامن']),
    (7, ['السابع', 'سابع']),
    (6, ['السادس', 'سادس']),
    (5, ['الخامس', 'خامس']),
    (4, ['الرابع', 'رابع']),
    (3, ['الثالث', 'ثالث']),
    (2, ['الثاني', 'ثاني']),
    (1, ['الأول', 'أول']),
    (0, ['رياض الأطفال', 'روضة', 'تمهيدي', 'kindergarten', 'kg']),
])

# Used only for classes whose rank could not be detected
LOWER_GRADE_VOCABULARY = [
    normalize_class_name(word)
    for word in ['روضة', 'بستان', 'حضانة', 'تمهيدي', 'الأول', 'الثاني', 'الثالث', 'الدنيا', 'ابتدائي']
]

def classify(class_name):
    """Return the grade rank (0-12) for a class name, or None when unknown"""
    text = normalize_class_name(class_name)
    if not text:
        return None

    for rank, keywords in GRADE_KEYWORDS:
        for keyword in keywords:
            if keyword in text:
                return rank

    match = _BARE_DIGIT_RE.search(text)
    if match:
        return int(match.group(1))
    return None

def looks_like_lower_grade(class_name):
    """Heuristic for unranked classes: does the name use lower-grade vocabulary?"""
    text = normalize_class_name(class_name)
    return any(word in text for word in LOWER_GRADE_VOCABULARY)

def detect_variant(class_names):
    """Pick the template variant for a set of class names"""
    ranks = [rank for rank in (classify(name) for name in class_names) if rank is not None]
    if any(rank > LOWER_MAX_RANK for rank in ranks):
        return VARIANT_UPPER
    if ranks and all(rank <= LOWER_MAX_RANK for rank in ranks):
        return VARIANT_LOWER
    return VARIANT_MIXED

def matches_variant(class_name, variant):
    rank = classify(class_name)
    if variant == VARIANT_LOWER:
        if rank is None:
            return looks_like_lower_grade(class_name)
        return rank <= LOWER_MAX_RANK
    if variant == VARIANT_UPPER:
        return rank is not None and rank > LOWER_MAX_RANK
    return True

def filter_classes(class_groups, variant):
    """Keep only the class groups that belong on the given variant's template"""
    return [group for group in class_groups if matches_variant(group.name, variant)]

def sort_classes(class_groups, variant):
    """Sort class groups by rank (unknown last) for lower/upper; mixed keeps input order"""
    if variant not in (VARIANT_LOWER, VARIANT_UPPER):
        return list(class_groups)

    def sort_key(group):
        rank = classify(group.name)
        return (1, 0) if rank is None else (0, rank)

    return sorted(class_groups, key=sort_key)
