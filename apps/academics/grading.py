# academics/grading.py

"""
Examination points for the 8-4-4 and senior CBC classes.

A student's aggregate counts the best seven subjects, with at most two
subjects from each of the sciences, technical/applied and
humanities + religious groups. Core subjects always count.

Points per subject come from the grading scale (see academics/utils.py);
this module only selects which subjects count.
"""

import re
import logging

logger = logging.getLogger(__name__)

CATEGORY_CORE = 'core'
CATEGORY_SCIENCES = 'sciences'
CATEGORY_TECHNICAL = 'technical'
CATEGORY_HUMANITIES = 'humanities'
CATEGORY_RELIGIOUS = 'religious'
CATEGORY_OTHER = 'other'

SUBJECT_CATEGORY_CHOICES = [
    (CATEGORY_CORE, 'Core'),
    (CATEGORY_SCIENCES, 'Sciences'),
    (CATEGORY_TECHNICAL, 'Technical & Applied'),
    (CATEGORY_HUMANITIES, 'Humanities'),
    (CATEGORY_RELIGIOUS, 'Religious Education'),
    (CATEGORY_OTHER, 'Other'),
]

CORE_SUBJECTS = ['English', 'Kiswahili', 'Mathematics']
SCIENCES = ['Biology', 'Chemistry', 'Physics']
TECHNICAL_APPLIED = [
    'Agriculture', 'Home Science', 'Computer Studies', 'Business Studies', 'Computer',
]
HUMANITIES = ['History', 'Geography']
RELIGIOUS = [
    'Christian Religious Education', 'Islamic Religious Education',
    'Hindu Religious Education',
    'C.R.E', 'I.R.E', 'H.R.E', 'CRE', 'IRE', 'HRE',
]

# Checked in order, first match wins
SUBJECT_CATEGORIES = [
    (CATEGORY_CORE, CORE_SUBJECTS),
    (CATEGORY_SCIENCES, SCIENCES),
    (CATEGORY_TECHNICAL, TECHNICAL_APPLIED),
    (CATEGORY_HUMANITIES, HUMANITIES),
    (CATEGORY_RELIGIOUS, RELIGIOUS),
]

MAX_COUNTING_SUBJECTS = 7
CATEGORY_CAP = 2
CATEGORY_CAP_THRESHOLD = 3

CAPPED_POOLS = [
    (CATEGORY_SCIENCES,),
    (CATEGORY_TECHNICAL,),
    (CATEGORY_HUMANITIES, CATEGORY_RELIGIOUS),
]

FORM_844_PATTERN = re.compile(r'^form\s*(3|4)\s*$', re.IGNORECASE)
CBC_SENIOR_PATTERN = re.compile(r'^grade\s*(10|11|12)\s*$', re.IGNORECASE)


# =============================================================================
# CLASS SYSTEM PREDICATES
# =============================================================================

def is_844_class(class_name):
    """True for 8-4-4 candidate classes (Form 3, Form 4)."""
    return bool(FORM_844_PATTERN.match((class_name or '').strip()))


def is_cbc_class(class_name):
    """True for CBC senior school classes (Grade 10, 11, 12)."""
    return bool(CBC_SENIOR_PATTERN.match((class_name or '').strip()))


def uses_seven_subject_calculation(class_name):
    """Whether results for this class are aggregated with calculate_844_points."""
    return is_844_class(class_name) or is_cbc_class(class_name)


# =============================================================================
# SUBJECT CATEGORIES
# =============================================================================

def categorize(subject_title, sub_subject=None):
    """
    Category of a subject.

    The sub-subject name is used when present (e.g. 'Sciences - Biology'
    is categorised by 'Biology'), otherwise the subject title.

    Args:
        subject_title (str): Subject name
        sub_subject (str): Optional narrower subject name

    Returns:
        str: One of the CATEGORY_* tags
    """
    name = (sub_subject or '').strip() or (subject_title or '').strip()
    name = name.lower()

    for category, canonical_names in SUBJECT_CATEGORIES:
        if any(canonical.lower() in name for canonical in canonical_names):
            return category
    return CATEGORY_OTHER


def _by_points(results):
    # sorted() is stable, ties keep input order
    return sorted(results, key=lambda r: r.get('points') or 0, reverse=True)


def _total_points(results):
    return sum((r.get('points') or 0 for r in results), 0)


# =============================================================================
# SEVEN SUBJECT CALCULATION
# =============================================================================

def calculate_844_points(results):
    """
    Aggregate points over the best seven subjects.

    Stage 1 applies the category caps: in the sciences, technical and
    humanities + religious pools, a student with three or more subjects keeps
    only the best two. Stage 2 keeps every core subject and fills the
    remaining of the seven slots with the highest-scoring surviving subjects.

    Args:
        results (list): Dicts with 'subject_title', 'sub_subject', 'points'
            and 'marks'

    Returns:
        dict: {
            'counting_points': total points of the counting subjects,
            'counting_subjects': counting results, highest points first,
            'dropped_subjects': results that do not count,
            'total_subjects_with_results': len(results)
        }

    Example:
        >>> outcome = calculate_844_points([
        ...     {'subject_title': 'English', 'sub_subject': '', 'points': 10, 'marks': 72},
        ...     {'subject_title': 'Sciences', 'sub_subject': 'Biology', 'points': 12, 'marks': 85},
        ... ])
        >>> outcome['counting_points']
        22
    """
    categorized = [
        {**r, 'category': categorize(r.get('subject_title'), r.get('sub_subject'))}
        for r in results
    ]

    core = [r for r in categorized if r['category'] == CATEGORY_CORE]
    capped_categories = {category for pool in CAPPED_POOLS for category in pool}
    candidates = [
        r for r in categorized
        if r['category'] != CATEGORY_CORE and r['category'] not in capped_categories
    ]
    dropped = []

    # Stage 1: category caps
    for pool_categories in CAPPED_POOLS:
        pool = [r for r in categorized if r['category'] in pool_categories]
        if len(pool) >= CATEGORY_CAP_THRESHOLD:
            ranked = _by_points(pool)
            candidates.extend(ranked[:CATEGORY_CAP])
            dropped.extend(ranked[CATEGORY_CAP:])
        else:
            candidates.extend(pool)

    # Restore input order so ties in stage 2 fall back to it
    position = {id(r): index for index, r in enumerate(categorized)}
    candidates.sort(key=lambda r: position[id(r)])

    # Stage 2: seven subject cap
    if len(core) > MAX_COUNTING_SUBJECTS:
        logger.warning(
            f"{len(core)} core subjects exceed the {MAX_COUNTING_SUBJECTS} subject cap, "
            f"keeping the best {MAX_COUNTING_SUBJECTS}"
        )
        ranked_core = _by_points(core)
        counting = ranked_core[:MAX_COUNTING_SUBJECTS]
        dropped.extend(ranked_core[MAX_COUNTING_SUBJECTS:])
        dropped.extend(_by_points(candidates))
    else:
        open_slots = MAX_COUNTING_SUBJECTS - len(core)
        ranked_candidates = _by_points(candidates)
        selected = ranked_candidates[:open_slots]
        dropped.extend(ranked_candidates[open_slots:])
        selected_ids = {id(r) for r in core + selected}
        counting = _by_points([r for r in categorized if id(r) in selected_ids])

    return {
        'counting_points': _total_points(counting),
        'counting_subjects': counting,
        'dropped_subjects': dropped,
        'total_subjects_with_results': len(results),
    }


# =============================================================================
# SUBJECT KEYS
# =============================================================================

def build_subject_key(student_id, subject_title, sub_subject=None):
    """
    Lookup key for a student's result in a subject.

    Example:
        >>> build_subject_key('s1', 'Sciences', 'Biology')
        's1-Sciences - Biology'
    """
    suffix = f" - {sub_subject}" if sub_subject else ''
    return f"{student_id}-{subject_title}{suffix}"


def is_subject_dropped(subject_title, sub_subject, dropped_subjects):
    """Whether a subject appears in the dropped list of calculate_844_points."""
    return any(
        d.get('subject_title') == subject_title and d.get('sub_subject') == sub_subject
        for d in dropped_subjects
    )
