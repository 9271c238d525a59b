# academics/utils.py
"""
Utility functions for academics app
Grading scale lookups, exam status and subject name helpers
"""

import logging

from core.utils import safe_float, to_date

logger = logging.getLogger(__name__)


# =============================================================================
# GRADING SCALE
# =============================================================================

GRADE_POINTS = {
    'A': 12, 'A-': 11,
    'B+': 10, 'B': 9, 'B-': 8,
    'C+': 7, 'C': 6, 'C-': 5,
    'D+': 4, 'D': 3, 'D-': 2,
    'E': 1,
}

# (minimum marks, grade), highest first
DEFAULT_GRADE_BOUNDARIES = [
    (80, 'A'), (75, 'A-'), (70, 'B+'), (65, 'B'), (60, 'B-'), (55, 'C+'),
    (50, 'C'), (45, 'C-'), (40, 'D+'), (35, 'D'), (30, 'D-'),
]

# Mean grade over seven subjects (maximum 84 points)
DEFAULT_POINT_BOUNDARIES = [
    {'grade': 'A', 'min_points': 81, 'max_points': 84},
    {'grade': 'A-', 'min_points': 74, 'max_points': 80},
    {'grade': 'B+', 'min_points': 67, 'max_points': 73},
    {'grade': 'B', 'min_points': 60, 'max_points': 66},
    {'grade': 'B-', 'min_points': 53, 'max_points': 59},
    {'grade': 'C+', 'min_points': 46, 'max_points': 52},
    {'grade': 'C', 'min_points': 39, 'max_points': 45},
    {'grade': 'C-', 'min_points': 32, 'max_points': 38},
    {'grade': 'D+', 'min_points': 25, 'max_points': 31},
    {'grade': 'D', 'min_points': 18, 'max_points': 24},
    {'grade': 'D-', 'min_points': 11, 'max_points': 17},
    {'grade': 'E', 'min_points': 0, 'max_points': 10},
]


def _match_boundary(marks, boundaries):
    for boundary in boundaries:
        if safe_float(boundary.get('min_marks')) <= marks <= safe_float(boundary.get('max_marks')):
            grade = boundary.get('grade')
            points = boundary.get('points')
            if points is None:
                points = GRADE_POINTS.get(grade, 0)
            return {'grade': grade, 'points': points}
    return None


def grade_for_marks(marks, boundaries=None, subject_id=None, sub_subject=None):
    """
    Grade and points for a mark.

    Subject-specific boundaries are tried first (when both subject and
    sub-subject are given), then the class's overall boundaries, then the
    default KCSE scale.

    Args:
        marks: Mark out of 100
        boundaries (list): Grade boundary records for the class
        subject_id: Subject the mark belongs to
        sub_subject (str): Sub-subject the mark belongs to

    Returns:
        dict: {'grade': str, 'points': int}

    Example:
        >>> grade_for_marks(72)
        {'grade': 'B+', 'points': 10}
    """
    marks = safe_float(marks)
    boundaries = boundaries or []

    if subject_id and sub_subject:
        subject_boundaries = [
            b for b in boundaries
            if b.get('boundary_type') == 'subject'
            and b.get('subject_id') == subject_id
            and b.get('sub_subject') == sub_subject
        ]
        match = _match_boundary(marks, subject_boundaries)
        if match:
            return match

    overall_boundaries = [b for b in boundaries if b.get('boundary_type') == 'overall']
    match = _match_boundary(marks, overall_boundaries)
    if match:
        return match

    for minimum, grade in DEFAULT_GRADE_BOUNDARIES:
        if marks >= minimum:
            return {'grade': grade, 'points': GRADE_POINTS[grade]}
    return {'grade': 'E', 'points': GRADE_POINTS['E']}


def overall_grade_by_points(total_points, point_boundaries=None):
    """
    Mean grade for an aggregate of counting points.

    Args:
        total_points: Points from calculate_844_points
        point_boundaries (list): Class point boundaries, defaults to the KCSE scale

    Returns:
        dict: {'grade': str, 'points': int}
    """
    total_points = safe_float(total_points)
    for boundary in point_boundaries or DEFAULT_POINT_BOUNDARIES:
        if safe_float(boundary.get('min_points')) <= total_points <= safe_float(boundary.get('max_points')):
            grade = boundary.get('grade')
            return {'grade': grade, 'points': GRADE_POINTS.get(grade, 0)}
    return {'grade': 'E', 'points': GRADE_POINTS['E']}


# =============================================================================
# SUBJECT NAMES
# =============================================================================

def split_subject_name(subject):
    """
    Split a stored result subject into title and sub-subject.

    Example:
        >>> split_subject_name('Sciences - Biology')
        ('Sciences', 'Biology')
        >>> split_subject_name('English')
        ('English', '')
    """
    parts = (subject or '').split(' - ')
    subject_title = parts[0]
    sub_subject = parts[1] if len(parts) > 1 else ''
    return subject_title, sub_subject


# =============================================================================
# EXAM STATUS
# =============================================================================

EXAM_UPCOMING = 'upcoming'
EXAM_ONGOING = 'ongoing'
EXAM_COMPLETED = 'completed'


def get_exam_status(exam, now):
    """
    Status of an exam relative to a given moment.

    Args:
        exam (dict): Exam record with 'start_date' and 'end_date'
        now (date or datetime): Current time, supplied by the caller

    Returns:
        str: 'upcoming', 'ongoing' or 'completed'
    """
    today = to_date(now)
    start_date = to_date(exam.get('start_date'))
    end_date = to_date(exam.get('end_date'))

    if today is None:
        logger.warning("No current date given for exam status, treating exam as upcoming")
        return EXAM_UPCOMING

    if start_date and today < start_date:
        return EXAM_UPCOMING
    if end_date and today > end_date:
        return EXAM_COMPLETED
    return EXAM_ONGOING


# =============================================================================
# VALIDATION UTILITIES
# =============================================================================

TERMS_PER_YEAR = 3


def validate_term_number(term_number):
    """
    Validate term number against the three-term year.

    Args:
        term_number: Term number to validate

    Returns:
        tuple: (is_valid, error_message)
    """
    try:
        term = int(str(term_number))
    except (ValueError, TypeError):
        return (False, f'Term "{term_number}" is not a number')

    if term < 1 or term > TERMS_PER_YEAR:
        return (False, f'Term {term} is invalid (must be between 1 and {TERMS_PER_YEAR})')

    return (True, None)
