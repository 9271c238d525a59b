# academics/stats.py
"""
Performance analytics for a student's exam history
Averages, subject and overall trends, a naive next-exam prediction,
natural-language insights and chart series
"""

from collections import OrderedDict
from datetime import date
import math
import logging

from core.utils import safe_float, round_half_up, format_number, to_date

logger = logging.getLogger(__name__)

TREND_IMPROVING = 'improving'
TREND_DECLINING = 'declining'
TREND_STABLE = 'stable'

TREND_THRESHOLD = 2
PREDICTION_DAMPING = 0.5
STRONG_SUBJECT_AVERAGE = 70
WEAK_SUBJECT_AVERAGE = 50
SUBJECT_TREND_ALERT = 5
CONSISTENT_STD_DEV = 5
INCONSISTENT_STD_DEV = 15
MIN_EXAMS_FOR_CONSISTENCY = 3
CHART_SUBJECT_LIMIT = 5

INSIGHT_POSITIVE = 'positive'
INSIGHT_WARNING = 'warning'
INSIGHT_INFO = 'info'
INSIGHT_PREDICTION = 'prediction'


def _exam_date(exam):
    return to_date(exam.get('start_date')) or date.min


# =============================================================================
# AVERAGES & TRENDS
# =============================================================================

def calculate_average(results):
    """
    Mean marks of a set of results, rounded to 2 decimal places.

    Returns:
        float: Average, 0 for no results
    """
    if not results:
        return 0
    total = sum(safe_float(r.get('marks')) for r in results)
    return round_half_up(total / len(results), 2)


def calculate_trend(previous_avg, current_avg):
    """
    Trend between two averages.

    The percentage change is rounded to one decimal place and classified:
    above +2% is improving, below -2% declining, anything else stable.

    Args:
        previous_avg: Earlier average
        current_avg: Later average

    Returns:
        dict: {'trend': str, 'percentage': float}  # percentage is absolute
    """
    previous_avg = safe_float(previous_avg)
    current_avg = safe_float(current_avg)

    if previous_avg == 0:
        return {'trend': TREND_STABLE, 'percentage': 0}

    percentage = round_half_up((current_avg - previous_avg) / previous_avg * 100, 1)

    if percentage > TREND_THRESHOLD:
        trend = TREND_IMPROVING
    elif percentage < -TREND_THRESHOLD:
        trend = TREND_DECLINING
    else:
        trend = TREND_STABLE

    return {'trend': trend, 'percentage': abs(percentage)}


def _split_trend(values):
    """Trend between the first and second half of a chronological list of averages."""
    midpoint = len(values) // 2
    first_half = values[:midpoint]
    second_half = values[midpoint:]
    first_avg = sum(first_half) / len(first_half)
    second_avg = sum(second_half) / len(second_half)
    return calculate_trend(first_avg, second_avg)


# =============================================================================
# EXAM GROUPING
# =============================================================================

def group_results_by_exam(results, exams):
    """
    Attach results to their exams.

    Args:
        results (list): Exam result records
        exams (list): Exam records

    Returns:
        list: Copies of the exams that have results, each with 'results' and
        'average', ordered by start date
    """
    exam_map = OrderedDict()
    for exam in exams:
        exam_map[exam.get('id')] = {**exam, 'results': [], 'average': 0}

    for result in results:
        exam_id = result.get('exam_id')
        if exam_id and exam_id in exam_map:
            exam_map[exam_id]['results'].append(result)

    for exam in exam_map.values():
        exam['average'] = calculate_average(exam['results'])

    exams_with_results = [exam for exam in exam_map.values() if exam['results']]
    return sorted(exams_with_results, key=_exam_date)


# =============================================================================
# SUBJECT TRENDS
# =============================================================================

def calculate_subject_trends(results, exams):
    """
    Trend per subject, strongest subject first.

    A subject's results are put in exam order and split at the midpoint;
    the trend compares the average of the later half against the earlier
    half. Fewer than two results give a stable trend.

    Returns:
        list: [{
            'subject', 'average_marks', 'trend', 'trend_percentage',
            'exam_scores': [{'exam_name', 'marks', 'date'}]
        }]
    """
    exams_by_id = {exam.get('id'): exam for exam in exams}
    subjects = list(OrderedDict.fromkeys(r.get('subject') for r in results))

    def result_date(result):
        exam = exams_by_id.get(result.get('exam_id'))
        if exam is not None:
            return _exam_date(exam)
        return to_date(result.get('created_at')) or date.min

    subject_trends = []
    for subject in subjects:
        subject_results = sorted(
            (r for r in results if r.get('subject') == subject and r.get('exam_id')),
            key=result_date
        )

        exam_scores = []
        for r in subject_results:
            exam = exams_by_id.get(r.get('exam_id'))
            exam_scores.append({
                'exam_name': exam.get('exam_name') if exam else 'Unknown',
                'marks': r.get('marks'),
                'date': exam.get('start_date') if exam else r.get('created_at'),
            })

        trend = {'trend': TREND_STABLE, 'percentage': 0}
        if len(subject_results) >= 2:
            midpoint = len(subject_results) // 2
            trend = calculate_trend(
                calculate_average(subject_results[:midpoint]),
                calculate_average(subject_results[midpoint:]),
            )

        subject_trends.append({
            'subject': subject,
            'average_marks': calculate_average(subject_results),
            'trend': trend['trend'],
            'trend_percentage': trend['percentage'],
            'exam_scores': exam_scores,
        })

    return sorted(subject_trends, key=lambda s: s['average_marks'], reverse=True)


# =============================================================================
# OVERALL STATISTICS
# =============================================================================

def calculate_overall_stats(results, exams):
    """
    Overall performance statistics for a student.

    The overall trend splits the per-exam averages at the midpoint. When a
    trend can be computed, the next exam average is predicted as the last
    exam average moved by half the trend percentage, clamped to 0-100.

    Returns:
        dict: {
            'overall_average', 'best_subject', 'weakest_subject',
            'trend', 'trend_percentage', 'total_exams',
            'predicted_next_average'
        }
    """
    exams_with_results = group_results_by_exam(results, exams)
    subject_trends = calculate_subject_trends(results, exams)

    overall_average = calculate_average(results)
    best = subject_trends[0] if subject_trends else None
    weakest = subject_trends[-1] if subject_trends else None

    trend = TREND_STABLE
    trend_percentage = 0
    predicted_next_average = None

    if len(exams_with_results) >= 2:
        trend_calc = _split_trend([exam['average'] for exam in exams_with_results])
        trend = trend_calc['trend']
        trend_percentage = trend_calc['percentage']

        # A last exam averaging 0 falls back to the overall average
        last_exam_average = exams_with_results[-1]['average'] or overall_average
        direction = {TREND_IMPROVING: 1, TREND_DECLINING: -1}.get(trend, 0)
        predicted = last_exam_average + trend_percentage * PREDICTION_DAMPING * direction
        predicted_next_average = round_half_up(min(100, max(0, predicted)), 1)

    return {
        'overall_average': overall_average,
        'best_subject': (
            {'name': best['subject'], 'average': best['average_marks']} if best else None
        ),
        # A single subject is reported once, as the best
        'weakest_subject': (
            {'name': weakest['subject'], 'average': weakest['average_marks']}
            if weakest and weakest is not best else None
        ),
        'trend': trend,
        'trend_percentage': trend_percentage,
        'total_exams': len(exams_with_results),
        'predicted_next_average': predicted_next_average,
    }


# =============================================================================
# INSIGHTS
# =============================================================================

def generate_insights(results, exams, stats, subject_trends):
    """
    Natural-language insights, in a fixed rule order.

    Args:
        results (list): Exam result records
        exams (list): Exam records
        stats (dict): Output of calculate_overall_stats
        subject_trends (list): Output of calculate_subject_trends

    Returns:
        list: [{'type', 'title', 'message'}]
    """
    insights = []

    if stats['trend'] == TREND_IMPROVING:
        insights.append({
            'type': INSIGHT_POSITIVE,
            'title': 'Performance Improving',
            'message': (
                f"Your performance has improved by {format_number(stats['trend_percentage'])}% "
                f"over recent exams. Keep up the great work!"
            ),
        })
    elif stats['trend'] == TREND_DECLINING:
        insights.append({
            'type': INSIGHT_WARNING,
            'title': 'Performance Needs Attention',
            'message': (
                f"Your marks have dropped by {format_number(stats['trend_percentage'])}% recently. "
                f"Consider seeking extra help or adjusting study habits."
            ),
        })

    best = stats.get('best_subject')
    if best and best['average'] >= STRONG_SUBJECT_AVERAGE:
        insights.append({
            'type': INSIGHT_POSITIVE,
            'title': 'Strong Subject',
            'message': (
                f"{best['name']} is your strongest subject with an average of "
                f"{format_number(best['average'])}%. Consider pursuing related career paths."
            ),
        })

    weakest = stats.get('weakest_subject')
    if weakest and weakest['average'] < WEAK_SUBJECT_AVERAGE:
        insights.append({
            'type': INSIGHT_WARNING,
            'title': 'Subject Needs Focus',
            'message': (
                f"{weakest['name']} needs more attention ({format_number(weakest['average'])}% "
                f"average). Consider dedicating extra study time."
            ),
        })

    for subject in subject_trends:
        if subject['trend'] == TREND_DECLINING and subject['trend_percentage'] > SUBJECT_TREND_ALERT:
            insights.append({
                'type': INSIGHT_WARNING,
                'title': f"{subject['subject']} Declining",
                'message': (
                    f"Your {subject['subject']} marks have dropped "
                    f"{format_number(subject['trend_percentage'])}%. "
                    f"Focus on this subject to improve."
                ),
            })

    if stats.get('predicted_next_average') is not None:
        insights.append({
            'type': INSIGHT_PREDICTION,
            'title': 'Performance Prediction',
            'message': (
                f"Based on your current trajectory, your expected next exam average is "
                f"{format_number(stats['predicted_next_average'])}%."
            ),
        })

    if stats['total_exams'] >= MIN_EXAMS_FOR_CONSISTENCY:
        averages = [exam['average'] for exam in group_results_by_exam(results, exams)]
        if averages:
            # Spread around the flat overall average, not the mean of exam averages
            variance = sum(
                (average - stats['overall_average']) ** 2 for average in averages
            ) / len(averages)
            std_dev = math.sqrt(variance)
            logger.debug(f"Exam average standard deviation: {std_dev:.2f}")

            if std_dev < CONSISTENT_STD_DEV:
                insights.append({
                    'type': INSIGHT_INFO,
                    'title': 'Consistent Performance',
                    'message': (
                        'Your performance is very consistent across exams. '
                        'This shows steady study habits.'
                    ),
                })
            elif std_dev > INCONSISTENT_STD_DEV:
                insights.append({
                    'type': INSIGHT_WARNING,
                    'title': 'Inconsistent Results',
                    'message': (
                        'Your exam scores vary significantly. '
                        'Try to maintain more consistent study routines.'
                    ),
                })

    improving = [
        s['subject'] for s in subject_trends
        if s['trend'] == TREND_IMPROVING and s['trend_percentage'] > SUBJECT_TREND_ALERT
    ]
    if improving:
        insights.append({
            'type': INSIGHT_POSITIVE,
            'title': 'Subjects Improving',
            'message': (
                f"Great progress in: {', '.join(improving)}. Your effort is paying off!"
            ),
        })

    return insights


# =============================================================================
# CHART DATA
# =============================================================================

def prepare_chart_data(exams_with_results, subject_trends):
    """
    Series for the performance charts.

    Args:
        exams_with_results (list): Output of group_results_by_exam
        subject_trends (list): Output of calculate_subject_trends

    Returns:
        dict: {
            'overall_data': [{'name', 'average', 'date'}],
            'subject_data': [{'name', 'date', <subject>: marks or None}],
            'subjects': top five subject names
        }
    """
    overall_data = [
        {
            'name': exam.get('exam_name'),
            'average': exam['average'],
            'date': exam.get('start_date'),
        }
        for exam in exams_with_results
    ]

    subjects = [s['subject'] for s in subject_trends[:CHART_SUBJECT_LIMIT]]

    subject_data = []
    for exam in exams_with_results:
        data_point = {
            'name': exam.get('exam_name'),
            'date': exam.get('start_date'),
        }
        for subject in subjects:
            result = next((r for r in exam['results'] if r.get('subject') == subject), None)
            data_point[subject] = result.get('marks') if result else None
        subject_data.append(data_point)

    return {
        'overall_data': overall_data,
        'subject_data': subject_data,
        'subjects': subjects,
    }


# =============================================================================
# CLASS POSITION
# =============================================================================

def _rank_by_total_marks(class_results):
    totals = OrderedDict()
    for r in class_results:
        student_id = r.get('student_id')
        totals[student_id] = totals.get(student_id, 0) + safe_float(r.get('marks'))
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def calculate_class_position(class_results, student_id, subject_count):
    """
    Student's position in class for one exam, by total marks.

    Args:
        class_results (list): Records with 'student_id' and 'marks' for the whole class
        student_id: Student to rank
        subject_count (int): Number of subjects the student sat

    Returns:
        dict: {
            'position': int,          # 0 when the student has no results
            'total_students': int,
            'class_average': float    # mean marks per subject
        }
    """
    ranked = _rank_by_total_marks(class_results)
    position = next(
        (index + 1 for index, (sid, _) in enumerate(ranked) if sid == student_id),
        0
    )
    total_students = len(ranked)
    class_average = 0
    if total_students > 0:
        class_average = sum(total for _, total in ranked) / total_students / (subject_count or 1)

    return {
        'position': position,
        'total_students': total_students,
        'class_average': class_average,
    }


def calculate_position_change(previous_class_results, student_id, current_position):
    """
    Movement in class position since the previous exam.

    Returns:
        dict: {
            'previous_position': int or None,
            'position_diff': int or None  # positive means moved up
        }
    """
    if not previous_class_results:
        return {'previous_position': None, 'position_diff': None}

    ranked = _rank_by_total_marks(previous_class_results)
    previous_position = next(
        (index + 1 for index, (sid, _) in enumerate(ranked) if sid == student_id),
        0
    )

    position_diff = None
    if previous_position > 0 and current_position > 0:
        position_diff = previous_position - current_position

    return {
        'previous_position': previous_position or None,
        'position_diff': position_diff,
    }
