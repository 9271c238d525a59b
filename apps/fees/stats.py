# fees/stats.py

"""
Bursar statistics for student fee status.
Year-level roll-up of what each student owes against their class fee structure.
"""

from decimal import Decimal
import logging

from core.utils import safe_decimal
from .services import FeeLedgerService

logger = logging.getLogger(__name__)

FEE_STATUS_CLEARED = 'cleared'
FEE_STATUS_PARTIAL = 'partial'
FEE_STATUS_DEFAULTER = 'defaulter'


# =============================================================================
# STUDENT FEE STATUS
# =============================================================================

def get_student_fee_status(student, year, fee_structures, payments):
    """
    Fee status of one student for a year.

    Args:
        student (dict): Student record with 'id' and 'class_name'
        year (int): Academic year
        fee_structures (list): Fee structure records (any class)
        payments (list): Payment records (any student)

    Returns:
        dict: {
            'student_id', 'class_name', 'total_due', 'total_paid',
            'balance', 'status'  # cleared / partial / defaulter
        }
    """
    student_id = student.get('id')
    class_name = student.get('class_name')

    total_due = sum(
        (
            FeeLedgerService.get_term_fee(fee_structure)
            for fee_structure in fee_structures
            if fee_structure.get('class_name') == class_name and fee_structure.get('year') == year
        ),
        Decimal('0')
    )
    total_paid = sum(
        (
            safe_decimal(payment.get('amount_paid'))
            for payment in payments
            if payment.get('student_id') == student_id and payment.get('year') == year
        ),
        Decimal('0')
    )
    balance = total_due - total_paid

    if balance <= 0:
        status = FEE_STATUS_CLEARED
    elif balance < total_due / 2:
        status = FEE_STATUS_PARTIAL
    else:
        status = FEE_STATUS_DEFAULTER

    return {
        'student_id': student_id,
        'class_name': class_name,
        'total_due': total_due,
        'total_paid': total_paid,
        'balance': balance,
        'status': status,
    }


def get_fee_status_statistics(students, year, fee_structures, payments, filters=None):
    """
    Fee status statistics for a set of students.

    Args:
        students (list): Student records
        year (int): Academic year
        fee_structures (list): Fee structure records
        payments (list): Payment records
        filters (dict): Optional filters
            - class_name: Only include students in this class
            - status: Only include students with this fee status

    Returns:
        dict: Per-student statuses and counts
    """
    statuses = [
        get_student_fee_status(student, year, fee_structures, payments)
        for student in students
    ]

    if filters:
        if filters.get('class_name'):
            statuses = [s for s in statuses if s['class_name'] == filters['class_name']]
        if filters.get('status'):
            statuses = [s for s in statuses if s['status'] == filters['status']]

    stats = {
        'students': statuses,
        'total_students': len(statuses),
        'cleared_count': sum(1 for s in statuses if s['status'] == FEE_STATUS_CLEARED),
        'partial_count': sum(1 for s in statuses if s['status'] == FEE_STATUS_PARTIAL),
        'defaulter_count': sum(1 for s in statuses if s['status'] == FEE_STATUS_DEFAULTER),
        # Credit balances do not offset other students' debt
        'total_outstanding': sum(
            (max(s['balance'], Decimal('0')) for s in statuses),
            Decimal('0')
        ),
    }

    logger.debug(
        f"Fee status for {year}: {stats['defaulter_count']} defaulters of "
        f"{stats['total_students']} students"
    )
    return stats
