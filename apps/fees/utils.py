# fees/utils.py

"""
Display helpers for fee balances.
Sign-based text selection only; amounts are never modified.
"""

from core.utils import format_money, safe_decimal
from .services import BALANCE_CREDIT, BALANCE_DUE, BALANCE_CLEARED, classify_balance
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# BALANCE FORMATTING
# =============================================================================

def get_balance_status(amount):
    """Balance status by sign: 'credit', 'due' or 'cleared'."""
    return classify_balance(amount)


def format_balance(amount):
    """
    Format a balance for display with a styling tag.

    Args:
        amount: Balance amount (positive = due, negative = credit)

    Returns:
        dict: {
            'text': str,          # "Credit: KES 10,000", "Due: ...", "Cleared"
            'class_name': str,    # CSS class for the amount
            'is_credit': bool,
            'is_due': bool,
            'is_cleared': bool
        }

    Example:
        >>> format_balance(-10000)['text']  # "Credit: KES 10,000"
    """
    amount = safe_decimal(amount)
    status = get_balance_status(amount)

    if status == BALANCE_CREDIT:
        text = f"Credit: {format_money(abs(amount), compact=True)}"
        class_name = 'text-success'
    elif status == BALANCE_DUE:
        text = f"Due: {format_money(amount, compact=True)}"
        class_name = 'text-danger'
    else:
        text = 'Cleared'
        class_name = 'text-muted'

    return {
        'text': text,
        'class_name': class_name,
        'is_credit': status == BALANCE_CREDIT,
        'is_due': status == BALANCE_DUE,
        'is_cleared': status == BALANCE_CLEARED,
    }


def format_amount_with_sign(amount):
    """
    Format amount with a leading minus for credit.

    Example:
        >>> format_amount_with_sign(-1500)  # "-KES 1,500"
        >>> format_amount_with_sign(1500)   # "KES 1,500"
    """
    amount = safe_decimal(amount)
    if amount < 0:
        return f"-{format_money(abs(amount), compact=True)}"
    return format_money(amount, compact=True)


def get_balance_status_color(status):
    """
    Get color code for a balance status.

    Args:
        status: Balance status string

    Returns:
        str: Hex color code
    """
    colors = {
        BALANCE_CREDIT: '#28A745',   # Green
        BALANCE_DUE: '#DC3545',      # Red
        BALANCE_CLEARED: '#6C757D',  # Gray
        'partial': '#FFC107',        # Amber
        'defaulter': '#DC3545',      # Red
    }
    return colors.get(status, '#6C757D')
