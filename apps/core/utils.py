# core/utils.py

"""
Central utilities for the school ledger and grading engine
Money, number and date helpers shared by the fees and academics apps
"""
from django.utils.dateparse import parse_date, parse_datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
import logging

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = 'KES'


# =============================================================================
# CURRENCY & MONEY FORMATTING
# =============================================================================

def get_base_currency():
    """
    Get base currency from the project settings.
    Safe method that handles unconfigured settings.

    Returns:
        str: Currency code (defaults to 'KES')

    Example:
        >>> from core.utils import get_base_currency
        >>> currency = get_base_currency()
        >>> print(f"School currency: {currency}")
    """
    try:
        from django.conf import settings
        return getattr(settings, 'SCHOOL_CURRENCY', None) or DEFAULT_CURRENCY
    except Exception as e:
        logger.warning(f"Could not fetch currency from settings: {e}")
        return DEFAULT_CURRENCY


def format_money(amount, include_symbol=True, compact=False):
    """
    Format money amount with thousands separators and the school currency.

    Args:
        amount: Decimal or numeric value to format
        include_symbol: Whether to include currency code
        compact: Print whole amounts without cents

    Returns:
        str: Formatted money string

    Example:
        >>> from core.utils import format_money
        >>> print(format_money(45000))  # "KES 45,000.00"
        >>> print(format_money(45000, False))  # "45,000.00"
        >>> print(format_money(45000, compact=True))  # "KES 45,000"
    """
    currency = get_base_currency()
    amount_decimal = round_to_currency(amount)
    if compact and amount_decimal == amount_decimal.to_integral_value():
        formatted = f"{amount_decimal:,.0f}"
    else:
        formatted = f"{amount_decimal:,.2f}"
    return f"{currency} {formatted}" if include_symbol else formatted


def calculate_percentage(part, whole, decimal_places=2):
    """
    Calculate percentage with safe division.

    Args:
        part: The part value
        whole: The whole value
        decimal_places: Number of decimal places (default: 2)

    Returns:
        Decimal: Percentage value, 0 if whole is 0

    Example:
        >>> from core.utils import calculate_percentage
        >>> percentage = calculate_percentage(20000, 45000)  # 44.44
    """
    part = safe_decimal(part)
    whole = safe_decimal(whole)

    if whole == 0:
        return Decimal('0.00')

    percentage = (part / whole) * 100
    return percentage.quantize(Decimal(1).scaleb(-decimal_places), rounding=ROUND_HALF_UP)


# =============================================================================
# NUMBER & CALCULATION UTILITIES
# =============================================================================

def safe_decimal(value, default=Decimal('0.00')):
    """
    Safely convert value to Decimal.

    None, empty strings and unparsable values fall back to ``default``.

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Decimal: Converted value or default

    Example:
        >>> from core.utils import safe_decimal
        >>> amount = safe_decimal(record.get('amount_paid'))
        >>> amount = safe_decimal("invalid", Decimal('0.00'))
    """
    if value is None or value == '':
        return default
    try:
        result = Decimal(str(value))
    except (ValueError, TypeError, InvalidOperation):
        return default
    if not result.is_finite():
        return default
    return result


def safe_float(value, default=0.0):
    """Safely convert value to float, falling back to ``default``."""
    if value is None or value == '':
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def round_half_up(value, decimal_places=2):
    """
    Round a number half away from zero and return a float.

    Python's round() uses banker's rounding on binary floats, so 88.55
    rounds to 88.5. Going through Decimal keeps report figures stable.

    Args:
        value: Number to round
        decimal_places: Number of decimal places

    Returns:
        float: Rounded value

    Example:
        >>> round_half_up(88.55, 1)  # 88.6
        >>> round_half_up(47.0588, 1)  # 47.1
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    rounded = safe_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def round_to_currency(amount):
    """
    Round amount to two decimal places for display and comparison.

    Args:
        amount: Amount to round

    Returns:
        Decimal: Rounded amount
    """
    return safe_decimal(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def format_number(value):
    """
    Format a number for messages: whole numbers without a trailing ``.0``.

    Example:
        >>> format_number(60.0)  # "60"
        >>> format_number(47.1)  # "47.1"
    """
    number = safe_float(value)
    if number.is_integer():
        return str(int(number))
    return str(number)


# =============================================================================
# DATE UTILITIES
# =============================================================================

def to_date(value):
    """
    Coerce an ISO string, datetime or date into a date.

    Args:
        value: ``date``, ``datetime`` or ISO-8601 string

    Returns:
        date or None: Parsed date, None when missing or unparsable

    Example:
        >>> to_date('2025-03-10')  # date(2025, 3, 10)
        >>> to_date('2025-03-10T08:00:00Z')  # date(2025, 3, 10)
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        parsed = parse_datetime(text)
        if parsed is not None:
            return parsed.date()
        parsed = parse_date(text)
        if parsed is not None:
            return parsed
    except ValueError:
        pass

    logger.debug(f"Could not parse date value: {value!r}")
    return None
