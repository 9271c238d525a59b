# fees/services.py

"""
Fee Ledger Operations

Rolling, carry-forward fee balances across the three terms of an academic year.
Positive balances mean the student owes money, negative balances are credit
(overpayment) that is carried into the next term.

All inputs are plain records (dicts) fetched by the caller; nothing here
touches the database.

For display helpers, see fees/utils.py
"""

from decimal import Decimal
import logging

from core.utils import safe_decimal

logger = logging.getLogger(__name__)

TERMS = (1, 2, 3)

BALANCE_CREDIT = 'credit'
BALANCE_DUE = 'due'
BALANCE_CLEARED = 'cleared'

BALANCE_STATUS_CHOICES = [
    (BALANCE_CREDIT, 'Credit'),
    (BALANCE_DUE, 'Due'),
    (BALANCE_CLEARED, 'Cleared'),
]

FEE_COMPONENTS = ('tuition_fee', 'boarding_fee', 'activity_fee', 'other_fees')


def classify_balance(amount):
    """
    Classify a balance by its sign.

    Args:
        amount: Balance amount (positive = owes, negative = credit)

    Returns:
        str: 'credit', 'due' or 'cleared'
    """
    amount = safe_decimal(amount)
    if amount < 0:
        return BALANCE_CREDIT
    if amount > 0:
        return BALANCE_DUE
    return BALANCE_CLEARED


# =============================================================================
# FEE LEDGER SERVICE - ROLLING TERM BALANCES
# =============================================================================

class FeeLedgerService:
    """
    Term-by-term fee ledger for a class and academic year.
    Every call recomputes from the supplied fee structures and payments.
    """

    @staticmethod
    def get_term_fee(fee_structure):
        """
        Total fee for one fee-structure row.

        Uses ``total_fee`` when set, otherwise the sum of the component fees
        (tuition, boarding, activity, other).

        Args:
            fee_structure (dict or None): Fee structure record

        Returns:
            Decimal: Term fee, 0 when no structure is given
        """
        if not fee_structure:
            return Decimal('0')

        total_fee = safe_decimal(fee_structure.get('total_fee'))
        if total_fee:
            return total_fee

        return sum(
            (safe_decimal(fee_structure.get(component)) for component in FEE_COMPONENTS),
            Decimal('0')
        )

    @staticmethod
    def find_fee_structure(class_name, year, term, fee_structures):
        """Fee structure matching class, year and term (term compared as a string)."""
        for fee_structure in fee_structures:
            if (
                fee_structure.get('class_name') == class_name
                and fee_structure.get('year') == year
                and str(fee_structure.get('term')) == str(term)
            ):
                return fee_structure
        return None

    @staticmethod
    def sum_term_payments(term, year, payments):
        """
        Sum all payments recorded against a term and year.

        Args:
            term: Term number (compared as a string)
            year: Academic year
            payments (list): Payment records

        Returns:
            Decimal: Total amount paid in the term
        """
        return sum(
            (
                safe_decimal(payment.get('amount_paid'))
                for payment in payments
                if str(payment.get('term')) == str(term) and payment.get('year') == year
            ),
            Decimal('0')
        )

    @staticmethod
    def compute_yearly_balance(class_name, year, fee_structures, payments):
        """
        Running balance across all terms of a year.

        Each term inherits the previous term's net balance as its carry
        forward, so credit from an overpayment reduces the next term's dues
        and unpaid fees roll into the next term.

        Args:
            class_name (str): Class the fee structures apply to (e.g. 'Form 2')
            year (int): Academic year
            fee_structures (list): Fee structure records
            payments (list): Payment records for the student

        Returns:
            list: Exactly three term balance dicts, terms 1 to 3:
                {
                    'term', 'year', 'term_fee', 'term_payments',
                    'term_balance', 'carry_forward', 'net_balance', 'status'
                }

        Example:
            balances = FeeLedgerService.compute_yearly_balance(
                'Form 2', 2025, fee_structures, payments
            )
            balances[1]['carry_forward'] == balances[0]['net_balance']
        """
        term_balances = []
        running_balance = Decimal('0')

        for term in TERMS:
            fee_structure = FeeLedgerService.find_fee_structure(
                class_name, year, term, fee_structures
            )
            term_fee = FeeLedgerService.get_term_fee(fee_structure)
            term_payments = FeeLedgerService.sum_term_payments(term, year, payments)

            term_balance = term_fee - term_payments
            carry_forward = running_balance
            net_balance = term_balance + carry_forward
            running_balance = net_balance

            term_balances.append({
                'term': term,
                'year': year,
                'term_fee': term_fee,
                'term_payments': term_payments,
                'term_balance': term_balance,
                'carry_forward': carry_forward,
                'net_balance': net_balance,
                'status': classify_balance(net_balance),
            })

        logger.debug(
            f"Computed yearly balance for {class_name} {year}: "
            f"closing balance {running_balance}"
        )
        return term_balances

    @staticmethod
    def compute_term_net_due(class_name, term, year, fee_structures, payments):
        """
        Amount due for a single term, including carry forward from earlier terms.

        Args:
            class_name (str): Student's class
            term (int): Term number (1-3)
            year (int): Academic year
            fee_structures (list): Fee structure records
            payments (list): Payment records for the student

        Returns:
            dict: {
                'term_fee': Decimal,
                'previous_payments': Decimal,   # paid within this term
                'carry_forward_credit': Decimal,  # credit inherited, 0 if debt
                'net_due': Decimal,             # negative when in credit
                'status': str
            }
        """
        term_balances = FeeLedgerService.compute_yearly_balance(
            class_name, year, fee_structures, payments
        )
        current = next(
            (entry for entry in term_balances if str(entry['term']) == str(term)),
            None
        )

        if current is None:
            logger.debug(f"Term {term} is outside the ledger year, returning cleared")
            return {
                'term_fee': Decimal('0'),
                'previous_payments': Decimal('0'),
                'carry_forward_credit': Decimal('0'),
                'net_due': Decimal('0'),
                'status': BALANCE_CLEARED,
            }

        current_term_payments = FeeLedgerService.sum_term_payments(term, year, payments)
        carry_forward = current['carry_forward']
        carry_forward_credit = abs(carry_forward) if carry_forward < 0 else Decimal('0')

        return {
            'term_fee': current['term_fee'],
            'previous_payments': current_term_payments,
            'carry_forward_credit': carry_forward_credit,
            'net_due': current['net_balance'],
            'status': current['status'],
        }

    @staticmethod
    def compute_yearly_totals(class_name, year, fee_structures, payments):
        """
        Yearly totals for a student.

        ``final_balance`` always equals the last term's ``net_balance``.

        Returns:
            dict: {'total_fees', 'total_paid', 'final_balance', 'status'}
        """
        term_balances = FeeLedgerService.compute_yearly_balance(
            class_name, year, fee_structures, payments
        )

        total_fees = sum((entry['term_fee'] for entry in term_balances), Decimal('0'))
        total_paid = sum((entry['term_payments'] for entry in term_balances), Decimal('0'))
        final_balance = total_fees - total_paid

        return {
            'total_fees': total_fees,
            'total_paid': total_paid,
            'final_balance': final_balance,
            'status': classify_balance(final_balance),
        }
